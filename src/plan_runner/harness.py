# harness.py
# Plan → Execute → Synthesize orchestrator.
#
# The Orchestrator owns all control flow. The completion service is a passive
# responder called exactly twice per request (plan, synthesis); tools are only
# reached through the registry.
#
# Control flow:
#   query → PlanGenerator (Plan) → StepExecutor (Plan + store → trace)
#   → ResponseSynthesizer (query + trace → prose)
#
# Failure policy:
#   planning errors abort before anything runs; step errors become failed
#   trace entries; synthesis errors escalate with the trace attached.
#
# All terminal output is delegated to display.py; no formatting here.

import json

from pydantic import ValidationError

from plan_runner import display, tools
from plan_runner.completion import CompletionService, ServiceError
from plan_runner.models import ExecutionResult, ExecutionStatus, Plan, Step, StepOutcome
from plan_runner.store import StateStore


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PlanParseError(Exception):
    """Raised when the planner reply is not valid JSON or not a valid plan."""


class SynthesisError(ServiceError):
    """Raised when synthesis fails after steps have already executed."""

    def __init__(self, message: str, steps: list[StepOutcome]) -> None:
        super().__init__(message)
        self.steps = steps


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

PLAN_PROMPT = """\
Analyze the user's request and create a step-by-step execution plan using the available tools.

USER QUERY: "{query}"

AVAILABLE TOOLS:
{tools}

INSTRUCTIONS:
1. Break down complex requests into individual steps
2. Use the most appropriate tools for each step
3. Include necessary arguments
4. Mark a step "optional": true only if the rest of the plan can proceed without it
5. Return valid JSON only

OUTPUT FORMAT:
{{
  "steps": [
    {{
      "tool": "tool_name",
      "arguments": {{ ... }},
      "purpose": "description of what this step accomplishes",
      "optional": false
    }}
  ]
}}\
"""

SYNTHESIS_PROMPT = """\
You are a helpful assistant. Create a natural, friendly response based on the executed steps.

USER'S ORIGINAL QUERY: "{query}"

EXECUTION RESULTS:
{results}

INSTRUCTIONS:
1. Summarize what was accomplished
2. Present the results in a user-friendly way
3. Keep it concise but informative
4. Use natural language, not JSON
5. If there were any failures, mention them politely

RESPONSE:\
"""

APOLOGY = "I couldn't complete your request. Please try again with a different query."

PLAN_TEMPERATURE = 0.3
SYNTHESIS_TEMPERATURE = 0.7


# ---------------------------------------------------------------------------
# Plan generation
# ---------------------------------------------------------------------------


class PlanGenerator:
    def __init__(self, completion: CompletionService, model: str | None = None) -> None:
        self._completion = completion
        self._model = model

    def build_prompt(self, query: str) -> str:
        return PLAN_PROMPT.format(query=query, tools=tools.describe_for_prompt())

    def parse_plan(self, response: str) -> Plan:
        """
        Strictly parse a planner reply into a Plan.

        Only the document shape is checked here: an object holding a non-empty
        array of step objects. Tool names and arguments are left for the
        executor to reject step by step.
        """
        try:
            data = json.loads(response)
        except json.JSONDecodeError as exc:
            raise PlanParseError(f"Planner reply is not valid JSON: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
            raise PlanParseError("Planner reply must be a JSON object with a 'steps' array")
        if not data["steps"]:
            raise PlanParseError("Planner returned an empty plan")
        if not all(isinstance(step, dict) for step in data["steps"]):
            raise PlanParseError("Every entry in 'steps' must be a JSON object")

        try:
            return Plan.model_validate(data)
        except ValidationError as exc:
            raise PlanParseError(f"Plan content is invalid: {exc}") from exc

    def generate(self, query: str) -> Plan:
        response = self._completion.generate(
            self.build_prompt(query),
            json_mode=True,
            temperature=PLAN_TEMPERATURE,
            model=self._model,
        )
        return self.parse_plan(response)


# ---------------------------------------------------------------------------
# Step execution
# ---------------------------------------------------------------------------


def execution_status(plan: Plan, trace: list[StepOutcome]) -> ExecutionStatus:
    """Aborted when the last recorded step is a failed required step."""
    if trace and not trace[-1].success and not trace[-1].step.optional:
        return ExecutionStatus.ABORTED
    if len(trace) < len(plan.steps):
        return ExecutionStatus.ABORTED
    return ExecutionStatus.COMPLETED


class StepExecutor:
    """
    Runs a plan's steps in order against the tool registry.

    A failed required step stops the loop; nothing after it is attempted.
    Optional failures are recorded and skipped past. Earlier state changes
    are never rolled back.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def execute_step(self, step: Step) -> StepOutcome:
        try:
            result = tools.invoke(step.tool, step.arguments, self._store)
        except (tools.UnknownToolError, tools.ToolExecutionError) as exc:
            return StepOutcome(step=step, success=False, result=None, error=str(exc))
        return StepOutcome(step=step, success=True, result=result, error=None)

    def execute(self, plan: Plan) -> list[StepOutcome]:
        trace: list[StepOutcome] = []
        total = len(plan.steps)

        display.execution_start(total)

        for index, step in enumerate(plan.steps):
            display.step_start(index, total, step.tool, step.arguments)

            outcome = self.execute_step(step)
            trace.append(outcome)
            display.step_outcome(outcome)

            if not outcome.success and not step.optional:
                display.execution_aborted(index, total)
                break

        return trace


# ---------------------------------------------------------------------------
# Synthesis
# ---------------------------------------------------------------------------


class ResponseSynthesizer:
    def __init__(self, completion: CompletionService, model: str | None = None) -> None:
        self._completion = completion
        self._model = model

    def build_prompt(self, query: str, results: list) -> str:
        return SYNTHESIS_PROMPT.format(
            query=query,
            results=json.dumps(results, indent=2, default=str),
        )

    def synthesize(self, query: str, trace: list[StepOutcome]) -> str:
        """Summarize successful results; never calls the model when there are none."""
        results = [outcome.result for outcome in trace if outcome.success]
        if not results:
            display.synthesis_skipped()
            return APOLOGY

        display.synthesis_start(len(results))
        text = self._completion.generate(
            self.build_prompt(query, results),
            temperature=SYNTHESIS_TEMPERATURE,
            model=self._model,
        )
        return text.strip()


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    """
    Request entry point.

    Example:
        orchestrator = Orchestrator(CompletionService(settings), StateStore())
        result = orchestrator.run("add Inception to my watchlist")
    """

    def __init__(
        self,
        completion: CompletionService,
        store: StateStore,
        planner_model: str | None = None,
        synthesis_model: str | None = None,
    ) -> None:
        self.store = store
        self.planner = PlanGenerator(completion, planner_model)
        self.executor = StepExecutor(store)
        self.synthesizer = ResponseSynthesizer(completion, synthesis_model)

    def run(self, query: str) -> ExecutionResult:
        """
        Plan, execute and summarize one query.

        Raises PlanParseError or ServiceError before any step runs, and
        SynthesisError (carrying the trace) if the summary cannot be produced.
        """
        display.query_received(query)

        # ── Step 1: Plan ──────────────────────────────────────────────
        display.calling_planner()
        try:
            plan = self.planner.generate(query)
        except (PlanParseError, ServiceError) as exc:
            display.halt(f"Planning failed: {exc}")
            raise

        display.plan_parsed(plan)

        # ── Step 2: Execute ───────────────────────────────────────────
        trace = self.executor.execute(plan)
        status = execution_status(plan, trace)
        display.execution_summary(trace, status)

        # ── Step 3: Synthesize ────────────────────────────────────────
        try:
            final_message = self.synthesizer.synthesize(query, trace)
        except ServiceError as exc:
            display.halt(f"Synthesis failed: {exc}")
            raise SynthesisError(str(exc), trace) from exc

        display.final_result(final_message)
        return ExecutionResult(
            user_query=query,
            plan=plan,
            steps=trace,
            status=status,
            final_message=final_message,
        )
