# run.py
# Entry point. Config and wiring only, no logic lives here.
#
# Swap model strings for any OpenRouter-supported model via PLANNER_MODEL and
# SYNTHESIS_MODEL. https://openrouter.ai/models

import uvicorn

from plan_runner import display
from plan_runner.api import create_app
from plan_runner.completion import CompletionService
from plan_runner.config import Settings
from plan_runner.harness import Orchestrator
from plan_runner.store import StateStore


def build_app(settings: Settings):
    completion = CompletionService(settings)
    store = StateStore(annual_leave_days=settings.annual_leave_days)
    orchestrator = Orchestrator(
        completion,
        store,
        planner_model=settings.planner_model,
        synthesis_model=settings.synthesis_model,
    )
    display.banner(settings.planner_model, settings.synthesis_model, completion.configured)
    return create_app(orchestrator, settings)


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(build_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
