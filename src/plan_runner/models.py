# models.py
# Data contracts for the plan runner.
# No business logic lives here, only schema and validation.

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class Step(BaseModel):
    """
    A single requested tool invocation in an execution plan.

    Fields are coerced rather than rejected: a step the registry cannot run
    fails at execution time, not at parse time.
    """

    tool: str = Field(
        default="",
        validation_alias=AliasChoices("tool", "function", "toolName"),
        description="Tool name, resolved against the registry at execution time.",
    )
    arguments: Any = Field(default_factory=dict, description="Raw tool arguments.")
    purpose: str = Field(default="", description="Human-readable intent of this step.")
    optional: bool = Field(default=False, description="Failure does not abort the plan.")

    @field_validator("tool", "purpose", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value if isinstance(value, str) else json.dumps(value, default=str)

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("optional", mode="before")
    @classmethod
    def _as_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1")
        return bool(value)


class Plan(BaseModel):
    """An execution plan emitted by the planner model."""

    steps: list[Step] = Field(..., min_length=1)


class StepOutcome(BaseModel):
    """Trace entry appended after each executed step."""

    step: Step
    success: bool
    result: Any = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ExecutionStatus(str, Enum):
    COMPLETED = "completed"
    ABORTED = "aborted"


class ExecutionResult(BaseModel):
    """Everything one request produced: the plan, its trace and the summary."""

    user_query: str
    plan: Plan
    steps: list[StepOutcome]
    status: ExecutionStatus
    final_message: str
