"""Canonical error types for the plan engine.

All errors raised by the validator, the template registry and the generator derive
from PlannerError. Data sparsity is never an error: the inference engine degrades
confidence instead, and the generator records fallback decisions.

Standard error codes:
- INVALID_DURATION: Requested plan length outside the template bounds
- UNKNOWN_GOAL: No template registered for a goal type
- INVALID_TEMPLATE: Template data violates a structural invariant
- INVALID_RULE_SET: Safeguard rule set is structurally invalid
- UNSAFE_PLAN: Safeguard retries exhausted for a week
"""


class PlannerError(Exception):
    """Base class for plan engine errors.

    Attributes:
        code: Stable error code
        details: Structured details for logging and callers
    """

    code = "PLANNER_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidDurationError(PlannerError):
    """Raised when the requested plan length is outside the template's week range."""

    code = "INVALID_DURATION"

    def __init__(self, goal_type: str, requested_weeks: int, min_weeks: int, max_weeks: int):
        self.goal_type = goal_type
        self.requested_weeks = requested_weeks
        self.min_weeks = min_weeks
        self.max_weeks = max_weeks
        super().__init__(
            f"{goal_type} plans must be {min_weeks}-{max_weeks} weeks, got {requested_weeks}",
            details={
                "goal_type": goal_type,
                "requested_weeks": requested_weeks,
                "min_weeks": min_weeks,
                "max_weeks": max_weeks,
            },
        )


class UnknownGoalTypeError(PlannerError):
    """Raised when no template is registered for a goal type."""

    code = "UNKNOWN_GOAL"


class InvalidTemplateError(PlannerError):
    """Raised when template data violates a structural invariant."""

    code = "INVALID_TEMPLATE"


class InvalidRuleSetError(PlannerError):
    """Raised when a safeguard rule set can never be evaluated or satisfied."""

    code = "INVALID_RULE_SET"


class UnsafePlanError(PlannerError):
    """Raised when a week stays blocked after all safeguard retries.

    The generator never emits a week that violates a block rule, so exhausting
    retries is fatal for the generation call.
    """

    code = "UNSAFE_PLAN"

    def __init__(self, week_index: int, attempts: int, rule_ids: list[str]):
        self.week_index = week_index
        self.attempts = attempts
        self.rule_ids = rule_ids
        super().__init__(
            f"Week {week_index} still blocked after {attempts} attempts by {', '.join(rule_ids)}",
            details={"week_index": week_index, "attempts": attempts, "rule_ids": rule_ids},
        )
