"""Cadence: running training-plan engine.

Infers a runner's state from raw activity history, then generates a
periodized plan that every safeguard rule has validated.
"""

from cadence.decisions import Decision
from cadence.errors import (
    InvalidDurationError,
    InvalidRuleSetError,
    InvalidTemplateError,
    PlannerError,
    UnknownGoalTypeError,
    UnsafePlanError,
)
from cadence.metrics import compute_runner_state
from cadence.planner import GeneratedPlan, generate
from cadence.runner import Availability, RunnerSnapshot
from cadence.safeguards import default_rule_set, load_rule_set, validate
from cadence.state import RunnerState
from cadence.templates import get_template, select_template

__version__ = "0.1.0"

__all__ = [
    "Availability",
    "Decision",
    "GeneratedPlan",
    "InvalidDurationError",
    "InvalidRuleSetError",
    "InvalidTemplateError",
    "PlannerError",
    "RunnerSnapshot",
    "RunnerState",
    "UnknownGoalTypeError",
    "UnsafePlanError",
    "compute_runner_state",
    "default_rule_set",
    "generate",
    "get_template",
    "load_rule_set",
    "select_template",
    "validate",
]
