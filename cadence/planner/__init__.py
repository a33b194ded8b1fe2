from cadence.planner.audit import DecisionLog
from cadence.planner.generator import generate
from cadence.planner.models import (
    ExpectedOutcomes,
    GeneratedPlan,
    Milestone,
    PhaseBoundary,
    PlannedSession,
    SeasonView,
    StructureSegment,
    WeekLabel,
    WeeklyPlanItem,
)

__all__ = [
    "DecisionLog",
    "ExpectedOutcomes",
    "GeneratedPlan",
    "Milestone",
    "PhaseBoundary",
    "PlannedSession",
    "SeasonView",
    "StructureSegment",
    "WeekLabel",
    "WeeklyPlanItem",
    "generate",
]
