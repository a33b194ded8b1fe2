from cadence.templates.registry import (
    all_templates,
    get_recommended_duration,
    get_template,
    get_template_by_id,
    is_valid_duration,
    select_template,
)
from cadence.templates.types import PlanPhase, PlanTemplate, VolumeGuidelines, WeeklyStructure

__all__ = [
    "PlanPhase",
    "PlanTemplate",
    "VolumeGuidelines",
    "WeeklyStructure",
    "all_templates",
    "get_recommended_duration",
    "get_template",
    "get_template_by_id",
    "is_valid_duration",
    "select_template",
]
