"""Template registry.

Loads the goal templates from YAML once at import time and exposes read-only
lookups. The registry is never mutated after initialization.
"""

from pathlib import Path
from types import MappingProxyType

import yaml
from loguru import logger

from cadence.enums import ExperienceLevel, GoalType, SessionType
from cadence.errors import InvalidDurationError, InvalidTemplateError, UnknownGoalTypeError
from cadence.templates.types import (
    ExperienceModifier,
    PlanPhase,
    PlanTemplate,
    VolumeGuidelines,
    WeeklyStructure,
)

TEMPLATE_DIR = Path(__file__).parent / "data"


def parse_template(raw: dict) -> PlanTemplate:
    """Build a PlanTemplate from a raw YAML mapping.

    Raises:
        InvalidTemplateError: If keys are missing or values have the wrong type
    """
    template_id = raw.get("id", "<unknown>") if isinstance(raw, dict) else "<unknown>"
    try:
        structure = raw["weekly_structure"]
        guidelines = raw["volume_guidelines"]
        return PlanTemplate(
            id=raw["id"],
            name=raw["name"],
            goal_type=GoalType(raw["goal_type"]),
            periodization_model=raw.get("periodization_model", "linear"),
            min_weeks=int(raw["min_weeks"]),
            max_weeks=int(raw["max_weeks"]),
            recommended_weeks=int(raw["recommended_weeks"]),
            phases=tuple(
                PlanPhase(
                    name=phase["name"],
                    percent_of_plan=float(phase["percent_of_plan"]),
                    focus=phase["focus"],
                    intensity_range=(int(phase["intensity_range"][0]), int(phase["intensity_range"][1])),
                )
                for phase in raw["phases"]
            ),
            weekly_structure=WeeklyStructure(
                key_session_count=int(structure["key_session_count"]),
                easy_run_count=int(structure["easy_run_count"]),
                rest_day_count=int(structure["rest_day_count"]),
                key_session_types=tuple(SessionType(t) for t in structure["key_session_types"]),
            ),
            volume_guidelines=VolumeGuidelines(
                start_percent_of_peak=float(guidelines["start_percent_of_peak"]),
                peak_week_index=int(guidelines["peak_week_index"]),
                taper_reduction_percent=float(guidelines["taper_reduction_percent"]),
                taper_weeks=int(guidelines["taper_weeks"]),
                peak_volume_factor=float(guidelines["peak_volume_factor"]),
            ),
            experience_modifiers={
                ExperienceLevel(level): ExperienceModifier(
                    volume_multiplier=float(values["volume_multiplier"]),
                    intensity_multiplier=float(values["intensity_multiplier"]),
                )
                for level, values in raw["experience_modifiers"].items()
            },
        )
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise InvalidTemplateError(
            f"Template '{template_id}' could not be parsed: {e}",
            details={"template_id": template_id},
        ) from e


def load_templates(directory: Path = TEMPLATE_DIR) -> dict[GoalType, PlanTemplate]:
    """Load every *.yaml template in a directory, keyed by goal type.

    Raises:
        InvalidTemplateError: On unparsable data or two templates for one goal
    """
    templates: dict[GoalType, PlanTemplate] = {}
    for path in sorted(directory.glob("*.yaml")):
        with path.open() as f:
            raw = yaml.safe_load(f)
        if not isinstance(raw, dict):
            raise InvalidTemplateError(f"Template file {path.name} is not a mapping")
        template = parse_template(raw)
        if template.goal_type in templates:
            raise InvalidTemplateError(
                f"Duplicate template for goal '{template.goal_type}'",
                details={"template_id": template.id},
            )
        templates[template.goal_type] = template
        logger.debug(f"Loaded template {template.id} ({template.min_weeks}-{template.max_weeks} weeks)")
    return templates


_TEMPLATES = MappingProxyType(load_templates())


def all_templates() -> list[PlanTemplate]:
    """All registered templates in goal-type declaration order."""
    return [_TEMPLATES[goal] for goal in GoalType if goal in _TEMPLATES]


def get_template(goal_type: GoalType | str) -> PlanTemplate:
    """Return the template for a goal.

    Raises:
        UnknownGoalTypeError: If the goal has no template
    """
    try:
        return _TEMPLATES[GoalType(goal_type)]
    except (KeyError, ValueError) as e:
        raise UnknownGoalTypeError(f"No template for goal '{goal_type}'", details={"goal_type": str(goal_type)}) from e


def get_template_by_id(template_id: str) -> PlanTemplate | None:
    for template in _TEMPLATES.values():
        if template.id == template_id:
            return template
    return None


def is_valid_duration(goal_type: GoalType | str, weeks: int) -> bool:
    return get_template(goal_type).accepts_duration(weeks)


def get_recommended_duration(goal_type: GoalType | str) -> int:
    return get_template(goal_type).recommended_weeks


def select_template(goal_type: GoalType | str, duration_weeks: int) -> PlanTemplate:
    """Select the template for a goal and validate the requested length.

    The plan's shape is never clamped: an out-of-range duration is the
    caller's to correct.

    Raises:
        UnknownGoalTypeError: If the goal has no template
        InvalidDurationError: If duration_weeks is outside [min_weeks, max_weeks]
    """
    template = get_template(goal_type)
    if not template.accepts_duration(duration_weeks):
        logger.bind(
            goal_type=template.goal_type.value,
            requested_weeks=duration_weeks,
            min_weeks=template.min_weeks,
            max_weeks=template.max_weeks,
        ).error("TEMPLATE_DURATION_REJECTED")
        raise InvalidDurationError(
            goal_type=template.goal_type.value,
            requested_weeks=duration_weeks,
            min_weeks=template.min_weeks,
            max_weeks=template.max_weeks,
        )
    return template
