"""Plan template data models.

Templates are immutable after loading. Structural invariants are checked on
construction so an invalid template never reaches the generator.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from cadence.enums import ExperienceLevel, GoalType, SessionType
from cadence.errors import InvalidTemplateError

PERCENT_EPSILON = 1e-6


@dataclass(frozen=True)
class PlanPhase:
    """One periodization phase.

    Attributes:
        name: Phase name (e.g., "Base", "Taper")
        percent_of_plan: Share of total weeks (0-1)
        focus: Human-readable focus text
        intensity_range: (low, high) intensity on a 0-100 scale
    """

    name: str
    percent_of_plan: float
    focus: str
    intensity_range: tuple[int, int]


@dataclass(frozen=True)
class WeeklyStructure:
    key_session_count: int
    easy_run_count: int
    rest_day_count: int
    key_session_types: tuple[SessionType, ...]


@dataclass(frozen=True)
class VolumeGuidelines:
    """Volume progression parameters.

    Attributes:
        start_percent_of_peak: Week 1 volume as a fraction of peak
        peak_week_index: 1-based peak week; negative counts from the end
        taper_reduction_percent: Fraction of peak retained in the final taper week
        taper_weeks: Number of final weeks over which volume tapers
        peak_volume_factor: Peak volume relative to the runner's current weekly volume
    """

    start_percent_of_peak: float
    peak_week_index: int
    taper_reduction_percent: float
    taper_weeks: int
    peak_volume_factor: float


@dataclass(frozen=True)
class ExperienceModifier:
    volume_multiplier: float
    intensity_multiplier: float


@dataclass(frozen=True)
class PlanTemplate:
    """Immutable goal-keyed periodization template."""

    id: str
    name: str
    goal_type: GoalType
    periodization_model: str
    min_weeks: int
    max_weeks: int
    recommended_weeks: int
    phases: tuple[PlanPhase, ...]
    weekly_structure: WeeklyStructure
    volume_guidelines: VolumeGuidelines
    experience_modifiers: Mapping[ExperienceLevel, ExperienceModifier]

    def __post_init__(self) -> None:
        object.__setattr__(self, "experience_modifiers", MappingProxyType(dict(self.experience_modifiers)))
        errors = template_errors(self)
        if errors:
            raise InvalidTemplateError(
                f"Template '{self.id}' is invalid: {'; '.join(errors)}",
                details={"template_id": self.id, "errors": errors},
            )

    def modifier_for(self, level: ExperienceLevel) -> ExperienceModifier:
        return self.experience_modifiers[level]

    def accepts_duration(self, weeks: int) -> bool:
        return self.min_weeks <= weeks <= self.max_weeks


def template_errors(template: PlanTemplate) -> list[str]:
    """Collect invariant violations for a template."""
    errors: list[str] = []

    if not template.min_weeks <= template.recommended_weeks <= template.max_weeks:
        errors.append("min_weeks <= recommended_weeks <= max_weeks does not hold")
    if template.min_weeks < 1:
        errors.append("min_weeks must be at least 1")

    if not template.phases:
        errors.append("at least one phase is required")
    total = sum(phase.percent_of_plan for phase in template.phases)
    if abs(total - 1.0) > PERCENT_EPSILON:
        errors.append(f"phase percents sum to {total:.6f}, expected 1.0")
    for phase in template.phases:
        low, high = phase.intensity_range
        if not 0 <= low <= high <= 100:
            errors.append(f"phase '{phase.name}' intensity range {phase.intensity_range} is invalid")
        if phase.percent_of_plan <= 0:
            errors.append(f"phase '{phase.name}' must have a positive share")

    structure = template.weekly_structure
    if structure.key_session_count > 0 and not structure.key_session_types:
        errors.append("key_session_types is empty but key sessions are required")
    if structure.key_session_count + structure.easy_run_count + 1 + structure.rest_day_count > 7:
        errors.append("weekly structure does not fit in 7 days")

    guidelines = template.volume_guidelines
    if not 0 < guidelines.start_percent_of_peak <= 1:
        errors.append("start_percent_of_peak must be in (0, 1]")
    if not 0 < guidelines.taper_reduction_percent <= 1:
        errors.append("taper_reduction_percent must be in (0, 1]")
    if guidelines.peak_week_index == 0:
        errors.append("peak_week_index must be non-zero")
    if guidelines.taper_weeks < 0 or guidelines.taper_weeks >= template.min_weeks:
        errors.append("taper_weeks must be shorter than the minimum plan")
    if guidelines.peak_volume_factor <= 0:
        errors.append("peak_volume_factor must be positive")

    missing = [level.value for level in ExperienceLevel if level not in template.experience_modifiers]
    if missing:
        errors.append(f"missing experience modifiers: {', '.join(missing)}")

    return errors
