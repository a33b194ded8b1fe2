"""Generated plan output models.

Plans are frozen pydantic models without wall-clock timestamps, so the JSON
dump of a plan is byte-identical for identical inputs.
"""

from pydantic import BaseModel, ConfigDict, Field

from cadence.decisions import Decision
from cadence.enums import GoalType, SegmentKind, SessionType, WeekState
from cadence.runner.snapshot import RunnerSnapshot


class StructureSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    distance_km: float = Field(ge=0)
    target_intensity: str
    target_pace_min_per_km: float | None = None


class PlannedSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    week: int = Field(ge=1)
    day_of_week: int = Field(ge=0, le=6)
    session_type: SessionType
    distance_km: float = Field(ge=0)
    structure_segments: tuple[StructureSegment, ...] = ()
    is_key: bool = False


class WeeklyPlanItem(BaseModel):
    """One week of the plan.

    target_volume_km is the template formula, recovery cutbacks included;
    volume_km is the final value after safeguards and retries.
    volume_change_percent compares volume_km with the week before (week 1: the
    runner's recent weekly volume, 0 when unknown).
    """

    model_config = ConfigDict(frozen=True)

    week_index: int = Field(ge=1)
    phase_name: str
    is_taper: bool
    target_volume_km: float
    volume_km: float
    intensity_score: float
    key_session_count: int
    rest_days: int
    long_run_km: float
    easy_pace_min_per_km: float | None = None
    attempts: int = 1
    state: WeekState = WeekState.FINAL
    is_recovery: bool = False
    focus: str = ""
    justification: str = ""
    volume_change_percent: int = 0


class PhaseBoundary(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    start_week: int
    end_week: int
    focus: str
    intensity_range: tuple[int, int]

    @property
    def weeks(self) -> range:
        return range(self.start_week, self.end_week + 1)


class WeekLabel(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_index: int
    label: str


class Milestone(BaseModel):
    model_config = ConfigDict(frozen=True)

    week_index: int
    name: str
    description: str


class ExpectedOutcomes(BaseModel):
    """What the runner can expect from completing the plan.

    confidence_level is 40-90, from data quality and experience.
    """

    model_config = ConfigDict(frozen=True)

    primary_goal: str
    confidence_level: int = Field(ge=0, le=100)
    confidence_reason: str
    secondary_outcomes: tuple[str, ...] = ()


class SeasonView(BaseModel):
    model_config = ConfigDict(frozen=True)

    phases: tuple[PhaseBoundary, ...]
    week_labels: tuple[WeekLabel, ...]
    milestones: tuple[Milestone, ...] = ()
    identified_risks: tuple[str, ...] = ()
    summary: str = ""
    expected_outcomes: ExpectedOutcomes | None = None


class GeneratedPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    template_id: str
    goal_type: GoalType
    duration_weeks: int
    peak_week_index: int
    peak_volume_km: float
    weeks: tuple[WeeklyPlanItem, ...]
    sessions: tuple[PlannedSession, ...]
    season_view: SeasonView
    runner_snapshot: RunnerSnapshot
    decision_audit: tuple[Decision, ...]

    def sessions_for_week(self, week_index: int) -> list[PlannedSession]:
        return [session for session in self.sessions if session.week == week_index]
