"""Season overview: phase boundaries, week labels, milestones, risks, summary and expected outcomes."""

from cadence.enums import DataQualityTier, ExperienceLevel, GoalType, OvertrainingRisk, RiskLevel
from cadence.planner.models import (
    ExpectedOutcomes,
    Milestone,
    PhaseBoundary,
    SeasonView,
    WeekLabel,
    WeeklyPlanItem,
)
from cadence.state.models import RunnerState
from cadence.templates.types import PlanTemplate

GOAL_LABELS: dict[GoalType, str] = {
    GoalType.FIVE_K: "5K",
    GoalType.TEN_K: "10K",
    GoalType.HALF_MARATHON: "half marathon",
    GoalType.MARATHON: "marathon",
    GoalType.BASE_BUILDING: "base building block",
}

RISK_DESCRIPTIONS: dict[str, str] = {
    "ramp_rate": "Recent week-over-week volume jump; early weeks are held to a conservative ramp",
    "volume_inconsistency": "Inconsistent weekly volume; consistency matters more than any single week",
    "insufficient_rest": "Few rest days recently; rest days are protected in every week",
    "injury_history": "Injury history; volume increases are limited",
    "pushes_through_pain": "Tendency to train through pain; stop sessions that cause sharp or worsening pain",
    "current_pain": "Current pain reported; get it assessed before hard sessions",
    "age": "Recovery needs more time with age; keep easy days easy",
}

# Outcome confidence: base, adjustments, bounds
BASE_CONFIDENCE = 70
DATA_QUALITY_CONFIDENCE: dict[DataQualityTier, int] = {
    DataQualityTier.HIGH: 10,
    DataQualityTier.MEDIUM: 0,
    DataQualityTier.LOW: -15,
    DataQualityTier.INSUFFICIENT: -15,
}
EXPERIENCE_CONFIDENCE: dict[ExperienceLevel, int] = {
    ExperienceLevel.BEGINNER: -10,
    ExperienceLevel.RETURNING: 0,
    ExperienceLevel.CASUAL: 0,
    ExperienceLevel.SERIOUS: 10,
}
MIN_CONFIDENCE = 40
MAX_CONFIDENCE = 90


def _week_label(week: WeeklyPlanItem, peak_week: int, total_weeks: int, is_race: bool) -> str:
    if is_race and week.week_index == total_weeks:
        return "Race week"
    if week.week_index == peak_week:
        return "Peak week"
    if week.is_taper:
        return "Taper"
    if week.is_recovery:
        return "Recovery"
    return week.phase_name


def _risks(state: RunnerState, used_fallback: bool) -> list[str]:
    risks = [RISK_DESCRIPTIONS.get(name, name) for name in state.injury_risk.contributing_factors.value]
    overtraining = state.injury_risk.overtraining_risk.value
    if overtraining in (OvertrainingRisk.CAUTION, OvertrainingRisk.HIGH):
        risks.append(f"Overtraining risk is {overtraining.value}; watch for persistent fatigue")
    if state.data_quality.tier in (DataQualityTier.LOW, DataQualityTier.INSUFFICIENT):
        risks.append("Limited training history; volume targets are estimates")
    if used_fallback:
        risks.append("No reliable recent volume; the plan starts from a conservative default")
    return risks


def expected_outcomes(
    template: PlanTemplate,
    state: RunnerState,
    experience: ExperienceLevel,
) -> ExpectedOutcomes:
    """Primary goal, confidence and secondary outcomes for the plan."""
    tier = state.data_quality.tier
    confidence = BASE_CONFIDENCE + DATA_QUALITY_CONFIDENCE[tier] + EXPERIENCE_CONFIDENCE[experience]
    confidence = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))

    secondary = [
        "Improved aerobic fitness",
        "Better pacing awareness",
        "More consistent training",
        "Foundation for future training" if experience == ExperienceLevel.BEGINNER else "Staying injury-free",
    ]
    return ExpectedOutcomes(
        primary_goal=f"Complete the {GOAL_LABELS[template.goal_type]}",
        confidence_level=confidence,
        confidence_reason=f"Based on {tier.value} data quality and {experience.value} experience",
        secondary_outcomes=tuple(secondary),
    )


def build_season_view(
    template: PlanTemplate,
    state: RunnerState,
    phases: tuple[PhaseBoundary, ...],
    weeks: list[WeeklyPlanItem],
    peak_week: int,
    used_fallback: bool,
    experience: ExperienceLevel,
) -> SeasonView:
    total_weeks = len(weeks)
    is_race = template.goal_type != GoalType.BASE_BUILDING
    labels = tuple(
        WeekLabel(week_index=week.week_index, label=_week_label(week, peak_week, total_weeks, is_race))
        for week in weeks
    )

    milestones: list[Milestone] = []
    first_quality = next((week for week in weeks if week.key_session_count > 0), None)
    if first_quality is not None:
        milestones.append(
            Milestone(
                week_index=first_quality.week_index,
                name="First quality session",
                description="First week with structured key workouts",
            )
        )
    peak = weeks[peak_week - 1]
    milestones.append(
        Milestone(week_index=peak_week, name="Peak week", description=f"Top of the volume curve, {peak.volume_km:.1f} km")
    )
    first_taper = next((week for week in weeks if week.is_taper), None)
    if first_taper is not None:
        milestones.append(
            Milestone(week_index=first_taper.week_index, name="Taper begins", description="Volume starts coming down")
        )
    milestones.append(
        Milestone(
            week_index=total_weeks,
            name="Race week" if is_race else "Block complete",
            description=f"Goal: {GOAL_LABELS[template.goal_type]}",
        )
    )

    risk_level = state.injury_risk.level
    caution = " with a cautious ramp" if risk_level.confidence > 0 and risk_level.value != RiskLevel.LOW else ""
    phase_names = " > ".join(phase.name for phase in phases)
    summary = (
        f"{total_weeks}-week {GOAL_LABELS[template.goal_type]} plan ({phase_names}), "
        f"building from {weeks[0].volume_km:.1f} km to {peak.volume_km:.1f} km in week {peak_week}{caution}."
    )
    recovery = [str(week.week_index) for week in weeks if week.is_recovery]
    if recovery:
        summary += f" Recovery weeks: {', '.join(recovery)}."

    return SeasonView(
        phases=phases,
        week_labels=labels,
        milestones=tuple(milestones),
        identified_risks=tuple(_risks(state, used_fallback)),
        summary=summary,
        expected_outcomes=expected_outcomes(template, state, experience),
    )
