"""Tests for the season overview."""

from conftest import make_state

from cadence.enums import DataQualityTier, ExperienceLevel, GoalType, RiskLevel
from cadence.planner import generate
from cadence.planner.season import expected_outcomes
from cadence.runner.snapshot import RunnerSnapshot
from cadence.templates import get_template


def test_labels_and_milestones(casual_snapshot, steady_state):
    """Race plans label the peak, taper and race weeks."""
    plan = generate(casual_snapshot, steady_state, GoalType.HALF_MARATHON, 12)
    labels = {label.week_index: label.label for label in plan.season_view.week_labels}

    assert labels[1] == "Base"
    assert labels[9] == "Peak week"
    assert labels[11] == "Taper"
    assert labels[12] == "Race week"

    milestones = {milestone.name: milestone.week_index for milestone in plan.season_view.milestones}
    assert milestones == {"First quality session": 1, "Peak week": 9, "Taper begins": 11, "Race week": 12}
    peak = next(m for m in plan.season_view.milestones if m.name == "Peak week")
    assert peak.description == "Top of the volume curve, 30.0 km"


def test_summary_mentions_volume_range(casual_snapshot, steady_state):
    plan = generate(casual_snapshot, steady_state, GoalType.HALF_MARATHON, 12)
    summary = plan.season_view.summary
    assert summary.startswith("12-week half marathon plan (Base > Build > Peak > Taper)")
    assert "from 18.0 km to 30.0 km in week 9" in summary
    assert "cautious" not in summary
    assert summary.endswith("Recovery weeks: 3, 6.")


def test_risks_from_contributing_factors(returning_snapshot):
    """Contributing factors become readable risks and the summary notes the cautious ramp."""
    state = make_state(30.0, 120.0, risk=RiskLevel.MODERATE, factors=("injury_history", "ramp_rate"))
    plan = generate(returning_snapshot, state, GoalType.HALF_MARATHON, 12)

    risks = plan.season_view.identified_risks
    assert risks[0].startswith("Injury history")
    assert risks[1].startswith("Recent week-over-week volume jump")
    assert "in week 9 with a cautious ramp." in plan.season_view.summary


def test_unknown_factor_passes_through(casual_snapshot):
    state = make_state(20.0, 80.0, factors=("something_new",))
    plan = generate(casual_snapshot, state, GoalType.HALF_MARATHON, 12)
    assert plan.season_view.identified_risks == ("something_new",)


def test_expected_outcomes_in_season_view(casual_snapshot, steady_state):
    """Casual runner with good data: the goal plus 80% confidence."""
    plan = generate(casual_snapshot, steady_state, GoalType.HALF_MARATHON, 12)
    outcomes = plan.season_view.expected_outcomes

    assert outcomes.primary_goal == "Complete the half marathon"
    assert outcomes.confidence_level == 80
    assert outcomes.confidence_reason == "Based on high data quality and casual experience"
    assert outcomes.secondary_outcomes[-1] == "Staying injury-free"


def test_outcome_confidence_bounds():
    """Confidence moves with data quality and experience and stays within 40-90."""
    template = get_template(GoalType.MARATHON)
    thin = make_state(10.0, 40.0, tier=DataQualityTier.INSUFFICIENT, score=0.1)
    beginner = expected_outcomes(template, thin, ExperienceLevel.BEGINNER)
    assert beginner.confidence_level == 45
    assert beginner.secondary_outcomes[-1] == "Foundation for future training"

    serious = expected_outcomes(template, make_state(), ExperienceLevel.SERIOUS)
    assert serious.confidence_level == 90


def test_base_building_outcome():
    snapshot = RunnerSnapshot(goal_type=GoalType.BASE_BUILDING, experience_level=ExperienceLevel.RETURNING)
    plan = generate(snapshot, make_state(20.0, 80.0), GoalType.BASE_BUILDING, 8)
    assert plan.season_view.expected_outcomes.primary_goal == "Complete the base building block"
    assert plan.season_view.expected_outcomes.confidence_level == 80
