"""Tests for composite injury risk."""

import pytest
from conftest import AS_OF_NAIVE, make_run

from cadence.config.settings import EngineSettings
from cadence.enums import ExperienceLevel, GoalType, OvertrainingRisk, RiskLevel
from cadence.metrics.injury_risk import assess_injury_risk, assess_overtraining, ramp_rate
from cadence.runner.snapshot import RunnerSnapshot


def _snapshot(**flags) -> RunnerSnapshot:
    return RunnerSnapshot(goal_type=GoalType.TEN_K, experience_level=ExperienceLevel.CASUAL, **flags)


def _ramping_runs():
    previous_week = [make_run(8, 10.0), make_run(10, 10.0)]
    this_week = [make_run(day, 8.0) for day in (0, 2, 4, 5)]
    return previous_week + this_week


def test_no_sources_gives_unknown_risk():
    """Without runs or profile flags the risk is a zero-confidence placeholder."""
    risk = assess_injury_risk([], AS_OF_NAIVE, EngineSettings())
    assert risk.level.value == RiskLevel.LOW
    assert risk.level.confidence == 0.0
    assert risk.level.inferred_from == ()
    assert risk.contributing_factors.value == ()


def test_profile_flags_alone():
    """Declared current pain is a high factor even without run history."""
    risk = assess_injury_risk([], AS_OF_NAIVE, EngineSettings(), snapshot=_snapshot(current_pain=True, age=52))
    assert risk.level.value == RiskLevel.HIGH
    assert risk.level.confidence == 0.5
    assert set(risk.contributing_factors.value) == {"current_pain", "age"}
    assert "snapshot.current_pain" in risk.level.inferred_from


def test_age_alone_is_low():
    """Age over 45 contributes a low-severity factor only."""
    risk = assess_injury_risk([], AS_OF_NAIVE, EngineSettings(), snapshot=_snapshot(age=50))
    assert risk.level.value == RiskLevel.LOW
    assert risk.contributing_factors.value == ("age",)


def test_sharp_ramp_is_high_risk():
    """A 60% week-over-week jump is a high ramp factor and high overtraining risk."""
    risk = assess_injury_risk(_ramping_runs(), AS_OF_NAIVE, EngineSettings())
    assert risk.ramp_rate_percent.value == pytest.approx(60.0)
    assert risk.level.value == RiskLevel.HIGH
    assert "ramp_rate" in risk.contributing_factors.value
    assert risk.overtraining_risk.value == OvertrainingRisk.HIGH
    assert risk.level.confidence == 0.6


def test_ramp_threshold_is_configurable():
    """Raising both ramp thresholds removes the ramp factor."""
    settings = EngineSettings(ramp_rate_threshold=0.7, high_ramp_rate_threshold=0.9)
    risk = assess_injury_risk(_ramping_runs(), AS_OF_NAIVE, settings)
    assert "ramp_rate" not in risk.contributing_factors.value


def test_max_severity_wins():
    """Level is the maximum across factors, not an average."""
    risk = assess_injury_risk(
        _ramping_runs(),
        AS_OF_NAIVE,
        EngineSettings(ramp_rate_threshold=0.7, high_ramp_rate_threshold=0.9),
        snapshot=_snapshot(injury_history=True, age=60),
    )
    assert risk.level.value == RiskLevel.MODERATE
    assert set(risk.contributing_factors.value) == {"injury_history", "age"}


def test_ramp_rate_needs_two_weeks():
    """Ramp is undefined with one week of history or an empty previous week."""
    assert ramp_rate([10.0], 1) is None
    assert ramp_rate([10.0, 0.0], 2) is None
    assert ramp_rate([11.0, 10.0], 2) == pytest.approx(0.1)


@pytest.mark.parametrize(
    "ramp,balance,expected",
    [
        (None, None, OvertrainingRisk.NONE),
        (0.2, None, OvertrainingRisk.WATCH),
        (0.4, None, OvertrainingRisk.CAUTION),
        (0.6, None, OvertrainingRisk.HIGH),
        (0.0, -35.0, OvertrainingRisk.CAUTION),
        (0.6, -35.0, OvertrainingRisk.HIGH),
    ],
)
def test_assess_overtraining(ramp, balance, expected):
    """Overtraining follows ramp thresholds; deep fatigue raises it to at least caution."""
    assert assess_overtraining(ramp, balance) == expected
