"""Tests for training load metrics (ATL/CTL/TSB) and load trend classification."""

import pytest
from conftest import AS_OF_NAIVE, make_run, steady_history

from cadence.config.settings import EngineSettings
from cadence.enums import LoadTrend, SessionType
from cadence.metrics.training_load import (
    DEFAULT_INTENSITY_FACTOR,
    calculate_atl_ctl_tsb,
    calculate_ewma,
    classify_trend,
    compute_training_load,
    estimate_activity_load,
    intensity_factor,
)


def test_ewma_empty_and_constant_series():
    """EWMA of nothing is empty; a long constant series converges to the constant."""
    assert calculate_ewma([], 7.0) == []
    result = calculate_ewma([100.0] * 300, 7.0)
    assert result[0] < 100.0
    assert result[-1] == pytest.approx(100.0, rel=1e-6)


def test_atl_reacts_faster_than_ctl():
    """After a sudden block of load, ATL exceeds CTL so the balance goes negative."""
    loads = [0.0] * 30 + [100.0] * 7
    metrics = calculate_atl_ctl_tsb(loads, 7.0, 42.0)
    assert metrics["atl"] > metrics["ctl"]
    assert metrics["tsb"] < 0


def test_atl_ctl_tsb_empty():
    """No load history yields zeros."""
    assert calculate_atl_ctl_tsb([], 7.0, 42.0) == {"atl": 0.0, "ctl": 0.0, "tsb": 0.0}


def test_intensity_factor_priority():
    """RPE wins over heart rate, which wins over session type."""
    both = make_run(0, perceived_exertion=8, avg_hr=150, max_hr=190)
    assert intensity_factor(both) == pytest.approx(0.8)

    hr_only = make_run(0, avg_hr=152, max_hr=190)
    assert intensity_factor(hr_only) == pytest.approx(0.8)

    typed = make_run(0, session_type=SessionType.INTERVALS)
    assert intensity_factor(typed) == pytest.approx(0.9)

    assert intensity_factor(make_run(0)) == DEFAULT_INTENSITY_FACTOR


def test_estimate_activity_load():
    """Explicit load is used as-is; otherwise hours x intensity x 100."""
    assert estimate_activity_load(make_run(0, training_load=77.0)) == 77.0
    one_hour = make_run(0, distance_km=10.0, pace_min_per_km=6.0, perceived_exertion=6)
    assert estimate_activity_load(one_hour) == pytest.approx(60.0)


@pytest.mark.parametrize(
    "volumes,expected",
    [
        ([10, 10, 10, 10, 5, 5, 5, 5], LoadTrend.BUILDING),
        ([5, 5, 5, 5, 10, 10, 10, 10], LoadTrend.DECLINING),
        ([10, 10, 10, 10, 10, 10, 10, 10], LoadTrend.MAINTAINING),
        ([0, 20, 0, 20, 10, 10, 10, 10], LoadTrend.ERRATIC),
        ([10, 11, 10], LoadTrend.MAINTAINING),
    ],
)
def test_classify_trend(volumes, expected):
    """Trend compares recent and previous 4-week averages; high CV overrides."""
    assert classify_trend([float(v) for v in volumes], 40.0) == expected


def test_training_load_without_activities_is_unknown():
    """With no activities every field is a sourceless zero-confidence placeholder."""
    load = compute_training_load([], AS_OF_NAIVE, EngineSettings())
    for value in (load.acute_load, load.chronic_load, load.balance, load.trend):
        assert value.confidence == 0.0
        assert value.inferred_from == ()


def test_training_load_with_history():
    """Six weeks of steady running gives confident loads and a trend."""
    runs = steady_history(weeks=6)
    load = compute_training_load(runs, AS_OF_NAIVE, EngineSettings())

    assert load.acute_load.value > 0
    assert load.chronic_load.value > 0
    assert load.acute_load.confidence == 1.0
    assert 0 < load.chronic_load.confidence < 1.0
    assert load.balance.value == pytest.approx(load.chronic_load.value - load.acute_load.value, abs=0.11)
    assert load.trend.confidence > 0
    assert load.acute_load.inferred_from == ("activity_records",)


def test_trend_needs_three_weeks():
    """Trend is reported with zero confidence under three weeks of history."""
    runs = steady_history(weeks=2)
    load = compute_training_load(runs, AS_OF_NAIVE, EngineSettings())
    assert load.trend.confidence == 0.0
    assert load.trend.value == LoadTrend.MAINTAINING


def test_time_constants_are_configurable():
    """A shorter CTL time constant moves chronic load closer to acute load."""
    runs = steady_history(weeks=3)
    default = compute_training_load(runs, AS_OF_NAIVE, EngineSettings())
    short = compute_training_load(runs, AS_OF_NAIVE, EngineSettings(ctl_time_constant_days=14))
    assert short.chronic_load.value > default.chronic_load.value
