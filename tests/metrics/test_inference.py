"""Tests for compute_runner_state: sparse input, malformed records, provenance."""

from datetime import date

from conftest import AS_OF, AS_OF_NAIVE, make_run, steady_history

from cadence.enums import DataQualityTier, ExperienceLevel, GoalType, RiskLevel
from cadence.metrics import compute_runner_state
from cadence.runner.snapshot import RunnerSnapshot
from cadence.state.models import InferredValue, RunnerState


def _inferred_values(state: RunnerState):
    """Walk every InferredValue in a state."""
    stack = [state]
    while stack:
        current = stack.pop()
        for name in type(current).model_fields:
            value = getattr(current, name)
            if isinstance(value, InferredValue):
                yield value
            elif hasattr(type(value), "model_fields"):
                stack.append(value)


def test_zero_activities_never_raises():
    """Empty input yields placeholders for the always-present groups and None elsewhere."""
    state = compute_runner_state([], [], [], AS_OF)

    assert state.as_of == AS_OF_NAIVE
    assert state.training_load.acute_load.confidence == 0.0
    assert state.training_load.acute_load.inferred_from == ()
    assert state.injury_risk.level.confidence == 0.0
    assert state.recent_patterns is None
    assert state.biometrics is None
    assert state.readiness is None
    assert state.data_quality.tier == DataQualityTier.INSUFFICIENT
    assert state.data_quality.score == 0.0


def test_every_confident_value_has_sources():
    """A value with confidence above zero always names what it was inferred from."""
    state = compute_runner_state(
        steady_history(weeks=6),
        [{"day": "2025-03-02", "resting_hr": 48, "sleep_score": 88}],
        [{"day": "2025-02-27", "weight_kg": 70.5}],
        AS_OF,
    )
    values = list(_inferred_values(state))
    assert values
    for value in values:
        assert 0.0 <= value.confidence <= 1.0
        if value.confidence > 0:
            assert value.inferred_from


def test_malformed_records_are_skipped():
    """Out-of-range and incomplete records are skipped and counted, not fatal."""
    activities = [
        make_run(0, 10.0).model_dump(),
        {"id": "no-duration", "start_time": "2025-03-01T07:00:00Z", "distance_m": 5000},
        {"id": "bad-hr", "start_time": "2025-03-01T07:00:00Z", "duration_s": 1800, "avg_hr": 400},
        {"id": "hr-order", "start_time": "2025-03-01T07:00:00Z", "duration_s": 1800, "avg_hr": 170, "max_hr": 150},
        "not a record",
    ]
    daily = [{"day": "2025-03-01", "resting_hr": 5}]

    state = compute_runner_state(activities, daily, [], AS_OF)

    assert state.data_quality.skipped_records == 5
    assert state.data_quality.activity_count == 1
    assert state.recent_patterns.volume_7d.value == 10.0
    assert state.biometrics is None


def test_future_and_non_run_activities():
    """Activities after as_of are ignored; rides count for load but not running volume."""
    activities = [
        make_run(1, 10.0),
        make_run(-2, 30.0, activity_id="future"),
        make_run(2, 40.0, activity_id="ride", activity_type="ride"),
    ]
    state = compute_runner_state(activities, [], [], AS_OF)

    assert state.recent_patterns.volume_7d.value == 10.0
    assert state.data_quality.activity_count == 2


def test_biometrics_and_readiness():
    """Latest biometrics are reported with freshness-based confidence."""
    daily = [
        {"day": date(2025, 2, 20), "resting_hr": 55},
        {"day": date(2025, 3, 2), "resting_hr": 48, "sleep_score": 90},
    ]
    state = compute_runner_state([], daily, [], AS_OF)

    assert state.biometrics.resting_hr.value == 48.0
    assert state.biometrics.resting_hr.confidence == 1.0
    assert state.biometrics.weight_kg is None
    assert state.readiness is not None
    assert "good_sleep" in state.readiness.factors


def test_snapshot_flags_feed_injury_risk():
    """Declared injury flags are a source even without runs."""
    snapshot = RunnerSnapshot(
        goal_type=GoalType.MARATHON,
        experience_level=ExperienceLevel.SERIOUS,
        injury_history=True,
    )
    state = compute_runner_state([], [], [], AS_OF, snapshot=snapshot)
    assert state.injury_risk.level.value == RiskLevel.MODERATE
    assert state.injury_risk.level.confidence > 0


def test_inference_is_deterministic():
    """Identical inputs give identical states."""
    runs = steady_history(weeks=5)
    first = compute_runner_state(runs, [], [], AS_OF)
    second = compute_runner_state(list(reversed(runs)), [], [], AS_OF)
    assert first.model_dump_json() == second.model_dump_json()
