"""Root conftest for all tests.

Shared builders for activity records and runner states. States are built
directly so planner tests control every inferred value they depend on.
"""

from datetime import UTC, datetime, timedelta

import pytest

from cadence.enums import DataQualityTier, ExperienceLevel, GoalType, LoadTrend, OvertrainingRisk, RiskLevel
from cadence.metrics.records import ActivityRecord
from cadence.runner.snapshot import Availability, RunnerSnapshot
from cadence.state.models import (
    DataQuality,
    InferredValue,
    InjuryRisk,
    RecentPatterns,
    RunnerState,
    TrainingLoad,
)

AS_OF = datetime(2025, 3, 2, 12, 0, tzinfo=UTC)
AS_OF_NAIVE = AS_OF.replace(tzinfo=None)


def make_run(
    days_ago: int,
    distance_km: float = 10.0,
    pace_min_per_km: float = 6.0,
    *,
    as_of: datetime = AS_OF,
    activity_id: str | None = None,
    **fields,
) -> ActivityRecord:
    """Build a run that started `days_ago` days before as_of (07:00 UTC)."""
    start = (as_of - timedelta(days=days_ago)).replace(hour=7, minute=0)
    return ActivityRecord(
        id=activity_id or f"run-{days_ago}",
        start_time=start,
        duration_s=distance_km * pace_min_per_km * 60,
        distance_m=distance_km * 1000,
        **fields,
    )


def steady_history(weeks: int, runs_per_week: int = 4, distance_km: float = 8.0) -> list[ActivityRecord]:
    """Evenly spaced runs over the last `weeks` weeks, oldest first."""
    offsets = [0, 2, 4, 5, 6][:runs_per_week]
    runs = [make_run(7 * week + offset, distance_km) for week in range(weeks) for offset in offsets]
    return sorted(runs, key=lambda run: run.start_time)


def _known(value, confidence: float = 1.0, source: str = "activity_records") -> InferredValue:
    return InferredValue(value=value, confidence=confidence, inferred_from=(source,), computed_at=AS_OF_NAIVE)


def make_state(
    volume_7d: float | None = 30.0,
    volume_28d: float = 120.0,
    *,
    volume_confidence: float = 1.0,
    risk: RiskLevel = RiskLevel.LOW,
    factors: tuple[str, ...] = (),
    balance: float = 0.0,
    tier: DataQualityTier = DataQualityTier.HIGH,
    score: float = 0.9,
    low_rest_weeks: int = 0,
    easy_pace: float | None = None,
    easy_hr_ratio: float | None = None,
) -> RunnerState:
    """Build a RunnerState with explicit values; volume_7d=None means no run history."""
    if volume_7d is None:
        patterns = None
        training_load = TrainingLoad(
            acute_load=InferredValue.unknown(0.0, AS_OF_NAIVE),
            chronic_load=InferredValue.unknown(0.0, AS_OF_NAIVE),
            balance=InferredValue.unknown(0.0, AS_OF_NAIVE),
            trend=InferredValue.unknown(LoadTrend.MAINTAINING, AS_OF_NAIVE),
        )
    else:
        patterns = RecentPatterns(
            volume_7d=_known(volume_7d, volume_confidence),
            volume_28d=_known(volume_28d, volume_confidence),
            rest_day_frequency=_known(2.0),
            consecutive_low_rest_weeks=_known(low_rest_weeks),
            easy_pace_min_per_km=_known(easy_pace) if easy_pace is not None else None,
            easy_run_hr_ratio=_known(easy_hr_ratio) if easy_hr_ratio is not None else None,
        )
        training_load = TrainingLoad(
            acute_load=_known(40.0),
            chronic_load=_known(40.0 + balance),
            balance=_known(balance),
            trend=_known(LoadTrend.MAINTAINING),
        )

    injury_risk = InjuryRisk(
        level=_known(risk, 0.9),
        ramp_rate_percent=_known(0.0, 0.9),
        contributing_factors=_known(factors, 0.9),
        overtraining_risk=_known(OvertrainingRisk.NONE, 0.9),
    )
    return RunnerState(
        as_of=AS_OF_NAIVE,
        training_load=training_load,
        injury_risk=injury_risk,
        recent_patterns=patterns,
        data_quality=DataQuality(score=score, tier=tier, activity_count=20 if patterns else 0),
    )


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def casual_snapshot() -> RunnerSnapshot:
    return RunnerSnapshot(goal_type=GoalType.HALF_MARATHON, experience_level=ExperienceLevel.CASUAL)


@pytest.fixture
def returning_snapshot() -> RunnerSnapshot:
    return RunnerSnapshot(
        goal_type=GoalType.HALF_MARATHON,
        experience_level=ExperienceLevel.RETURNING,
        availability=Availability(),
    )


@pytest.fixture
def steady_state() -> RunnerState:
    """Casual runner: 20 km/week, low risk, good data."""
    return make_state(volume_7d=20.0, volume_28d=80.0)
