"""Composite injury risk assessment.

Each factor carries its own severity and the overall level is the maximum
across factors, so one severe factor is never averaged away.
"""

import statistics
from datetime import datetime

from cadence.config.settings import EngineSettings
from cadence.enums import OvertrainingRisk, RiskLevel
from cadence.metrics.patterns import (
    ACTIVITY_SOURCE,
    coefficient_of_variation,
    rest_days_per_block,
    weekly_volumes,
    weeks_of_history,
)
from cadence.metrics.records import ActivityRecord
from cadence.runner.snapshot import RunnerSnapshot
from cadence.state.models import InferredValue, InjuryRisk, TrainingLoad

AGE_FACTOR_THRESHOLD = 45

# Ramp rate (fraction) thresholds for overtraining levels
OVERTRAINING_THRESHOLDS: tuple[tuple[float, OvertrainingRisk], ...] = (
    (0.5, OvertrainingRisk.HIGH),
    (0.3, OvertrainingRisk.CAUTION),
    (0.15, OvertrainingRisk.WATCH),
)
DEEP_FATIGUE_TSB = -30.0

_OVERTRAINING_ORDER = [OvertrainingRisk.NONE, OvertrainingRisk.WATCH, OvertrainingRisk.CAUTION, OvertrainingRisk.HIGH]


def ramp_rate(volumes: list[float], history_weeks: int) -> float | None:
    """Week-over-week volume change as a fraction, None without two comparable weeks."""
    if history_weeks < 2 or len(volumes) < 2 or volumes[1] <= 0:
        return None
    return (volumes[0] - volumes[1]) / volumes[1]


def assess_overtraining(ramp: float | None, balance: float | None) -> OvertrainingRisk:
    level = OvertrainingRisk.NONE
    if ramp is not None:
        for threshold, candidate in OVERTRAINING_THRESHOLDS:
            if ramp > threshold:
                level = candidate
                break
    if balance is not None and balance < DEEP_FATIGUE_TSB:
        level = max(level, OvertrainingRisk.CAUTION, key=_OVERTRAINING_ORDER.index)
    return level


def assess_injury_risk(
    runs: list[ActivityRecord],
    as_of: datetime,
    settings: EngineSettings,
    snapshot: RunnerSnapshot | None = None,
    training_load: TrainingLoad | None = None,
) -> InjuryRisk:
    """Assess injury risk from run history and declared profile flags.

    Factors:
        - ramp_rate: week-over-week increase above the threshold (moderate, high above the high threshold)
        - volume_inconsistency: weekly volume CV above the erratic threshold (moderate)
        - insufficient_rest: rest days per week below the floor (moderate)
        - injury_history / pushes_through_pain: declared flags (moderate)
        - current_pain: declared flag (high)
        - age: over 45 (low)

    Returns:
        InjuryRisk; zero-confidence placeholders when nothing was sampled
    """
    factors: list[tuple[str, RiskLevel]] = []
    sources: list[str] = []
    ramp = None

    history_weeks = weeks_of_history(runs, as_of)
    if runs:
        sources.append(ACTIVITY_SOURCE)
        volumes = weekly_volumes(runs, as_of)[:history_weeks]
        ramp = ramp_rate(volumes, history_weeks)
        if ramp is not None and ramp > settings.high_ramp_rate_threshold:
            factors.append(("ramp_rate", RiskLevel.HIGH))
        elif ramp is not None and ramp > settings.ramp_rate_threshold:
            factors.append(("ramp_rate", RiskLevel.MODERATE))

        cv = coefficient_of_variation(volumes[:4])
        if cv is not None and cv > settings.erratic_cv_percent:
            factors.append(("volume_inconsistency", RiskLevel.MODERATE))

        rest_counts = rest_days_per_block(runs, as_of, min(4, history_weeks))
        if statistics.fmean(rest_counts) < settings.rest_day_floor:
            factors.append(("insufficient_rest", RiskLevel.MODERATE))

    if snapshot is not None:
        if snapshot.injury_history:
            sources.append("snapshot.injury_history")
            factors.append(("injury_history", RiskLevel.MODERATE))
        if snapshot.pushes_through_pain:
            sources.append("snapshot.pushes_through_pain")
            factors.append(("pushes_through_pain", RiskLevel.MODERATE))
        if snapshot.current_pain:
            sources.append("snapshot.current_pain")
            factors.append(("current_pain", RiskLevel.HIGH))
        if snapshot.age is not None and snapshot.age > AGE_FACTOR_THRESHOLD:
            sources.append("snapshot.age")
            factors.append(("age", RiskLevel.LOW))

    balance = None
    if training_load is not None and training_load.balance.confidence > 0:
        balance = training_load.balance.value

    if not sources:
        return InjuryRisk(
            level=InferredValue.unknown(RiskLevel.LOW, as_of),
            ramp_rate_percent=InferredValue.unknown(0.0, as_of),
            contributing_factors=InferredValue.unknown((), as_of),
            overtraining_risk=InferredValue.unknown(OvertrainingRisk.NONE, as_of),
        )

    if runs:
        confidence = 0.9 if history_weeks >= 4 else 0.6
    else:
        confidence = 0.5

    level = max((severity for _, severity in factors), key=lambda severity: severity.rank, default=RiskLevel.LOW)
    source_tuple = tuple(sources)

    if ramp is None:
        ramp_value = InferredValue(value=0.0, confidence=0.0, inferred_from=source_tuple, computed_at=as_of)
    else:
        ramp_value = InferredValue(
            value=round(ramp * 100, 1),
            confidence=confidence,
            inferred_from=(ACTIVITY_SOURCE,),
            computed_at=as_of,
        )

    return InjuryRisk(
        level=InferredValue(value=level, confidence=confidence, inferred_from=source_tuple, computed_at=as_of),
        ramp_rate_percent=ramp_value,
        contributing_factors=InferredValue(
            value=tuple(name for name, _ in factors),
            confidence=confidence,
            inferred_from=source_tuple,
            computed_at=as_of,
        ),
        overtraining_risk=InferredValue(
            value=assess_overtraining(ramp, balance),
            confidence=confidence if runs else 0.0,
            inferred_from=source_tuple,
            computed_at=as_of,
        ),
    )
