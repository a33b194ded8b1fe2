"""Data quality assessment for the inference engine.

The score gates how aggressive a generated plan may be; it never blocks
computation of the other metrics.
"""

from datetime import datetime

from cadence.enums import DataQualityTier
from cadence.metrics.records import ActivityRecord
from cadence.state.models import DataQuality

FULL_COVERAGE_ACTIVITIES = 20
FULL_HISTORY_DAYS = 42

COVERAGE_WEIGHT = 0.5
HISTORY_WEIGHT = 0.3
FRESHNESS_WEIGHT = 0.2

TIER_THRESHOLDS: tuple[tuple[float, DataQualityTier], ...] = (
    (0.75, DataQualityTier.HIGH),
    (0.5, DataQualityTier.MEDIUM),
    (0.25, DataQualityTier.LOW),
)


def _freshness(days_since_last: int) -> float:
    if days_since_last <= 3:
        return 1.0
    if days_since_last <= 7:
        return 0.7
    if days_since_last <= 14:
        return 0.4
    return 0.1


def assess_data_quality(
    activities: list[ActivityRecord],
    as_of: datetime,
    daily_record_count: int = 0,
    body_record_count: int = 0,
    skipped_records: int = 0,
) -> DataQuality:
    """Assess completeness and staleness of the activity history.

    Rules:
        - No activities → score 0, insufficient
        - Score = 0.5 * activity coverage + 0.3 * history span + 0.2 * freshness
        - Tier: >= 0.75 high, >= 0.5 medium, >= 0.25 low, else insufficient
    """
    if not activities:
        return DataQuality(
            score=0.0,
            tier=DataQualityTier.INSUFFICIENT,
            daily_record_count=daily_record_count,
            body_record_count=body_record_count,
            skipped_records=skipped_records,
        )

    days = sorted(activity.day for activity in activities)
    history_days = (as_of.date() - days[0]).days + 1
    days_since_last = (as_of.date() - days[-1]).days

    coverage = min(1.0, len(activities) / FULL_COVERAGE_ACTIVITIES)
    span = min(1.0, history_days / FULL_HISTORY_DAYS)
    score = round(COVERAGE_WEIGHT * coverage + HISTORY_WEIGHT * span + FRESHNESS_WEIGHT * _freshness(days_since_last), 3)

    tier = DataQualityTier.INSUFFICIENT
    for threshold, candidate in TIER_THRESHOLDS:
        if score >= threshold:
            tier = candidate
            break

    return DataQuality(
        score=score,
        tier=tier,
        activity_count=len(activities),
        daily_record_count=daily_record_count,
        body_record_count=body_record_count,
        days_of_history=history_days,
        days_since_last_activity=days_since_last,
        skipped_records=skipped_records,
    )
