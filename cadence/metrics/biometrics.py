"""Latest biometric readings with freshness-decayed confidence."""

from datetime import date, datetime

from cadence.metrics.records import BodyRecord, DailyRecord
from cadence.state.models import Biometrics, InferredValue

# (max age in days, confidence)
FRESHNESS_CONFIDENCE: tuple[tuple[int, float], ...] = (
    (1, 1.0),
    (3, 0.95),
    (7, 0.85),
    (14, 0.7),
)
STALE_CONFIDENCE = 0.5


def freshness_confidence(age_days: int) -> float:
    for max_age, confidence in FRESHNESS_CONFIDENCE:
        if age_days <= max_age:
            return confidence
    return STALE_CONFIDENCE


def _latest(
    records: list[DailyRecord] | list[BodyRecord],
    field: str,
    source: str,
    as_of: datetime,
) -> InferredValue[float] | None:
    latest_day: date | None = None
    latest_value = None
    for record in records:
        value = getattr(record, field)
        if value is None or record.day > as_of.date():
            continue
        if latest_day is None or record.day >= latest_day:
            latest_day = record.day
            latest_value = value
    if latest_day is None:
        return None
    age_days = (as_of.date() - latest_day).days
    return InferredValue(
        value=float(latest_value),
        confidence=freshness_confidence(age_days),
        inferred_from=(f"{source}:{latest_day.isoformat()}",),
        computed_at=as_of,
    )


def extract_biometrics(
    daily_records: list[DailyRecord],
    body_records: list[BodyRecord],
    as_of: datetime,
) -> Biometrics | None:
    """Latest resting HR, HRV, weight and sleep, or None when none were recorded."""
    biometrics = Biometrics(
        resting_hr=_latest(daily_records, "resting_hr", "daily_records", as_of),
        hrv_ms=_latest(daily_records, "hrv_ms", "daily_records", as_of),
        weight_kg=_latest(body_records, "weight_kg", "body_records", as_of),
        sleep_score=_latest(daily_records, "sleep_score", "daily_records", as_of),
    )
    if all(getattr(biometrics, name) is None for name in ("resting_hr", "hrv_ms", "weight_kg", "sleep_score")):
        return None
    return biometrics
