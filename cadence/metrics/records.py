"""Normalized input records supplied by the ingestion layer.

Records arrive already deduplicated and time-ordered. Range checks live on the
models; parse_records skips anything that fails them instead of aborting.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import TypeVar

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cadence.enums import SessionType

MAX_ACTIVITY_SECONDS = 24 * 3600
MAX_ACTIVITY_METERS = 300_000.0


def to_utc_naive(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC so mixed inputs compare safely."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class ActivityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime | None = None
    duration_s: float = Field(gt=0, le=MAX_ACTIVITY_SECONDS)
    distance_m: float = Field(default=0.0, ge=0, le=MAX_ACTIVITY_METERS)
    avg_hr: float | None = Field(default=None, ge=25, le=250)
    max_hr: float | None = Field(default=None, ge=25, le=250)
    perceived_exertion: float | None = Field(default=None, ge=1, le=10)
    session_type: SessionType | None = None
    training_load: float | None = Field(default=None, ge=0)
    activity_type: str = "run"

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value: datetime | None) -> datetime | None:
        return to_utc_naive(value) if value is not None else None

    @model_validator(mode="after")
    def check_consistency(self) -> "ActivityRecord":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time precedes start_time")
        if self.avg_hr is not None and self.max_hr is not None and self.avg_hr > self.max_hr:
            raise ValueError("avg_hr exceeds max_hr")
        return self

    @property
    def is_run(self) -> bool:
        return self.activity_type.lower() in {"run", "running", "trail_run", "treadmill"}

    @property
    def day(self) -> date:
        return self.start_time.date()

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0

    @property
    def duration_min(self) -> float:
        return self.duration_s / 60.0

    @property
    def pace_min_per_km(self) -> float | None:
        if self.distance_m <= 0:
            return None
        return self.duration_min / self.distance_km


class DailyRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    steps: int | None = Field(default=None, ge=0, le=200_000)
    calories: float | None = Field(default=None, ge=0, le=20_000)
    resting_hr: float | None = Field(default=None, ge=25, le=150)
    hrv_ms: float | None = Field(default=None, gt=0, le=400)
    sleep_score: float | None = Field(default=None, ge=0, le=100)
    sleep_hours: float | None = Field(default=None, ge=0, le=24)


class BodyRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    weight_kg: float | None = Field(default=None, gt=20, le=300)
    body_fat_pct: float | None = Field(default=None, gt=0, lt=70)


RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_records(
    raw_records: Iterable[RecordT | dict],
    model: type[RecordT],
) -> tuple[list[RecordT], int]:
    """Validate raw records, skipping malformed or out-of-range entries.

    Args:
        raw_records: Model instances or raw dicts
        model: Record model to validate against

    Returns:
        Tuple of (valid records, number of skipped records)
    """
    valid: list[RecordT] = []
    skipped = 0
    for index, raw in enumerate(raw_records):
        if isinstance(raw, model):
            valid.append(raw)
            continue
        try:
            valid.append(model.model_validate(raw))
        except ValidationError as e:
            skipped += 1
            logger.warning(
                f"Skipping malformed {model.__name__} at index {index}: {e.error_count()} validation error(s)"
            )
    return valid, skipped
