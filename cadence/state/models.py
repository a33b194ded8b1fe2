"""Runner state produced by the inference engine.

Every inferred metric is wrapped in an InferredValue carrying its confidence and
provenance, so "don't know" is a confidence of 0 rather than a sentinel number.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cadence.enums import DataQualityTier, LoadTrend, OvertrainingRisk, RiskLevel

ValueT = TypeVar("ValueT")


class InferredValue(BaseModel, Generic[ValueT]):
    """A metric value with confidence (0-1) and the sources it was inferred from.

    A value without sources is only allowed as an explicit zero-confidence
    placeholder.
    """

    model_config = ConfigDict(frozen=True)

    value: ValueT
    confidence: float = Field(ge=0.0, le=1.0)
    inferred_from: tuple[str, ...] = ()
    computed_at: datetime

    @model_validator(mode="after")
    def check_provenance(self) -> "InferredValue[ValueT]":
        if not self.inferred_from and self.confidence > 0:
            raise ValueError("InferredValue without sources must have confidence 0")
        return self

    @classmethod
    def unknown(cls, value: ValueT, computed_at: datetime) -> "InferredValue[ValueT]":
        return cls(value=value, confidence=0.0, inferred_from=(), computed_at=computed_at)


class TrainingLoad(BaseModel):
    model_config = ConfigDict(frozen=True)

    acute_load: InferredValue[float]
    chronic_load: InferredValue[float]
    balance: InferredValue[float]
    trend: InferredValue[LoadTrend]


class InjuryRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: InferredValue[RiskLevel]
    ramp_rate_percent: InferredValue[float]
    contributing_factors: InferredValue[tuple[str, ...]]
    overtraining_risk: InferredValue[OvertrainingRisk]


class RecentPatterns(BaseModel):
    """Volume and habit patterns from the recent activity window (distances in km)."""

    model_config = ConfigDict(frozen=True)

    volume_7d: InferredValue[float]
    volume_28d: InferredValue[float]
    volume_consistency: InferredValue[float] | None = None
    rest_day_frequency: InferredValue[float]
    consecutive_low_rest_weeks: InferredValue[int]
    easy_pace_min_per_km: InferredValue[float] | None = None
    easy_run_hr_ratio: InferredValue[float] | None = None
    long_run_km: InferredValue[float] | None = None


class Biometrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    resting_hr: InferredValue[float] | None = None
    hrv_ms: InferredValue[float] | None = None
    weight_kg: InferredValue[float] | None = None
    sleep_score: InferredValue[float] | None = None


class DataQuality(BaseModel):
    """Completeness and staleness of the input data, used to gate plan aggressiveness."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    tier: DataQualityTier
    activity_count: int = 0
    daily_record_count: int = 0
    body_record_count: int = 0
    days_of_history: int = 0
    days_since_last_activity: int | None = None
    skipped_records: int = 0


class Readiness(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: InferredValue[int]
    factors: tuple[str, ...] = ()


class RunnerState(BaseModel):
    """Compact, confidence-scored snapshot of the runner's fitness and risk.

    training_load and injury_risk are always present. The other groups are None
    when no underlying samples exist.
    """

    model_config = ConfigDict(frozen=True)

    as_of: datetime
    training_load: TrainingLoad
    injury_risk: InjuryRisk
    recent_patterns: RecentPatterns | None = None
    biometrics: Biometrics | None = None
    data_quality: DataQuality
    readiness: Readiness | None = None

    def has_confident_volume(self, min_confidence: float) -> bool:
        patterns = self.recent_patterns
        if patterns is None:
            return False
        volume = patterns.volume_7d
        return volume.confidence >= min_confidence and volume.value > 0
