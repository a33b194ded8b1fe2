"""Shared vocabularies for the training plan engine.

All enums are StrEnums so values serialize as plain strings in plan output.
"""

from enum import StrEnum


class GoalType(StrEnum):
    FIVE_K = "5k"
    TEN_K = "10k"
    HALF_MARATHON = "half_marathon"
    MARATHON = "marathon"
    BASE_BUILDING = "base_building"


class ExperienceLevel(StrEnum):
    BEGINNER = "beginner"
    RETURNING = "returning"
    CASUAL = "casual"
    SERIOUS = "serious"


class LoadTrend(StrEnum):
    BUILDING = "building"
    MAINTAINING = "maintaining"
    DECLINING = "declining"
    ERRATIC = "erratic"


class RiskLevel(StrEnum):
    """Injury risk level, ordered low < moderate < high."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MODERATE: 1, RiskLevel.HIGH: 2}


class OvertrainingRisk(StrEnum):
    NONE = "none"
    WATCH = "watch"
    CAUTION = "caution"
    HIGH = "high"


class DataQualityTier(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INSUFFICIENT = "insufficient"


class Severity(StrEnum):
    """Safeguard severity. Resolution order is block > cap > warn."""

    BLOCK = "block"
    CAP = "cap"
    WARN = "warn"


class RuleKind(StrEnum):
    """Closed set of safeguard rule kinds understood by the validator."""

    MAX_RAMP_RATE = "max_ramp_rate"
    REST_DAY_MINIMUM = "rest_day_minimum"
    NO_ADJACENT_KEY_DAYS = "no_adjacent_key_days"
    MIN_REST_DAYS = "min_rest_days"
    MAX_KEY_SESSIONS = "max_key_sessions"
    MAX_LONG_RUN_SHARE = "max_long_run_share"
    MAX_WEEKLY_VOLUME = "max_weekly_volume"
    EASY_PACE_FLOOR = "easy_pace_floor"
    MAX_INTENSITY = "max_intensity"
    SPEED_WORK_PHASE = "speed_work_phase"
    HIGH_INTENSITY_SHARE = "high_intensity_share"
    DATA_QUALITY_NOTICE = "data_quality_notice"


class SessionType(StrEnum):
    EASY = "easy"
    RECOVERY = "recovery"
    LONG_RUN = "long_run"
    TEMPO = "tempo"
    INTERVALS = "intervals"
    FARTLEK = "fartlek"
    RACE = "race"
    REST = "rest"


class SegmentKind(StrEnum):
    WARMUP = "warmup"
    MAIN = "main"
    RECOVERY = "recovery"
    COOLDOWN = "cooldown"


class DecisionStage(StrEnum):
    TEMPLATE_SELECTION = "template_selection"
    PEAK_VOLUME = "peak_volume"
    FALLBACK = "fallback"
    DATA_QUALITY = "data_quality"
    VOLUME_CURVE = "volume_curve"
    RECOVERY = "recovery"
    PHASE_TAGGING = "phase_tagging"
    PLACEMENT = "placement"
    SAFEGUARD = "safeguard"
    RETRY = "retry"


class WeekState(StrEnum):
    """Per-week lifecycle while the generator works through the plan."""

    PROPOSED = "proposed"
    VALIDATED = "validated"
    ADJUSTED = "adjusted"
    BLOCKED = "blocked"
    FINAL = "final"
