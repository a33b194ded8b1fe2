from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunable constants for inference and plan generation.

    Load-model time constants and the ramp threshold are illustrative defaults,
    not authoritative values, so all of them can be overridden via CADENCE_* env vars.
    """

    atl_time_constant_days: float = Field(
        default=7.0,
        gt=0,
        validation_alias="CADENCE_ATL_TIME_CONSTANT_DAYS",
        description="Acute training load EWMA time constant (days)",
    )
    ctl_time_constant_days: float = Field(
        default=42.0,
        gt=0,
        validation_alias="CADENCE_CTL_TIME_CONSTANT_DAYS",
        description="Chronic training load EWMA time constant (days)",
    )
    ramp_rate_threshold: float = Field(
        default=0.10,
        gt=0,
        validation_alias="CADENCE_RAMP_RATE_THRESHOLD",
        description="Week-over-week volume increase that counts as an injury-risk factor",
    )
    high_ramp_rate_threshold: float = Field(
        default=0.30,
        gt=0,
        validation_alias="CADENCE_HIGH_RAMP_RATE_THRESHOLD",
        description="Week-over-week volume increase that makes ramp a high-severity factor",
    )
    erratic_cv_percent: float = Field(default=40.0, gt=0, validation_alias="CADENCE_ERRATIC_CV_PERCENT")
    rest_day_floor: float = Field(
        default=1.0,
        ge=0,
        validation_alias="CADENCE_REST_DAY_FLOOR",
        description="Rest days per week below which rest frequency is a risk factor",
    )
    activity_lookback_days: int = Field(default=90, ge=14, validation_alias="CADENCE_ACTIVITY_LOOKBACK_DAYS")
    min_volume_confidence: float = Field(
        default=0.5,
        ge=0,
        le=1,
        validation_alias="CADENCE_MIN_VOLUME_CONFIDENCE",
        description="Recent volume below this confidence triggers the experience-only fallback",
    )
    min_peak_volume_km: float = Field(default=10.0, ge=0, validation_alias="CADENCE_MIN_PEAK_VOLUME_KM")
    safeguard_max_attempts: int = Field(default=3, ge=1, validation_alias="CADENCE_SAFEGUARD_MAX_ATTEMPTS")
    retry_shrink_factor: float = Field(
        default=0.5,
        gt=0,
        lt=1,
        validation_alias="CADENCE_RETRY_SHRINK_FACTOR",
        description="Fraction of the volume delta kept when a blocked week is re-proposed",
    )
    proposal_ramp_limit: float = Field(
        default=0.15,
        gt=0,
        validation_alias="CADENCE_PROPOSAL_RAMP_LIMIT",
        description="Largest weekly increase over the last full week the generator proposes before safeguards run",
    )
    recovery_volume_factor: float = Field(
        default=0.7,
        gt=0,
        lt=1,
        validation_alias="CADENCE_RECOVERY_VOLUME_FACTOR",
        description="Share of the curve volume kept in a recovery week",
    )
    log_level: str = Field(default="INFO", validation_alias="CADENCE_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


settings = EngineSettings()
