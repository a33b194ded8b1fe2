"""Peak volume estimation and the per-week volume curve.

Curve shape:
    week 1            start_percent_of_peak * peak
    week 1..peak      linear interpolation up to peak
    peak..taper       held at peak
    taper week w      peak * (r + (1 - r) * (N - w) / taper_weeks)
    recovery week     curve value * recovery factor

where r = taper_reduction_percent is the fraction of peak retained in the
final week.
"""

import math
from dataclasses import dataclass

from cadence.config.settings import EngineSettings
from cadence.enums import DataQualityTier, DecisionStage, ExperienceLevel
from cadence.planner.audit import DecisionLog
from cadence.state.models import RunnerState
from cadence.templates.types import PlanTemplate, VolumeGuidelines

# Conservative weekly baseline (km) when recent volume is unknown
DEFAULT_BASELINE_KM: dict[ExperienceLevel, float] = {
    ExperienceLevel.BEGINNER: 15.0,
    ExperienceLevel.RETURNING: 20.0,
    ExperienceLevel.CASUAL: 25.0,
    ExperienceLevel.SERIOUS: 40.0,
}

# Peak growth allowed over baseline when the history is thin
LOW_QUALITY_PEAK_GROWTH = 1.2

# Recovery week spacing; short plans cut back less often
RECOVERY_INTERVAL_WEEKS = 3
SHORT_PLAN_RECOVERY_INTERVAL_WEEKS = 4
SHORT_PLAN_MAX_WEEKS = 8


@dataclass(frozen=True)
class PeakEstimate:
    """Result of peak volume estimation.

    Attributes:
        peak_km: Target peak weekly volume
        baseline_km: Current weekly volume the peak was scaled from
        used_fallback: True when the experience-only default was used
        reference_volume_km: Recent weekly volume week 1 ramps from, None without confident data
    """

    peak_km: float
    baseline_km: float
    used_fallback: bool
    reference_volume_km: float | None


def estimate_peak_volume(
    state: RunnerState,
    template: PlanTemplate,
    experience: ExperienceLevel,
    settings: EngineSettings,
    log: DecisionLog,
) -> PeakEstimate:
    """Estimate target peak weekly volume.

    Uses recent 7-day and 28-day volume when confident, otherwise falls back to
    a default scaled by experience level alone and records one fallback
    decision.
    """
    modifier = template.modifier_for(experience)
    factor = template.volume_guidelines.peak_volume_factor
    patterns = state.recent_patterns

    if state.has_confident_volume(settings.min_volume_confidence):
        volume_7d = patterns.volume_7d.value
        volume_28d = patterns.volume_28d
        if volume_28d.confidence >= settings.min_volume_confidence and volume_28d.value > 0:
            weekly_28d = volume_28d.value / 4
            baseline = (volume_7d + weekly_28d) / 2
            reference = max(volume_7d, weekly_28d)
            basis = f"7-day volume {volume_7d:.1f} km and 28-day weekly average {weekly_28d:.1f} km"
        else:
            baseline = volume_7d
            reference = volume_7d
            basis = f"7-day volume {volume_7d:.1f} km"
        used_fallback = False
    else:
        baseline = DEFAULT_BASELINE_KM[experience]
        reference = None
        basis = f"{experience.value} default of {baseline:.0f} km/week"
        used_fallback = True
        confidence = patterns.volume_7d.confidence if patterns is not None else 0.0
        log.record(
            DecisionStage.FALLBACK,
            "Which weekly volume should the peak be scaled from?",
            baseline,
            (
                f"Recent volume confidence {confidence:.2f} is below {settings.min_volume_confidence:.2f}; "
                f"using the conservative {experience.value} default"
            ),
        )

    peak = round(baseline * factor * modifier.volume_multiplier, 1)
    log.record(
        DecisionStage.PEAK_VOLUME,
        "What peak weekly volume should the plan build to?",
        peak,
        f"{basis} x template factor {factor} x {experience.value} volume multiplier {modifier.volume_multiplier}",
    )

    if not used_fallback and state.data_quality.tier in (DataQualityTier.LOW, DataQualityTier.INSUFFICIENT):
        gated = round(baseline * LOW_QUALITY_PEAK_GROWTH, 1)
        if gated < peak:
            peak = gated
            log.record(
                DecisionStage.DATA_QUALITY,
                "Should peak volume be limited by data quality?",
                peak,
                (
                    f"Data quality is {state.data_quality.tier.value} (score {state.data_quality.score:.2f}); "
                    f"peak limited to {LOW_QUALITY_PEAK_GROWTH:.0%} of current volume"
                ),
            )

    if peak < settings.min_peak_volume_km:
        peak = settings.min_peak_volume_km
        log.record(
            DecisionStage.PEAK_VOLUME,
            "Is the peak volume above the plan minimum?",
            peak,
            f"Estimated peak was below the {settings.min_peak_volume_km:.0f} km minimum and was raised to it",
        )

    return PeakEstimate(
        peak_km=peak,
        baseline_km=round(baseline, 1),
        used_fallback=used_fallback,
        reference_volume_km=round(reference, 1) if reference is not None else None,
    )


def resolve_peak_week(peak_week_index: int, total_weeks: int, taper_weeks: int) -> tuple[int, bool]:
    """Resolve a possibly negative peak index into [1, total_weeks - taper_weeks].

    Returns:
        (resolved week, whether clamping was needed)
    """
    raw = peak_week_index if peak_week_index > 0 else total_weeks + peak_week_index
    latest = max(1, total_weeks - taper_weeks)
    resolved = min(max(raw, 1), latest)
    return resolved, resolved != raw


def taper_start_week(total_weeks: int, taper_weeks: int) -> int:
    return total_weeks - taper_weeks + 1


def build_volume_curve(
    peak_km: float,
    guidelines: VolumeGuidelines,
    total_weeks: int,
    peak_week: int,
    recovery: tuple[int, ...] = (),
    recovery_factor: float = 1.0,
) -> list[float]:
    """Template formula volume per week, index 0 = week 1."""
    start_km = peak_km * guidelines.start_percent_of_peak
    first_taper_week = taper_start_week(total_weeks, guidelines.taper_weeks)
    retained = guidelines.taper_reduction_percent

    curve: list[float] = []
    for week in range(1, total_weeks + 1):
        if guidelines.taper_weeks > 0 and week >= first_taper_week:
            remaining = total_weeks - week
            volume = peak_km * (retained + (1 - retained) * remaining / guidelines.taper_weeks)
        elif week <= peak_week:
            if peak_week == 1:
                volume = peak_km
            else:
                volume = start_km + (peak_km - start_km) * (week - 1) / (peak_week - 1)
        else:
            volume = peak_km
        if week in recovery:
            volume *= recovery_factor
        curve.append(round(volume, 1))
    return curve


def recovery_interval(total_weeks: int) -> int:
    return SHORT_PLAN_RECOVERY_INTERVAL_WEEKS if total_weeks <= SHORT_PLAN_MAX_WEEKS else RECOVERY_INTERVAL_WEEKS


def recovery_weeks(total_weeks: int, peak_week: int, taper_weeks: int) -> tuple[int, ...]:
    """Weeks that cut volume back so the previous block can be absorbed.

    Every recovery_interval() weeks, except the peak week, the taper, the week
    right before the taper and the last three weeks of the plan.
    """
    interval = recovery_interval(total_weeks)
    last = min(total_weeks - 3, taper_start_week(total_weeks, taper_weeks) - 2)
    return tuple(week for week in range(interval, last + 1, interval) if week != peak_week)


def ramp_limit(previous_km: float, max_increase: float, weeks: int = 1) -> float:
    """Highest volume, rounded down to 0.1 km, within max_increase per week of previous_km."""
    return math.floor(previous_km * (1 + max_increase) ** max(1, weeks) * 10 + 1e-9) / 10
