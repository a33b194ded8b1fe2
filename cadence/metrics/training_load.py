"""Training load metrics computation (ATL, CTL, TSB) and load trend.

Metrics:
- ATL (Acute Training Load): short time-constant EWMA of daily load (default 7 days)
- CTL (Chronic Training Load): long time-constant EWMA of daily load (default 42 days)
- TSB (Training Stress Balance): CTL - ATL

Properties:
- Deterministic: Same input always produces same output
- Missing data handling: days without activity are explicit zeros, so the
  averages decay across gaps instead of resetting
"""

import math
import statistics
from datetime import date, datetime, timedelta

from cadence.config.settings import EngineSettings
from cadence.enums import LoadTrend
from cadence.metrics.patterns import ACTIVITY_SOURCE, coefficient_of_variation, weekly_volumes, weeks_of_history
from cadence.metrics.records import ActivityRecord
from cadence.state.models import InferredValue, TrainingLoad

# Intensity factor by session type when no RPE or heart rate is available
SESSION_INTENSITY_FACTORS: dict[str, float] = {
    "recovery": 0.5,
    "easy": 0.6,
    "long_run": 0.65,
    "fartlek": 0.75,
    "tempo": 0.8,
    "intervals": 0.9,
    "race": 1.0,
}
DEFAULT_INTENSITY_FACTOR = 0.65

TREND_CHANGE_THRESHOLD = 0.10
MIN_TREND_WEEKS = 3


def intensity_factor(activity: ActivityRecord) -> float:
    """Estimate an intensity factor from RPE, then heart rate, then session type."""
    if activity.perceived_exertion is not None:
        return activity.perceived_exertion / 10.0
    if activity.avg_hr is not None and activity.max_hr is not None:
        return min(1.1, max(0.4, activity.avg_hr / activity.max_hr))
    if activity.session_type is not None:
        return SESSION_INTENSITY_FACTORS.get(activity.session_type.value, DEFAULT_INTENSITY_FACTOR)
    return DEFAULT_INTENSITY_FACTOR


def estimate_activity_load(activity: ActivityRecord) -> float:
    """Convert one activity to training-load units (duration-weighted intensity).

    An explicit training_load from the source wins. Otherwise load is
    hours * intensity factor * 100.
    """
    if activity.training_load is not None:
        return activity.training_load
    hours = activity.duration_s / 3600.0
    return hours * intensity_factor(activity) * 100.0


def build_daily_load_series(
    activities: list[ActivityRecord],
    start: date,
    end: date,
) -> list[tuple[date, float]]:
    """Sum same-day activity loads over [start, end], zero-filling days without activity."""
    by_day: dict[date, float] = {}
    for activity in activities:
        if start <= activity.day <= end:
            by_day[activity.day] = by_day.get(activity.day, 0.0) + estimate_activity_load(activity)

    series = []
    current = start
    while current <= end:
        series.append((current, by_day.get(current, 0.0)))
        current += timedelta(days=1)
    return series


def calculate_ewma(values: list[float], tau_days: float) -> list[float]:
    """Calculate exponentially weighted moving average seeded at zero.

    Formula:
        alpha = 1 - exp(-1 / tau)
        ewma[i] = alpha * value[i] + (1 - alpha) * ewma[i-1]
        ewma[-1] = 0
    """
    if not values:
        return []

    alpha = 1 - math.exp(-1 / tau_days)

    result: list[float] = []
    prev = 0.0
    for value in values:
        prev = alpha * value + (1 - alpha) * prev
        result.append(prev)

    return result


def calculate_atl_ctl_tsb(
    daily_load: list[float],
    atl_tau_days: float,
    ctl_tau_days: float,
) -> dict[str, float]:
    """Current ATL, CTL and TSB from a chronological, zero-filled daily load list.

    Returns zeros if no data available.
    """
    if not daily_load:
        return {"atl": 0.0, "ctl": 0.0, "tsb": 0.0}

    atl = calculate_ewma(daily_load, atl_tau_days)[-1]
    ctl = calculate_ewma(daily_load, ctl_tau_days)[-1]
    return {"atl": round(atl, 1), "ctl": round(ctl, 1), "tsb": round(ctl - atl, 1)}


def classify_trend(
    volumes: list[float],
    erratic_cv_percent: float,
) -> LoadTrend:
    """Classify load trend from weekly volumes (most recent first).

    Rules:
        - CV of the recent 4 weeks > erratic_cv_percent → erratic (overrides)
        - recent 4-week average > previous 4-week average by 10% → building
        - lower by more than 10% → declining
        - otherwise → maintaining
    """
    recent = volumes[:4]
    previous = volumes[4:8]

    cv = coefficient_of_variation(recent)
    if cv is not None and cv > erratic_cv_percent:
        return LoadTrend.ERRATIC

    if not previous:
        return LoadTrend.MAINTAINING

    recent_avg = statistics.fmean(recent)
    previous_avg = statistics.fmean(previous)
    if previous_avg <= 0:
        return LoadTrend.BUILDING if recent_avg > 0 else LoadTrend.MAINTAINING

    change = (recent_avg - previous_avg) / previous_avg
    if change > TREND_CHANGE_THRESHOLD:
        return LoadTrend.BUILDING
    if change < -TREND_CHANGE_THRESHOLD:
        return LoadTrend.DECLINING
    return LoadTrend.MAINTAINING


def compute_training_load(
    activities: list[ActivityRecord],
    as_of: datetime,
    settings: EngineSettings,
) -> TrainingLoad:
    """Compute the training load group.

    Always returns a TrainingLoad; with no activities every field is a
    zero-confidence placeholder without sources.
    """
    if not activities:
        return TrainingLoad(
            acute_load=InferredValue.unknown(0.0, as_of),
            chronic_load=InferredValue.unknown(0.0, as_of),
            balance=InferredValue.unknown(0.0, as_of),
            trend=InferredValue.unknown(LoadTrend.MAINTAINING, as_of),
        )

    end = as_of.date()
    start = max(min(activity.day for activity in activities), end - timedelta(days=settings.activity_lookback_days - 1))
    series = build_daily_load_series(activities, start, end)
    loads = [load for _, load in series]
    metrics = calculate_atl_ctl_tsb(loads, settings.atl_time_constant_days, settings.ctl_time_constant_days)

    days = len(series)
    atl_confidence = round(min(1.0, days / settings.atl_time_constant_days), 3)
    ctl_confidence = round(min(1.0, days / settings.ctl_time_constant_days), 3)
    sources = (ACTIVITY_SOURCE,)

    runs = [activity for activity in activities if activity.is_run]
    history_weeks = weeks_of_history(runs, as_of)
    if history_weeks >= MIN_TREND_WEEKS:
        volumes = weekly_volumes(runs, as_of)[:history_weeks]
        trend = InferredValue(
            value=classify_trend(volumes, settings.erratic_cv_percent),
            confidence=round(min(1.0, history_weeks / 8), 3),
            inferred_from=sources,
            computed_at=as_of,
        )
    else:
        trend = InferredValue(
            value=LoadTrend.MAINTAINING,
            confidence=0.0,
            inferred_from=sources,
            computed_at=as_of,
        )

    return TrainingLoad(
        acute_load=InferredValue(value=metrics["atl"], confidence=atl_confidence, inferred_from=sources, computed_at=as_of),
        chronic_load=InferredValue(value=metrics["ctl"], confidence=ctl_confidence, inferred_from=sources, computed_at=as_of),
        balance=InferredValue(
            value=metrics["tsb"],
            confidence=min(atl_confidence, ctl_confidence),
            inferred_from=sources,
            computed_at=as_of,
        ),
        trend=trend,
    )
