"""Recent volume and habit patterns from run history.

Weeks are 7-day blocks ending at the as-of date: week 0 is the most recent
block. Medians are used for pace and long-run heuristics so one odd run does
not move them.
"""

import math
import statistics
from datetime import date, datetime, timedelta

from cadence.config.settings import EngineSettings
from cadence.metrics.records import ActivityRecord
from cadence.state.models import InferredValue, RecentPatterns

ACTIVITY_SOURCE = "activity_records"

MAX_PATTERN_WEEKS = 8

# Duration/distance bands for run classification
EASY_MIN_MINUTES = 20.0
EASY_MAX_MINUTES = 75.0
LONG_MIN_MINUTES = 75.0
LONG_MIN_KM = 15.0
HARD_SESSION_TYPES = {"tempo", "intervals", "fartlek", "race"}


def week_blocks(as_of: datetime, weeks: int) -> list[tuple[date, date]]:
    """Return (first_day, last_day) for each 7-day block, most recent first."""
    end = as_of.date()
    blocks = []
    for index in range(weeks):
        last_day = end - timedelta(days=7 * index)
        blocks.append((last_day - timedelta(days=6), last_day))
    return blocks


def weeks_of_history(runs: list[ActivityRecord], as_of: datetime, max_weeks: int = MAX_PATTERN_WEEKS) -> int:
    """Number of 7-day blocks covered since the first run, capped at max_weeks."""
    if not runs:
        return 0
    first_day = min(run.day for run in runs)
    span_days = (as_of.date() - first_day).days + 1
    return min(max_weeks, max(1, math.ceil(span_days / 7)))


def weekly_volumes(runs: list[ActivityRecord], as_of: datetime, weeks: int = MAX_PATTERN_WEEKS) -> list[float]:
    """Sum run distance (km) per 7-day block, most recent first."""
    volumes = []
    for first_day, last_day in week_blocks(as_of, weeks):
        total = sum(run.distance_km for run in runs if first_day <= run.day <= last_day)
        volumes.append(round(total, 1))
    return volumes


def coefficient_of_variation(values: list[float]) -> float | None:
    """Population coefficient of variation in percent, None when undefined."""
    if len(values) < 2:
        return None
    mean = statistics.fmean(values)
    if mean <= 0:
        return None
    return statistics.pstdev(values) / mean * 100.0


def rest_days_per_block(runs: list[ActivityRecord], as_of: datetime, weeks: int) -> list[int]:
    """Days without a run in each 7-day block, most recent first."""
    run_days = {run.day for run in runs}
    counts = []
    for first_day, _ in week_blocks(as_of, weeks):
        days = [first_day + timedelta(days=offset) for offset in range(7)]
        counts.append(sum(1 for day in days if day not in run_days))
    return counts


def _is_easy_run(run: ActivityRecord) -> bool:
    if run.session_type is not None and run.session_type.value not in {"easy", "recovery"}:
        return False
    return EASY_MIN_MINUTES <= run.duration_min <= EASY_MAX_MINUTES and run.distance_m > 0


def _is_long_run(run: ActivityRecord) -> bool:
    if run.session_type is not None:
        if run.session_type.value == "long_run":
            return True
        if run.session_type.value in HARD_SESSION_TYPES:
            return False
    return run.duration_min > LONG_MIN_MINUTES or run.distance_km >= LONG_MIN_KM


def compute_recent_patterns(
    runs: list[ActivityRecord],
    as_of: datetime,
    settings: EngineSettings,
) -> RecentPatterns | None:
    """Compute recent patterns, or None when there are no runs.

    Args:
        runs: Valid run records up to as_of
        as_of: Reference time
        settings: Engine settings (rest-day floor)

    Returns:
        RecentPatterns with per-metric confidence
    """
    if not runs:
        return None

    history_weeks = weeks_of_history(runs, as_of)
    volumes = weekly_volumes(runs, as_of)[:history_weeks]
    sources = (ACTIVITY_SOURCE,)

    def inferred(value, confidence: float) -> InferredValue:
        return InferredValue(value=value, confidence=round(confidence, 3), inferred_from=sources, computed_at=as_of)

    volume_7d = inferred(volumes[0], min(1.0, history_weeks / 2))
    last_four = volumes[:4]
    volume_28d = inferred(round(sum(last_four), 1), min(1.0, history_weeks / 4))

    consistency = None
    cv = coefficient_of_variation(last_four)
    if cv is not None:
        consistency = inferred(round(cv, 1), min(1.0, len(last_four) / 4))

    rest_counts = rest_days_per_block(runs, as_of, history_weeks)
    recent_rest = rest_counts[:4]
    rest_frequency = inferred(round(statistics.fmean(recent_rest), 2), min(1.0, len(recent_rest) / 4))

    streak = 0
    for count in rest_counts:
        if count >= settings.rest_day_floor:
            break
        streak += 1
    low_rest_weeks = inferred(streak, min(1.0, history_weeks / 4))

    easy_runs = [run for run in runs if _is_easy_run(run)]
    easy_pace = None
    easy_hr_ratio = None
    if easy_runs:
        paces = [run.pace_min_per_km for run in easy_runs if run.pace_min_per_km is not None]
        if paces:
            easy_pace = inferred(round(statistics.median(paces), 2), min(1.0, len(paces) / 5))
        hr_ratios = [run.avg_hr / run.max_hr for run in easy_runs if run.avg_hr and run.max_hr]
        if hr_ratios:
            easy_hr_ratio = InferredValue(
                value=round(statistics.median(hr_ratios), 3),
                confidence=round(min(1.0, len(hr_ratios) / 5), 3),
                inferred_from=(ACTIVITY_SOURCE, "heart_rate"),
                computed_at=as_of,
            )

    long_runs = [run for run in runs if _is_long_run(run)]
    long_run = None
    if long_runs:
        long_run = inferred(round(statistics.median(run.distance_km for run in long_runs), 1), min(1.0, len(long_runs) / 4))

    return RecentPatterns(
        volume_7d=volume_7d,
        volume_28d=volume_28d,
        volume_consistency=consistency,
        rest_day_frequency=rest_frequency,
        consecutive_low_rest_weeks=low_rest_weeks,
        easy_pace_min_per_km=easy_pace,
        easy_run_hr_ratio=easy_hr_ratio,
        long_run_km=long_run,
    )
