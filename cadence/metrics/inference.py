"""Inference engine: raw records to a confidence-scored RunnerState.

compute_runner_state is pure and never raises for sparse or empty input.
Each metric group is computed independently, so a failure in one degrades
only that group.
"""

import statistics
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import TypeVar

from loguru import logger

from cadence.config.settings import EngineSettings
from cadence.config.settings import settings as default_settings
from cadence.core.observability import PlannerStage, log_stage_event, timing
from cadence.enums import LoadTrend, OvertrainingRisk, RiskLevel
from cadence.metrics.biometrics import extract_biometrics
from cadence.metrics.data_quality import assess_data_quality
from cadence.metrics.injury_risk import assess_injury_risk
from cadence.metrics.patterns import compute_recent_patterns
from cadence.metrics.readiness import compute_readiness
from cadence.metrics.records import ActivityRecord, BodyRecord, DailyRecord, parse_records, to_utc_naive
from cadence.metrics.training_load import compute_training_load
from cadence.runner.snapshot import RunnerSnapshot
from cadence.state.models import InferredValue, InjuryRisk, RunnerState, TrainingLoad

ResultT = TypeVar("ResultT")

_METRIC_ERRORS = (ValueError, ArithmeticError, statistics.StatisticsError)


def _degrade(metric: str, compute: Callable[[], ResultT], fallback: Callable[[], ResultT]) -> ResultT:
    try:
        return compute()
    except _METRIC_ERRORS as e:
        logger.warning(f"Metric '{metric}' degraded to fallback: {e}")
        return fallback()


def _unknown_training_load(as_of: datetime) -> TrainingLoad:
    return TrainingLoad(
        acute_load=InferredValue.unknown(0.0, as_of),
        chronic_load=InferredValue.unknown(0.0, as_of),
        balance=InferredValue.unknown(0.0, as_of),
        trend=InferredValue.unknown(LoadTrend.MAINTAINING, as_of),
    )


def _unknown_injury_risk(as_of: datetime) -> InjuryRisk:
    return InjuryRisk(
        level=InferredValue.unknown(RiskLevel.LOW, as_of),
        ramp_rate_percent=InferredValue.unknown(0.0, as_of),
        contributing_factors=InferredValue.unknown((), as_of),
        overtraining_risk=InferredValue.unknown(OvertrainingRisk.NONE, as_of),
    )


def compute_runner_state(
    activities: Iterable[ActivityRecord | dict],
    daily_records: Iterable[DailyRecord | dict],
    body_records: Iterable[BodyRecord | dict],
    as_of: datetime,
    *,
    snapshot: RunnerSnapshot | None = None,
    settings: EngineSettings | None = None,
) -> RunnerState:
    """Compute the runner's current fitness and risk state.

    Args:
        activities: Activity records (models or raw dicts); malformed entries are skipped
        daily_records: Daily summaries (steps, resting HR, HRV, sleep)
        body_records: Body measurements (weight)
        as_of: Reference time; records after it are ignored
        snapshot: Optional profile, contributes declared injury flags
        settings: Optional settings override

    Returns:
        RunnerState with per-metric confidence and provenance
    """
    settings = settings or default_settings
    as_of = to_utc_naive(as_of)

    with timing("inference.compute_runner_state"):
        log_stage_event(PlannerStage.INFERENCE, "start")

        parsed_activities, skipped_activities = parse_records(activities, ActivityRecord)
        parsed_daily, skipped_daily = parse_records(daily_records, DailyRecord)
        parsed_body, skipped_body = parse_records(body_records, BodyRecord)

        window_start = as_of.date() - timedelta(days=settings.activity_lookback_days - 1)
        usable = sorted(
            (a for a in parsed_activities if a.start_time <= as_of and a.day >= window_start),
            key=lambda a: (a.start_time, a.id),
        )
        runs = [a for a in usable if a.is_run]
        skipped = skipped_activities + skipped_daily + skipped_body

        training_load = _degrade(
            "training_load",
            lambda: compute_training_load(usable, as_of, settings),
            lambda: _unknown_training_load(as_of),
        )
        patterns = _degrade("recent_patterns", lambda: compute_recent_patterns(runs, as_of, settings), lambda: None)
        injury_risk = _degrade(
            "injury_risk",
            lambda: assess_injury_risk(runs, as_of, settings, snapshot=snapshot, training_load=training_load),
            lambda: _unknown_injury_risk(as_of),
        )
        biometrics = _degrade("biometrics", lambda: extract_biometrics(parsed_daily, parsed_body, as_of), lambda: None)
        data_quality = assess_data_quality(
            usable,
            as_of,
            daily_record_count=len(parsed_daily),
            body_record_count=len(parsed_body),
            skipped_records=skipped,
        )
        readiness = _degrade(
            "readiness",
            lambda: compute_readiness(
                training_load, injury_risk, biometrics, as_of, settings.ramp_rate_threshold * 100
            ),
            lambda: None,
        )

        log_stage_event(
            PlannerStage.INFERENCE,
            "success",
            meta={
                "activities": len(usable),
                "skipped_records": skipped,
                "data_quality": data_quality.tier.value,
            },
        )

    return RunnerState(
        as_of=as_of,
        training_load=training_load,
        injury_risk=injury_risk,
        recent_patterns=patterns,
        biometrics=biometrics,
        data_quality=data_quality,
        readiness=readiness,
    )
