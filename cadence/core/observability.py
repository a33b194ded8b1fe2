"""Observability for the plan generation pipeline.

This module provides:
- Stage event logging (start/success/fail)
- Stage-level timing

Nothing here affects plan output; generation stays deterministic with logging
enabled or disabled.
"""

import time
from contextlib import contextmanager
from enum import StrEnum

from loguru import logger


class PlannerStage(StrEnum):
    """Canonical generator stage enum."""

    INFERENCE = "runner_state"
    TEMPLATE = "template_select"
    PEAK = "peak_volume"
    CURVE = "volume_curve"
    PHASES = "phase_tagging"
    WEEKS = "week_build"
    SEASON = "season_view"


def log_event(
    event: str,
    **kwargs: str | int | float | bool | None,
) -> None:
    """Log a structured event.

    Standard events:
    - planner_stage: Stage start/success/fail
    - planner_timing: Elapsed time for a stage
    - week_finalized: Week reached its final state
    - safeguard_triggered: A rule fired during validation

    Args:
        event: Event name
        **kwargs: Additional structured fields to include in the log
    """
    logger.bind(**kwargs).info(event)


def log_stage_event(
    stage: PlannerStage,
    status: str,
    plan_id: str | None = None,
    meta: dict[str, str | int | float | bool | None] | None = None,
) -> None:
    """Log a stage event (start/success/fail).

    Args:
        stage: Planner stage
        status: Event status ("start", "success", or "fail")
        plan_id: Optional identifier for correlation (template id + runner)
        meta: Optional metadata dictionary to include in log

    Raises:
        ValueError: If status is not one of the allowed values
    """
    allowed_statuses = {"start", "success", "fail"}
    if status not in allowed_statuses:
        raise ValueError(f"Status must be one of {allowed_statuses}, got: {status}")

    log_data: dict[str, str | int | float | bool | None] = {
        "stage": stage.value,
        "status": status,
    }

    if plan_id:
        log_data["plan_id"] = plan_id

    if meta:
        log_data.update(meta)

    log_event("planner_stage", **log_data)


@contextmanager
def timing(metric_name: str):
    """Context manager for timing operations.

    Args:
        metric_name: Metric name (e.g., "planner.generate")

    Yields:
        None (context manager)
    """
    start_time = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - start_time
        logger.bind(metric=metric_name, duration_seconds=round(elapsed, 6)).debug("planner_timing")
