"""Phase tagging.

Phases are walked in template order, each consuming percent_of_plan * total
weeks. Boundaries use the floor of the cumulative share and the final phase
absorbs the remainder, so every week lands in exactly one phase.
"""

import math

from cadence.planner.models import PhaseBoundary
from cadence.templates.types import PlanPhase

# Guards against 0.33 + 0.33 + ... landing a hair under an integer
BOUNDARY_EPSILON = 1e-9


def assign_phases(phases: tuple[PlanPhase, ...], total_weeks: int) -> tuple[PhaseBoundary, ...]:
    """Split weeks 1..total_weeks into contiguous phases.

    Phases whose share rounds to zero weeks are dropped; the final phase
    always keeps at least one week.

    Args:
        phases: Template phases in order
        total_weeks: Plan length

    Returns:
        Phase boundaries covering [1, total_weeks] with no gaps or overlaps
    """
    boundaries: list[PhaseBoundary] = []
    cumulative = 0.0
    start = 1
    for index, phase in enumerate(phases):
        is_last = index == len(phases) - 1
        cumulative += phase.percent_of_plan
        end = total_weeks if is_last else math.floor(cumulative * total_weeks + BOUNDARY_EPSILON)
        if not is_last:
            # leave at least one week for the final phase
            end = min(end, total_weeks - 1)
        if end < start:
            continue
        boundaries.append(
            PhaseBoundary(
                name=phase.name,
                start_week=start,
                end_week=end,
                focus=phase.focus,
                intensity_range=phase.intensity_range,
            )
        )
        start = end + 1
    return tuple(boundaries)


def phase_for_week(boundaries: tuple[PhaseBoundary, ...], week_index: int) -> tuple[int, PhaseBoundary]:
    """Return (position, boundary) of the phase containing week_index."""
    for position, boundary in enumerate(boundaries):
        if boundary.start_week <= week_index <= boundary.end_week:
            return position, boundary
    raise ValueError(f"Week {week_index} is not covered by any phase")
