"""Distance allocation and session structure.

Weekly volume is split across the week's runs by session weight, rounded to
0.1 km, and the rounding drift is assigned to the long run so the sessions
always sum to the weekly volume exactly.
"""

from cadence.enums import SegmentKind, SessionType
from cadence.planner.models import PlannedSession, StructureSegment
from cadence.planner.placement import WeekLayout

LONG_RUN_WEIGHT = 1.6
KEY_SESSION_WEIGHT = 1.1
EASY_RUN_WEIGHT = 1.0

# (segment kind, share of session distance, target intensity)
SEGMENT_PLANS: dict[SessionType, tuple[tuple[SegmentKind, float, str], ...]] = {
    SessionType.TEMPO: (
        (SegmentKind.WARMUP, 0.2, "easy"),
        (SegmentKind.MAIN, 0.6, "threshold"),
        (SegmentKind.COOLDOWN, 0.2, "easy"),
    ),
    SessionType.INTERVALS: (
        (SegmentKind.WARMUP, 0.2, "easy"),
        (SegmentKind.MAIN, 0.45, "vo2max"),
        (SegmentKind.RECOVERY, 0.15, "recovery"),
        (SegmentKind.COOLDOWN, 0.2, "easy"),
    ),
    SessionType.FARTLEK: (
        (SegmentKind.WARMUP, 0.2, "easy"),
        (SegmentKind.MAIN, 0.6, "fartlek"),
        (SegmentKind.COOLDOWN, 0.2, "easy"),
    ),
    SessionType.RACE: ((SegmentKind.MAIN, 1.0, "race"),),
    SessionType.LONG_RUN: ((SegmentKind.MAIN, 1.0, "aerobic"),),
    SessionType.EASY: ((SegmentKind.MAIN, 1.0, "easy"),),
    SessionType.RECOVERY: ((SegmentKind.MAIN, 1.0, "recovery"),),
}

EASY_INTENSITIES = {"easy", "aerobic", "recovery"}


class VolumeAllocationError(ValueError):
    """Raised when a week's volume cannot be split across its sessions."""


def allocate_distances(
    volume_km: float,
    layout: WeekLayout,
    long_run_cap_km: float | None = None,
) -> dict[int, float]:
    """Split weekly volume across run days.

    Algorithm:
    1. Weight each run day (long, key, easy)
    2. Normalize so total == weekly volume
    3. Clamp the long run to long_run_cap_km, moving the excess to other runs by weight
    4. Round to 0.1
    5. Assign rounding drift to the long run (or the largest other run when the long run is capped)

    Returns:
        Mapping of day -> distance (km) for every run day

    Raises:
        VolumeAllocationError: If the volume is negative or the result does not sum to the volume
    """
    if volume_km < 0:
        raise VolumeAllocationError("Weekly volume must not be negative")

    weights: dict[int, float] = {layout.long_run_day: LONG_RUN_WEIGHT}
    for day, _ in layout.key_sessions:
        weights[day] = KEY_SESSION_WEIGHT
    for day in layout.easy_days:
        weights[day] = EASY_RUN_WEIGHT

    total_weight = sum(weights.values())
    raw = {day: weight / total_weight * volume_km for day, weight in weights.items()}

    long_capped = False
    others = [day for day in raw if day != layout.long_run_day]
    if long_run_cap_km is not None and others and raw[layout.long_run_day] > long_run_cap_km:
        excess = raw[layout.long_run_day] - long_run_cap_km
        raw[layout.long_run_day] = long_run_cap_km
        other_weight = sum(weights[day] for day in others)
        for day in others:
            raw[day] += excess * weights[day] / other_weight
        long_capped = True

    rounded = {day: round(value, 1) for day, value in raw.items()}
    drift = round(volume_km - sum(rounded.values()), 1)
    if long_capped:
        drift_day = max(others, key=lambda day: (rounded[day], -day))
    else:
        drift_day = layout.long_run_day
    rounded[drift_day] = round(rounded[drift_day] + drift, 1)

    total_allocated = round(sum(rounded.values()), 1)
    if total_allocated != round(volume_km, 1):
        raise VolumeAllocationError(f"Volume mismatch after allocation: {total_allocated} != {volume_km}")

    return rounded


def build_segments(
    session_type: SessionType,
    distance_km: float,
    easy_pace_min_per_km: float | None,
) -> tuple[StructureSegment, ...]:
    """Break a session into warmup/main/recovery/cooldown segments summing to its distance."""
    plan = SEGMENT_PLANS.get(session_type)
    if not plan or distance_km <= 0:
        return ()

    distances = [round(distance_km * share, 1) for _, share, _ in plan]
    main_index = next(index for index, (kind, _, _) in enumerate(plan) if kind == SegmentKind.MAIN)
    distances[main_index] = round(distances[main_index] + distance_km - sum(distances), 1)

    return tuple(
        StructureSegment(
            kind=kind,
            distance_km=distance,
            target_intensity=intensity,
            target_pace_min_per_km=easy_pace_min_per_km if intensity in EASY_INTENSITIES else None,
        )
        for (kind, _, intensity), distance in zip(plan, distances, strict=True)
    )


def build_week_sessions(
    week_index: int,
    layout: WeekLayout,
    distances: dict[int, float],
    easy_pace_min_per_km: float | None,
) -> list[PlannedSession]:
    """Materialize all seven days of a week, rest days included, in day order."""
    key_types = dict(layout.key_sessions)
    sessions: list[PlannedSession] = []
    for day in range(7):
        if day == layout.long_run_day:
            session_type = SessionType.LONG_RUN
            is_key = layout.long_run_is_key
        elif day in key_types:
            session_type = key_types[day]
            is_key = True
        elif day in layout.easy_days:
            session_type = SessionType.EASY
            is_key = False
        else:
            sessions.append(PlannedSession(week=week_index, day_of_week=day, session_type=SessionType.REST, distance_km=0.0))
            continue

        distance = distances.get(day, 0.0)
        sessions.append(
            PlannedSession(
                week=week_index,
                day_of_week=day,
                session_type=session_type,
                distance_km=distance,
                structure_segments=build_segments(session_type, distance, easy_pace_min_per_km),
                is_key=is_key,
            )
        )
    return sessions
