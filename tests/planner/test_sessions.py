"""Tests for distance allocation and session structure."""

import pytest

from cadence.enums import SegmentKind, SessionType
from cadence.planner.placement import plan_week_layout
from cadence.planner.sessions import (
    VolumeAllocationError,
    allocate_distances,
    build_segments,
    build_week_sessions,
)

ALL_DAYS = (0, 1, 2, 3, 4, 5, 6)


@pytest.fixture
def layout():
    return plan_week_layout(ALL_DAYS, 1, (SessionType.TEMPO, SessionType.INTERVALS), 3)


@pytest.mark.parametrize("volume", [0.0, 10.0, 23.7, 30.0, 41.3, 88.8])
def test_allocation_sums_exactly(layout, volume):
    """Rounded distances always sum to the weekly volume and the long run is the longest."""
    distances = allocate_distances(volume, layout)
    assert set(distances) == set(layout.run_days)
    assert round(sum(distances.values()), 1) == volume
    assert distances[layout.long_run_day] == max(distances.values())


def test_long_run_cap_moves_excess(layout):
    """A capped long run keeps the weekly total by lengthening the other runs."""
    uncapped = allocate_distances(30.0, layout)
    capped = allocate_distances(30.0, layout, long_run_cap_km=5.0)
    assert capped[layout.long_run_day] == 5.0
    assert round(sum(capped.values()), 1) == 30.0
    for day in layout.easy_days:
        assert capped[day] >= uncapped[day]


def test_negative_volume_rejected(layout):
    """Negative volume is a programming error."""
    with pytest.raises(VolumeAllocationError):
        allocate_distances(-1.0, layout)


def test_tempo_segments():
    """Tempo runs are warmup, threshold main set and cooldown."""
    segments = build_segments(SessionType.TEMPO, 10.0, 6.0)
    assert [segment.kind for segment in segments] == [SegmentKind.WARMUP, SegmentKind.MAIN, SegmentKind.COOLDOWN]
    assert [segment.distance_km for segment in segments] == [2.0, 6.0, 2.0]
    assert segments[0].target_pace_min_per_km == 6.0
    assert segments[1].target_pace_min_per_km is None


def test_interval_segments_sum_to_distance():
    """Rounding drift is absorbed by the main segment."""
    segments = build_segments(SessionType.INTERVALS, 7.3, None)
    assert round(sum(segment.distance_km for segment in segments), 1) == 7.3
    assert SegmentKind.RECOVERY in [segment.kind for segment in segments]


def test_rest_has_no_segments():
    """Rest days and zero distances have no structure."""
    assert build_segments(SessionType.REST, 5.0, None) == ()
    assert build_segments(SessionType.EASY, 0.0, None) == ()


def test_week_sessions_cover_every_day(layout):
    """A week has one session per day, rest days included."""
    distances = allocate_distances(30.0, layout)
    sessions = build_week_sessions(2, layout, distances, 6.2)

    assert [session.day_of_week for session in sessions] == list(range(7))
    assert all(session.week == 2 for session in sessions)
    by_day = {session.day_of_week: session for session in sessions}
    assert by_day[3].session_type == SessionType.REST
    assert by_day[3].distance_km == 0.0
    assert by_day[6].session_type == SessionType.LONG_RUN
    assert not by_day[6].is_key
    assert by_day[1].session_type == SessionType.TEMPO
    assert by_day[1].is_key
    assert round(sum(session.distance_km for session in sessions), 1) == 30.0
