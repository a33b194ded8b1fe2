"""Tests for weekly session placement."""

import pytest

from cadence.enums import SessionType
from cadence.planner.placement import choose_key_days, choose_run_days, plan_week_layout

ALL_DAYS = (0, 1, 2, 3, 4, 5, 6)


def _hard_days(layout):
    return sorted({*layout.key_days, layout.long_run_day})


def test_standard_week():
    """Two key sessions, three easy runs and one rest day on a fully open week."""
    layout = plan_week_layout(ALL_DAYS, 1, (SessionType.TEMPO, SessionType.INTERVALS), 3)

    assert layout.run_days == (0, 1, 2, 4, 5, 6)
    assert layout.rest_days == (3,)
    assert layout.long_run_day == 6
    assert layout.key_sessions == ((1, SessionType.TEMPO), (4, SessionType.INTERVALS))
    assert layout.easy_days == (0, 2, 5)
    assert layout.dropped_key_sessions == 0


def test_long_run_as_key_session():
    """A long_run key type marks the long run itself as a key session."""
    layout = plan_week_layout(ALL_DAYS, 1, (SessionType.TEMPO, SessionType.LONG_RUN), 3)
    assert layout.long_run_is_key
    assert layout.key_session_count == 2
    assert layout.key_session_types == (SessionType.TEMPO, SessionType.LONG_RUN)
    assert layout.long_run_day in layout.key_days


def test_key_session_not_next_to_long_run_across_weeks():
    """The key day keeps its distance from last week's long run too."""
    layout = plan_week_layout(ALL_DAYS, 1, (SessionType.TEMPO, SessionType.LONG_RUN), 3)
    tempo_day = layout.key_sessions[0][0]
    assert tempo_day not in (0, 5)


@pytest.mark.parametrize(
    "available",
    [ALL_DAYS, (0, 2, 4, 6), (1, 2, 3, 5, 6), (0, 1, 2, 3, 4)],
)
def test_hard_days_never_adjacent(available):
    """No two hard days are consecutive for any availability."""
    layout = plan_week_layout(available, 1, (SessionType.INTERVALS, SessionType.TEMPO), 3)
    hard = _hard_days(layout)
    assert all(b - a > 1 for a, b in zip(hard, hard[1:], strict=False))
    assert set(layout.run_days) <= set(available)
    assert layout.long_run_day == max(layout.run_days)


def test_tight_availability_drops_key_sessions():
    """Two consecutive available days cannot host a key session next to the long run."""
    layout = plan_week_layout((5, 6), 1, (SessionType.TEMPO, SessionType.INTERVALS), 3)
    assert layout.run_days == (5, 6)
    assert layout.key_sessions == ()
    assert layout.dropped_key_sessions == 2
    assert layout.easy_days == (5,)
    assert len(layout.rest_days) == 5


def test_rest_days_spread_out():
    """Run days avoid long streaks when rest days are available."""
    assert choose_run_days(ALL_DAYS, 5) == (0, 1, 3, 4, 6)
    assert choose_run_days((0, 1, 2), 5) == (0, 1, 2)


def test_choose_key_days_returns_fewer_when_impossible():
    """Only as many non-adjacent key days as fit are returned."""
    assert choose_key_days((2, 3, 4, 6), 6, 2) == (2, 4)
    assert choose_key_days((4, 5, 6), 6, 1) == (4,)
    assert choose_key_days((5, 6), 6, 1) == ()


def test_layout_is_deterministic():
    """Same inputs, same layout."""
    first = plan_week_layout((0, 2, 3, 5, 6), 2, (SessionType.TEMPO,), 3)
    second = plan_week_layout((0, 2, 3, 5, 6), 2, (SessionType.TEMPO,), 3)
    assert first == second
