"""Weekly session placement.

Conventions:
- The long run goes on the last available day of the week.
- Key sessions go on non-adjacent days, never next to the long run, spread as
  far apart as possible (earliest days win ties).
- Remaining run days are easy runs; everything else is rest.

Placement is deterministic. When the available days cannot host every key
session without adjacency, key sessions are dropped and reported.
"""

from dataclasses import dataclass
from itertools import combinations

from cadence.enums import SessionType


@dataclass(frozen=True)
class WeekLayout:
    run_days: tuple[int, ...]
    long_run_day: int
    long_run_is_key: bool
    key_sessions: tuple[tuple[int, SessionType], ...]
    easy_days: tuple[int, ...]
    rest_days: tuple[int, ...]
    dropped_key_sessions: int = 0

    @property
    def key_days(self) -> tuple[int, ...]:
        days = [day for day, _ in self.key_sessions]
        if self.long_run_is_key:
            days.append(self.long_run_day)
        return tuple(sorted(days))

    @property
    def key_session_count(self) -> int:
        return len(self.key_sessions) + (1 if self.long_run_is_key else 0)

    @property
    def key_session_types(self) -> tuple[SessionType, ...]:
        types = [session_type for _, session_type in self.key_sessions]
        if self.long_run_is_key:
            types.append(SessionType.LONG_RUN)
        return tuple(types)


def _max_streak(days: tuple[int, ...]) -> int:
    longest = current = 0
    previous = None
    for day in days:
        current = current + 1 if previous is not None and day == previous + 1 else 1
        longest = max(longest, current)
        previous = day
    return longest


def _spacing(days: tuple[int, ...]) -> tuple[int, int]:
    """(smallest gap including the wrap into next week, smallest gap within the week)."""
    if len(days) < 2:
        return 7, 7
    gaps = [b - a for a, b in zip(days, days[1:], strict=False)]
    inner = min(gaps)
    return min(inner, days[0] + 7 - days[-1]), inner


def choose_run_days(available_days: tuple[int, ...], count: int) -> tuple[int, ...]:
    """Pick `count` run days that include the last available day and spread rest evenly."""
    last_day = available_days[-1]
    if count >= len(available_days):
        return available_days
    others = [day for day in available_days if day != last_day]
    candidates = [tuple(sorted((*combo, last_day))) for combo in combinations(others, count - 1)]
    return min(candidates, key=lambda days: (_max_streak(days), days))


def choose_key_days(run_days: tuple[int, ...], long_run_day: int, count: int) -> tuple[int, ...]:
    """Pick up to `count` non-adjacent key days, none adjacent to the long run.

    Returns fewer days than requested when the constraint cannot be met.
    """
    eligible = [day for day in run_days if day != long_run_day and abs(day - long_run_day) != 1]
    for size in range(min(count, len(eligible)), 0, -1):
        options = [
            combo
            for combo in combinations(eligible, size)
            if all(b - a > 1 for a, b in zip(combo, combo[1:], strict=False))
        ]
        if options:
            return max(
                options,
                key=lambda combo: (_spacing(tuple(sorted((*combo, long_run_day)))), [-day for day in combo]),
            )
    return ()


def plan_week_layout(
    available_days: tuple[int, ...],
    rest_day_count: int,
    key_session_types: tuple[SessionType, ...],
    easy_run_count: int,
) -> WeekLayout:
    """Lay out one week.

    Args:
        available_days: Sorted weekday numbers the runner can train on
        rest_day_count: Minimum rest days
        key_session_types: Key sessions this week in cycle order; LONG_RUN marks the
            long run itself as a key session
        easy_run_count: Easy runs wanted

    Returns:
        WeekLayout with every day of the week accounted for
    """
    long_run_is_key = SessionType.LONG_RUN in key_session_types
    other_keys = [session_type for session_type in key_session_types if session_type != SessionType.LONG_RUN]

    wanted = 1 + len(other_keys) + easy_run_count
    run_day_count = max(1, min(len(available_days), 7 - rest_day_count, wanted))
    run_days = choose_run_days(available_days, run_day_count)
    long_run_day = run_days[-1]

    key_days = choose_key_days(run_days, long_run_day, len(other_keys))
    key_sessions = tuple(zip(key_days, other_keys[: len(key_days)], strict=False))
    easy_days = tuple(day for day in run_days if day != long_run_day and day not in key_days)

    return WeekLayout(
        run_days=run_days,
        long_run_day=long_run_day,
        long_run_is_key=long_run_is_key,
        key_sessions=key_sessions,
        easy_days=easy_days,
        rest_days=tuple(day for day in range(7) if day not in run_days),
        dropped_key_sessions=len(other_keys) - len(key_days),
    )
