"""Pure evaluators for each safeguard rule kind.

Every evaluator has the signature (rule, state, proposal) -> Trigger | None
and is looked up by kind in RULE_EVALUATORS. Cap-capable evaluators always
report the field updates that would make the week compliant; the validator
decides whether to apply them based on the rule's severity.
"""

import math
from collections.abc import Callable

from cadence.enums import RuleKind, SessionType
from cadence.safeguards.models import SafeguardRule, Trigger, WeekProposal
from cadence.state.models import RunnerState

Evaluator = Callable[[SafeguardRule, RunnerState, WeekProposal], Trigger | None]

# Tolerance for comparing rounded distances
DISTANCE_TOLERANCE_KM = 0.05


def _floor_tenth(value: float) -> float:
    return math.floor(value * 10 + 1e-9) / 10


def _scaled_long_run(proposal: WeekProposal, new_volume: float) -> float:
    if proposal.volume_km <= 0:
        return proposal.long_run_km
    return _floor_tenth(proposal.long_run_km * new_volume / proposal.volume_km)


def evaluate_max_ramp_rate(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    ramp = proposal.ramp_rate
    max_increase = float(rule.params["max_increase"])
    if ramp is None or ramp <= max_increase + 1e-9:
        return None
    weeks = max(1, proposal.weeks_since_previous)
    bound = _floor_tenth(proposal.previous_volume_km * (1 + max_increase) ** weeks)
    span = "" if weeks == 1 else f" per week across {weeks} weeks"
    return Trigger(
        target="volume_km",
        original_value=proposal.volume_km,
        adjusted_value=bound,
        message=(
            f"Volume {proposal.volume_km:.1f} km is a {ramp:.0%} increase{span} over {proposal.previous_volume_km:.1f} km; "
            f"limit is {max_increase:.0%} ({bound:.1f} km)"
        ),
        updates={"volume_km": bound, "long_run_km": _scaled_long_run(proposal, bound)},
    )


def evaluate_rest_day_minimum(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    minimum = int(rule.params["min_rest_days"])
    if proposal.rest_days >= minimum:
        return None
    return _rest_trigger(proposal, minimum, f"Week has {proposal.rest_days} rest day(s); at least {minimum} required")


def evaluate_min_rest_days(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    """Force extra rest when recent weeks repeatedly fell below the rest floor."""
    patterns = state.recent_patterns
    if patterns is None or patterns.consecutive_low_rest_weeks.confidence <= 0:
        return None
    streak = patterns.consecutive_low_rest_weeks.value
    minimum = int(rule.params["min_rest_days"])
    if streak < int(rule.params["low_rest_weeks"]) or proposal.rest_days >= minimum:
        return None
    return _rest_trigger(
        proposal,
        minimum,
        f"Recent rest-day frequency was below 1/week for {streak} consecutive weeks; scheduling {minimum} rest days",
    )


def _rest_trigger(proposal: WeekProposal, minimum: int, message: str) -> Trigger:
    deficit = minimum - proposal.rest_days
    easy = max(0, proposal.easy_run_count - deficit)
    remaining = deficit - (proposal.easy_run_count - easy)
    key = max(0, proposal.key_session_count - remaining)
    return Trigger(
        target="rest_days",
        original_value=proposal.rest_days,
        adjusted_value=minimum,
        message=message,
        updates={
            "rest_days": minimum,
            "easy_run_count": easy,
            "key_session_count": key,
            "key_session_types": proposal.key_session_types[:key],
        },
    )


def evaluate_no_adjacent_key_days(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    hard_days = set(proposal.key_days)
    if proposal.long_run_day is not None:
        hard_days.add(proposal.long_run_day)
    ordered = sorted(hard_days)
    adjacent = [(a, b) for a, b in zip(ordered, ordered[1:], strict=False) if b - a == 1]
    if not adjacent:
        return None
    pairs = ", ".join(f"{a}-{b}" for a, b in adjacent)
    return Trigger(
        target="key_days",
        original_value=",".join(str(day) for day in ordered),
        adjusted_value=None,
        message=f"Hard sessions on consecutive days ({pairs})",
    )


def evaluate_max_key_sessions(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    maximum = int(rule.params["max_sessions"])
    if proposal.key_session_count <= maximum:
        return None
    return _key_session_trigger(
        proposal, maximum, f"{proposal.key_session_count} key sessions exceeds the limit of {maximum}"
    )


def evaluate_high_intensity_share(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    max_share = float(rule.params["max_share"])
    runs = proposal.run_count
    if runs <= 0 or proposal.key_session_count / runs <= max_share + 1e-9:
        return None
    maximum = math.floor(max_share * runs + 1e-9)
    return _key_session_trigger(
        proposal,
        maximum,
        f"{proposal.key_session_count} of {runs} runs are key sessions, above the {max_share:.0%} intensity share",
    )


def _key_session_trigger(proposal: WeekProposal, maximum: int, message: str) -> Trigger:
    converted = proposal.key_session_count - maximum
    return Trigger(
        target="key_session_count",
        original_value=proposal.key_session_count,
        adjusted_value=maximum,
        message=message,
        updates={
            "key_session_count": maximum,
            "key_session_types": proposal.key_session_types[:maximum],
            "easy_run_count": proposal.easy_run_count + converted,
        },
    )


def evaluate_max_long_run_share(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    max_share = float(rule.params["max_share"])
    bound = _floor_tenth(proposal.volume_km * max_share)
    if proposal.long_run_km <= bound + DISTANCE_TOLERANCE_KM:
        return None
    return Trigger(
        target="long_run_km",
        original_value=proposal.long_run_km,
        adjusted_value=bound,
        message=f"Long run {proposal.long_run_km:.1f} km exceeds {max_share:.0%} of weekly volume ({bound:.1f} km)",
        updates={"long_run_km": bound},
    )


def evaluate_max_weekly_volume(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    maximum = float(rule.params["max_km"])
    if proposal.volume_km <= maximum:
        return None
    return Trigger(
        target="volume_km",
        original_value=proposal.volume_km,
        adjusted_value=maximum,
        message=f"Weekly volume {proposal.volume_km:.1f} km exceeds the {maximum:.0f} km ceiling",
        updates={"volume_km": maximum, "long_run_km": _scaled_long_run(proposal, maximum)},
    )


def evaluate_easy_pace_floor(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    """Slow the easy-pace target when recent easy runs were above aerobic threshold."""
    patterns = state.recent_patterns
    if patterns is None or patterns.easy_run_hr_ratio is None or patterns.easy_pace_min_per_km is None:
        return None
    hr_ratio = patterns.easy_run_hr_ratio.value
    if hr_ratio <= float(rule.params["max_hr_ratio"]):
        return None
    floor_pace = round(patterns.easy_pace_min_per_km.value * (1 + float(rule.params["slowdown"])), 2)
    current = proposal.easy_pace_min_per_km
    if current is not None and current >= floor_pace:
        return None
    return Trigger(
        target="easy_pace_min_per_km",
        original_value=current,
        adjusted_value=floor_pace,
        message=(
            f"Recent easy runs averaged {hr_ratio:.0%} of max heart rate; "
            f"easy pace target set no faster than {floor_pace:.2f} min/km"
        ),
        updates={"easy_pace_min_per_km": floor_pace},
    )


def evaluate_max_intensity(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    maximum = float(rule.params["max_score"])
    if proposal.intensity_score <= maximum:
        return None
    return Trigger(
        target="intensity_score",
        original_value=proposal.intensity_score,
        adjusted_value=maximum,
        message=(
            f"Intensity {proposal.intensity_score:.0f} exceeds {maximum:.0f} while training balance is "
            f"{state.training_load.balance.value:.1f}"
        ),
        updates={"intensity_score": maximum},
    )


def evaluate_speed_work_phase(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    watched = {SessionType(value) for value in rule.params["session_types"]}
    found = [session for session in proposal.key_session_types if session in watched]
    if not found:
        return None
    return Trigger(
        target="key_session_types",
        original_value=",".join(session.value for session in found),
        adjusted_value=None,
        message=f"{', '.join(session.value for session in found)} scheduled during the {proposal.phase_name} phase",
    )


def evaluate_data_quality_notice(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    tiers = {str(tier) for tier in rule.params["tiers"]}
    quality = state.data_quality
    if quality.tier.value not in tiers:
        return None
    return Trigger(
        target="data_quality",
        original_value=quality.tier.value,
        adjusted_value=None,
        message=f"Training history is {quality.tier.value} quality (score {quality.score:.2f}); targets are estimates",
    )


RULE_EVALUATORS: dict[RuleKind, Evaluator] = {
    RuleKind.MAX_RAMP_RATE: evaluate_max_ramp_rate,
    RuleKind.REST_DAY_MINIMUM: evaluate_rest_day_minimum,
    RuleKind.NO_ADJACENT_KEY_DAYS: evaluate_no_adjacent_key_days,
    RuleKind.MIN_REST_DAYS: evaluate_min_rest_days,
    RuleKind.MAX_KEY_SESSIONS: evaluate_max_key_sessions,
    RuleKind.MAX_LONG_RUN_SHARE: evaluate_max_long_run_share,
    RuleKind.MAX_WEEKLY_VOLUME: evaluate_max_weekly_volume,
    RuleKind.EASY_PACE_FLOOR: evaluate_easy_pace_floor,
    RuleKind.MAX_INTENSITY: evaluate_max_intensity,
    RuleKind.SPEED_WORK_PHASE: evaluate_speed_work_phase,
    RuleKind.HIGH_INTENSITY_SHARE: evaluate_high_intensity_share,
    RuleKind.DATA_QUALITY_NOTICE: evaluate_data_quality_notice,
}


def evaluate_rule(rule: SafeguardRule, state: RunnerState, proposal: WeekProposal) -> Trigger | None:
    return RULE_EVALUATORS[rule.kind](rule, state, proposal)
