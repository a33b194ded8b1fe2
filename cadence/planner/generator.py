"""Plan generator.

generate() selects a template, estimates peak volume, builds the volume curve,
tags phases, then builds weeks 1..N strictly in order. Each week moves through

    proposed -> validated -> (adjusted | blocked -> reproposed) -> final

A blocked week is re-proposed with a strictly smaller volume delta, at most
settings.safeguard_max_attempts times, after which UnsafePlanError is raised.
The last re-proposal never rises above the previous full week.
Every non-default choice is appended to the decision audit in order.

Volume rises are measured against the last full training week, so a recovery
week never resets the ramp the weeks after it are held to.
"""

import statistics
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from cadence.config.settings import EngineSettings
from cadence.config.settings import settings as default_settings
from cadence.core.observability import PlannerStage, log_event, log_stage_event, timing
from cadence.decisions import Decision
from cadence.enums import DecisionStage, GoalType, SessionType, WeekState
from cadence.errors import PlannerError, UnsafePlanError
from cadence.planner.audit import DecisionLog
from cadence.planner.models import GeneratedPlan, PhaseBoundary, PlannedSession, WeeklyPlanItem
from cadence.planner.phases import assign_phases, phase_for_week
from cadence.planner.placement import WeekLayout, plan_week_layout
from cadence.planner.season import build_season_view
from cadence.planner.sessions import allocate_distances, build_week_sessions
from cadence.planner.volume import (
    PeakEstimate,
    build_volume_curve,
    estimate_peak_volume,
    ramp_limit,
    recovery_interval,
    recovery_weeks,
    resolve_peak_week,
    taper_start_week,
)
from cadence.runner.snapshot import RunnerSnapshot
from cadence.safeguards.models import SafeguardRule, ValidationResult, WeekProposal
from cadence.safeguards.rule_sets import default_rule_set
from cadence.safeguards.validator import check_rule_ids, validate
from cadence.state.models import RunnerState
from cadence.templates.registry import get_template, select_template
from cadence.templates.types import PlanTemplate

# Re-layout passes after structural caps (rest days, key sessions)
MAX_STRUCTURE_PASSES = 3

# Recovery weeks run at the low end of the phase's intensity range, scaled down
RECOVERY_INTENSITY_FACTOR = 0.7
RECOVERY_FOCUS = "Recovery and adaptation"


@dataclass(frozen=True)
class _WeekResult:
    item: WeeklyPlanItem
    sessions: list[PlannedSession]


def _key_types_for_week(template: PlanTemplate, week_index: int) -> tuple[SessionType, ...]:
    """Cycle through the template's key session types across the whole plan."""
    structure = template.weekly_structure
    types = structure.key_session_types
    count = structure.key_session_count
    if not types or count <= 0:
        return ()
    offset = (week_index - 1) * count
    return tuple(types[(offset + index) % len(types)] for index in range(count))


def _transition(week_index: int, state: WeekState, **fields: str | int | float | bool | None) -> None:
    logger.bind(week=week_index, week_state=state.value, **fields).debug("week_state")


def week_justification(
    week_index: int,
    total_weeks: int,
    phase: PhaseBoundary,
    *,
    is_recovery: bool,
    is_taper: bool,
    is_race: bool,
    change_percent: int,
) -> str:
    """One sentence on why the week looks the way it does."""
    focus = phase.focus.lower()
    if is_recovery:
        return "Recovery week: volume drops so the last block can be absorbed while fitness holds"
    if is_taper:
        remaining = total_weeks - week_index
        goal = "race day" if is_race else "the end of the block"
        if remaining == 0:
            return f"Final week: the lightest load of the plan so you reach {goal} fresh"
        return (
            f"Taper, {remaining} week{'s' if remaining != 1 else ''} to {goal}: "
            "volume comes down while sessions keep their quality"
        )
    if week_index == 1:
        return f"First week sets the baseline: {focus} at a conservative volume"
    if change_percent > 0:
        return f"{phase.name} phase: volume up {change_percent}% to build {focus}"
    if change_percent < 0:
        return f"{phase.name} phase: volume down {abs(change_percent)}% while {focus} continues"
    return f"{phase.name} phase: volume held to consolidate {focus}"


class _WeekBuilder:
    """Builds weeks in order.

    Carries the last full week's volume (the ramp base), how many weeks back it
    is, the last week's volume and the easy pace forward.
    """

    def __init__(
        self,
        snapshot: RunnerSnapshot,
        state: RunnerState,
        template: PlanTemplate,
        phases: tuple[PhaseBoundary, ...],
        estimate: PeakEstimate,
        rules: Sequence[SafeguardRule],
        settings: EngineSettings,
        log: DecisionLog,
        total_weeks: int,
        recovery: tuple[int, ...] = (),
    ):
        self.snapshot = snapshot
        self.state = state
        self.template = template
        self.phases = phases
        self.estimate = estimate
        self.rules = rules
        self.settings = settings
        self.log = log
        self.total_weeks = total_weeks
        self.recovery = recovery
        self.modifier = template.modifier_for(snapshot.experience_level)
        self.first_taper_week = taper_start_week(total_weeks, template.volume_guidelines.taper_weeks)
        self.is_race = template.goal_type != GoalType.BASE_BUILDING

        patterns = state.recent_patterns
        self.easy_pace = (
            patterns.easy_pace_min_per_km.value
            if patterns is not None and patterns.easy_pace_min_per_km is not None
            else None
        )
        self.previous_volume = estimate.reference_volume_km
        self.weeks_since_full = 1
        self.last_volume = estimate.reference_volume_km

    def _intensity(self, phase: PhaseBoundary, is_recovery: bool) -> float:
        low, high = phase.intensity_range
        base = low * RECOVERY_INTENSITY_FACTOR if is_recovery else (low + high) / 2
        return round(min(100.0, max(0.0, base * self.modifier.intensity_multiplier)), 1)

    def _propose(
        self,
        week_index: int,
        phase_position: int,
        phase: PhaseBoundary,
        is_taper: bool,
        volume_km: float,
        rest_days: int,
        key_types: tuple[SessionType, ...],
        easy_runs: int,
        intensity: float,
        easy_pace: float | None,
    ) -> tuple[WeekProposal, WeekLayout]:
        layout = plan_week_layout(self.snapshot.availability.available_days, rest_days, key_types, easy_runs)
        distances = allocate_distances(volume_km, layout)
        proposal = WeekProposal(
            week_index=week_index,
            phase_name=phase.name,
            phase_index=phase_position,
            is_taper=is_taper,
            experience_level=self.snapshot.experience_level,
            has_injury_history=self.snapshot.injury_history,
            volume_km=volume_km,
            previous_volume_km=self.previous_volume,
            key_session_count=layout.key_session_count,
            key_session_types=layout.key_session_types,
            easy_run_count=len(layout.easy_days),
            rest_days=len(layout.rest_days),
            long_run_km=distances[layout.long_run_day],
            key_days=layout.key_days,
            long_run_day=layout.long_run_day,
            intensity_score=intensity,
            easy_pace_min_per_km=easy_pace,
            weeks_since_previous=self.weeks_since_full,
        )
        return proposal, layout

    def _record(self, decisions: Sequence[Decision]) -> None:
        """Append validator decisions and report each fired rule."""
        self.log.extend(list(decisions))
        for decision in decisions:
            for rule_id in decision.triggered_rule_ids:
                log_event(
                    "safeguard_triggered",
                    week=decision.week_index,
                    rule_id=rule_id,
                    severity=decision.severity.value if decision.severity is not None else None,
                )

    def _shrink(self, volume_km: float, last_attempt: bool = False) -> float:
        """Next volume after a block: the delta over the previous full week strictly shrinks.

        The re-proposal for the last attempt is held at or below the previous
        full week, so a ramp block alone can never exhaust the retries.
        """
        factor = self.settings.retry_shrink_factor
        previous = self.previous_volume
        if previous is not None and volume_km > previous:
            reproposed = round(previous + (volume_km - previous) * factor, 1)
            return min(reproposed, previous) if last_attempt else reproposed
        return round(volume_km * (1 + factor) / 2, 1)

    def _limit_rise(self, week_index: int, volume: float) -> float:
        """Keep a proposal within the generator's ramp limit of the last full week."""
        if self.previous_volume is None:
            return volume
        limit = ramp_limit(self.previous_volume, self.settings.proposal_ramp_limit, self.weeks_since_full)
        if volume <= limit:
            return volume
        span = "a week" if self.weeks_since_full == 1 else f"a week over {self.weeks_since_full} weeks"
        self.log.record(
            DecisionStage.VOLUME_CURVE,
            f"Week {week_index}: how far can volume rise over the last full week?",
            limit,
            (
                f"Curve gave {volume:.1f} km; proposals stay within {self.settings.proposal_ramp_limit:.0%} "
                f"{span} of {self.previous_volume:.1f} km"
            ),
            week_index=week_index,
        )
        return limit

    def _recovery_volume(self, week_index: int, target_volume: float) -> float:
        factor = self.settings.recovery_volume_factor
        volume = target_volume
        previous = self.previous_volume
        if previous is not None and volume >= previous:
            volume = round(previous * factor, 1)
            rationale = (
                f"Curve recovery volume {target_volume:.1f} km is not below the last full week's "
                f"{previous:.1f} km; cut to {factor:.0%} of that week instead"
            )
        else:
            rationale = (
                f"Every {recovery_interval(self.total_weeks)} weeks volume drops to {factor:.0%} of the curve "
                "so the previous block can be absorbed"
            )
        self.log.record(
            DecisionStage.RECOVERY,
            f"Week {week_index}: how much volume in the recovery week?",
            volume,
            rationale,
            week_index=week_index,
        )
        return volume

    def _validate_structure(
        self,
        proposal: WeekProposal,
        layout: WeekLayout,
        result: ValidationResult,
        phase_position: int,
        phase: PhaseBoundary,
    ) -> tuple[WeekProposal, WeekLayout, ValidationResult]:
        """Re-lay out the week when caps changed its structure, re-validating each pass."""
        adjusted = result.adjusted_proposal
        # rules already reported for this attempt are not reported again
        seen = {decision.triggered_rule_ids for decision in result.triggered_decisions}
        passes = 0
        while (
            not result.blocked
            and passes < MAX_STRUCTURE_PASSES
            and (
                adjusted.rest_days != proposal.rest_days
                or adjusted.key_session_count != proposal.key_session_count
                or adjusted.easy_run_count != proposal.easy_run_count
            )
        ):
            passes += 1
            proposal, layout = self._propose(
                proposal.week_index,
                phase_position,
                phase,
                proposal.is_taper,
                adjusted.volume_km,
                adjusted.rest_days,
                adjusted.key_session_types,
                adjusted.easy_run_count,
                adjusted.intensity_score,
                adjusted.easy_pace_min_per_km,
            )
            result = validate(self.state, proposal, self.rules)
            self._record(
                [decision for decision in result.triggered_decisions if decision.triggered_rule_ids not in seen]
            )
            seen.update(decision.triggered_rule_ids for decision in result.triggered_decisions)
            adjusted = result.adjusted_proposal
        return proposal, layout, result

    def build(self, week_index: int, target_volume: float) -> _WeekResult:
        phase_position, phase = phase_for_week(self.phases, week_index)
        is_taper = self.template.volume_guidelines.taper_weeks > 0 and week_index >= self.first_taper_week
        is_recovery = week_index in self.recovery
        structure = self.template.weekly_structure

        volume = target_volume
        if is_taper and self.previous_volume is not None and week_index > 1 and volume > self.previous_volume:
            volume = self.previous_volume
            self.log.record(
                DecisionStage.VOLUME_CURVE,
                f"Week {week_index}: should taper volume rise above last week?",
                volume,
                f"Taper formula gave {target_volume:.1f} km; held at last week's {volume:.1f} km so the taper never climbs",
                week_index=week_index,
            )
        if is_recovery:
            volume = self._recovery_volume(week_index, target_volume)
        else:
            volume = self._limit_rise(week_index, volume)

        rest_days = max(structure.rest_day_count, self.snapshot.availability.rest_day_preference)
        key_types = _key_types_for_week(self.template, week_index)
        if is_recovery:
            key_types = key_types[:1]
        intensity = self._intensity(phase, is_recovery)

        blocking: tuple[str, ...] = ()
        attempts = 0
        while attempts < self.settings.safeguard_max_attempts:
            attempts += 1
            _transition(week_index, WeekState.PROPOSED, attempt=attempts, volume_km=volume)
            proposal, layout = self._propose(
                week_index,
                phase_position,
                phase,
                is_taper,
                volume,
                rest_days,
                key_types,
                structure.easy_run_count,
                intensity,
                self.easy_pace,
            )
            if attempts == 1 and layout.dropped_key_sessions:
                self.log.record(
                    DecisionStage.PLACEMENT,
                    f"Week {week_index}: how many key sessions fit without back-to-back hard days?",
                    layout.key_session_count,
                    f"{layout.dropped_key_sessions} key session(s) became easy runs; available days "
                    f"{list(self.snapshot.availability.available_days)} cannot separate them",
                    week_index=week_index,
                )

            result = validate(self.state, proposal, self.rules)
            self._record(result.triggered_decisions)
            _transition(week_index, WeekState.VALIDATED, attempt=attempts)
            proposal, layout, result = self._validate_structure(proposal, layout, result, phase_position, phase)

            if result.blocked:
                blocking = result.blocking_rule_ids
                _transition(week_index, WeekState.BLOCKED, attempt=attempts, rules=",".join(blocking))
                if attempts >= self.settings.safeguard_max_attempts:
                    break
                reproposed = self._shrink(volume, last_attempt=attempts + 1 >= self.settings.safeguard_max_attempts)
                self.log.record(
                    DecisionStage.RETRY,
                    f"Week {week_index}: what volume should be re-proposed after a block?",
                    reproposed,
                    f"Blocked by {', '.join(blocking)} at {volume:.1f} km; re-proposing with a smaller increase",
                    week_index=week_index,
                )
                volume = reproposed
                continue

            adjusted = result.adjusted_proposal
            if result.triggered_decisions:
                _transition(week_index, WeekState.ADJUSTED, attempt=attempts)
            return self._finalize(week_index, phase, is_taper, is_recovery, target_volume, adjusted, layout, attempts)

        logger.bind(week=week_index, attempts=attempts, rule_ids=",".join(blocking)).error("UNSAFE_PLAN")
        raise UnsafePlanError(week_index=week_index, attempts=attempts, rule_ids=list(blocking))

    def _finalize(
        self,
        week_index: int,
        phase: PhaseBoundary,
        is_taper: bool,
        is_recovery: bool,
        target_volume: float,
        adjusted: WeekProposal,
        layout: WeekLayout,
        attempts: int,
    ) -> _WeekResult:
        distances = allocate_distances(adjusted.volume_km, layout)
        if distances[layout.long_run_day] > adjusted.long_run_km + 0.05:
            distances = allocate_distances(adjusted.volume_km, layout, long_run_cap_km=adjusted.long_run_km)

        change_percent = (
            round((adjusted.volume_km - self.last_volume) / self.last_volume * 100) if self.last_volume else 0
        )
        sessions = build_week_sessions(week_index, layout, distances, adjusted.easy_pace_min_per_km)
        item = WeeklyPlanItem(
            week_index=week_index,
            phase_name=phase.name,
            is_taper=is_taper,
            target_volume_km=target_volume,
            volume_km=adjusted.volume_km,
            intensity_score=adjusted.intensity_score,
            key_session_count=layout.key_session_count,
            rest_days=len(layout.rest_days),
            long_run_km=distances[layout.long_run_day],
            easy_pace_min_per_km=adjusted.easy_pace_min_per_km,
            attempts=attempts,
            state=WeekState.FINAL,
            is_recovery=is_recovery,
            focus=RECOVERY_FOCUS if is_recovery else phase.focus,
            justification=week_justification(
                week_index,
                self.total_weeks,
                phase,
                is_recovery=is_recovery,
                is_taper=is_taper,
                is_race=self.is_race,
                change_percent=change_percent,
            ),
            volume_change_percent=change_percent,
        )

        self.last_volume = adjusted.volume_km
        if is_recovery:
            self.weeks_since_full += 1
        else:
            self.previous_volume = adjusted.volume_km
            self.weeks_since_full = 1
        self.easy_pace = adjusted.easy_pace_min_per_km
        _transition(week_index, WeekState.FINAL, volume_km=adjusted.volume_km)
        log_event("week_finalized", week=week_index, volume_km=adjusted.volume_km, attempts=attempts)
        return _WeekResult(item=item, sessions=sessions)


def generate(
    snapshot: RunnerSnapshot,
    state: RunnerState,
    goal_type: GoalType | str,
    duration_weeks: int | None = None,
    *,
    rules: Sequence[SafeguardRule] | None = None,
    settings: EngineSettings | None = None,
) -> GeneratedPlan:
    """Generate a periodized plan.

    Args:
        snapshot: Runner profile (copied into the plan, never mutated)
        state: Inferred runner state
        goal_type: Goal to build towards
        duration_weeks: Requested plan length; the template's recommendation when None
        rules: Safeguard rule set; the default rule set when None
        settings: Optional settings override

    Returns:
        A new immutable GeneratedPlan

    Raises:
        InvalidDurationError: If duration_weeks is outside the template's range
        UnknownGoalTypeError: If the goal has no template
        InvalidRuleSetError: If the rule set is structurally invalid
        UnsafePlanError: If a week stays blocked after all retries
    """
    settings = settings or default_settings
    rule_set = tuple(rules) if rules is not None else default_rule_set()
    check_rule_ids(rule_set)
    goal = GoalType(goal_type)
    log = DecisionLog()
    runner = snapshot.model_copy(deep=True)

    with timing("planner.generate"):
        log_stage_event(PlannerStage.TEMPLATE, "start", meta={"goal_type": goal.value, "requested_weeks": duration_weeks})
        try:
            if duration_weeks is None:
                duration_weeks = get_template(goal).recommended_weeks
                log.record(
                    DecisionStage.TEMPLATE_SELECTION,
                    "How many weeks should the plan run?",
                    duration_weeks,
                    f"No duration requested; using the recommended {duration_weeks} weeks for {goal.value}",
                )
            template = select_template(goal, duration_weeks)
        except PlannerError:
            log_stage_event(PlannerStage.TEMPLATE, "fail", meta={"goal_type": goal.value})
            raise

        plan_id = f"{template.id}:{duration_weeks}w"
        log.record(
            DecisionStage.TEMPLATE_SELECTION,
            "Which template fits the goal and duration?",
            template.id,
            f"{duration_weeks} weeks is within {template.min_weeks}-{template.max_weeks} for {goal.value}",
        )
        log_stage_event(PlannerStage.TEMPLATE, "success", plan_id=plan_id)

        log_stage_event(PlannerStage.PEAK, "start", plan_id=plan_id)
        estimate = estimate_peak_volume(state, template, runner.experience_level, settings, log)
        log_stage_event(
            PlannerStage.PEAK,
            "success",
            plan_id=plan_id,
            meta={"peak_km": estimate.peak_km, "fallback": estimate.used_fallback},
        )

        guidelines = template.volume_guidelines
        peak_week, clamped = resolve_peak_week(guidelines.peak_week_index, duration_weeks, guidelines.taper_weeks)
        if clamped:
            log.record(
                DecisionStage.VOLUME_CURVE,
                "Which week should volume peak?",
                peak_week,
                f"Template peak index {guidelines.peak_week_index} falls outside weeks 1-"
                f"{max(1, duration_weeks - guidelines.taper_weeks)} before the taper; clamped",
            )
        recovery = recovery_weeks(duration_weeks, peak_week, guidelines.taper_weeks)
        curve = build_volume_curve(
            estimate.peak_km, guidelines, duration_weeks, peak_week, recovery, settings.recovery_volume_factor
        )
        log_stage_event(
            PlannerStage.CURVE,
            "success",
            plan_id=plan_id,
            meta={"peak_week": peak_week, "recovery_weeks": len(recovery)},
        )

        phases = assign_phases(template.phases, duration_weeks)
        log.record(
            DecisionStage.PHASE_TAGGING,
            "How are weeks divided into phases?",
            ", ".join(f"{phase.name} {phase.start_week}-{phase.end_week}" for phase in phases),
            "Each phase takes its share of the plan rounded down; the final phase absorbs the remainder",
        )
        log_stage_event(PlannerStage.PHASES, "success", plan_id=plan_id, meta={"phases": len(phases)})

        builder = _WeekBuilder(
            runner, state, template, phases, estimate, rule_set, settings, log, duration_weeks, recovery
        )
        weeks: list[WeeklyPlanItem] = []
        sessions: list[PlannedSession] = []
        log_stage_event(PlannerStage.WEEKS, "start", plan_id=plan_id)
        for week_index in range(1, duration_weeks + 1):
            try:
                result = builder.build(week_index, curve[week_index - 1])
            except UnsafePlanError:
                log_stage_event(PlannerStage.WEEKS, "fail", plan_id=plan_id, meta={"week": week_index})
                raise
            weeks.append(result.item)
            sessions.extend(result.sessions)
        log_stage_event(
            PlannerStage.WEEKS,
            "success",
            plan_id=plan_id,
            meta={"weeks": len(weeks), "mean_volume_km": round(statistics.fmean(w.volume_km for w in weeks), 1)},
        )

        season_view = build_season_view(
            template, state, phases, weeks, peak_week, estimate.used_fallback, runner.experience_level
        )
        log_stage_event(PlannerStage.SEASON, "success", plan_id=plan_id, meta={"decisions": len(log)})

    return GeneratedPlan(
        template_id=template.id,
        goal_type=goal,
        duration_weeks=duration_weeks,
        peak_week_index=peak_week,
        peak_volume_km=estimate.peak_km,
        weeks=tuple(weeks),
        sessions=tuple(sessions),
        season_view=season_view,
        runner_snapshot=runner,
        decision_audit=log.freeze(),
    )
