"""Safeguard validator.

validate() runs applicable rules in ascending id order and resolves severity
as block > cap > warn:

1. Any block rule firing rejects the proposal unchanged; the caller re-proposes.
2. Otherwise cap rules clamp fields in id order, each seeing earlier caps.
3. Warn rules annotate the adjusted proposal.
4. Block rules are re-checked on the adjusted proposal, so a cap can never
   produce a blocked week silently.

Every fired rule yields exactly one Decision.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import replace

from loguru import logger

from cadence.decisions import Decision
from cadence.enums import DecisionStage, Severity
from cadence.errors import InvalidRuleSetError
from cadence.safeguards.evaluators import evaluate_rule
from cadence.safeguards.models import SafeguardRule, Trigger, ValidationResult, WeekProposal
from cadence.state.models import RunnerState


def check_rule_ids(rules: Sequence[SafeguardRule]) -> None:
    """Reject rule sets whose evaluation order would be ambiguous.

    Raises:
        InvalidRuleSetError: If two rules share an id
    """
    counts = Counter(rule.id for rule in rules)
    duplicates = sorted(rule_id for rule_id, count in counts.items() if count > 1)
    if duplicates:
        raise InvalidRuleSetError(
            f"Duplicate safeguard rule ids: {', '.join(duplicates)}",
            details={"rule_ids": duplicates},
        )


def _decision(rule: SafeguardRule, proposal: WeekProposal, trigger: Trigger) -> Decision:
    if rule.severity == Severity.BLOCK:
        chosen = "blocked"
    elif rule.severity == Severity.CAP:
        chosen = trigger.adjusted_value
    else:
        chosen = "annotated"
    return Decision(
        stage=DecisionStage.SAFEGUARD,
        question=f"Week {proposal.week_index}: {rule.description}",
        chosen_value=chosen,
        rationale=trigger.message,
        triggered_rule_ids=(rule.id,),
        week_index=proposal.week_index,
        severity=rule.severity,
    )


def validate(
    state: RunnerState,
    proposal: WeekProposal,
    rules: Sequence[SafeguardRule],
) -> ValidationResult:
    """Validate a proposed week against a rule set.

    Args:
        state: Runner state the rules read from
        proposal: Proposed week composition
        rules: Rule descriptors, in any order

    Returns:
        ValidationResult with the adjusted proposal and one Decision per fired rule

    Raises:
        InvalidRuleSetError: If the rule set is structurally invalid
    """
    check_rule_ids(rules)
    applicable = [rule for rule in sorted(rules, key=lambda r: r.id) if rule.applies_when.matches(state, proposal)]
    block_rules = [rule for rule in applicable if rule.severity == Severity.BLOCK]

    blocked: list[tuple[SafeguardRule, Trigger]] = []
    for rule in block_rules:
        trigger = evaluate_rule(rule, state, proposal)
        if trigger is not None:
            blocked.append((rule, trigger))

    if blocked:
        logger.debug(f"Week {proposal.week_index} blocked by {[rule.id for rule, _ in blocked]}")
        return ValidationResult(
            adjusted_proposal=proposal,
            triggered_decisions=tuple(_decision(rule, proposal, trigger) for rule, trigger in blocked),
            blocked=True,
            blocking_rule_ids=tuple(rule.id for rule, _ in blocked),
        )

    decisions: list[Decision] = []
    adjusted = proposal
    for rule in applicable:
        if rule.severity != Severity.CAP:
            continue
        trigger = evaluate_rule(rule, state, adjusted)
        if trigger is None:
            continue
        adjusted = replace(adjusted, **trigger.updates)
        decisions.append(_decision(rule, proposal, trigger))

    for rule in applicable:
        if rule.severity != Severity.WARN:
            continue
        trigger = evaluate_rule(rule, state, adjusted)
        if trigger is not None:
            decisions.append(_decision(rule, proposal, trigger))

    post_cap_blocks: list[str] = []
    for rule in block_rules:
        trigger = evaluate_rule(rule, state, adjusted)
        if trigger is not None:
            post_cap_blocks.append(rule.id)
            decisions.append(_decision(rule, proposal, trigger))

    if post_cap_blocks:
        logger.debug(f"Week {proposal.week_index} blocked after caps by {post_cap_blocks}")
        return ValidationResult(
            adjusted_proposal=proposal,
            triggered_decisions=tuple(decisions),
            blocked=True,
            blocking_rule_ids=tuple(post_cap_blocks),
        )

    return ValidationResult(adjusted_proposal=adjusted, triggered_decisions=tuple(decisions))
