"""Append-only decision log used while a plan is being generated."""

from loguru import logger

from cadence.decisions import Decision, DecisionValue
from cadence.enums import DecisionStage


class DecisionLog:
    """Ordered, append-only collection of Decisions.

    Entries can be added but never removed or reordered; freeze() hands the
    chronological trail to the finished plan.
    """

    def __init__(self) -> None:
        self._entries: list[Decision] = []

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, decision: Decision) -> None:
        self._entries.append(decision)
        logger.debug(
            f"decision[{decision.stage}] {decision.question} -> {decision.chosen_value}"
            + (f" ({', '.join(decision.triggered_rule_ids)})" if decision.triggered_rule_ids else "")
        )

    def extend(self, decisions: tuple[Decision, ...] | list[Decision]) -> None:
        for decision in decisions:
            self.append(decision)

    def record(
        self,
        stage: DecisionStage,
        question: str,
        chosen_value: DecisionValue,
        rationale: str,
        *,
        week_index: int | None = None,
    ) -> Decision:
        decision = Decision(
            stage=stage,
            question=question,
            chosen_value=chosen_value,
            rationale=rationale,
            week_index=week_index,
        )
        self.append(decision)
        return decision

    def for_stage(self, stage: DecisionStage) -> list[Decision]:
        return [decision for decision in self._entries if decision.stage == stage]

    def freeze(self) -> tuple[Decision, ...]:
        return tuple(self._entries)
