"""Decision audit entries shared by the validator and the generator."""

from pydantic import BaseModel, ConfigDict

from cadence.enums import DecisionStage, Severity

DecisionValue = str | int | float | bool | None


class Decision(BaseModel):
    """Immutable audit entry explaining one non-default choice.

    Attributes:
        stage: Pipeline stage that made the decision
        question: What was being decided
        chosen_value: The value that was chosen
        rationale: Human-readable explanation
        triggered_rule_ids: Safeguard rules involved, if any
        week_index: Plan week the decision applies to, None for plan-wide decisions
        severity: Safeguard severity for rule-triggered decisions
    """

    model_config = ConfigDict(frozen=True)

    stage: DecisionStage
    question: str
    chosen_value: DecisionValue
    rationale: str
    triggered_rule_ids: tuple[str, ...] = ()
    week_index: int | None = None
    severity: Severity | None = None
