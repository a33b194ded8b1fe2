"""Safeguard rule descriptors and week proposals.

Rules are plain data: an id, a severity, a kind from a closed set, and the
parameters that kind needs. Evaluation is dispatched by kind in a single loop,
so there is no rule class hierarchy.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cadence.decisions import Decision
from cadence.enums import ExperienceLevel, RiskLevel, RuleKind, SessionType, Severity
from cadence.errors import InvalidRuleSetError
from cadence.state.models import RunnerState

# Parameters each rule kind needs
REQUIRED_PARAMS: dict[RuleKind, tuple[str, ...]] = {
    RuleKind.MAX_RAMP_RATE: ("max_increase",),
    RuleKind.REST_DAY_MINIMUM: ("min_rest_days",),
    RuleKind.NO_ADJACENT_KEY_DAYS: (),
    RuleKind.MIN_REST_DAYS: ("min_rest_days", "low_rest_weeks"),
    RuleKind.MAX_KEY_SESSIONS: ("max_sessions",),
    RuleKind.MAX_LONG_RUN_SHARE: ("max_share",),
    RuleKind.MAX_WEEKLY_VOLUME: ("max_km",),
    RuleKind.EASY_PACE_FLOOR: ("max_hr_ratio", "slowdown"),
    RuleKind.MAX_INTENSITY: ("max_score",),
    RuleKind.SPEED_WORK_PHASE: ("session_types",),
    RuleKind.HIGH_INTENSITY_SHARE: ("max_share",),
    RuleKind.DATA_QUALITY_NOTICE: ("tiers",),
}

# Kinds that can produce a clamped value and so may carry cap severity
CAPPABLE_KINDS: frozenset[RuleKind] = frozenset(
    {
        RuleKind.MAX_RAMP_RATE,
        RuleKind.REST_DAY_MINIMUM,
        RuleKind.MIN_REST_DAYS,
        RuleKind.MAX_KEY_SESSIONS,
        RuleKind.MAX_LONG_RUN_SHARE,
        RuleKind.MAX_WEEKLY_VOLUME,
        RuleKind.EASY_PACE_FLOOR,
        RuleKind.MAX_INTENSITY,
        RuleKind.HIGH_INTENSITY_SHARE,
    }
)


@dataclass(frozen=True)
class WeekProposal:
    """A proposed week composition submitted to the validator.

    Days are 0=Monday .. 6=Sunday. key_days holds every hard day, including the
    long run when the long run counts as a key session.

    previous_volume_km is the last full training week, weeks_since_previous
    weeks back; recovery weeks in between are skipped, so ramp_rate is the
    compounded weekly increase over that span.
    """

    week_index: int
    phase_name: str
    phase_index: int
    is_taper: bool
    experience_level: ExperienceLevel
    has_injury_history: bool
    volume_km: float
    previous_volume_km: float | None
    key_session_count: int
    key_session_types: tuple[SessionType, ...]
    easy_run_count: int
    rest_days: int
    long_run_km: float
    key_days: tuple[int, ...] = ()
    long_run_day: int | None = None
    intensity_score: float = 50.0
    easy_pace_min_per_km: float | None = None
    weeks_since_previous: int = 1

    @property
    def ramp_rate(self) -> float | None:
        if self.previous_volume_km is None or self.previous_volume_km <= 0:
            return None
        if self.weeks_since_previous <= 1:
            return (self.volume_km - self.previous_volume_km) / self.previous_volume_km
        return (self.volume_km / self.previous_volume_km) ** (1 / self.weeks_since_previous) - 1

    @property
    def run_count(self) -> int:
        return 7 - self.rest_days


@dataclass(frozen=True)
class RuleApplicability:
    """Filters deciding whether a rule applies to a proposal at all.

    Empty filters match everything.
    """

    experience_levels: tuple[ExperienceLevel, ...] = ()
    requires_injury_history: bool = False
    min_injury_risk: RiskLevel | None = None
    phases: tuple[str, ...] = ()
    phase_indexes: tuple[int, ...] = ()
    max_week_index: int | None = None
    max_balance: float | None = None

    def matches(self, state: RunnerState, proposal: WeekProposal) -> bool:
        if self.experience_levels and proposal.experience_level not in self.experience_levels:
            return False
        if self.requires_injury_history and not proposal.has_injury_history:
            return False
        if self.min_injury_risk is not None:
            level = state.injury_risk.level
            if level.confidence <= 0 or level.value.rank < self.min_injury_risk.rank:
                return False
        if self.phases and proposal.phase_name.lower() not in self.phases:
            return False
        if self.phase_indexes and proposal.phase_index not in self.phase_indexes:
            return False
        if self.max_week_index is not None and proposal.week_index > self.max_week_index:
            return False
        if self.max_balance is not None:
            balance = state.training_load.balance
            if balance.confidence <= 0 or balance.value >= self.max_balance:
                return False
        return True


@dataclass(frozen=True)
class SafeguardRule:
    """Tagged rule descriptor.

    Attributes:
        id: Stable identifier; rules are evaluated in ascending id order
        description: What the rule protects against
        severity: block, cap or warn
        kind: Which evaluator to dispatch to
        params: Kind-specific parameters
        applies_when: Applicability filters
    """

    id: str
    description: str
    severity: Severity
    kind: RuleKind
    params: Mapping[str, object] = field(default_factory=dict)
    applies_when: RuleApplicability = field(default_factory=RuleApplicability)

    def __post_init__(self) -> None:
        missing = [name for name in REQUIRED_PARAMS[self.kind] if name not in self.params]
        if missing:
            raise InvalidRuleSetError(
                f"Rule '{self.id}' ({self.kind}) is missing params: {', '.join(missing)}",
                details={"rule_id": self.id, "missing": missing},
            )
        if self.severity == Severity.CAP and self.kind not in CAPPABLE_KINDS:
            raise InvalidRuleSetError(
                f"Rule '{self.id}' ({self.kind}) cannot clamp a value and must be block or warn",
                details={"rule_id": self.id},
            )
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@dataclass(frozen=True)
class Trigger:
    """What a fired rule observed and, for caps, the field updates that make the week safe."""

    target: str
    original_value: float | int | str | None
    adjusted_value: float | int | str | None
    message: str
    updates: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationResult:
    adjusted_proposal: WeekProposal
    triggered_decisions: tuple[Decision, ...]
    blocked: bool = False
    blocking_rule_ids: tuple[str, ...] = ()

    @property
    def triggered_rule_ids(self) -> tuple[str, ...]:
        return tuple(rule_id for decision in self.triggered_decisions for rule_id in decision.triggered_rule_ids)
