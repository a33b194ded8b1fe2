from cadence.safeguards.models import RuleApplicability, SafeguardRule, Trigger, ValidationResult, WeekProposal
from cadence.safeguards.rule_sets import default_rule_set, load_rule_set, parse_rule_set
from cadence.safeguards.validator import validate

__all__ = [
    "RuleApplicability",
    "SafeguardRule",
    "Trigger",
    "ValidationResult",
    "WeekProposal",
    "default_rule_set",
    "load_rule_set",
    "parse_rule_set",
    "validate",
]
