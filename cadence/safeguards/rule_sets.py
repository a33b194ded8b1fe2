"""Safeguard rule sets.

Rule content lives in YAML so the engine only owns the evaluation and
priority mechanism. The default set is loaded once and shared read-only.
"""

from functools import lru_cache
from pathlib import Path

import yaml
from loguru import logger

from cadence.enums import ExperienceLevel, RiskLevel, RuleKind, Severity
from cadence.errors import InvalidRuleSetError
from cadence.safeguards.models import RuleApplicability, SafeguardRule
from cadence.safeguards.validator import check_rule_ids

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "default_rules.yaml"


def _parse_applicability(raw: dict | None) -> RuleApplicability:
    if not raw:
        return RuleApplicability()
    min_risk = raw.get("min_injury_risk")
    return RuleApplicability(
        experience_levels=tuple(ExperienceLevel(level) for level in raw.get("experience_levels", ())),
        requires_injury_history=bool(raw.get("requires_injury_history", False)),
        min_injury_risk=RiskLevel(min_risk) if min_risk is not None else None,
        phases=tuple(str(name).lower() for name in raw.get("phases", ())),
        phase_indexes=tuple(int(index) for index in raw.get("phase_indexes", ())),
        max_week_index=raw.get("max_week_index"),
        max_balance=raw.get("max_balance"),
    )


def parse_rule(raw: dict) -> SafeguardRule:
    """Build a SafeguardRule from a raw mapping.

    Raises:
        InvalidRuleSetError: On missing keys, unknown kinds or severities
    """
    rule_id = raw.get("id", "<unknown>") if isinstance(raw, dict) else "<unknown>"
    try:
        return SafeguardRule(
            id=str(raw["id"]),
            description=raw["description"],
            severity=Severity(raw["severity"]),
            kind=RuleKind(raw["kind"]),
            params=raw.get("params") or {},
            applies_when=_parse_applicability(raw.get("applies_when")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidRuleSetError(f"Rule '{rule_id}' could not be parsed: {e}", details={"rule_id": rule_id}) from e


def parse_rule_set(raw: dict | list) -> tuple[SafeguardRule, ...]:
    """Parse a rule set document ({"rules": [...]} or a bare list), sorted by id."""
    entries = raw.get("rules") if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise InvalidRuleSetError("Rule set must contain a list of rules")
    rules = [parse_rule(entry) for entry in entries]
    check_rule_ids(rules)
    return tuple(sorted(rules, key=lambda rule: rule.id))


def load_rule_set(path: Path) -> tuple[SafeguardRule, ...]:
    with path.open() as f:
        raw = yaml.safe_load(f)
    rules = parse_rule_set(raw)
    logger.debug(f"Loaded {len(rules)} safeguard rules from {path.name}")
    return rules


@lru_cache(maxsize=1)
def default_rule_set() -> tuple[SafeguardRule, ...]:
    return load_rule_set(DEFAULT_RULES_PATH)
