"""Readiness score from training balance, sleep and injury risk."""

from datetime import datetime

from cadence.enums import RiskLevel
from cadence.state.models import Biometrics, InferredValue, InjuryRisk, Readiness, TrainingLoad

BASELINE_SCORE = 70


def compute_readiness(
    training_load: TrainingLoad,
    injury_risk: InjuryRisk,
    biometrics: Biometrics | None,
    as_of: datetime,
    ramp_threshold_percent: float,
) -> Readiness | None:
    """Score readiness 0-100 starting from a baseline of 70.

    Adjustments:
        - TSB > 10: +15, > 0: +5, < -20: -15, < -10: -5
        - sleep score >= 85: +10, < 60: -10
        - high injury risk: -15, moderate: -5
        - ramp above threshold: -5

    Returns None when neither training load nor biometrics were sampled.
    """
    has_load = training_load.balance.confidence > 0
    sleep = biometrics.sleep_score if biometrics is not None else None
    if not has_load and sleep is None:
        return None

    score = BASELINE_SCORE
    factors: list[str] = []
    sources: list[str] = []

    if has_load:
        sources.append("training_load.balance")
        tsb = training_load.balance.value
        if tsb > 10:
            score += 15
            factors.append("well_rested")
        elif tsb > 0:
            score += 5
            factors.append("good_recovery")
        elif tsb < -20:
            score -= 15
            factors.append("accumulated_fatigue")
        elif tsb < -10:
            score -= 5
            factors.append("mild_fatigue")

    if sleep is not None:
        sources.append("biometrics.sleep_score")
        if sleep.value >= 85:
            score += 10
            factors.append("good_sleep")
        elif sleep.value < 60:
            score -= 10
            factors.append("poor_sleep")

    level = injury_risk.level
    if level.confidence > 0:
        sources.append("injury_risk.level")
        if level.value == RiskLevel.HIGH:
            score -= 15
            factors.append("high_injury_risk")
        elif level.value == RiskLevel.MODERATE:
            score -= 5
            factors.append("moderate_injury_risk")

    if injury_risk.ramp_rate_percent.confidence > 0 and injury_risk.ramp_rate_percent.value > ramp_threshold_percent:
        score -= 5
        factors.append("rapid_volume_increase")

    confidences = [
        training_load.balance.confidence,
        sleep.confidence if sleep is not None else 0.0,
        level.confidence,
    ]
    return Readiness(
        score=InferredValue(
            value=max(0, min(100, score)),
            confidence=round(sum(confidences) / len(confidences), 3),
            inferred_from=tuple(sources),
            computed_at=as_of,
        ),
        factors=tuple(factors),
    )
