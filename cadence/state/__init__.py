from cadence.state.models import (
    Biometrics,
    DataQuality,
    InferredValue,
    InjuryRisk,
    Readiness,
    RecentPatterns,
    RunnerState,
    TrainingLoad,
)

__all__ = [
    "Biometrics",
    "DataQuality",
    "InferredValue",
    "InjuryRisk",
    "Readiness",
    "RecentPatterns",
    "RunnerState",
    "TrainingLoad",
]
