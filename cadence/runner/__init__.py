from cadence.runner.snapshot import Availability, RunnerSnapshot

__all__ = ["Availability", "RunnerSnapshot"]
