from cadence.metrics.inference import compute_runner_state
from cadence.metrics.records import ActivityRecord, BodyRecord, DailyRecord

__all__ = ["ActivityRecord", "BodyRecord", "DailyRecord", "compute_runner_state"]
