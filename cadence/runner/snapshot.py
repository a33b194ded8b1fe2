"""Runner profile supplied by the caller.

The snapshot is slow-changing profile data (goal, experience, injury flags,
availability). The engine treats it as read-only and stores a copy in every plan.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cadence.enums import ExperienceLevel, GoalType

ALL_DAYS: tuple[int, ...] = (0, 1, 2, 3, 4, 5, 6)


class Availability(BaseModel):
    """Declared weekly availability. Days are 0=Monday .. 6=Sunday."""

    model_config = ConfigDict(frozen=True)

    available_days: tuple[int, ...] = Field(default=ALL_DAYS, min_length=1)
    rest_day_preference: int = Field(default=1, ge=0, le=6)

    @field_validator("available_days")
    @classmethod
    def normalize_days(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("available_days must be weekday numbers 0-6")
        return tuple(sorted(set(value)))


class RunnerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal_type: GoalType
    experience_level: ExperienceLevel
    target_event_date: date | None = None
    injury_history: bool = False
    current_pain: bool = False
    pushes_through_pain: bool = False
    age: int | None = Field(default=None, ge=10, le=100)
    availability: Availability = Field(default_factory=Availability)
