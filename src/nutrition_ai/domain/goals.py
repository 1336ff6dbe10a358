"""Domain models for calorie goals."""

from dataclasses import dataclass
from enum import StrEnum


class GoalStatus(StrEnum):
    """How a meal's calories compare with the daily target."""

    BALANCED = "Seimbang"
    TOO_HIGH = "Terlalu tinggi"
    TOO_LOW = "Terlalu rendah"


@dataclass(frozen=True)
class GoalComparison:
    """Result of comparing calories against a daily target."""

    daily_target: int
    deviation_percent: float
    status: GoalStatus
