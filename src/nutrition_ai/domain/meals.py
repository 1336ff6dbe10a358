"""Domain models for stored meals."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class MealRecord:
    """Analyzed meal stored for a user."""

    id: UUID
    user_id: UUID
    food_name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float | None
    health_score: float
    image_url: str | None
    created_at: datetime
