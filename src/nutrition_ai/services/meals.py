"""Meal persistence service."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_ai.domain.analysis import FoodInsight
from nutrition_ai.domain.meals import MealRecord
from nutrition_ai.domain.nutrition import NormalizedNutrition
from nutrition_ai.services.normalization import is_nutrition_empty

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for analyzed meals."""

    def insert_meal(self, user_id: UUID, insight: FoodInsight) -> MealRecord:
        """Store an analyzed meal and return the stored row."""

    def list_recent_meals(self, user_id: UUID, limit: int) -> list[MealRecord]:
        """Return the most recent meals for a user."""


@dataclass
class MealService:
    """Service that stores analysis results."""

    repository: MealRepository

    def save_insight(self, user_id: UUID, insight: FoodInsight) -> MealRecord | None:
        """Persist an insight unless its nutrition estimate is empty."""
        nutrition = NormalizedNutrition(
            calories=insight.calories,
            protein=insight.protein,
            carbs=insight.carbs,
            fat=insight.fat,
        )
        if is_nutrition_empty(nutrition):
            _logger.warning(
                "Skipping empty analysis for user %s: %s", user_id, insight.food_name
            )
            return None
        return self.repository.insert_meal(user_id, insight)

    def list_recent(self, user_id: UUID, limit: int = 20) -> list[MealRecord]:
        """Return recent meals for a user."""
        return self.repository.list_recent_meals(user_id, limit)
