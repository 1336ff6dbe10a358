"""Supabase repository for analyzed meals."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_ai.domain.analysis import FoodInsight
from nutrition_ai.domain.meals import MealRecord
from nutrition_ai.services.meals import MealRepository

_COLUMNS = (
    "id, user_id, food_name, calories, protein, carbs, fat, fiber, "
    "health_score, image_url, created_at"
)


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for the user_meals table."""

    client: Client

    def insert_meal(self, user_id: UUID, insight: FoodInsight) -> MealRecord:
        """Insert a meal row and return it."""
        response = (
            self.client.table("user_meals")
            .insert(
                {
                    "user_id": str(user_id),
                    "food_name": insight.food_name,
                    "calories": insight.calories,
                    "protein": insight.protein,
                    "carbs": insight.carbs,
                    "fat": insight.fat,
                    "fiber": insight.fiber,
                    "health_score": insight.health_score,
                    "image_url": insight.image_url,
                    "created_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store meal")
        return _parse_row(response.data[0])

    def list_recent_meals(self, user_id: UUID, limit: int) -> list[MealRecord]:
        """Return the newest meals for a user."""
        response = (
            self.client.table("user_meals")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> MealRecord:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.min
    )
    fiber = row.get("fiber")
    return MealRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        food_name=str(row.get("food_name") or ""),
        calories=float(row.get("calories") or 0.0),
        protein=float(row.get("protein") or 0.0),
        carbs=float(row.get("carbs") or 0.0),
        fat=float(row.get("fat") or 0.0),
        fiber=float(fiber) if fiber is not None else None,
        health_score=float(row.get("health_score") or 0.0),
        image_url=row.get("image_url"),  # type: ignore[arg-type]
        created_at=created_at,
    )
