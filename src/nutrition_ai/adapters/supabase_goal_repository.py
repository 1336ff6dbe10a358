"""Supabase repository for user goals."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_ai.services.goals import GoalRepository


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation reading the user_goals table."""

    client: Client

    def get_latest_goal(self, user_id: UUID) -> dict[str, object] | None:
        """Return the ai_result of the user's most recent goal."""
        response = (
            self.client.table("user_goals")
            .select("ai_result")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        result = response.data[0].get("ai_result")
        return result if isinstance(result, dict) else None
