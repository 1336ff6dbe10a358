"""Calorie goal lookups."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_ai.services.normalization import parse_number

_logger = logging.getLogger(__name__)


class GoalRepository(Protocol):
    """Persistence interface for user goals."""

    def get_latest_goal(self, user_id: UUID) -> dict[str, object] | None:
        """Return the most recent goal result for a user."""


@dataclass
class GoalService:
    """Service resolving a user's daily calorie target."""

    repository: GoalRepository

    def get_daily_target(self, user_id: UUID) -> int | None:
        """Return the daily calorie target, or None when unavailable."""
        try:
            goal = self.repository.get_latest_goal(user_id)
        except Exception:
            _logger.exception("Failed to load goal for user %s", user_id)
            return None
        if not goal:
            return None
        target = parse_number(goal.get("daily_calories"))
        return target or None
