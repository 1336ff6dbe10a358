"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from supabase import create_client

from nutrition_ai.adapters.openai_nutrition_client import (
    OpenAINutritionClient,
    is_retryable_openai_error,
)
from nutrition_ai.adapters.supabase_goal_repository import SupabaseGoalRepository
from nutrition_ai.adapters.supabase_meal_repository import SupabaseMealRepository
from nutrition_ai.config import Settings
from nutrition_ai.services.analysis import NutritionAnalysisService
from nutrition_ai.services.goals import GoalService
from nutrition_ai.services.meals import MealService
from nutrition_ai.services.retry import get_retry_preset


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    analysis_service: NutritionAnalysisService
    goal_service: GoalService
    meal_service: MealService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    goal_service = GoalService(SupabaseGoalRepository(supabase_client))
    meal_service = MealService(SupabaseMealRepository(supabase_client))
    openai_client = OpenAINutritionClient.create(resolved_settings.openai_api_key)
    analysis_service = NutritionAnalysisService(
        client=openai_client,
        model=resolved_settings.openai_model,
        goal_service=goal_service,
        meal_service=meal_service,
        retry_options=replace(
            get_retry_preset(resolved_settings.retry_preset),
            is_retryable=is_retryable_openai_error,
            error_message_prefix="Failed to call nutrition model",
        ),
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        analysis_service=analysis_service,
        goal_service=goal_service,
        meal_service=meal_service,
        close_resources=close_resources,
    )
