"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from uuid import UUID

from fastapi import FastAPI, HTTPException, Query, Request, status

from nutrition_ai.app_logging import configure_logging
from nutrition_ai.containers import AppContainer
from nutrition_ai.domain.analysis import AnalyzeRequest, FoodInsight
from nutrition_ai.services.analysis import NutritionAnalysisError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/nutrition/analyze")
    async def analyze_nutrition(
        payload: AnalyzeRequest, request: Request
    ) -> FoodInsight:
        """Estimate nutrition for a meal description or photo."""
        state_container: AppContainer = request.app.state.container
        try:
            return await state_container.analysis_service.analyze(payload)
        except NutritionAnalysisError as exc:
            logger.warning("Analysis failed: %s (cause: %r)", exc, exc.__cause__)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Nutrition analysis is temporarily unavailable",
            ) from exc

    @app.get("/meals/{user_id}")
    async def recent_meals(
        user_id: UUID, request: Request, limit: int = Query(default=20, ge=1, le=100)
    ) -> dict[str, object]:
        """Return the user's most recent stored meals."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.meal_service.list_recent(user_id, limit)
        return {"meals": [asdict(meal) for meal in meals]}

    return app
