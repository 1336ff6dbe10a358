"""Models for nutrition analysis requests and results."""

from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class AnalyzeRequest(BaseModel):
    """Meal description and/or photo to analyze."""

    description: str = Field(default="", max_length=500)
    image_url: str | None = None
    user_id: UUID | None = None

    @model_validator(mode="after")
    def require_input(self) -> "AnalyzeRequest":
        if not self.description.strip() and not self.image_url:
            raise ValueError("description or image_url is required")
        return self


class FoodInsight(BaseModel):
    """Normalized nutrition estimate with scores."""

    food_name: str
    calories: int = Field(ge=0)
    protein: int = Field(ge=0)
    carbs: int = Field(ge=0)
    fat: int = Field(ge=0)
    fiber: int = Field(default=0, ge=0)
    suggestion: str
    ai_mode: str
    confidence_score: int = Field(default=0, ge=0, le=100)
    health_score: float = Field(default=0.0, ge=0.0, le=10.0)
    goal_match: str | None = None
    deviation_percent: float | None = None
    image_url: str | None = None
