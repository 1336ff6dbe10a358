"""Nutrition analysis using an LLM with normalization fallbacks."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Protocol

from nutrition_ai.domain.analysis import AnalyzeRequest, FoodInsight
from nutrition_ai.domain.nutrition import NormalizedNutrition
from nutrition_ai.services.goals import GoalService
from nutrition_ai.services.insights import (
    compare_with_goal,
    compute_confidence,
    compute_health_score,
)
from nutrition_ai.services.meals import MealService
from nutrition_ai.services.normalization import (
    extract_nutrition_from_text,
    is_nutrition_empty,
    merge_nutrition,
    normalize_nutrition_data,
)
from nutrition_ai.services.retry import RetryOptions, RetryPresets, retry

DEFAULT_FOOD_NAME = "Makanan Terdeteksi"
UNKNOWN_DESCRIPTION = "makanan tidak diketahui"
FOOD_NAME_ALIASES = ("food_name", "nama_makanan", "makanan")
DEFAULT_SUGGESTION = (
    "Tetap jaga porsi seimbang antara protein, karbohidrat, lemak, dan serat."
)
EMPTY_SUGGESTION = (
    "Tidak bisa menganalisis gambar saat ini. "
    "Pastikan koneksi internet stabil dan coba lagi."
)

SYSTEM_PROMPT = (
    "You are a professional nutrition assistant. Analyze the meal from the "
    "photo or description and return ONLY valid JSON with the fields "
    'food_name (string, dish name in Bahasa Indonesia), calories (number), '
    "protein, carbs, fat and fiber (numbers in grams). All numeric values "
    "must be numbers, not strings. When unsure, give a reasonable estimate "
    "for a typical Indonesian portion."
)

_CODE_FENCE = re.compile(r"```json|```")
_DATE_STAMP = re.compile(r"^\d{4}\s+\d{1,2}\s+\d{1,2}")

_logger = logging.getLogger(__name__)


class NutritionAIClient(Protocol):
    """Interface for LLM nutrition estimation."""

    async def complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        image_url: str | None,
    ) -> str:
        """Return the raw model text for a nutrition prompt."""


class NutritionAnalysisError(Exception):
    """Raised when the model could not be reached after retries."""


def parse_ai_content(content: str) -> tuple[NormalizedNutrition, dict[str, object]]:
    """Parse model output into nutrition, falling back to text extraction.

    Returns the normalized nutrition and the decoded JSON object (empty
    when the content is not a JSON object).
    """
    cleaned = _CODE_FENCE.sub("", content).strip()
    try:
        decoded = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        _logger.warning("Model returned invalid JSON: %s", exc)
        decoded = {}
    payload = decoded if isinstance(decoded, dict) else {}

    normalized = normalize_nutrition_data(payload)
    if is_nutrition_empty(normalized):
        fallback = extract_nutrition_from_text(content)
        normalized = merge_nutrition(normalized, fallback)
        _logger.info("Fallback text extraction: %s => %s", fallback, normalized)
    return normalized, payload


def describe_request(request: AnalyzeRequest) -> str:
    """Return the meal description, derived from the image file name when blank."""
    description = request.description.strip()
    if description:
        return description
    if request.image_url:
        file_name = request.image_url.rsplit("/", 1)[-1]
        stem = file_name.split(".", 1)[0]
        derived = stem.replace("-", " ").replace("_", " ").strip()
        if derived:
            return derived
    return UNKNOWN_DESCRIPTION


def pick_ai_food_name(payload: dict[str, object]) -> str | None:
    """Return the first non-blank dish name the model reported."""
    for key in FOOD_NAME_ALIASES:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def detect_food_name(ai_name: object, description: str) -> str:
    """Pick a display name, ignoring file-name-like or date-like values."""
    if isinstance(ai_name, str):
        candidate = ai_name.strip()
        if (
            candidate
            and candidate != description
            and _is_plausible_name(candidate)
        ):
            return candidate
    if description and _is_plausible_name(description):
        return description
    return DEFAULT_FOOD_NAME


def _is_plausible_name(value: str) -> bool:
    lowered = value.lower()
    if "whatsapp" in lowered or "image" in lowered:
        return False
    return _DATE_STAMP.match(value) is None


def _build_user_prompt(request: AnalyzeRequest, description: str) -> str:
    if request.image_url:
        return (
            "Analyze this meal photo and estimate its nutrition. Identify the "
            "dish from the image itself, not from the description "
            f'"{description}". Base the estimate on the visible portion.'
        )
    return f"Analyze the nutrition content of this meal: {description}."


@dataclass
class NutritionAnalysisService:
    """Service that estimates, scores and stores meal nutrition."""

    client: NutritionAIClient
    model: str
    goal_service: GoalService
    meal_service: MealService
    retry_options: RetryOptions = field(default_factory=lambda: RetryPresets.standard)

    async def analyze(self, request: AnalyzeRequest) -> FoodInsight:
        """Analyze a meal and return the normalized insight."""
        description = describe_request(request)
        result = await retry(
            lambda: self.client.complete(
                model=self.model,
                system_prompt=SYSTEM_PROMPT,
                user_prompt=_build_user_prompt(request, description),
                image_url=request.image_url,
            ),
            self.retry_options,
        )
        if not result.success:
            _logger.error(
                "Nutrition analysis failed after %s attempts (%.0fms): %s",
                result.attempts,
                result.total_time_ms,
                result.error,
            )
            raise NutritionAnalysisError(
                "Nutrition analysis is unavailable"
            ) from result.error

        nutrition, payload = parse_ai_content(result.data or "")
        insight = self._build_insight(request, description, nutrition, payload)

        if request.user_id is not None:
            target = self.goal_service.get_daily_target(request.user_id)
            comparison = (
                compare_with_goal(insight.calories, target) if target else None
            )
            if comparison:
                insight.goal_match = comparison.status.value
                insight.deviation_percent = comparison.deviation_percent
            try:
                self.meal_service.save_insight(request.user_id, insight)
            except Exception:
                _logger.exception("Failed to save meal for user %s", request.user_id)
        return insight

    def _build_insight(
        self,
        request: AnalyzeRequest,
        description: str,
        nutrition: NormalizedNutrition,
        payload: dict[str, object],
    ) -> FoodInsight:
        empty = is_nutrition_empty(nutrition)
        if empty:
            _logger.warning("All nutrition values are zero for %r", description)
        return FoodInsight(
            food_name=detect_food_name(pick_ai_food_name(payload), description),
            calories=nutrition.calories,
            protein=nutrition.protein,
            carbs=nutrition.carbs,
            fat=nutrition.fat,
            fiber=nutrition.fiber or 0,
            suggestion=EMPTY_SUGGESTION if empty else DEFAULT_SUGGESTION,
            ai_mode="openai-vision" if request.image_url else "openai-text",
            confidence_score=compute_confidence(nutrition),
            health_score=compute_health_score(nutrition),
            image_url=request.image_url,
        )
