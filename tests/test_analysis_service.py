"""Tests for the nutrition analysis service."""

import asyncio
from uuid import uuid4

import pytest

from nutrition_ai.domain.analysis import AnalyzeRequest
from nutrition_ai.services.analysis import (
    DEFAULT_FOOD_NAME,
    EMPTY_SUGGESTION,
    NutritionAnalysisError,
    UNKNOWN_DESCRIPTION,
    NutritionAnalysisService,
    describe_request,
    detect_food_name,
    parse_ai_content,
    pick_ai_food_name,
)
from tests.conftest import (
    FakeNutritionAIClient,
    InMemoryGoalRepository,
    InMemoryMealRepository,
)


def test_parse_ai_content_reads_fenced_json() -> None:
    content = '```json\n{"kalori": "300-400", "protein_g": 20, "lemak": 12}\n```'

    nutrition, payload = parse_ai_content(content)

    assert nutrition.calories == 350
    assert nutrition.protein == 20
    assert nutrition.fat == 12
    assert payload["protein_g"] == 20


def test_parse_ai_content_falls_back_to_text() -> None:
    content = "Estimated: Calories: 520, Protein: 25g, Carbs: 60g, Fat: 18g"

    nutrition, payload = parse_ai_content(content)

    assert (nutrition.calories, nutrition.protein, nutrition.carbs, nutrition.fat) == (
        520,
        25,
        60,
        18,
    )
    assert payload == {}


def test_parse_ai_content_merges_when_json_is_all_zero() -> None:
    content = '{"calories": 0, "protein": 0, "carbs": 0, "fat": 0, "note": "fat 9g"}'

    nutrition, _payload = parse_ai_content(content)

    assert nutrition.fat == 9
    assert nutrition.calories == 0


def test_parse_ai_content_ignores_non_object_json() -> None:
    nutrition, payload = parse_ai_content("[1, 2, 3]")

    assert nutrition.calories == 0
    assert payload == {}


@pytest.mark.parametrize(
    ("ai_name", "description", "expected"),
    [
        ("Nasi Goreng", "lunch", "Nasi Goreng"),
        ("  Soto Ayam ", "", "Soto Ayam"),
        ("", "Gado-gado", "Gado-gado"),
        ("WhatsApp Image 2024", "", DEFAULT_FOOD_NAME),
        ("2024 10 18 at 12.00", "Pempek", "Pempek"),
        (None, "image_0042.jpg", DEFAULT_FOOD_NAME),
        ("lunch", "lunch", "lunch"),
    ],
)
def test_detect_food_name(ai_name: object, description: str, expected: str) -> None:
    assert detect_food_name(ai_name, description) == expected


def test_analyze_builds_insight(analysis_service: NutritionAnalysisService) -> None:
    insight = asyncio.run(
        analysis_service.analyze(AnalyzeRequest(description="nasi goreng"))
    )

    assert insight.food_name == "Nasi Goreng"
    assert insight.calories == 450
    assert insight.fiber == 3
    assert insight.ai_mode == "openai-text"
    assert insight.confidence_score == 100
    assert insight.health_score == 7.5
    assert insight.goal_match is None


def test_analyze_with_image_uses_vision_mode(
    analysis_service: NutritionAnalysisService, ai_client: FakeNutritionAIClient
) -> None:
    request = AnalyzeRequest(image_url="https://cdn.test/meal.jpg")

    insight = asyncio.run(analysis_service.analyze(request))

    assert insight.ai_mode == "openai-vision"
    assert insight.image_url == "https://cdn.test/meal.jpg"
    assert ai_client.calls[0]["image_url"] == "https://cdn.test/meal.jpg"


def test_analyze_retries_transient_errors(
    analysis_service: NutritionAnalysisService, ai_client: FakeNutritionAIClient
) -> None:
    ai_client.outputs = [
        TimeoutError("model timeout"),
        '{"food_name": "Bakso", "calories": 380, "protein": 20, "carbs": 40, "fat": 14}',
    ]

    insight = asyncio.run(analysis_service.analyze(AnalyzeRequest(description="bakso")))

    assert insight.calories == 380
    assert len(ai_client.calls) == 2


def test_analyze_raises_after_exhausted_retries(
    analysis_service: NutritionAnalysisService, ai_client: FakeNutritionAIClient
) -> None:
    error = ConnectionError("network down")
    ai_client.outputs = [error]

    with pytest.raises(NutritionAnalysisError) as excinfo:
        asyncio.run(analysis_service.analyze(AnalyzeRequest(description="bakso")))

    assert excinfo.value.__cause__ is error
    assert len(ai_client.calls) == 3


def test_analyze_compares_goal_and_saves_meal(
    analysis_service: NutritionAnalysisService,
    goal_repository: InMemoryGoalRepository,
    meal_repository: InMemoryMealRepository,
) -> None:
    user_id = uuid4()
    goal_repository.goals[user_id] = {"daily_calories": "300"}

    insight = asyncio.run(
        analysis_service.analyze(
            AnalyzeRequest(description="nasi goreng", user_id=user_id)
        )
    )

    assert insight.goal_match == "Terlalu tinggi"
    assert insight.deviation_percent == 50.0
    assert len(meal_repository.meals) == 1
    assert meal_repository.meals[0].user_id == user_id


def test_analyze_empty_result_is_not_saved(
    analysis_service: NutritionAnalysisService,
    ai_client: FakeNutritionAIClient,
    meal_repository: InMemoryMealRepository,
) -> None:
    ai_client.outputs = ["Sorry, I cannot see any food."]

    insight = asyncio.run(
        analysis_service.analyze(
            AnalyzeRequest(description="blurry photo", user_id=uuid4())
        )
    )

    assert insight.calories == 0
    assert insight.suggestion == EMPTY_SUGGESTION
    assert insight.confidence_score == 0
    assert meal_repository.meals == []


def test_analyze_request_requires_input() -> None:
    with pytest.raises(ValueError, match="description or image_url"):
        AnalyzeRequest(description="   ")


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"food_name": "Sate", "nama_makanan": "Rendang"}, "Sate"),
        ({"food_name": "  ", "nama_makanan": "Rendang"}, "Rendang"),
        ({"makanan": "Pecel Lele"}, "Pecel Lele"),
        ({"nama_makanan": 12}, None),
        ({}, None),
    ],
)
def test_pick_ai_food_name(payload: dict[str, object], expected: str | None) -> None:
    assert pick_ai_food_name(payload) == expected


@pytest.mark.parametrize(
    ("request_data", "expected"),
    [
        ({"description": "  soto ayam  "}, "soto ayam"),
        ({"image_url": "https://cdn.test/uploads/nasi-uduk_pagi.jpg"}, "nasi uduk pagi"),
        ({"image_url": "https://cdn.test/uploads/"}, UNKNOWN_DESCRIPTION),
        ({"image_url": "https://cdn.test/uploads/.jpg"}, UNKNOWN_DESCRIPTION),
    ],
)
def test_describe_request(request_data: dict[str, str], expected: str) -> None:
    assert describe_request(AnalyzeRequest(**request_data)) == expected


def test_analyze_uses_alternative_food_name_key(
    analysis_service: NutritionAnalysisService, ai_client: FakeNutritionAIClient
) -> None:
    ai_client.outputs = ['{"nama_makanan": "Rendang", "calories": 500}']

    insight = asyncio.run(analysis_service.analyze(AnalyzeRequest(description="lunch")))

    assert insight.food_name == "Rendang"
    assert insight.calories == 500


def test_analyze_names_photo_after_file_name(
    analysis_service: NutritionAnalysisService, ai_client: FakeNutritionAIClient
) -> None:
    ai_client.outputs = ['{"calories": 320, "protein": 12, "carbs": 40, "fat": 10}']
    request = AnalyzeRequest(image_url="https://cdn.test/ayam_bakar.png")

    insight = asyncio.run(analysis_service.analyze(request))

    assert insight.food_name == "ayam bakar"
    assert '"ayam bakar"' in str(ai_client.calls[0]["user_prompt"])


def test_analyze_returns_insight_when_saving_fails(
    analysis_service: NutritionAnalysisService,
    meal_repository: InMemoryMealRepository,
) -> None:
    def failing_insert(user_id, insight):
        raise RuntimeError("Failed to store meal")

    meal_repository.insert_meal = failing_insert

    insight = asyncio.run(
        analysis_service.analyze(
            AnalyzeRequest(description="nasi goreng", user_id=uuid4())
        )
    )

    assert insight.food_name == "Nasi Goreng"
    assert insight.calories == 450
    assert meal_repository.meals == []
