"""Scoring and goal comparison for normalized nutrition."""

import math

from nutrition_ai.domain.goals import GoalComparison, GoalStatus
from nutrition_ai.domain.nutrition import NormalizedNutrition

_GOAL_TOLERANCE_PERCENT = 15.0
_HIGH_CALORIE_MEAL = 700


def compute_health_score(nutrition: NormalizedNutrition) -> float:
    """Score a meal from 0 to 10 based on macro ratios and calories."""
    total_macros = max(1, nutrition.protein + nutrition.carbs + nutrition.fat)
    protein_ratio = nutrition.protein / total_macros
    fat_ratio = nutrition.fat / total_macros
    carb_ratio = nutrition.carbs / total_macros

    score = 100
    if protein_ratio < 0.2:
        score -= 15
    if fat_ratio > 0.4:
        score -= 10
    if carb_ratio > 0.55:
        score -= 10
    if nutrition.calories > _HIGH_CALORIE_MEAL:
        score -= 10
    score = max(0, min(100, score))
    return round(score / 10, 1)


def compute_confidence(nutrition: NormalizedNutrition) -> int:
    """Return the percentage of core macros with a non-zero estimate."""
    present = sum(
        1
        for value in (
            nutrition.calories,
            nutrition.carbs,
            nutrition.protein,
            nutrition.fat,
        )
        if value > 0
    )
    return math.floor(present / 4 * 100 + 0.5)


def compare_with_goal(calories: int, daily_target: int) -> GoalComparison | None:
    """Compare meal calories with a daily target."""
    if daily_target <= 0:
        return None
    deviation = (calories - daily_target) / daily_target * 100
    status = GoalStatus.BALANCED
    if deviation > _GOAL_TOLERANCE_PERCENT:
        status = GoalStatus.TOO_HIGH
    if deviation < -_GOAL_TOLERANCE_PERCENT:
        status = GoalStatus.TOO_LOW
    return GoalComparison(
        daily_target=daily_target,
        deviation_percent=round(deviation, 1),
        status=status,
    )
