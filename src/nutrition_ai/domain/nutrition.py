"""Nutrition domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizedNutrition:
    """Canonical nutrition record with whole-number values."""

    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int | None = None
