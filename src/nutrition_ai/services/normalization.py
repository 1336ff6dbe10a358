"""Parsing and normalization of nutrition values returned by LLMs."""

import math
import re
from collections.abc import Mapping

from nutrition_ai.domain.nutrition import NormalizedNutrition

_RANGE_PATTERN = re.compile(
    r"([0-9]+(?:\.[0-9]+)?)\s*(?:-|–|—|to)\s*([0-9]+(?:\.[0-9]+)?)",
    re.IGNORECASE,
)
_NUMBER_PATTERN = re.compile(r"[-+]?[0-9]*\.?[0-9]+")

# A number of up to four digits, optionally followed by a range.
_TEXT_VALUE = (
    r"([0-9]{1,4}(?:[.,][0-9]+)?"
    r"(?:\s*(?:-|–|—|to)\s*[0-9]{1,4}(?:[.,][0-9]+)?)?)"
)

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "calories": ("calories", "kalori", "total_calories", "estimasi_kalori"),
    "protein": ("protein", "protein_g", "protein_grams", "protein_gram"),
    "carbs": ("carbs", "karbohidrat", "karbohidrat_g", "carbs_grams", "carbs_g"),
    "fat": ("fat", "lemak", "lemak_g", "fat_grams", "fat_g"),
    "fiber": ("fiber", "serat", "fiber_g"),
}

TEXT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "calories": ("calories", "kalori", "kcal"),
    "protein": ("protein", "protein_g", "proteingrams"),
    "carbs": ("carbs", "carbohydrate", "karbohidrat", "carbs_g"),
    "fat": ("fat", "lemak", "fat_g"),
    "fiber": ("fiber", "serat", "dietary.*fiber", "fiber_g"),
}


def parse_nutrition_number(value: object) -> int:
    """Parse a nutrition value into a non-negative integer.

    Accepts plain numbers, strings with units ("100 kcal", "~50g"),
    ranges ("200-300", "200 – 300", "50 to 100") which resolve to their
    midpoint, and comma decimals ("100,5"). Anything unparseable is 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return _clamp(value)
    if not isinstance(value, str):
        return 0

    text = value.replace(",", ".").strip()
    range_match = _RANGE_PATTERN.search(text)
    if range_match:
        low = float(range_match.group(1))
        high = float(range_match.group(2))
        return _clamp((low + high) / 2)
    return _parse_first_number(text)


def parse_number(value: object) -> int:
    """Parse a value into a non-negative integer without range support."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return _clamp(value)
    if isinstance(value, str):
        return _parse_first_number(value.replace(",", "."))
    return 0


def normalize_nutrition_data(raw: Mapping[str, object]) -> NormalizedNutrition:
    """Normalize a loosely-typed nutrition payload into canonical fields."""
    values = {
        field: parse_nutrition_number(_first_present(raw, aliases))
        for field, aliases in FIELD_ALIASES.items()
    }
    return NormalizedNutrition(**values)


def extract_nutrition_from_text(text: str) -> NormalizedNutrition:
    """Extract nutrition values from free text with keyword patterns.

    Fallback for when structured parsing fails or yields only zeros.
    """
    cleaned = text.replace("```", " ")
    values = {
        field: _search_keyword_value(cleaned, keywords)
        for field, keywords in TEXT_KEYWORDS.items()
    }
    return NormalizedNutrition(**values)


def is_nutrition_empty(nutrition: NormalizedNutrition) -> bool:
    """Return True when every core macro is zero."""
    return (
        nutrition.calories == 0
        and nutrition.protein == 0
        and nutrition.carbs == 0
        and nutrition.fat == 0
    )


def merge_nutrition(
    primary: NormalizedNutrition, fallback: NormalizedNutrition
) -> NormalizedNutrition:
    """Merge two records field by field, preferring non-zero primary values.

    Zero counts as missing, so a genuine zero in ``primary`` is replaced
    by the fallback value.
    """
    return NormalizedNutrition(
        calories=primary.calories or fallback.calories,
        protein=primary.protein or fallback.protein,
        carbs=primary.carbs or fallback.carbs,
        fat=primary.fat or fallback.fat,
        fiber=primary.fiber or fallback.fiber,
    )


def _first_present(raw: Mapping[str, object], aliases: tuple[str, ...]) -> object:
    for alias in aliases:
        value = raw.get(alias)
        if value is not None:
            return value
    return None


def _search_keyword_value(text: str, keywords: tuple[str, ...]) -> int:
    for keyword in keywords:
        pattern = re.compile(keyword + r"\s*[:-]?\s*" + _TEXT_VALUE, re.IGNORECASE)
        match = pattern.search(text)
        if match:
            return parse_nutrition_number(match.group(1))

    # Unit-first phrasing such as "200 kcal".
    unit_pattern = re.compile(
        _TEXT_VALUE + r"\s*(?:" + "|".join(keywords) + ")", re.IGNORECASE
    )
    match = unit_pattern.search(text)
    if match:
        return parse_nutrition_number(match.group(1))
    return 0


def _parse_first_number(text: str) -> int:
    match = _NUMBER_PATTERN.search(text)
    if not match:
        return 0
    return _clamp(float(match.group(0)))


def _clamp(value: float) -> int:
    """Round half up and clamp to zero; non-finite values become zero."""
    if not math.isfinite(value):
        return 0
    return max(0, math.floor(value + 0.5))
