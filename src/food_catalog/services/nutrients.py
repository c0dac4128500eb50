"""Macro and micronutrient extraction from provider payloads."""

import math

from food_catalog.domain.foods import MacroProfile

# Open Food Facts nutriment keys, per 100 g variants carry a "_100g" suffix.
_OFF_KCAL_KEYS = ("energy-kcal", "energy")
_OFF_MACRO_KEYS = {
    "carbs_g": "carbohydrates",
    "protein_g": "proteins",
    "fat_g": "fat",
}
_OFF_MICRO_KEYS = {
    "fiber_g": ("fiber", 1.0),
    "sugar_g": ("sugars", 1.0),
    "saturated_fat_g": ("saturated-fat", 1.0),
    "sodium_mg": ("sodium", 1000.0),
}

# USDA nutrient name fragments, matched case-insensitively.
_USDA_MACRO_NAMES = {
    "kcal": "energy",
    "protein_g": "protein",
    "carbs_g": "carbohydrate",
    "fat_g": "fat",
}
_USDA_MICRO_NAMES = {
    "fiber_g": "fiber",
    "sugar_g": "sugars",
    "saturated_fat_g": "saturated",
    "sodium_mg": "sodium",
}


def coerce_number(value: object) -> float:
    """Return a finite non-negative number, or 0 for anything else."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


def round_half_up(value: float, digits: int = 1) -> float:
    """Round half away from zero for non-negative values."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def resolve_keyed_nutrients(nutriments: object) -> MacroProfile:
    """Resolve macros from an Open Food Facts style key/value map."""
    if not isinstance(nutriments, dict):
        nutriments = {}
    kcal = 0.0
    for key in _OFF_KCAL_KEYS:
        kcal = _keyed_value(nutriments, key)
        if kcal:
            break
    values = {
        field_name: _keyed_value(nutriments, key)
        for field_name, key in _OFF_MACRO_KEYS.items()
    }
    return _build_profile(kcal=kcal, **values)


def resolve_named_nutrients(food_nutrients: object) -> MacroProfile:
    """Resolve macros from a USDA style list of named nutrients."""
    nutrients = food_nutrients if isinstance(food_nutrients, list) else []
    values = {
        field_name: _named_value(nutrients, fragment)
        for field_name, fragment in _USDA_MACRO_NAMES.items()
    }
    return _build_profile(**values)


def keyed_micronutrients(nutriments: object) -> dict[str, float]:
    """Extract tracked micronutrients from a key/value map, skipping absent ones."""
    if not isinstance(nutriments, dict):
        return {}
    result: dict[str, float] = {}
    for field_name, (key, scale) in _OFF_MICRO_KEYS.items():
        value = _keyed_value(nutriments, key)
        if value:
            result[field_name] = round_half_up(value * scale)
    return result


def named_micronutrients(food_nutrients: object) -> dict[str, float]:
    """Extract tracked micronutrients from a named nutrient list."""
    if not isinstance(food_nutrients, list):
        return {}
    result: dict[str, float] = {}
    for field_name, fragment in _USDA_MICRO_NAMES.items():
        value = _named_value(food_nutrients, fragment)
        if value:
            result[field_name] = round_half_up(value)
    return result


def _keyed_value(nutriments: dict, key: str) -> float:
    return coerce_number(nutriments.get(key)) or coerce_number(
        nutriments.get(f"{key}_100g")
    )


def _named_value(nutrients: list, fragment: str) -> float:
    for nutrient in nutrients:
        if not isinstance(nutrient, dict):
            continue
        name = nutrient.get("nutrientName")
        if isinstance(name, str) and fragment in name.lower():
            return coerce_number(nutrient.get("value"))
    return 0.0


def _build_profile(
    *, kcal: float, carbs_g: float, protein_g: float, fat_g: float
) -> MacroProfile:
    return MacroProfile(
        kcal=int(round_half_up(kcal, digits=0)),
        carbs_g=round_half_up(carbs_g),
        protein_g=round_half_up(protein_g),
        fat_g=round_half_up(fat_g),
    )
