"""
core/nutrition_calc.py
────────────────────────────────────────────────────────────────────────
Per-slot calorie targets.

A day's calorie goal is split across five slots.  The user may store a
custom split; otherwise the default below applies.  Legacy slot names
(brunch, snack, dessert) still resolve, anything unknown gets 30 %.

Chunked week requests key their groups as `lunch`, `lunch_2`, ...  The
numeric suffix is stripped before lookup.
"""

from __future__ import annotations

import logging
import math
import re

from core.models.user import CalorieDistribution

Logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────
#  Distribution tables
# ──────────────────────────────────────────────────────────────────────
DEFAULT_DISTRIBUTION: dict[str, float] = {
    "breakfast": 0.20,
    "lunch": 0.30,
    "afternoon_snack": 0.10,
    "dinner": 0.30,
    "evening_snack": 0.10,
}

LEGACY_DISTRIBUTION: dict[str, float] = {
    "brunch": 0.25,
    "snack": 0.10,
    "dessert": 0.10,
}

UNKNOWN_SHARE = 0.30

# calendar slot names → distribution keys
_ALIASES = {
    "snack-afternoon": "afternoon_snack",
    "afternoon-snack": "afternoon_snack",
    "snack_afternoon": "afternoon_snack",
    "snack-evening": "evening_snack",
    "evening-snack": "evening_snack",
    "snack_evening": "evening_snack",
}

_CHUNK_SUFFIX = re.compile(r"_\d+$")


def base_meal_type(key: str) -> str:
    """`lunch_2` → `lunch`; `Snack-Afternoon ` → `snack-afternoon`."""
    return _CHUNK_SUFFIX.sub("", key.strip().lower())


def distribution_key(meal_type: str) -> str:
    base = base_meal_type(meal_type)
    return _ALIASES.get(base, base)


def meal_share(meal_type: str, distribution: CalorieDistribution | None = None) -> float:
    key = distribution_key(meal_type)
    table = DEFAULT_DISTRIBUTION
    if distribution is not None:
        table = distribution.model_dump()
    if key in table:
        return table[key]
    if key in LEGACY_DISTRIBUTION:
        return LEGACY_DISTRIBUTION[key]
    Logger.debug("unknown meal type %r → default share", meal_type)
    return UNKNOWN_SHARE


def meal_calorie_target(
    meal_type: str,
    daily_goal: float,
    distribution: CalorieDistribution | None = None,
) -> int:
    """Calories for one serving of `meal_type`, rounded half-up."""
    return int(math.floor(meal_share(meal_type, distribution) * daily_goal + 0.5))
