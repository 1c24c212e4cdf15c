from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CalorieDistribution(BaseModel):
    """Share of the daily calorie goal per meal slot (sums to ~1.0)."""

    breakfast: float = Field(0.20, ge=0, le=1)
    lunch: float = Field(0.30, ge=0, le=1)
    afternoon_snack: float = Field(0.10, ge=0, le=1)
    dinner: float = Field(0.30, ge=0, le=1)
    evening_snack: float = Field(0.10, ge=0, le=1)


class UserPreferences(BaseModel):
    """Settings-page preferences, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    dietary_type: str = "balanced"
    weight_goal: Literal["lose", "maintain", "gain"] = "maintain"
    allergies: list[str] = []
    dislikes: list[str] = []
    cuisines: list[str] = []
    calorie_goal: int = Field(2000, gt=0)
    protein_goal: int = Field(150, ge=0)
    carbs_goal: int = Field(200, ge=0)
    fats_goal: int = Field(65, ge=0)
    cooking_skill: Literal["beginner", "intermediate", "advanced"] = "intermediate"
    cooking_time: int = Field(30, gt=0)  # minutes
    portions: int = Field(2, ge=1)
    units: Literal["metric", "imperial"] = "metric"
    region: str = "Austria"
    budget: Literal["low", "medium", "high", "premium"] = "medium"
    taste_profile: str = ""
    additional_notes: str = ""
    calorie_distribution: CalorieDistribution | None = None
