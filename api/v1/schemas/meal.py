from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.models.meal import Meal


class MealIn(Meal):
    """Client-side edit or a freshly generated meal; owner comes from the token."""


class MealList(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    meals: list[Meal]
    count: int
