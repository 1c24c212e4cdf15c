from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Macros(BaseModel):
    calories: float = Field(0, ge=0)
    protein: float = Field(0, ge=0)
    carbs: float = Field(0, ge=0)
    fats: float = Field(0, ge=0)


class Ingredient(BaseModel):
    name: str
    amount: str = ""


class Meal(BaseModel):
    """A realised recipe.  0 in a macro means unknown/negligible, never null."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    id: str
    name: str
    description: str = ""
    emoji: str | None = None
    ingredients: list[Ingredient] = []
    instructions: list[str] = []
    macros: Macros = Macros()
    servings: int | None = Field(None, ge=1)
    tags: list[str] = []
    visibility: Literal["public", "private"] = "public"
    user_id: str | None = None
    time_limit: int | None = None


class MealIdea(BaseModel):
    """Brainstorm result.  Lives in memory only until it is realised."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    name: str
    description: str = ""
    emoji: str = ""
    tags: list[str] = []
    # week mode only
    type: str | None = None
    calories: float | None = None
    key_ingredients: str | list[str] | None = None
    servings_required: int | None = None
    assigned_slots: list[str] = []
