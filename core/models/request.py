from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.models.meal import MealIdea
from core.models.user import UserPreferences

Mode = Literal["brainstorm", "brainstorm_week", "refine", "recalculate", "generate"]


class WeekGroup(BaseModel):
    """One meal-type group of a brainstorm_week request."""

    count: int = Field(..., ge=1)
    dates: list[str] = []


class GenerationRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    mode: Mode | None = None
    prompt: str | None = None
    context: Any = None
    user_preferences: UserPreferences | None = None
    meal_idea: MealIdea | None = None
    keywords: str | None = None
    time_limit: int | None = Field(None, gt=0)
    meal_type: str | None = None

    def resolved_mode(self) -> str:
        """recalculate > brainstorm(_week) > refine > generate.

        With a context, a missing or plain `generate` mode means refine.
        """
        if self.mode not in (None, "generate"):
            return self.mode
        if self.context is not None:
            return "refine"
        return "generate"
