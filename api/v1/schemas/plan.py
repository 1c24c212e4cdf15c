from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ISO_DAY = r"^\d{4}-\d{2}-\d{2}$"


class SlotIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recipe_id: str = Field(..., min_length=1)


class SlotOut(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    date: str = Field(..., pattern=ISO_DAY)
    meal_type: str
    recipe_id: str
