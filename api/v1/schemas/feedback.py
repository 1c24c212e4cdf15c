from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FeedbackIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    message: str | None = Field(None, max_length=5000)
    category: Literal["bug", "feature", "general"] = "general"
    timestamp: datetime | None = None


class FeedbackOut(BaseModel):
    id: int
    status: str = "received"
