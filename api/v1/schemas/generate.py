from __future__ import annotations

from pydantic import BaseModel

from core.models.request import GenerationRequest, WeekGroup


class UsageOut(BaseModel):
    limit: int
    used: int
    remaining: int


__all__ = ["GenerationRequest", "WeekGroup", "UsageOut"]
