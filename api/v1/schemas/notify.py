from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NotifyIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    url: str | None = None
    tag: str | None = None


class NotifyOut(BaseModel):
    success: bool
    sent: int
    failed: int


class DeviceTokenIn(BaseModel):
    token: str = Field(..., min_length=1)
    platform: str | None = Field(None, examples=["web", "android", "ios"])
