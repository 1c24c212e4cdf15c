from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.models.user import UserPreferences


class UserPrefsIn(UserPreferences):
    pass


class UserPrefsOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    preferences: UserPreferences
    updated_at: datetime | None = None
