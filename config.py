"""
Centralised settings loader.

Every knob is read from the environment (or a local `.env`), e.g.
GEMINI_API_KEY, DATABASE_URL, AI_DAILY_LIMIT.
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime / DB / identity ─────────────────────────────────────
    env_name: str = "local"
    log_level: str = "INFO"
    database_url: str | None = None
    jwt_secret: str = "changeme"
    cors_origins: list[str] = ["*"]

    # ─── Gemini ─────────────────────────────────────────────────────
    gemini_api_key: str | None = None
    gemini_model: str = "models/gemini-2.0-flash"

    # ─── AI usage limits ────────────────────────────────────────────
    ai_daily_limit: int = Field(20, ge=1)
    ai_rate_limit: int = 20
    ai_rate_window_s: int = 10 * 60
    public_rate_limit: int = 60
    public_rate_window_s: int = 60
    rate_limit_cache_size: int = 500

    # ─── push notifications ─────────────────────────────────────────
    notification_api_key: str | None = None
    firebase_project_id: str | None = None
    firebase_client_email: str | None = None
    firebase_private_key: str | None = None

    # allow other teammates’ env-vars without crashing
    model_config = SettingsConfigDict(
        extra="ignore", env_file=".env", env_file_encoding="utf-8"
    )


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
