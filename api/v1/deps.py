# api/v1/deps.py
"""Shared FastAPI dependencies: bearer auth, quota tracker, orchestrator."""
from __future__ import annotations

import logging

import jwt
from fastapi import Depends, Header
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.errors import Unauthorized
from core.orchestrator import MealRequestOrchestrator
from core.quota import QuotaTracker
from services import gemini
from services.auth import verify_token
from services.db import session_factory

_LOG = logging.getLogger(__name__)

_BEARER = "Bearer "


def require_bearer(authorization: str | None = Header(None)) -> str:
    """Header must exist and start with `Bearer `; the token itself may be junk.

    Runs before body validation, so a missing header beats a schema error.
    A body that is not JSON at all is rejected by FastAPI while reading the
    request, before any dependency, and gets the 400.
    """
    if not authorization or not authorization.startswith(_BEARER):
        raise Unauthorized("Missing or malformed Authorization header")
    return authorization[len(_BEARER):].strip()


def optional_user_id(token: str = Depends(require_bearer)) -> str | None:
    if not token:
        return None
    try:
        return verify_token(token)
    except jwt.PyJWTError as exc:
        _LOG.info("invalid bearer token, continuing anonymously: %s", exc)
        return None


def require_user(user_id: str | None = Depends(optional_user_id)) -> str:
    if user_id is None:
        raise Unauthorized("A valid identity token is required")
    return user_id


async def get_quota_tracker() -> QuotaTracker:
    """A broken DATABASE_URL yields a store-less tracker, which lets calls through."""
    try:
        sessions = await session_factory()
    except (SQLAlchemyError, ImportError) as exc:
        _LOG.warning("quota store unavailable, daily limit disabled: %s", exc)
        sessions = None
    return QuotaTracker(sessions, limit=settings.ai_daily_limit)


def get_orchestrator(
    quota: QuotaTracker = Depends(get_quota_tracker),
) -> MealRequestOrchestrator:
    return MealRequestOrchestrator(gemini.generate, quota)
