"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 setup
* Models for the documents the API owns (preferences, recipes, plan
  slots, AI usage counters, device tokens, feedback, contact messages)
* Session helpers used by routers / the quota tracker
"""
from __future__ import annotations

from datetime import datetime
from typing import AsyncGenerator

from fastapi import HTTPException, status
from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from config import settings

# ───────── connection helper ────────────────────────────────────────
_ENGINE: AsyncEngine | None = None
_SESSIONS: async_sessionmaker[AsyncSession] | None = None


async def engine() -> AsyncEngine | None:
    """Lazily create the engine; `None` when DATABASE_URL is unset."""
    global _ENGINE
    if _ENGINE is None and settings.database_url:
        _ENGINE = create_async_engine(settings.database_url, pool_pre_ping=True)
    return _ENGINE


async def session_factory() -> async_sessionmaker[AsyncSession] | None:
    global _SESSIONS
    if _SESSIONS is None:
        eng = await engine()
        if eng is None:
            return None
        _SESSIONS = async_sessionmaker(eng, expire_on_commit=False)
    return _SESSIONS


# ───────── declarative base ──────────────────────────────────────────
Base = declarative_base(cls=AsyncAttrs)


class StoredPreferences(Base):
    __tablename__ = "user_preferences"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    preferences: Mapped[dict] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[str] = mapped_column(String)
    visibility: Mapped[str] = mapped_column(String, default="public", index=True)
    data: Mapped[dict] = mapped_column(JSON)          # full Meal document
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class PlanSlot(Base):
    __tablename__ = "week_plan_slots"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    date: Mapped[str] = mapped_column(String, primary_key=True)       # YYYY-MM-DD
    meal_type: Mapped[str] = mapped_column(String, primary_key=True)
    recipe_id: Mapped[str] = mapped_column(String)


class AiUsage(Base):
    """One row per user per UTC day."""

    __tablename__ = "ai_usage"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    day: Mapped[str] = mapped_column(String, primary_key=True)        # YYYY-MM-DD
    call_count: Mapped[int] = mapped_column(Integer, default=0)
    last_call: Mapped[datetime | None] = mapped_column(DateTime)


class AiUsageByMode(Base):
    __tablename__ = "ai_usage_modes"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    day: Mapped[str] = mapped_column(String, primary_key=True)
    mode: Mapped[str] = mapped_column(String, primary_key=True)
    call_count: Mapped[int] = mapped_column(Integer, default=0)


class DeviceToken(Base):
    __tablename__ = "fcm_tokens"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    token: Mapped[str] = mapped_column(String, primary_key=True)
    platform: Mapped[str | None] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class Feedback(Base):
    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String)
    rating: Mapped[float | None]
    message: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String)
    email: Mapped[str] = mapped_column(String)
    subject: Mapped[str | None] = mapped_column(String)
    message: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String, default="new", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


# ───────── session helper ────────────────────────────────────────────

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    sessions = await session_factory()
    if sessions is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )
    async with sessions() as session:
        yield session


async def create_all(eng: AsyncEngine) -> None:
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
