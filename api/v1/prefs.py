from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import require_user
from api.v1.schemas import UserPrefsIn, UserPrefsOut
from core.models.user import UserPreferences
from services.db import StoredPreferences, get_session

router = APIRouter()


# ───────────────────────── helpers ──────────────────────────
def _serialize(row: StoredPreferences) -> UserPrefsOut:
    """SQLAlchemy row ➜ Pydantic schema; unknown stored keys are dropped."""
    return UserPrefsOut(
        user_id=row.user_id,
        preferences=UserPreferences.model_validate(row.preferences or {}),
        updated_at=row.updated_at,
    )


# ───────────────────────── read ─────────────────────────────
@router.get(
    "/me/preferences",
    response_model=UserPrefsOut,
    status_code=status.HTTP_200_OK,
)
async def get_preferences(
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> UserPrefsOut:
    prefs = await db.get(StoredPreferences, user_id)
    if prefs is None:
        raise HTTPException(404, "preferences not set")
    return _serialize(prefs)


# ───────────────────────── upsert ───────────────────────────
@router.put(
    "/me/preferences",
    response_model=UserPrefsOut,
    status_code=status.HTTP_200_OK,
)
async def upsert_preferences(
    body: UserPrefsIn,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> UserPrefsOut:
    payload = body.model_dump(by_alias=True, exclude_none=True)

    prefs = await db.get(StoredPreferences, user_id)
    if prefs is None:
        prefs = StoredPreferences(user_id=user_id, preferences=payload)
        db.add(prefs)
    else:
        prefs.preferences = payload

    await db.commit()
    await db.refresh(prefs)
    return _serialize(prefs)
