from __future__ import annotations

import logging
from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.schemas import FeedbackIn, FeedbackOut
from services.db import Feedback, get_session

_LOG = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=FeedbackOut, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    body: FeedbackIn,
    db: AsyncSession = Depends(get_session),
) -> FeedbackOut:
    if body.rating is None and not (body.message or "").strip():
        raise HTTPException(400, "rating or message is required")

    row = Feedback(
        user_id=body.user_id,
        rating=body.rating,
        message=(body.message or "").strip() or None,
        category=body.category,
    )
    if body.timestamp is not None:
        row.created_at = body.timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    db.add(row)
    await db.flush()
    feedback_id = row.id
    await db.commit()
    _LOG.info("feedback #%s (%s) from %s", feedback_id, body.category, body.user_id or "anonymous")
    return FeedbackOut(id=feedback_id)
