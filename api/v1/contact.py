from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.schemas import ContactIn, ContactOut
from services.db import ContactMessage, get_session

_LOG = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ContactOut, status_code=status.HTTP_201_CREATED,
             summary="Store a contact-form message")
async def submit_contact(
    body: ContactIn,
    db: AsyncSession = Depends(get_session),
) -> ContactOut:
    row = ContactMessage(
        name=body.name.strip(),
        email=body.email,
        subject=(body.subject or "").strip() or None,
        message=body.message.strip(),
    )
    db.add(row)
    await db.flush()
    message_id = row.id
    await db.commit()
    _LOG.info("contact message #%s from %s", message_id, body.email)
    return ContactOut(id=message_id)
