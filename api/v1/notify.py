# api/v1/notify.py
from __future__ import annotations

import hmac
import logging

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import require_bearer, require_user
from api.v1.schemas import DeviceTokenIn, NotifyIn, NotifyOut
from config import settings
from core import notifications
from services import push
from services.auth import verify_token
from services.db import DeviceToken, get_session

_LOG = logging.getLogger(__name__)

router = APIRouter()


class Caller:
    def __init__(self, is_server_key: bool, user_id: str | None) -> None:
        self.is_server_key = is_server_key
        self.user_id = user_id


def notify_caller(token: str = Depends(require_bearer)) -> Caller:
    key = settings.notification_api_key
    if key and hmac.compare_digest(token.encode(), key.encode()):
        return Caller(is_server_key=True, user_id=None)
    try:
        return Caller(is_server_key=False, user_id=verify_token(token))
    except jwt.PyJWTError:
        return Caller(is_server_key=False, user_id=None)


def get_push_sender() -> notifications.Sender | None:
    return push.get_sender()


@router.get("", summary="Notification health check")
async def health(sender: notifications.Sender | None = Depends(get_push_sender)) -> dict:
    return {"status": "ok", "messaging": sender is not None}


@router.post("", response_model=NotifyOut, summary="Push a notification to a user's devices")
async def send_notification(
    body: NotifyIn,
    caller: Caller = Depends(notify_caller),
    sender: notifications.Sender | None = Depends(get_push_sender),
    db: AsyncSession = Depends(get_session),
):
    notifications.authorize_target(
        body.user_id, is_server_key=caller.is_server_key, caller_id=caller.user_id
    )
    if sender is None:
        raise HTTPException(500, "Push messaging not initialized")

    tokens = (
        await db.execute(select(DeviceToken.token).where(DeviceToken.user_id == body.user_id))
    ).scalars().all()
    if not tokens:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "No device tokens found for user", "sent": 0},
        )

    result = await notifications.dispatch(
        sender, tokens, body.title, body.body, notifications.build_data(body.url, body.tag)
    )

    if result.invalid_tokens:
        await db.execute(
            delete(DeviceToken).where(
                DeviceToken.user_id == body.user_id,
                DeviceToken.token.in_(result.invalid_tokens),
            )
        )
        await db.commit()
        _LOG.info("removed %d stale device token(s) for %s",
                  len(result.invalid_tokens), body.user_id)

    return NotifyOut(success=True, sent=result.sent, failed=result.failed)


@router.post("/tokens", status_code=status.HTTP_201_CREATED,
             summary="Register a device token for the caller")
async def register_token(
    body: DeviceTokenIn,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    existing = await db.get(DeviceToken, (user_id, body.token))
    if existing is None:
        db.add(DeviceToken(user_id=user_id, token=body.token, platform=body.platform))
    else:
        existing.platform = body.platform
    await db.commit()
    return {"status": "registered"}
