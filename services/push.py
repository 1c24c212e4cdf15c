# services/push.py
"""
Firebase Cloud Messaging sender.

Only knows how to put one message on one device token.  A token FCM
reports as unregistered or malformed raises `InvalidDeviceToken` so the
caller can prune it; any other error propagates.
"""
from __future__ import annotations

import logging
from typing import Mapping

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from config import settings

_LOG = logging.getLogger(__name__)

_APP_NAME = "mealprepper"
_ICON = "/icons/icon-192x192.png"


class InvalidDeviceToken(Exception):
    """The device token is permanently unusable."""

    def __init__(self, token: str, reason: str = "") -> None:
        super().__init__(reason or "invalid device token")
        self.token = token


class FcmSender:
    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    def send(self, token: str, title: str, body: str, data: Mapping[str, str]) -> str:
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=dict(data),
            webpush=messaging.WebpushConfig(
                notification=messaging.WebpushNotification(
                    icon=_ICON, badge=_ICON, tag=data.get("tag")
                ),
            ),
        )
        try:
            return messaging.send(message, app=self._app)
        except (messaging.UnregisteredError, exceptions.InvalidArgumentError) as exc:
            raise InvalidDeviceToken(token, str(exc)) from exc


# ───────────── Sender (lazy) ─────────────
_sender: FcmSender | None = None


def get_sender() -> FcmSender | None:
    """`None` until the three FIREBASE_* settings are present."""
    global _sender
    if _sender is not None:
        return _sender
    if not (settings.firebase_project_id and settings.firebase_client_email
            and settings.firebase_private_key):
        return None

    cred = credentials.Certificate({
        "type": "service_account",
        "project_id": settings.firebase_project_id,
        "client_email": settings.firebase_client_email,
        "private_key": settings.firebase_private_key.replace("\\n", "\n"),
        "token_uri": "https://oauth2.googleapis.com/token",
    })
    try:
        app = firebase_admin.get_app(_APP_NAME)
    except ValueError:
        app = firebase_admin.initialize_app(cred, name=_APP_NAME)
    _LOG.info("firebase messaging ready (project=%s)", settings.firebase_project_id)
    _sender = FcmSender(app)
    return _sender
