"""
core/notifications.py
────────────────────────────────────────────────────────────────────────
Fan one notification out to every device token a user registered.

Who may notify whom:

* the shared server key (`NOTIFICATION_API_KEY`) may target anyone
* an identity token may only target its own user
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Protocol

from starlette.concurrency import run_in_threadpool

from core.errors import Forbidden, Unauthorized
from services.push import InvalidDeviceToken

_LOG = logging.getLogger(__name__)

DEFAULT_URL = "/dashboard"
DEFAULT_TAG = "mealprepper"


class Sender(Protocol):
    def send(self, token: str, title: str, body: str, data: dict[str, str]) -> str: ...


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    invalid_tokens: list[str] = field(default_factory=list)


def authorize_target(target_user: str, *, is_server_key: bool, caller_id: str | None) -> None:
    if is_server_key:
        return
    if caller_id is None:
        raise Unauthorized()
    if caller_id != target_user:
        raise Forbidden("You can only send notifications to yourself")


def build_data(url: str | None, tag: str | None, now: datetime | None = None) -> dict[str, str]:
    return {
        "url": url or DEFAULT_URL,
        "tag": tag or DEFAULT_TAG,
        "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
    }


async def dispatch(
    sender: Sender,
    tokens: Iterable[str],
    title: str,
    body: str,
    data: dict[str, str],
) -> DispatchResult:
    """Send to each token; a failure on one token never stops the others."""
    result = DispatchResult()
    for token in tokens:
        try:
            await run_in_threadpool(sender.send, token, title, body, data)
        except InvalidDeviceToken:
            result.failed += 1
            result.invalid_tokens.append(token)
        except Exception:
            _LOG.exception("push to one device failed")
            result.failed += 1
        else:
            result.sent += 1
    return result
