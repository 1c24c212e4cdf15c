"""
core/rate_limit.py
────────────────────────────────────────────────────────────────────────
Short-window request throttle in front of every /api/ route.

Independent of the daily quota: this one only damps bursts.  State is a
process-local LRU of fixed windows, so every worker keeps its own count.
"""
from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.errors import RateLimited

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateTier:
    name: str
    limit: int
    window_s: float


AI_TIER = RateTier("ai", limit=20, window_s=10 * 60)
PUBLIC_TIER = RateTier("pub", limit=60, window_s=60)


@dataclass
class _Window:
    count: int
    expires_at: float


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    limit: int
    remaining: int


class RateLimiter:
    """Fixed-window counter per key, evicting the least recently used key."""

    def __init__(self, max_keys: int = 500,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._max_keys = max_keys
        self._clock = clock
        self._windows: OrderedDict[str, _Window] = OrderedDict()

    def __len__(self) -> int:
        return len(self._windows)

    def clear(self) -> None:
        self._windows.clear()

    def hit(self, client_id: str, tier: RateTier) -> RateDecision:
        key = f"{tier.name}:{client_id}"
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now > window.expires_at:
            window = _Window(count=0, expires_at=now + tier.window_s)

        self._windows[key] = window
        self._windows.move_to_end(key)
        while len(self._windows) > self._max_keys:
            self._windows.popitem(last=False)

        if window.count >= tier.limit:
            return RateDecision(allowed=False, limit=tier.limit, remaining=0)

        window.count += 1
        return RateDecision(allowed=True, limit=tier.limit, remaining=tier.limit - window.count)


def client_identity(request: Request) -> str:
    """Bearer-token prefix if present, else the caller's IP."""
    auth = request.headers.get("authorization")
    if auth:
        return auth.replace("Bearer ", "", 1)[:30]
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "127.0.0.1"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        limiter: RateLimiter | None = None,
        ai_tier: RateTier = AI_TIER,
        public_tier: RateTier = PUBLIC_TIER,
        api_prefix: str = "/api/",
        ai_prefix: str = "/api/v1/generate",
    ) -> None:
        super().__init__(app)
        self.limiter = limiter or RateLimiter()
        self.ai_tier = ai_tier
        self.public_tier = public_tier
        self.api_prefix = api_prefix
        self.ai_prefix = ai_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not path.startswith(self.api_prefix):
            return await call_next(request)

        tier = self.ai_tier if path.startswith(self.ai_prefix) else self.public_tier
        decision = self.limiter.hit(client_identity(request), tier)
        if not decision.allowed:
            _LOG.info("rate limit hit on %s (%s tier)", path, tier.name)
            err = RateLimited()
            return JSONResponse(status_code=err.status_code, content=err.payload())

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
