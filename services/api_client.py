# services/api_client.py
"""
Async HTTP client for the MealPrepper API, used by the week planner and
the `workers.plan_week` CLI.

Error bodies (`{"error": code, "message": ...}`) are turned back into the
`core.errors` classes so callers can branch on type rather than status.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from core.errors import (
    InvalidInput,
    MealRequestError,
    QuotaExceeded,
    RateLimited,
    Unauthorized,
)

_LOG = logging.getLogger(__name__)


def _raise_for_error(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or body.get("detail") or resp.reason_phrase

    if resp.status_code == 429:
        if body.get("error") == "quota_exceeded":
            raise QuotaExceeded(
                limit=int(body.get("limit") or 0),
                used=int(body.get("used") or 0),
                remaining=int(body.get("remaining") or 0),
                message=message,
            )
        raise RateLimited(message)
    if resp.status_code == 400:
        raise InvalidInput(message, details=body.get("details", []))
    if resp.status_code == 401:
        raise Unauthorized(message)
    raise MealRequestError(f"HTTP {resp.status_code}: {message}")


class MealPrepClient:
    """Thin wrapper; pass `transport=` in tests to avoid the network."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 90.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MealPrepClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            _LOG.warning("%s %s failed: %s", method, url, exc)
            raise MealRequestError(f"Request to {url} failed: {exc}") from exc

    # ───────────── endpoints ─────────────
    async def generate(self, body: dict[str, Any]) -> dict[str, Any]:
        resp = await self._request("POST", "/api/v1/generate", json=body)
        _raise_for_error(resp)
        return resp.json()

    async def save_meal(self, meal: dict[str, Any]) -> dict[str, Any]:
        resp = await self._request("PUT", f"/api/v1/meals/{meal['id']}", json=meal)
        _raise_for_error(resp)
        return resp.json()

    async def assign_slot(self, day: str, meal_type: str, recipe_id: str) -> None:
        resp = await self._request("PUT", f"/api/v1/plan/{day}/{meal_type}",
                                   json={"recipeId": recipe_id})
        _raise_for_error(resp)

    async def preferences(self) -> dict[str, Any] | None:
        resp = await self._request("GET", "/api/v1/users/me/preferences")
        if resp.status_code == 404:
            return None
        _raise_for_error(resp)
        return resp.json().get("preferences")
