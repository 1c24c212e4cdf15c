# tests/test_api_client.py
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from core.errors import InvalidInput, MealRequestError, QuotaExceeded, RateLimited, Unauthorized
from services.api_client import MealPrepClient


def _client(status: int, body: dict) -> MealPrepClient:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(status, json=body)

    return MealPrepClient("http://api.test/", "tok", transport=httpx.MockTransport(handler))


def _generate(client: MealPrepClient) -> dict:
    async def _go():
        async with client:
            return await client.generate({"prompt": "x"})

    return asyncio.run(_go())


def test_success_returns_json():
    assert _generate(_client(200, {"meal": {"id": "m"}})) == {"meal": {"id": "m"}}


def test_quota_429():
    with pytest.raises(QuotaExceeded) as info:
        _generate(_client(429, {"error": "quota_exceeded", "message": "done for today",
                                "limit": 20, "used": 20, "remaining": 0}))
    assert (info.value.limit, info.value.used) == (20, 20)


@pytest.mark.parametrize(
    "status, body, exc",
    [
        (429, {"error": "rate_limited", "message": "slow down"}, RateLimited),
        (400, {"error": "invalid_input", "message": "bad", "details": []}, InvalidInput),
        (401, {"error": "unauthorized"}, Unauthorized),
        (500, {"error": "internal_error"}, MealRequestError),
        (503, {"detail": "Database not configured"}, MealRequestError),
    ],
)
def test_error_mapping(status, body, exc):
    with pytest.raises(exc):
        _generate(_client(status, body))


def test_rate_limit_is_not_a_quota_error():
    with pytest.raises(RateLimited) as info:
        _generate(_client(429, {"error": "rate_limited"}))
    assert not isinstance(info.value, QuotaExceeded)


def test_transport_error_becomes_request_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = MealPrepClient("http://api.test", "tok", transport=httpx.MockTransport(handler))
    with pytest.raises(MealRequestError):
        _generate(client)


def test_assign_slot_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={})

    async def _go():
        async with MealPrepClient("http://api.test", "tok",
                                  transport=httpx.MockTransport(handler)) as client:
            await client.assign_slot("2024-01-01", "lunch", "m1")

    asyncio.run(_go())
    assert seen == {"path": "/api/v1/plan/2024-01-01/lunch", "body": {"recipeId": "m1"}}
