# tests/test_quota.py
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from sqlalchemy import select

from core.quota import QuotaTracker, today_key
from services.db import AiUsage, AiUsageByMode
from db_helpers import make_sessions, sqlite_url


def test_today_key_is_utc():
    local_time = datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc).astimezone()
    assert today_key(local_time) == "2024-01-01"


def test_concurrent_requests_never_overrun_the_limit(db_url):
    async def _go():
        eng, sessions = make_sessions(db_url)
        tracker = QuotaTracker(sessions, limit=20)
        results = await asyncio.gather(
            *(tracker.check_and_increment("u1", "generate") for _ in range(25))
        )
        async with sessions() as s:
            stored = (await s.execute(select(AiUsage.call_count))).scalar_one()
        await eng.dispose()
        return results, stored

    results, stored = asyncio.run(_go())
    assert sum(r.allowed for r in results) == 20
    assert sum(not r.allowed for r in results) == 5
    assert stored == 20
    assert sorted(r.used for r in results if r.allowed) == list(range(1, 21))
    assert all(r.remaining == 0 and r.used == 20 for r in results if not r.allowed)


def test_denied_call_does_not_mutate(db_url):
    async def _go():
        eng, sessions = make_sessions(db_url)
        tracker = QuotaTracker(sessions, limit=2)
        out = [await tracker.check_and_increment("u2", "brainstorm") for _ in range(4)]
        async with sessions() as s:
            modes = (await s.execute(
                select(AiUsageByMode.call_count).where(AiUsageByMode.user_id == "u2")
            )).scalar_one()
        snapshot = await tracker.status("u2")
        await eng.dispose()
        return out, modes, snapshot

    out, modes, snapshot = asyncio.run(_go())
    assert [r.allowed for r in out] == [True, True, False, False]
    assert out[1].remaining == 0
    assert modes == 2
    assert snapshot.as_dict() == {"limit": 2, "used": 2, "remaining": 0}


def test_usage_split_by_mode(db_url):
    async def _go():
        eng, sessions = make_sessions(db_url)
        tracker = QuotaTracker(sessions)
        for mode in ("generate", "generate", "brainstorm_week"):
            await tracker.check_and_increment("u3", mode)
        async with sessions() as s:
            rows = (await s.execute(
                select(AiUsageByMode.mode, AiUsageByMode.call_count)
                .where(AiUsageByMode.user_id == "u3")
            )).all()
        await eng.dispose()
        return dict(rows)

    assert asyncio.run(_go()) == {"generate": 2, "brainstorm_week": 1}


def test_users_are_counted_separately(db_url):
    async def _go():
        eng, sessions = make_sessions(db_url)
        tracker = QuotaTracker(sessions, limit=1)
        a = await tracker.check_and_increment("alice", "generate")
        b = await tracker.check_and_increment("bob", "generate")
        await eng.dispose()
        return a, b

    a, b = asyncio.run(_go())
    assert a.allowed and b.allowed


# ── fail open ────────────────────────────────────────────────────────
def test_no_store_fails_open():
    status = asyncio.run(QuotaTracker(None, limit=20).check_and_increment("u", "generate"))
    assert status.allowed
    assert (status.used, status.remaining, status.limit) == (0, 20, 20)


def test_broken_store_fails_open(tmp_path):
    async def _go():
        # no tables → every statement errors
        eng, sessions = make_sessions(sqlite_url(tmp_path / "empty.db"))
        tracker = QuotaTracker(sessions, limit=20)
        results = (await tracker.check_and_increment("u", "generate"), await tracker.status("u"))
        await eng.dispose()
        return results

    checked, snapshot = asyncio.run(_go())
    assert checked.allowed and checked.remaining == 20
    assert snapshot.allowed and snapshot.used == 0
