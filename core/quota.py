"""
core/quota.py
────────────────────────────────────────────────────────────────────────
Per-user daily AI quota.

The counter lives in `ai_usage` (one row per user per UTC day).  The
check and the increment are ONE upsert statement:

    INSERT .. VALUES (uid, day, 1)
    ON CONFLICT (user_id, day) DO UPDATE SET call_count = call_count + 1
        WHERE ai_usage.call_count < :limit
    RETURNING call_count

so two concurrent requests can never both see "19" and both pass.  No
row returned means the limit was already reached.

The quota is an abuse deterrent, not a meter: when the database is
missing or failing the tracker lets the call through and logs a warning.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.db import AiUsage, AiUsageByMode

_LOG = logging.getLogger(__name__)

AI_DAILY_LIMIT = 20

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class UnsupportedQuotaStore(Exception):
    """The database has no atomic upsert we know how to emit."""


@dataclass(frozen=True)
class QuotaStatus:
    allowed: bool
    used: int
    remaining: int
    limit: int

    def as_dict(self) -> dict[str, int]:
        return {"limit": self.limit, "used": self.used, "remaining": self.remaining}


def today_key(now: datetime | None = None) -> str:
    """UTC calendar day, `YYYY-MM-DD`."""
    return (now or datetime.now(timezone.utc)).astimezone(timezone.utc).date().isoformat()


class QuotaTracker:
    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession] | None,
        limit: int = AI_DAILY_LIMIT,
    ) -> None:
        self._sessions = sessions
        self.limit = limit

    def _open(self) -> QuotaStatus:
        return QuotaStatus(allowed=True, used=0, remaining=self.limit, limit=self.limit)

    async def check_and_increment(self, user_id: str, mode: str) -> QuotaStatus:
        if self._sessions is None:
            _LOG.warning("quota store not configured – skipping daily limit check")
            return self._open()
        try:
            async with self._sessions() as session:
                status = await self._increment(session, user_id, mode)
                await session.commit()
                return status
        except (SQLAlchemyError, OSError, UnsupportedQuotaStore) as exc:
            _LOG.warning("quota check failed for %s, allowing request: %s", user_id, exc)
            return self._open()

    async def _increment(self, session: AsyncSession, user_id: str, mode: str) -> QuotaStatus:
        day = today_key()
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        dialect = session.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise UnsupportedQuotaStore(dialect)

        stmt = (
            insert(AiUsage)
            .values(user_id=user_id, day=day, call_count=1, last_call=now)
            .on_conflict_do_update(
                index_elements=["user_id", "day"],
                set_={"call_count": AiUsage.call_count + 1, "last_call": now},
                where=AiUsage.call_count < self.limit,
            )
            .returning(AiUsage.call_count)
        )
        used = (await session.execute(stmt)).scalar_one_or_none()

        if used is None:
            current = (
                await session.execute(
                    select(AiUsage.call_count).where(
                        AiUsage.user_id == user_id, AiUsage.day == day
                    )
                )
            ).scalar_one_or_none() or self.limit
            _LOG.info("daily AI limit reached for %s (%d/%d)", user_id, current, self.limit)
            return QuotaStatus(allowed=False, used=current, remaining=0, limit=self.limit)

        by_mode = (
            insert(AiUsageByMode)
            .values(user_id=user_id, day=day, mode=mode, call_count=1)
            .on_conflict_do_update(
                index_elements=["user_id", "day", "mode"],
                set_={"call_count": AiUsageByMode.call_count + 1},
            )
        )
        await session.execute(by_mode)
        return QuotaStatus(
            allowed=True, used=used, remaining=max(0, self.limit - used), limit=self.limit
        )

    async def status(self, user_id: str) -> QuotaStatus:
        """Read-only snapshot for display; same fail-open policy."""
        if self._sessions is None:
            return self._open()
        try:
            async with self._sessions() as session:
                used = (
                    await session.execute(
                        select(AiUsage.call_count).where(
                            AiUsage.user_id == user_id, AiUsage.day == today_key()
                        )
                    )
                ).scalar_one_or_none() or 0
        except (SQLAlchemyError, OSError) as exc:
            _LOG.warning("quota status lookup failed for %s: %s", user_id, exc)
            return self._open()
        return QuotaStatus(
            allowed=used < self.limit,
            used=used,
            remaining=max(0, self.limit - used),
            limit=self.limit,
        )
