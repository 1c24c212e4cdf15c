# tests/conftest.py
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from services.db import create_all
from db_helpers import make_sessions, sqlite_url


@pytest.fixture
def db_url(tmp_path) -> str:
    """File-backed SQLite with every table created; concurrent writers queue on its lock."""
    url = sqlite_url(tmp_path / "mealprepper.db")

    async def _init() -> None:
        eng = create_async_engine(url)
        await create_all(eng)
        await eng.dispose()

    asyncio.run(_init())
    return url


@pytest.fixture
def app():
    """The real app with fresh rate-limit windows and no leftover overrides."""
    from main import app as fastapi_app, rate_limiter

    rate_limiter.clear()
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def db_app(app, db_url):
    """`app` with every route's session bound to the temporary database."""
    from services.db import get_session

    eng, sessions = make_sessions(db_url)

    async def _session():
        async with sessions() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    return app
