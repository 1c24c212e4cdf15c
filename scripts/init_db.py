"""
Create every table the API owns.

    python -m scripts.init_db                 # uses DATABASE_URL
    python -m scripts.init_db --url sqlite+aiosqlite:///./mealprepper.db
"""
from __future__ import annotations

import argparse
import asyncio

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy.ext.asyncio import create_async_engine

from services.db import Base, create_all, engine


async def _main(url: str | None) -> None:
    eng = create_async_engine(url) if url else await engine()
    if eng is None:
        raise SystemExit("DATABASE_URL is not set (or pass --url)")
    await create_all(eng)
    await eng.dispose()
    print(f"✓ created {len(Base.metadata.tables)} tables: "
          + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", help="override DATABASE_URL")
    asyncio.run(_main(ap.parse_args().url))
