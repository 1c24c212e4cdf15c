"""
Plan a stretch of days end to end against a running API:

    python -m workers.plan_week --token $TOKEN --start 2024-01-01 --days 7 \
        --types lunch dinner --keywords "high protein"

Ideas are accepted as returned; use the web client for review.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from datetime import date, timedelta

from dotenv import load_dotenv

from core.week_planner import MEAL_TYPES, WeekPlanner
from services.api_client import MealPrepClient

load_dotenv()

_LOG = logging.getLogger(__name__)


def _days(start: str, count: int) -> list[str]:
    first = date.fromisoformat(start)
    return [(first + timedelta(days=i)).isoformat() for i in range(count)]


def _progress(processed: int, completed: int, total: int) -> None:
    print(f"· {processed}/{total} processed, {completed} created "
          f"({round(completed / total * 100)}%)")


async def _run(args: argparse.Namespace) -> int:
    async with MealPrepClient(args.base_url, args.token) as client:
        prefs = await client.preferences()
        planner = WeekPlanner(client, preferences=prefs, keywords=args.keywords)
        days = _days(args.start, args.days)
        for meal_type in args.types:
            planner.toggle_row(meal_type, days)

        ideas = await planner.request_ideas()
        if not ideas:
            print("no ideas returned")
            return 1
        for idea in ideas:
            print(f"- {idea.get('emoji', '')} {idea['name']} [{idea['type']}] "
                  f"× {idea['servingsRequired']} → {', '.join(idea['assignedSlots'])}")

        report = await planner.realize_all(on_progress=_progress)

    print(f"✓ {report.completed} created, {report.skipped} skipped of {report.total}")
    if report.stopped_on_quota:
        print("daily AI limit reached – the remaining ideas were not created")
    return 0 if report.completed else 1


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default=os.getenv("MEALPREPPER_URL", "http://127.0.0.1:8000"))
    ap.add_argument("--token", default=os.getenv("MEALPREPPER_TOKEN"), required=False)
    ap.add_argument("--start", default=date.today().isoformat())
    ap.add_argument("--days", type=int, default=7)
    ap.add_argument("--types", nargs="+", default=["lunch", "dinner"], choices=MEAL_TYPES)
    ap.add_argument("--keywords", default="")
    args = ap.parse_args()
    if not args.token:
        ap.error("--token (or MEALPREPPER_TOKEN) is required")

    logging.basicConfig(level=logging.INFO)
    raise SystemExit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
