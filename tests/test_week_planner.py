# tests/test_week_planner.py
from __future__ import annotations

import asyncio
from typing import Any

import pytest

from core.errors import MealRequestError, QuotaExceeded, UnparseableResponse
from core.week_planner import (
    PlannerStateError,
    PlanStage,
    WeekPlanner,
    assign_ideas,
    chunk_groups,
    chunk_sizes,
    group_slots,
)

DAYS = [f"2024-01-0{i}" for i in range(1, 8)]


class FakeApi:
    """Scripted replies for /generate; records everything it is asked."""

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.requests: list[dict] = []
        self.saved: list[dict] = []
        self.slots: list[tuple[str, str, str]] = []

    async def generate(self, body: dict) -> dict:
        self.requests.append(body)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def save_meal(self, meal: dict) -> dict:
        self.saved.append(meal)
        return meal

    async def assign_slot(self, day: str, meal_type: str, recipe_id: str) -> None:
        self.slots.append((day, meal_type, recipe_id))


def _meal(i: int) -> dict:
    return {"meal": {"id": f"m{i}", "name": f"Meal {i}"}}


def _planner_with_ideas(api: FakeApi, n: int) -> WeekPlanner:
    planner = WeekPlanner(api)
    planner.stage = PlanStage.IDEA_REVIEW
    planner.ideas = [
        {"type": "dinner", "name": f"Idea {i}", "servingsRequired": 2,
         "assignedSlots": [DAYS[i % 7], DAYS[(i + 1) % 7]]}
        for i in range(1, n + 1)
    ]
    return planner


# ── chunking ─────────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "total, sizes",
    [(7, [4, 3]), (8, [4, 4]), (4, [4]), (1, [1]), (9, [3, 3, 3]), (0, [])],
)
def test_chunk_sizes(total, sizes):
    assert chunk_sizes(total) == sizes


def test_chunk_groups_keys_and_dates():
    chunks = chunk_groups(group_slots((d, "lunch") for d in DAYS))
    assert list(chunks) == ["lunch", "lunch_2"]
    assert chunks["lunch"] == {"count": 4, "dates": DAYS[:4]}
    assert chunks["lunch_2"] == {"count": 3, "dates": DAYS[4:]}


def test_small_group_not_split():
    chunks = chunk_groups({"dinner": {"count": 4, "dates": DAYS[:4]}})
    assert list(chunks) == ["dinner"]


def test_assign_ideas_matching():
    chunks = {"lunch": {"count": 2, "dates": ["a", "b"]},
              "lunch_2": {"count": 1, "dates": ["c"]}}
    ideas = assign_ideas(
        [{"type": "lunch", "name": "A"},
         {"type": " LUNCH_2 ", "name": "B", "servingsRequired": 5},
         {"type": "brunch", "name": "C"}],
        chunks,
    )
    assert ideas[0]["assignedSlots"] == ["a", "b"]
    assert ideas[0]["servingsRequired"] == 2
    assert ideas[1]["type"] == "lunch_2"
    assert ideas[1]["assignedSlots"] == ["c"]
    assert ideas[1]["servingsRequired"] == 5
    assert ideas[2]["assignedSlots"] == []


# ── selection / ideas ────────────────────────────────────────────────
def test_request_ideas_sends_one_call_for_all_chunks():
    api = FakeApi({"ideas": [
        {"type": "lunch", "name": "Dal", "servingsRequired": 4},
        {"type": "lunch_2", "name": "Chili", "servingsRequired": 3},
        {"type": "dinner", "name": "Soup", "servingsRequired": 1},
    ]})
    planner = WeekPlanner(api, keywords="cheap")
    planner.toggle_row("lunch", DAYS)
    planner.toggle_slot(DAYS[0], "dinner")

    ideas = asyncio.run(planner.request_ideas())
    assert len(api.requests) == 1
    body = api.requests[0]
    assert body["mode"] == "brainstorm_week"
    assert body["prompt"] == "cheap"
    assert set(body["context"]) == {"lunch", "lunch_2", "dinner"}
    assert [i["assignedSlots"] for i in ideas] == [DAYS[:4], DAYS[4:], [DAYS[0]]]
    assert planner.stage is PlanStage.IDEA_REVIEW


def test_toggle_day_and_back():
    planner = WeekPlanner(FakeApi())
    planner.toggle_day(DAYS[0])
    assert len(planner.selected) == 5
    planner.toggle_day(DAYS[0])
    assert planner.selected == set()

    planner.stage = PlanStage.IDEA_REVIEW
    planner.ideas = [{"name": "x"}]
    planner.back()
    assert planner.stage is PlanStage.SLOT_SELECTION
    assert planner.ideas == []


def test_selection_locked_during_review():
    planner = WeekPlanner(FakeApi())
    planner.stage = PlanStage.IDEA_REVIEW
    with pytest.raises(PlannerStateError):
        planner.toggle_slot(DAYS[0], "lunch")


def test_regenerate_overwrites_type_slots_and_servings():
    api = FakeApi({"ideas": [{"type": "lunch", "name": "Fresh", "servingsRequired": 9}]})
    planner = _planner_with_ideas(api, 2)
    planner.ideas[1]["type"] = "dinner_2"

    idea = asyncio.run(planner.regenerate_idea(1))
    assert api.requests[0]["context"] == {"dinner_2": {"count": 2, "dates": [DAYS[2], DAYS[3]]}}
    assert idea["name"] == "Fresh"
    assert idea["type"] == "dinner_2"
    assert idea["servingsRequired"] == 2
    assert idea["assignedSlots"] == [DAYS[2], DAYS[3]]
    assert planner.ideas[1] is idea
    assert planner.ideas[0]["name"] == "Idea 1"


def test_remove_idea():
    planner = _planner_with_ideas(FakeApi(), 3)
    planner.remove_idea(0)
    assert [i["name"] for i in planner.ideas] == ["Idea 2", "Idea 3"]


# ── realize ──────────────────────────────────────────────────────────
def test_realize_all_saves_and_assigns():
    api = FakeApi(_meal(1), _meal(2))
    planner = _planner_with_ideas(api, 2)
    planner.ideas[1]["type"] = "dinner_2"
    progress = []

    report = asyncio.run(planner.realize_all(on_progress=lambda *args: progress.append(args)))
    assert (report.completed, report.skipped, report.total) == (2, 0, 2)
    assert report.progress == 1.0
    assert progress == [(1, 1, 2), (2, 2, 2)]
    assert [m["id"] for m in api.saved] == ["m1", "m2"]
    # suffixed chunk keys land on the base slot type
    assert ("2024-01-03", "dinner", "m2") in api.slots
    assert len(api.slots) == 4
    assert api.requests[0]["userPreferences"]["portions"] == 2
    assert "assignedSlots" not in api.requests[0]["mealIdea"]
    assert planner.stage is PlanStage.DONE


def test_quota_stops_the_batch():
    quota = QuotaExceeded(limit=20, used=20)
    api = FakeApi(_meal(1), _meal(2), quota, _meal(4), _meal(5))
    planner = _planner_with_ideas(api, 5)

    report = asyncio.run(planner.realize_all())
    assert report.completed == 2
    assert report.skipped == 3
    assert report.stopped_on_quota
    assert len(api.requests) == 3          # ideas 4 and 5 never attempted


def test_other_failures_only_skip_one_idea():
    api = FakeApi(_meal(1), UnparseableResponse("garbage"), MealRequestError("HTTP 502"), _meal(4))
    planner = _planner_with_ideas(api, 4)

    report = asyncio.run(planner.realize_all())
    assert (report.completed, report.skipped) == (2, 2)
    assert not report.stopped_on_quota
    assert len(api.requests) == 4


def test_unexpected_reply_skips_idea_and_finishes():
    api = FakeApi({"meal": None}, _meal(2), ValueError("not json"))
    planner = _planner_with_ideas(api, 3)
    progress = []

    report = asyncio.run(planner.realize_all(on_progress=lambda *args: progress.append(args)))
    assert (report.completed, report.skipped, report.total) == (1, 2, 3)
    assert report.progress == pytest.approx(1 / 3)
    assert progress == [(1, 0, 3), (2, 1, 3), (3, 1, 3)]
    assert [m["id"] for m in api.saved] == ["m2"]
    assert planner.stage is PlanStage.DONE
