"""
core/week_planner.py
────────────────────────────────────────────────────────────────────────
Bulk week planning, driven through the HTTP API.

    SlotSelection ──request_ideas()──▶ IdeaReview ──realize_all()──▶ Realizing ──▶ Done
          ▲                                │
          └────────────── back() ──────────┘

1. The user picks (date, meal type) slots.
2. Slots are grouped by type; any group bigger than `MAX_CHUNK` is split
   into balanced chunks (`lunch`, `lunch_2`, ...) so one recipe never has
   to feed more than four servings.  All chunks go out in ONE
   brainstorm_week request.
3. Each returned idea is mapped back onto the dates of its chunk.
4. `realize_all()` turns ideas into full recipes one at a time: generate,
   save, assign to every slot.  A quota error stops the batch; any other
   failure only skips that idea.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Protocol

from core.errors import MealRequestError, QuotaExceeded
from core.nutrition_calc import base_meal_type

_LOG = logging.getLogger(__name__)

MAX_CHUNK = 4
MEAL_TYPES = ("breakfast", "lunch", "afternoon_snack", "dinner", "evening_snack")

# (processed, completed, total); progress is completed / total
ProgressCallback = Callable[[int, int, int], None]


class PlanStage(str, Enum):
    SLOT_SELECTION = "slot_selection"
    IDEA_REVIEW = "idea_review"
    REALIZING = "realizing"
    DONE = "done"


class PlannerStateError(RuntimeError):
    """Operation not allowed in the planner's current stage."""


class MealApi(Protocol):
    async def generate(self, body: dict[str, Any]) -> dict[str, Any]: ...
    async def save_meal(self, meal: dict[str, Any]) -> dict[str, Any]: ...
    async def assign_slot(self, day: str, meal_type: str, recipe_id: str) -> None: ...


@dataclass(frozen=True)
class RealizeReport:
    completed: int
    skipped: int
    total: int
    stopped_on_quota: bool = False

    @property
    def progress(self) -> float:
        return self.completed / self.total if self.total else 1.0


# ───────────────────────── grouping / chunking ──────────────────────────
def group_slots(slots: Iterable[tuple[str, str]]) -> dict[str, dict[str, Any]]:
    """(date, type) pairs → {type: {"count", "dates"}} with dates sorted."""
    groups: dict[str, list[str]] = {}
    for day, meal_type in slots:
        groups.setdefault(meal_type, []).append(day)
    return {
        meal_type: {"count": len(days), "dates": sorted(days)}
        for meal_type, days in groups.items()
    }


def chunk_sizes(total: int, max_size: int = MAX_CHUNK) -> list[int]:
    """7 → [4, 3]; 8 → [4, 4]; 9 → [3, 3, 3]."""
    if total <= 0:
        return []
    n = math.ceil(total / max_size)
    base, extra = divmod(total, n)
    return [base + 1 if i < extra else base for i in range(n)]


def chunk_groups(
    groups: Mapping[str, Mapping[str, Any]], max_size: int = MAX_CHUNK
) -> dict[str, dict[str, Any]]:
    chunks: dict[str, dict[str, Any]] = {}
    for meal_type, group in groups.items():
        dates = list(group.get("dates") or [])
        start = 0
        for i, size in enumerate(chunk_sizes(int(group.get("count") or len(dates)), max_size)):
            key = meal_type if i == 0 else f"{meal_type}_{i + 1}"
            part = dates[start:start + size]
            start += size
            chunks[key] = {"count": size, "dates": part}
    return chunks


def match_chunk(idea_type: Any, chunks: Mapping[str, Mapping[str, Any]]) -> str | None:
    """Exact key first, then case-insensitive trimmed; `None` if neither."""
    if not isinstance(idea_type, str):
        return None
    if idea_type in chunks:
        return idea_type
    wanted = idea_type.strip().lower()
    for key in chunks:
        if key.strip().lower() == wanted:
            return key
    return None


def assign_ideas(
    ideas: Iterable[Mapping[str, Any]], chunks: Mapping[str, Mapping[str, Any]]
) -> list[dict[str, Any]]:
    out = []
    for raw in ideas:
        idea = dict(raw)
        key = match_chunk(idea.get("type"), chunks)
        if key is None:
            _LOG.warning("idea %r has unknown type %r", idea.get("name"), idea.get("type"))
            idea["assignedSlots"] = []
        else:
            idea["type"] = key
            idea["assignedSlots"] = list(chunks[key]["dates"])
        if not idea.get("servingsRequired"):
            idea["servingsRequired"] = len(idea["assignedSlots"]) or 1
        out.append(idea)
    return out


# ───────────────────────── planner ──────────────────────────────────────
class WeekPlanner:
    def __init__(
        self,
        api: MealApi,
        preferences: Mapping[str, Any] | None = None,
        keywords: str = "",
    ) -> None:
        self.api = api
        self.preferences = dict(preferences or {})
        self.keywords = keywords
        self.stage = PlanStage.SLOT_SELECTION
        self.selected: set[tuple[str, str]] = set()
        self.ideas: list[dict[str, Any]] = []

    def _require(self, *stages: PlanStage) -> None:
        if self.stage not in stages:
            raise PlannerStateError(f"not allowed while in {self.stage.value}")

    # ── slot selection ──
    def toggle_slot(self, day: str, meal_type: str) -> None:
        self._require(PlanStage.SLOT_SELECTION)
        self.selected ^= {(day, meal_type)}

    def toggle_day(self, day: str, meal_types: Iterable[str] = MEAL_TYPES) -> None:
        """Select every type on `day`, or clear them all if all were selected."""
        self._toggle_all({(day, t) for t in meal_types})

    def toggle_row(self, meal_type: str, days: Iterable[str]) -> None:
        self._toggle_all({(d, meal_type) for d in days})

    def _toggle_all(self, slots: set[tuple[str, str]]) -> None:
        self._require(PlanStage.SLOT_SELECTION)
        if slots <= self.selected:
            self.selected -= slots
        else:
            self.selected |= slots

    # ── ideas ──
    def _week_request(self, context: Mapping[str, Any]) -> dict[str, Any]:
        body: dict[str, Any] = {"mode": "brainstorm_week", "context": dict(context)}
        if self.keywords:
            body["prompt"] = self.keywords
        if self.preferences:
            body["userPreferences"] = self.preferences
        return body

    async def request_ideas(self) -> list[dict[str, Any]]:
        self._require(PlanStage.SLOT_SELECTION)
        if not self.selected:
            return []

        chunks = chunk_groups(group_slots(self.selected))
        data = await self.api.generate(self._week_request(chunks))
        self.ideas = assign_ideas(data.get("ideas") or [], chunks)
        if self.ideas:
            self.stage = PlanStage.IDEA_REVIEW
        _LOG.info("%d idea(s) for %d slot(s) in %d chunk(s)",
                  len(self.ideas), len(self.selected), len(chunks))
        return self.ideas

    async def regenerate_idea(self, index: int) -> dict[str, Any]:
        """Swap one idea for a fresh one covering the same slots."""
        self._require(PlanStage.IDEA_REVIEW)
        old = self.ideas[index]
        slots = list(old.get("assignedSlots") or [])
        context = {old["type"]: {"count": len(slots) or old.get("servingsRequired") or 1,
                                 "dates": slots}}

        data = await self.api.generate(self._week_request(context))
        fresh = data.get("ideas") or []
        if not fresh:
            _LOG.warning("regeneration of %r returned nothing, keeping it", old.get("name"))
            return old

        idea = dict(fresh[0])
        # the model may drop or mangle the chunk suffix
        idea["type"] = old["type"]
        idea["assignedSlots"] = slots
        idea["servingsRequired"] = old.get("servingsRequired")
        self.ideas[index] = idea
        return idea

    def remove_idea(self, index: int) -> dict[str, Any]:
        self._require(PlanStage.IDEA_REVIEW)
        return self.ideas.pop(index)

    def back(self) -> None:
        self._require(PlanStage.IDEA_REVIEW)
        self.ideas = []
        self.stage = PlanStage.SLOT_SELECTION

    # ── realize ──
    async def _realize(self, idea: Mapping[str, Any]) -> dict[str, Any]:
        servings = idea.get("servingsRequired") or len(idea.get("assignedSlots") or []) or 1
        body = {
            "mode": "generate",
            "mealIdea": {k: v for k, v in idea.items() if k != "assignedSlots"},
            "mealType": base_meal_type(idea.get("type") or ""),
            "userPreferences": {**self.preferences, "portions": servings},
        }
        meal = (await self.api.generate(body)).get("meal")
        if not isinstance(meal, dict) or not meal.get("id"):
            raise MealRequestError(f"no meal returned for {idea.get('name')!r}")
        await self.api.save_meal(meal)
        slot_type = base_meal_type(idea.get("type") or "")
        for day in idea.get("assignedSlots") or []:
            await self.api.assign_slot(day, slot_type, meal["id"])
        return meal

    async def realize_all(self, on_progress: ProgressCallback | None = None) -> RealizeReport:
        self._require(PlanStage.IDEA_REVIEW)
        self.stage = PlanStage.REALIZING
        total = len(self.ideas)
        completed = 0
        stopped = False

        try:
            for processed, idea in enumerate(self.ideas, start=1):
                try:
                    await self._realize(idea)
                except QuotaExceeded as exc:
                    _LOG.warning("daily AI limit reached after %d of %d idea(s): %s",
                                 completed, total, exc)
                    stopped = True
                    break
                except MealRequestError as exc:
                    _LOG.error("skipping idea %r: %s", idea.get("name"), exc)
                except Exception:
                    _LOG.exception("skipping idea %r after unexpected error", idea.get("name"))
                else:
                    completed += 1
                finally:
                    if on_progress is not None:
                        on_progress(processed, completed, total)
        finally:
            self.stage = PlanStage.DONE
        return RealizeReport(
            completed=completed,
            skipped=total - completed,
            total=total,
            stopped_on_quota=stopped,
        )
