"""
core/shaping.py
────────────────────────────────────────────────────────────────────────
Turn parsed model output into the strict per-mode response contract.

Whatever the model wrote, the client only ever sees:

    brainstorm / brainstorm_week → list of idea dicts (maybe empty)
    recalculate                  → {calories, protein, carbs, fats}, all numbers
    refine / generate            → one Meal document
"""
from __future__ import annotations

import uuid
from typing import Any, Mapping

from core.errors import UnparseableResponse
from core.models.meal import Ingredient, Macros, Meal, MealIdea
from core.response_parser import coerce_number

MACRO_KEYS = ("calories", "protein", "carbs", "fats")


def _as_list_of_str(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return []


def merge_tags(*groups: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for group in groups:
        for tag in group:
            tag = tag.strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                out.append(tag)
    return out


# ───────────────────────────── ideas ──────────────────────────────────
def shape_ideas(parsed: Any) -> list[dict[str, Any]]:
    if isinstance(parsed, Mapping):
        parsed = parsed.get("ideas")
    if not isinstance(parsed, list):
        return []

    ideas = []
    for item in parsed:
        if not isinstance(item, Mapping) or not str(item.get("name") or "").strip():
            continue
        idea = dict(item)
        idea["name"] = str(item["name"]).strip()
        idea["description"] = str(item.get("description") or "")
        idea["emoji"] = str(item.get("emoji") or "")
        idea["tags"] = _as_list_of_str(item.get("tags"))
        ideas.append(idea)
    return ideas


def shape_week_ideas(parsed: Any) -> list[dict[str, Any]]:
    ideas = shape_ideas(parsed)
    for idea in ideas:
        idea["type"] = str(idea.get("type") or "").strip()
        idea["calories"] = coerce_number(idea.get("calories"))
        servings = coerce_number(idea.get("servingsRequired"))
        idea["servingsRequired"] = int(servings) if servings >= 1 else None
        if isinstance(idea.get("keyIngredients"), list):
            idea["keyIngredients"] = ", ".join(_as_list_of_str(idea["keyIngredients"]))
    return ideas


# ───────────────────────────── macros ─────────────────────────────────
def shape_macros(parsed: Any) -> dict[str, int | float]:
    if isinstance(parsed, list) and parsed and isinstance(parsed[0], Mapping):
        parsed = parsed[0]
    if not isinstance(parsed, Mapping):
        raise UnparseableResponse(repr(parsed), "Model did not return a macros object")
    if isinstance(parsed.get("macros"), Mapping):
        parsed = parsed["macros"]
    return {key: coerce_number(parsed.get(key)) for key in MACRO_KEYS}


# ───────────────────────────── meal ───────────────────────────────────
def _ingredients(value: Any) -> list[Ingredient]:
    out = []
    for item in value if isinstance(value, list) else []:
        if isinstance(item, Mapping) and str(item.get("name") or "").strip():
            amount = item.get("amount")
            out.append(Ingredient(name=str(item["name"]).strip(),
                                  amount="" if amount is None else str(amount)))
        elif isinstance(item, str) and item.strip():
            out.append(Ingredient(name=item.strip()))
    return out


def shape_meal(
    parsed: Any,
    *,
    portions: int,
    meal_idea: MealIdea | None = None,
    existing: Any = None,
    user_id: str | None = None,
) -> dict[str, Any]:
    if isinstance(parsed, list) and parsed and isinstance(parsed[0], Mapping):
        parsed = parsed[0]
    if not isinstance(parsed, Mapping):
        raise UnparseableResponse(repr(parsed), "Model did not return a meal object")
    if isinstance(parsed.get("meal"), Mapping):
        parsed = parsed["meal"]

    existing = existing if isinstance(existing, Mapping) else {}
    meal_id = existing.get("id") if isinstance(existing.get("id"), str) else None
    visibility = existing.get("visibility")
    owner = existing.get("userId") if isinstance(existing.get("userId"), str) else None

    servings = coerce_number(parsed.get("servings"))
    macros = parsed.get("macros") if isinstance(parsed.get("macros"), Mapping) else parsed

    meal = Meal(
        id=meal_id or str(uuid.uuid4()),
        name=str(parsed.get("name") or (meal_idea.name if meal_idea else "") or "Untitled meal"),
        description=str(parsed.get("description") or (meal_idea.description if meal_idea else "")),
        emoji=str(parsed.get("emoji") or (meal_idea.emoji if meal_idea else "") or "") or None,
        ingredients=_ingredients(parsed.get("ingredients")),
        instructions=_as_list_of_str(parsed.get("instructions")),
        macros=Macros(**{key: coerce_number(macros.get(key)) for key in MACRO_KEYS}),
        servings=int(servings) if servings >= 1 else portions,
        tags=merge_tags(
            _as_list_of_str(parsed.get("tags")),
            meal_idea.tags if meal_idea else [],
        ),
        visibility=visibility if visibility in ("public", "private") else "public",
        user_id=user_id or owner,
    )
    return meal.model_dump(by_alias=True, exclude_none=True)
