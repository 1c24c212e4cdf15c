# tests/test_shaping.py
from __future__ import annotations

import uuid

import pytest

from core.errors import UnparseableResponse
from core.models.meal import MealIdea
from core.shaping import merge_tags, shape_ideas, shape_macros, shape_meal, shape_week_ideas

RECIPE = {
    "name": "Chili",
    "description": "Hearty",
    "ingredients": [{"name": "beans", "amount": 400}, "onion", {"amount": "1"}],
    "instructions": ["chop", "simmer"],
    "macros": {"calories": "520 kcal", "protein": 30, "carbs": None, "fats": -3},
    "tags": ["Spicy", "vegan"],
}


# ── ideas ────────────────────────────────────────────────────────────
def test_ideas_always_a_list():
    assert shape_ideas({"ideas": [{"name": "A"}]})[0]["name"] == "A"
    assert shape_ideas({"name": "lonely object"}) == []
    assert shape_ideas("text") == []
    assert shape_ideas([{"description": "no name"}, 3, {"name": " B "}]) == [
        {"name": "B", "description": "", "emoji": "", "tags": []}
    ]


def test_week_ideas_normalised():
    ideas = shape_week_ideas([
        {"type": " lunch ", "name": "Curry", "calories": "610", "servingsRequired": "3",
         "keyIngredients": ["rice", "chickpeas"]},
    ])
    assert len(ideas) == 1
    idea = ideas[0]
    assert idea["type"] == "lunch"
    assert idea["calories"] == 610
    assert idea["servingsRequired"] == 3
    assert idea["keyIngredients"] == "rice, chickpeas"


def test_week_idea_without_servings():
    idea = shape_week_ideas([{"type": "dinner", "name": "Soup"}])[0]
    assert idea["servingsRequired"] is None
    assert idea["calories"] == 0


# ── macros ───────────────────────────────────────────────────────────
def test_macros_string_and_null_coerced():
    assert shape_macros({"calories": "500", "protein": None}) == {
        "calories": 500, "protein": 0, "carbs": 0, "fats": 0,
    }


def test_macros_unwrapped():
    assert shape_macros({"macros": {"calories": 1, "protein": 2, "carbs": 3, "fats": 4}}) == {
        "calories": 1, "protein": 2, "carbs": 3, "fats": 4,
    }
    assert shape_macros([{"calories": 9}])["calories"] == 9


def test_macros_wrong_shape():
    with pytest.raises(UnparseableResponse):
        shape_macros("nope")


# ── meal ─────────────────────────────────────────────────────────────
def test_new_meal_defaults():
    meal = shape_meal(RECIPE, portions=4, user_id="u1")
    uuid.UUID(meal["id"])
    assert meal["visibility"] == "public"
    assert meal["servings"] == 4
    assert meal["userId"] == "u1"
    assert meal["macros"] == {"calories": 520, "protein": 30, "carbs": 0, "fats": 0}
    assert meal["ingredients"] == [
        {"name": "beans", "amount": "400"},
        {"name": "onion", "amount": ""},
    ]


def test_fresh_id_every_time():
    assert shape_meal(RECIPE, portions=1)["id"] != shape_meal(RECIPE, portions=1)["id"]


def test_idea_tags_merged_and_emoji_fallback():
    idea = MealIdea(name="Chili", emoji="🌶️", tags=["spicy", "batch"])
    meal = shape_meal(RECIPE, portions=2, meal_idea=idea)
    assert meal["tags"] == ["Spicy", "vegan", "batch"]
    assert meal["emoji"] == "🌶️"


def test_model_servings_kept():
    meal = shape_meal({**RECIPE, "servings": "3"}, portions=5)
    assert meal["servings"] == 3


def test_refine_keeps_identity():
    existing = {"id": "keep-me", "visibility": "private", "userId": "owner"}
    meal = shape_meal({"meal": {**RECIPE, "id": "model-made-this-up"}}, portions=2,
                      existing=existing)
    assert meal["id"] == "keep-me"
    assert meal["visibility"] == "private"
    assert meal["userId"] == "owner"


def test_meal_wrong_shape():
    with pytest.raises(UnparseableResponse):
        shape_meal("just text", portions=2)


def test_merge_tags():
    assert merge_tags(["A", "b"], ["a", "C", " "], ["c"]) == ["A", "b", "C"]
