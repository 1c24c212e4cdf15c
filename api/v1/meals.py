# api/v1/meals.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import require_user
from api.v1.schemas import MealIn, MealList
from core.models.meal import Meal
from services.db import Recipe, get_session

router = APIRouter()


def _to_meal(row: Recipe) -> Meal:
    return Meal.model_validate({**row.data, "id": row.id, "userId": row.user_id,
                                "visibility": row.visibility})


@router.get(
    "",
    response_model=MealList,
    summary="List the caller's saved recipes",
)
async def list_own_meals(
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> MealList:
    rows = (
        await db.execute(
            select(Recipe).where(Recipe.user_id == user_id).order_by(Recipe.created_at)
        )
    ).scalars().all()
    meals = [_to_meal(r) for r in rows]
    return MealList(meals=meals, count=len(meals))


@router.get(
    "/public",
    response_model=MealList,
    summary="Browse recipes other users shared publicly",
)
async def list_public_meals(
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
) -> MealList:
    rows = (
        await db.execute(
            select(Recipe)
            .where(Recipe.visibility == "public")
            .order_by(Recipe.updated_at.desc())
            .limit(limit)
        )
    ).scalars().all()
    meals = [_to_meal(r) for r in rows]
    return MealList(meals=meals, count=len(meals))


@router.put(
    "/{meal_id}",
    response_model=Meal,
    status_code=status.HTTP_200_OK,
    summary="Save (create or replace) a recipe owned by the caller",
)
async def save_meal(
    meal_id: str,
    body: MealIn,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> Meal:
    if body.id != meal_id:
        raise HTTPException(400, "meal id in path and body differ")

    meal = body.model_copy(update={"user_id": user_id})
    data = meal.model_dump(by_alias=True, exclude_none=True)

    row = await db.get(Recipe, meal_id)
    if row is None:
        db.add(Recipe(id=meal_id, user_id=user_id, name=meal.name,
                      visibility=meal.visibility, data=data))
    elif row.user_id != user_id:
        raise HTTPException(403, "recipe belongs to another user")
    else:
        row.name = meal.name
        row.visibility = meal.visibility
        row.data = data

    await db.commit()
    return meal


@router.delete(
    "/{meal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete one of the caller's recipes",
)
async def delete_meal(
    meal_id: str,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> Response:
    row = await db.get(Recipe, meal_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    if row.user_id != user_id:
        raise HTTPException(status_code=403, detail="recipe belongs to another user")
    await db.delete(row)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
