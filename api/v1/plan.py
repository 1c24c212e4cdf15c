# api/v1/plan.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.deps import require_user
from api.v1.schemas import SlotIn, SlotOut
from api.v1.schemas.plan import ISO_DAY
from services.db import PlanSlot, Recipe, get_session

router = APIRouter()


@router.put(
    "/{day}/{meal_type}",
    response_model=SlotOut,
    summary="Put a saved recipe into one (date, meal type) slot",
)
async def assign_slot(
    body: SlotIn,
    day: str = Path(..., pattern=ISO_DAY),
    meal_type: str = Path(..., min_length=1),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> SlotOut:
    recipe = await db.get(Recipe, body.recipe_id)
    if recipe is None:
        raise HTTPException(404, "recipe not found")
    if recipe.user_id != user_id and recipe.visibility != "public":
        raise HTTPException(403, "recipe is private")

    # a slot holds at most one meal
    slot = await db.get(PlanSlot, (user_id, day, meal_type))
    if slot is None:
        slot = PlanSlot(user_id=user_id, date=day, meal_type=meal_type,
                        recipe_id=body.recipe_id)
        db.add(slot)
    else:
        slot.recipe_id = body.recipe_id

    out = SlotOut(date=day, meal_type=meal_type, recipe_id=body.recipe_id)
    await db.commit()
    return out


@router.get(
    "",
    response_model=list[SlotOut],
    summary="List the caller's plan between two dates (inclusive)",
)
async def list_slots(
    start: str = Query(..., pattern=ISO_DAY),
    end: str = Query(..., pattern=ISO_DAY),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_session),
) -> list[SlotOut]:
    if end < start:
        raise HTTPException(400, "end is before start")
    rows = (
        await db.execute(
            select(PlanSlot)
            .where(PlanSlot.user_id == user_id, PlanSlot.date >= start, PlanSlot.date <= end)
            .order_by(PlanSlot.date, PlanSlot.meal_type)
        )
    ).scalars().all()
    return [SlotOut.model_validate(r) for r in rows]
