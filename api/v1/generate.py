# api/v1/generate.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from api.v1.deps import get_orchestrator, get_quota_tracker, optional_user_id, require_user
from api.v1.schemas import GenerationRequest, UsageOut
from core.orchestrator import MealRequestOrchestrator
from core.quota import QuotaTracker

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Run one AI meal request (brainstorm, week ideas, refine, recalculate, generate)",
)
async def generate(
    body: GenerationRequest,
    user_id: str | None = Depends(optional_user_id),
    orchestrator: MealRequestOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """
    Response shape depends on the resolved mode:

    * brainstorm / brainstorm_week → `{"ideas": [...]}`
    * recalculate → `{"macros": {...}}`
    * refine / generate → `{"meal": {...}}`
    """
    return await orchestrator.handle(body, user_id)


@router.get("/usage", response_model=UsageOut, summary="Today's AI usage for the caller")
async def usage(
    user_id: str = Depends(require_user),
    quota: QuotaTracker = Depends(get_quota_tracker),
) -> UsageOut:
    snapshot = await quota.status(user_id)
    return UsageOut(**snapshot.as_dict())
