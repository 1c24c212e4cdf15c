"""
core/orchestrator.py
────────────────────────────────────────────────────────────────────────
Public entry point of the AI meal-request flow.

    Received → Authenticating → QuotaChecking → Validating → Composing
             → Invoking → Parsing → Shaping → Responding

Authentication happens in the HTTP layer (see `api/v1/deps.py`); this
class gets the caller's user id, or `None` for an anonymous caller, who
skips the quota.  Every failure is one of the `core.errors` classes and
ends the request; nothing is retried, a retry would cost quota.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError
from starlette.concurrency import run_in_threadpool

from core import prompts
from core.errors import InvalidInput, QuotaExceeded, UnparseableResponse
from core.models.request import GenerationRequest, WeekGroup
from core.models.user import UserPreferences
from core.quota import QuotaTracker
from core.response_parser import extract_structured
from core.sanitize import contains_injection_attempt
from core.shaping import shape_ideas, shape_macros, shape_meal, shape_week_ideas

_LOG = logging.getLogger(__name__)

Gateway = Callable[[str], str]

_WEEK_GROUPS = TypeAdapter(dict[str, WeekGroup])
_NO_TEXT_NEEDED = (prompts.BRAINSTORM, prompts.BRAINSTORM_WEEK, prompts.RECALCULATE)


class MealRequestOrchestrator:
    def __init__(self, generate: Gateway, quota: QuotaTracker | None = None) -> None:
        self._generate = generate
        self._quota = quota

    async def handle(self, body: GenerationRequest, user_id: str | None) -> dict[str, Any]:
        mode = body.resolved_mode()

        # QuotaChecking
        if user_id and self._quota is not None:
            usage = await self._quota.check_and_increment(user_id, mode)
            if not usage.allowed:
                raise QuotaExceeded(limit=usage.limit, used=usage.used, remaining=usage.remaining)

        # Validating
        context = self._validate(body, mode)
        self._flag_injection(body, user_id)

        # Composing
        prefs = body.user_preferences or UserPreferences()
        prompt = prompts.compose(
            mode,
            prompt=body.prompt,
            context=context,
            preferences=prefs,
            meal_idea=body.meal_idea,
            keywords=body.keywords,
            time_limit=body.time_limit,
            meal_type=body.meal_type,
        )

        # Invoking
        _LOG.debug("invoking model (mode=%s, prompt=%d chars)", mode, len(prompt))
        raw = await run_in_threadpool(self._generate, prompt)

        # Parsing
        try:
            parsed = extract_structured(raw)
        except UnparseableResponse:
            _LOG.error("unparseable model output (mode=%s): %r", mode, raw)
            raise

        # Shaping
        try:
            return self._shape(mode, parsed, body, prefs, user_id)
        except UnparseableResponse as exc:
            _LOG.error("model output has the wrong shape (mode=%s): %r", mode, raw)
            exc.raw_text = raw
            raise

    # ───────────────────────── steps ─────────────────────────────────
    @staticmethod
    def _validate(body: GenerationRequest, mode: str) -> Any:
        if mode not in _NO_TEXT_NEEDED and not (body.prompt or body.meal_idea):
            raise InvalidInput("Prompt or mealIdea is required", field="prompt")

        if mode == prompts.BRAINSTORM_WEEK:
            try:
                groups = _WEEK_GROUPS.validate_python(body.context)
            except ValidationError as exc:
                raise InvalidInput(
                    "context must map meal types to {count, dates}",
                    field="context",
                    details=exc.errors(include_url=False, include_context=False),
                ) from exc
            if not groups:
                raise InvalidInput("context must contain at least one meal type", field="context")
            return {key: group.model_dump() for key, group in groups.items()}

        if mode == prompts.RECALCULATE and not isinstance(body.context, dict):
            raise InvalidInput("recalculate needs the meal as context", field="context")

        if mode == prompts.REFINE and not isinstance(body.context, dict):
            raise InvalidInput("refine needs the existing meal as context", field="context")

        return body.context

    @staticmethod
    def _flag_injection(body: GenerationRequest, user_id: str | None) -> None:
        prefs = body.user_preferences
        fields = {
            "prompt": body.prompt,
            "keywords": body.keywords,
            "tasteProfile": prefs.taste_profile if prefs else None,
            "additionalNotes": prefs.additional_notes if prefs else None,
        }
        for name, value in fields.items():
            if contains_injection_attempt(value):
                _LOG.warning("possible prompt injection in %s from %s", name, user_id or "anonymous")

    @staticmethod
    def _shape(mode: str, parsed: Any, body: GenerationRequest,
               prefs: UserPreferences, user_id: str | None) -> dict[str, Any]:
        if mode == prompts.BRAINSTORM:
            return {"ideas": shape_ideas(parsed)}
        if mode == prompts.BRAINSTORM_WEEK:
            return {"ideas": shape_week_ideas(parsed)}
        if mode == prompts.RECALCULATE:
            return {"macros": shape_macros(parsed)}
        return {
            "meal": shape_meal(
                parsed,
                portions=prefs.portions,
                meal_idea=body.meal_idea,
                existing=body.context if mode == prompts.REFINE else None,
                user_id=user_id,
            )
        }
