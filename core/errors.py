"""
core/errors.py
────────────────────────────────────────────────────────────────────────
Error taxonomy shared by the generation endpoint, the API client and the
week planner.  Every error knows the HTTP status it maps to; `payload()`
is what ends up in the JSON body.
"""
from __future__ import annotations

from typing import Any


class MealRequestError(Exception):
    status_code = 500
    error_code = "internal_error"
    default_message = "Failed to generate meal"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, **self.extra}


class InvalidInput(MealRequestError):
    status_code = 400
    error_code = "invalid_input"
    default_message = "Invalid request"


class Unauthorized(MealRequestError):
    status_code = 401
    error_code = "unauthorized"
    default_message = "Unauthorized"


class Forbidden(MealRequestError):
    status_code = 403
    error_code = "forbidden"
    default_message = "Forbidden"


class QuotaExceeded(MealRequestError):
    """Daily AI quota used up.  Carries the usage snapshot."""

    status_code = 429
    error_code = "quota_exceeded"
    default_message = "Daily AI limit reached. Resets at midnight UTC."

    def __init__(self, limit: int, used: int, remaining: int = 0,
                 message: str | None = None) -> None:
        super().__init__(message, limit=limit, used=used, remaining=remaining)
        self.limit = limit
        self.used = used
        self.remaining = remaining


class RateLimited(MealRequestError):
    status_code = 429
    error_code = "rate_limited"
    default_message = "Rate limit exceeded. Please try again later."


class ModelUnavailable(MealRequestError):
    status_code = 500
    error_code = "model_unavailable"
    default_message = "Language model is not available"


class UnparseableResponse(MealRequestError):
    status_code = 500
    error_code = "unparseable_response"
    default_message = "Failed to generate meal"

    def __init__(self, raw_text: str = "", message: str | None = None) -> None:
        super().__init__(message)
        # kept for logging only, never part of payload()
        self.raw_text = raw_text
