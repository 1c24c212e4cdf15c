"""
core/response_parser.py
────────────────────────────────────────────────────────────────────────
Pull a JSON value out of whatever text the model sent back.

Strategy order
--------------
1.  strip ``` fences, trim, parse as-is
2.  first `[...]` span, parse
3.  same span after repair (trailing commas, control characters)
4.  2–3 again for the first `{...}` span
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from core.errors import UnparseableResponse

_LOG = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json|JSON)?")
_ARRAY_SPAN = re.compile(r"\[[\s\S]*\]")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")
_LEADING_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")


def _loads(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        return False, None


def repair_json(text: str) -> str:
    text = _TRAILING_COMMA.sub(r"\1", text)
    return _CONTROL.sub(" ", text)


def extract_structured(raw: str | None) -> Any:
    """Return the first JSON value that any strategy can decode."""
    text = _FENCE.sub("", raw or "").strip()
    ok, value = _loads(text)
    if ok:
        return value

    for span in (_ARRAY_SPAN, _OBJECT_SPAN):
        match = span.search(text)
        if not match:
            continue
        candidate = match.group(0)
        for attempt in (candidate, repair_json(candidate)):
            ok, value = _loads(attempt)
            if ok:
                _LOG.debug("recovered JSON via %s span", "array" if span is _ARRAY_SPAN else "object")
                return value

    raise UnparseableResponse(raw or "")


def coerce_number(value: Any) -> int | float:
    """Best-effort number: `"500g"` → 500, null/garbage → 0, never negative."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0
        number = float(match.group(1))
    else:
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number) if number.is_integer() else number
