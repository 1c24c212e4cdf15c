"""
core/sanitize.py
────────────────────────────────────────────────────────────────────────
Scrub free-text user fields before they are pasted into a prompt.

This is a deny-list and therefore best effort; the orchestrator re-shapes
every model answer into a strict schema regardless of what got through.
"""
from __future__ import annotations

import re

MAX_PREFERENCE_LENGTH = 500

_I = re.IGNORECASE

# order matters: overrides first, then roles, delimiters, commands, format
INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    # instruction overrides
    re.compile(r"ignore\s*(all\s*)?(previous|above|prior|preceding)", _I),
    re.compile(r"disregard\s*(all\s*)?(previous|above|prior|preceding)", _I),
    re.compile(r"forget\s*(all\s*)?(previous|above|prior|preceding)", _I),
    re.compile(r"override\s*(all\s*)?(previous|above|prior|preceding)", _I),
    re.compile(r"skip\s*(all\s*)?(previous|above|prior|preceding)", _I),
    # role spoofing
    re.compile(r"system\s*:", _I),
    re.compile(r"assistant\s*:", _I),
    re.compile(r"user\s*:", _I),
    re.compile(r"\[system\]", _I),
    re.compile(r"\[assistant\]", _I),
    re.compile(r"\[user\]", _I),
    re.compile(r"\[inst\]", _I),
    re.compile(r"\[/inst\]", _I),
    # template delimiters
    re.compile(r"<<.*?>>"),
    re.compile(r"\{\{.*?\}\}"),
    re.compile(r"<\|.*?\|>"),
    # direct commands
    re.compile(r"you\s+must\s+(now\s+)?", _I),
    re.compile(r"you\s+are\s+now\s+", _I),
    re.compile(r"new\s+instructions?\s*:", _I),
    re.compile(r"updated?\s+instructions?\s*:", _I),
    re.compile(r"instead\s*,?\s*(you\s+should|do\s+this)", _I),
    # output-format hijacking
    re.compile(r"return\s+(only\s+)?a?\s*valid\s*json", _I),
    re.compile(r"output\s+format\s*:", _I),
)

_WS = re.compile(r"\s+")


def _scrub_once(text: str) -> str:
    for pattern in INJECTION_PATTERNS:
        text = pattern.sub("", text)
    return _WS.sub(" ", text).strip()


def sanitize(text: str | None) -> str:
    """Truncate, strip injection phrases and normalise whitespace.

    Removing one phrase can splice two fragments into a new one
    ("ignignore previousore previous"), so the pass is repeated until
    nothing changes.
    """
    if not text:
        return ""
    cleaned = _scrub_once(text[:MAX_PREFERENCE_LENGTH])
    while True:
        again = _scrub_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def contains_injection_attempt(text: str | None) -> bool:
    """True if any pattern matches. For logging only, never for blocking."""
    if not text:
        return False
    return any(p.search(text) for p in INJECTION_PATTERNS)


def sanitize_list(items: list[str] | None) -> list[str]:
    out = [sanitize(i) for i in items or []]
    return [i for i in out if i]
