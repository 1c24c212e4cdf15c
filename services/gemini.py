# services/gemini.py
"""
Thin seam over the Gemini API: prompt in, raw text out.

No parsing, no retries – upstream errors propagate untouched so the
caller decides what a failure means.
"""
import logging

from google import genai
from google.genai import types

from config import settings
from core.errors import ModelUnavailable

_LOG = logging.getLogger(__name__)

# ───────────── Client (lazy) ─────────────
_client: genai.Client | None = None


def get_client() -> genai.Client:
    global _client
    if not settings.gemini_api_key:
        raise ModelUnavailable("Gemini API key is not set")
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


# ───────────── Generation (sync) ─────────────
def generate(
    prompt: str,
    temperature: float = 0.7,
    max_output_tokens: int = 8192,
) -> str:
    """Run a single-shot completion and return the LLM’s text response."""
    client = get_client()
    try:
        resp = client.models.generate_content(
            model=settings.gemini_model,
            contents=[prompt],
            config=types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            ),
        )
    except Exception:
        _LOG.exception("Gemini generation failed (model=%s)", settings.gemini_model)
        raise
    return resp.text or ""
