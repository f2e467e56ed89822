"""
Text utilities for model output and prompt assembly:
  - JSON healing for truncated completions
  - Grounding context rendering
  - Follow-up question suffixes

All functions are pure (no I/O, no LLM).
"""

from __future__ import annotations

import json
import re
from typing import Iterable

NO_SOURCE_SENTINEL = "no source available."

_CLOSED_OBJECT_OR_ARRAY = re.compile(r'"\s*[}\]]$')


def heal_json(text: str) -> str:
    """
    Repair the common truncation pattern of model-emitted JSON.

    The payload is always a flat single-line object (or a list of
    strings), so line breaks are collapsed to spaces first.  If the
    text neither parses nor is closed by ``"}`` / ``"]``, the missing closing
    quote is added, then the brace or bracket matching the opening
    character.  This is a heuristic: truncation inside a nested value
    is not repaired.
    """
    result = (text or "").strip()
    result = result.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")

    if _CLOSED_OBJECT_OR_ARRAY.search(result) or _parses(result):
        return result

    if not result.endswith('"'):
        result += '"'

    if result.startswith("{") and not result.endswith("}"):
        result += "}"
    elif result.startswith("[") and not result.endswith("]"):
        result += "]"

    return result


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def build_grounding_context(documents: Iterable) -> str:
    """Render retrieved documents as ``title:content`` lines, or the sentinel."""
    lines = [f"{doc.title}:{doc.content}" for doc in documents]
    if not lines:
        return NO_SOURCE_SENTINEL
    return "\r".join(lines)


def format_followup(question: str) -> str:
    """Wrap a follow-up question in the delimiter the client renders as a chip."""
    return f" <<{question}>> "
