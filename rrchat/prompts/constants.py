"""
Centralized constants for prompts, apology payloads, variant names and
image access.
"""

from __future__ import annotations


# ── Personas ────────────────────────────────────────────────────────
ANSWER_SYSTEM_PROMPT = (
    "You are a system assistant who helps the company employees with their questions. "
    "Be brief in your answers"
)


# ── Apology payloads (substituted when the answer cannot be produced) ──
RATE_LIMITED_ANSWER = "The squirrels are taking a breather.  Come back soon."
MALFORMED_ANSWER = "The squirrels are out to lunch.  Come back soon."
MALFORMED_THOUGHTS_PREFIX = "JSON malformed."


# ── Variant names resolved per reply ─────────────────────────────────
CHAT_PROPERTIES_VARIANT = "chat_properties"
ANSWER_PREFIX_VARIANT = "answer_prefix"


# ── Image access ────────────────────────────────────────────────────
STORAGE_TOKEN_SCOPE = "https://storage.azure.com/.default"
