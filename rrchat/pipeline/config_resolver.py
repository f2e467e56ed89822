"""
Generation config resolution from experiment variants.

The variant provider hands back raw configuration strings; parsing them
is pure and falls back to the hard-coded defaults field by field.  A bad
experiment payload must never fail a chat request, so provider errors
are logged and treated as "no variant".
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from rrchat.prompts.constants import ANSWER_PREFIX_VARIANT, CHAT_PROPERTIES_VARIANT
from rrchat.schemas.response import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL_ID,
    DEFAULT_TEMPERATURE,
    GenerationConfig,
)
from rrchat.services.interfaces import VariantProvider
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.pipeline.config_resolver")

_MAX_TEMPERATURE = 2.0


async def resolve_generation_config(
    provider: VariantProvider,
    targeting_id: str | None = None,
    temperature_override: float | None = None,
) -> GenerationConfig:
    """
    Resolve both variants once and build this reply's GenerationConfig.

    A caller-supplied temperature wins over the variant's.
    """
    chat_raw, prefix_raw = await asyncio.gather(
        _get_variant(provider, CHAT_PROPERTIES_VARIANT, targeting_id),
        _get_variant(provider, ANSWER_PREFIX_VARIANT, targeting_id),
    )

    fields = parse_chat_properties(chat_raw)
    if temperature_override is not None:
        fields["temperature"] = temperature_override

    config = GenerationConfig(answer_prefix=parse_answer_prefix(prefix_raw), **fields)
    logger.info("Generation config resolved: %s prefix=%r", config, config.answer_prefix)
    return config


def parse_chat_properties(raw: str | None) -> dict[str, Any]:
    """
    Parse a ``chat_properties`` payload into model id, max tokens and
    temperature.  Keys may be snake_case, camelCase or PascalCase; any
    field that is missing or invalid gets its default.
    """
    data = _load_object(raw, CHAT_PROPERTIES_VARIANT)
    return {
        "model_id": _parse_model_id(data.get("modelid")),
        "max_tokens": _parse_max_tokens(data.get("maxtokens")),
        "temperature": _parse_temperature(data.get("temperature")),
    }


def parse_answer_prefix(raw: str | None) -> str:
    """
    Parse an ``answer_prefix`` payload: a JSON string literal, an
    object with an ``answer_prefix`` (or ``prefix``) key, or plain
    non-JSON text used verbatim.
    """
    if raw is None:
        return ""
    try:
        value = json.loads(raw)
    except (ValueError, RecursionError):
        return raw

    if isinstance(value, dict):
        normalized = _normalize_keys(value)
        value = normalized.get("answerprefix", normalized.get("prefix"))
    return value if isinstance(value, str) else ""


# ── Helpers ─────────────────────────────────────────────────────────

async def _get_variant(
    provider: VariantProvider,
    name: str,
    targeting_id: str | None,
) -> str | None:
    try:
        return await provider.get_variant(name, targeting_id)
    except Exception as e:
        logger.warning("Variant %s could not be resolved (%s); using defaults", name, e)
        return None


def _load_object(raw: str | None, name: str) -> dict[str, Any]:
    if raw is None:
        return {}
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        logger.warning("Unparsable %s variant; using defaults", name)
        return {}
    if not isinstance(data, dict):
        logger.warning("%s variant is not an object; using defaults", name)
        return {}
    return _normalize_keys(data)


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """``ModelId``, ``modelId`` and ``model_id`` all become ``modelid``."""
    return {str(k).replace("_", "").lower(): v for k, v in data.items()}


def _parse_model_id(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_MODEL_ID


def _parse_max_tokens(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_MAX_TOKENS
    try:
        tokens = int(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_MAX_TOKENS
    return tokens if tokens > 0 else DEFAULT_MAX_TOKENS


def _parse_temperature(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_TEMPERATURE
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TEMPERATURE
    if 0.0 <= temperature <= _MAX_TEMPERATURE:
        return temperature
    return DEFAULT_TEMPERATURE
