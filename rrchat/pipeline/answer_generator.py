"""
Answer generation.

    PLANNING → GROUNDING_BUILT → COMPLETION_REQUESTED → HEALED → PARSED
             → PREFIXED → DONE

with two recovery edges into FALLBACK_ANSWER: a rate-limited completion
and output that is still not a valid ``{answer, thoughts}`` object after
healing.  Both substitute an apology payload so the caller always gets
a well-formed response; the configured prefix is applied either way.
Any other completion failure propagates as GenerationError.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from rrchat.core.errors import RateLimitedError
from rrchat.prompts.answer_generator import build_answer_messages, build_grounding_message
from rrchat.prompts.constants import (
    MALFORMED_ANSWER,
    MALFORMED_THOUGHTS_PREFIX,
    RATE_LIMITED_ANSWER,
    STORAGE_TOKEN_SCOPE,
)
from rrchat.schemas.chat import ChatTurn
from rrchat.schemas.pipeline import AnswerOutcome, OutcomeKind
from rrchat.schemas.response import GenerationConfig
from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord
from rrchat.services.interfaces import ChatCompletionService, TokenCredential
from rrchat.utils.logging import get_logger
from rrchat.utils.text import build_grounding_context, heal_json
from rrchat.utils.timing import Timer

logger = get_logger("rrchat.pipeline.answer_generator")


class AnswerState(str, Enum):
    PLANNING = "PLANNING"
    GROUNDING_BUILT = "GROUNDING_BUILT"
    COMPLETION_REQUESTED = "COMPLETION_REQUESTED"
    HEALED = "HEALED"
    PARSED = "PARSED"
    FALLBACK_ANSWER = "FALLBACK_ANSWER"
    PREFIXED = "PREFIXED"
    DONE = "DONE"


async def generate_answer(
    chat: ChatCompletionService,
    *,
    history: list[ChatTurn],
    documents: list[DocumentRecord],
    config: GenerationConfig,
    images: list[SupportingImageRecord] | None = None,
    credential: TokenCredential | None = None,
) -> AnswerOutcome:
    """Run the answer state machine to DONE and return the outcome."""
    _enter(AnswerState.PLANNING)

    # ── 1. Grounding ────────────────────────────────────────────────
    document_contents = build_grounding_context(documents)
    image_urls = await build_image_urls(images, credential) if images else None
    messages = build_answer_messages(
        history, build_grounding_message(document_contents, image_urls),
    )
    _enter(AnswerState.GROUNDING_BUILT, documents=len(documents), images=len(image_urls or []))

    # ── 2. Completion ───────────────────────────────────────────────
    _enter(AnswerState.COMPLETION_REQUESTED, model=config.model_id)
    with Timer() as timer:
        try:
            content = await chat.complete(messages, config)
        except RateLimitedError as e:
            _enter(AnswerState.FALLBACK_ANSWER, reason="rate_limited")
            kind, answer, thoughts, diagnostic = (
                OutcomeKind.RECOVERED,
                RATE_LIMITED_ANSWER,
                f"{MALFORMED_THOUGHTS_PREFIX} {e.message}",
                "rate_limited",
            )
        else:
            kind, answer, thoughts, diagnostic = _interpret_completion(content)

    # ── 3. Prefix ───────────────────────────────────────────────────
    answer = config.answer_prefix + answer
    _enter(AnswerState.PREFIXED, prefix=bool(config.answer_prefix))
    _enter(AnswerState.DONE, outcome=kind.value, latency_ms=timer.elapsed_ms)

    return AnswerOutcome(
        kind=kind,
        answer=answer,
        thoughts=thoughts,
        diagnostic=diagnostic,
        latency_ms=timer.elapsed_ms,
    )


def _interpret_completion(content: str | None) -> tuple[OutcomeKind, str, str, str | None]:
    """HEALED → PARSED, or FALLBACK_ANSWER when the healed text still does not parse."""
    healed = heal_json(content or "")
    _enter(AnswerState.HEALED, length=len(healed))

    parsed = parse_answer_payload(healed)
    if parsed is None:
        _enter(AnswerState.FALLBACK_ANSWER, reason="malformed_json")
        logger.warning("[ANSWER] Unparsable completion after healing: %s", healed[:200])
        return (
            OutcomeKind.RECOVERED,
            MALFORMED_ANSWER,
            f"{MALFORMED_THOUGHTS_PREFIX} {healed}",
            "malformed_json",
        )

    _enter(AnswerState.PARSED)
    answer, thoughts = parsed
    return OutcomeKind.COMPLETED, answer, thoughts, None


def parse_answer_payload(text: str) -> tuple[str, str] | None:
    """
    Return ``(answer, thoughts)`` when ``text`` is a JSON object with
    both fields as non-empty strings, else None.
    """
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None

    answer = payload.get("answer")
    thoughts = payload.get("thoughts")
    if not isinstance(answer, str) or not answer.strip():
        return None
    if not isinstance(thoughts, str) or not thoughts.strip():
        return None
    return answer, thoughts


async def build_image_urls(
    images: list[SupportingImageRecord],
    credential: TokenCredential | None,
) -> list[str]:
    """Suffix every image URL with a short-lived storage access token."""
    if credential is None:
        raise ValueError("Image grounding requires a token credential")
    token = await credential.get_token(STORAGE_TOKEN_SCOPE)
    return [f"{image.url}?{token}" for image in images]


def _enter(state: AnswerState, **details: Any) -> None:
    logger.debug("[ANSWER] %s %s", state.value, details or "")
