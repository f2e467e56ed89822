"""
Follow-up question generation.

Unlike the main answer there is no apology fallback here: follow-ups
either parse into a list of question strings or the reply fails with
FollowupGenerationError.
"""

from __future__ import annotations

import json

from rrchat.core.errors import FollowupGenerationError, RateLimitedError
from rrchat.prompts.followups import build_followup_messages
from rrchat.schemas.response import GenerationConfig
from rrchat.services.interfaces import ChatCompletionService
from rrchat.utils.logging import get_logger
from rrchat.utils.text import format_followup, heal_json

logger = get_logger("rrchat.pipeline.followups")


async def generate_followups(
    chat: ChatCompletionService,
    answer: str,
    config: GenerationConfig,
) -> list[str]:
    """Ask the model for three follow-up questions about ``answer``."""
    try:
        content = await chat.complete(build_followup_messages(answer), config)
    except RateLimitedError as e:
        raise FollowupGenerationError(f"Follow-up generation rate limited: {e.message}") from e

    if content is None or not content.strip():
        raise FollowupGenerationError("Failed to get follow-up questions")

    healed = heal_json(content)
    try:
        questions = json.loads(healed)
    except (ValueError, RecursionError) as e:
        raise FollowupGenerationError(f"Follow-up questions are not valid JSON: {healed}") from e

    if not isinstance(questions, list) or not all(isinstance(q, str) for q in questions):
        raise FollowupGenerationError(f"Follow-up questions are not a list of strings: {healed}")

    logger.info("[FOLLOWUPS] %d question(s) generated", len(questions))
    return questions


def append_followups(answer: str, questions: list[str]) -> str:
    """Append each question to the answer in ``<<question>>`` form, in order."""
    return answer + "".join(format_followup(q) for q in questions)
