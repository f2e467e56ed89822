"""
Query planning: turn the latest user question into a search query.

Skipped in vector mode, where the question embedding alone drives
retrieval.
"""

from __future__ import annotations

from rrchat.core.errors import QueryGenerationError
from rrchat.prompts.query_planner import build_query_planner_messages
from rrchat.schemas.chat import RetrievalMode
from rrchat.services.interfaces import ChatCompletionService
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.pipeline.query_planner")


async def plan_query(
    chat: ChatCompletionService,
    question: str,
    retrieval_mode: RetrievalMode,
) -> str | None:
    """
    Return the search query for ``question``, or None in vector mode.

    Raises QueryGenerationError when the model returns no content:
    without a query (and outside vector mode) there is nothing to
    ground the answer on.
    """
    if retrieval_mode == RetrievalMode.VECTOR:
        logger.info("[QUERY] Vector mode; skipping query planning")
        return None

    content = await chat.complete(build_query_planner_messages(question))
    if content is None or not content.strip():
        raise QueryGenerationError("Failed to get search query")

    logger.info("[QUERY] Planned query: %s", content[:120])
    return content
