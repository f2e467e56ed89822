"""
Retrieval step.

Document search and (when the pipeline was built with image support)
image search are independent reads, so they run concurrently.
"""

from __future__ import annotations

import asyncio

from rrchat.schemas.chat import RequestOverrides
from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord
from rrchat.services.interfaces import Retriever, VisionService
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.pipeline.retrieval")


async def retrieve(
    retriever: Retriever,
    *,
    question: str,
    query: str | None,
    embedding: list[float] | None,
    overrides: RequestOverrides,
    vision: VisionService | None = None,
) -> tuple[list[DocumentRecord], list[SupportingImageRecord] | None]:
    """
    Return ``(documents, images)``.

    ``images`` is None when no vision service is configured, otherwise
    a (possibly empty) list.
    """
    documents_task = retriever.query_documents(query, embedding, overrides)

    if vision is None:
        documents = await documents_task
        logger.info("[RETRIEVAL] %d document(s), image search disabled", len(documents))
        return documents, None

    documents, images = await asyncio.gather(
        documents_task,
        _retrieve_images(retriever, vision, query or question, query, overrides),
    )
    logger.info("[RETRIEVAL] %d document(s), %d image(s)", len(documents), len(images))
    return documents, images


async def _retrieve_images(
    retriever: Retriever,
    vision: VisionService,
    text: str,
    query: str | None,
    overrides: RequestOverrides,
) -> list[SupportingImageRecord]:
    image_embedding = await vision.vectorize_text(text)
    return await retriever.query_images(query, image_embedding, overrides)
