"""
Query embedding through the shared OpenAI client.
"""

from __future__ import annotations

from typing import Any

import openai

from rrchat.core.config import settings
from rrchat.core.errors import EmbeddingError
from rrchat.services.llm import get_openai_client
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.services.embedding")


class OpenAIEmbeddingService:
    """Embeds the user question for vector and hybrid retrieval."""

    def __init__(self, client: Any | None = None, model: str | None = None):
        self._client = client
        self._model = model or settings.embedding_deployment

    @property
    def client(self) -> Any:
        return self._client if self._client is not None else get_openai_client()

    async def generate_embedding(self, text: str) -> list[float]:
        """Return the embedding vector, or an empty list when none came back."""
        try:
            response = await self.client.embeddings.create(model=self._model, input=text)
        except openai.OpenAIError as e:
            logger.error("[EMBED] Embedding failed: %s", e)
            raise EmbeddingError(f"Embedding failed: {e}") from e

        if not response.data:
            return []
        return list(response.data[0].embedding)
