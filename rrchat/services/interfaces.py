"""
Collaborator contracts consumed by the pipeline.

The pipeline only talks to these narrow interfaces; concrete adapters
live next to this module (llm.py, vector_store.py, vision.py,
feature_flags.py, telemetry.py) and tests substitute fakes.
"""

from __future__ import annotations

from typing import Any, Protocol

from rrchat.schemas.chat import RequestOverrides
from rrchat.schemas.response import GenerationConfig
from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord


class ChatCompletionService(Protocol):
    async def complete(
        self,
        messages: list[dict[str, Any]],
        config: GenerationConfig | None = None,
    ) -> str | None:
        """
        Return the completion text (None when the model sent no content).

        Raises RateLimitedError on HTTP 429 and GenerationError on any
        other provider failure.
        """
        ...


class EmbeddingService(Protocol):
    async def generate_embedding(self, text: str) -> list[float]: ...


class Retriever(Protocol):
    async def query_documents(
        self,
        query: str | None,
        embedding: list[float] | None,
        overrides: RequestOverrides,
    ) -> list[DocumentRecord]: ...

    async def query_images(
        self,
        query: str | None,
        embedding: list[float],
        overrides: RequestOverrides,
    ) -> list[SupportingImageRecord]: ...


class VisionService(Protocol):
    async def vectorize_text(self, text: str) -> list[float]: ...


class TokenCredential(Protocol):
    async def get_token(self, scope: str) -> str: ...


class VariantProvider(Protocol):
    async def get_variant(self, name: str, targeting_id: str | None = None) -> str | None:
        """Return the configuration string of the variant, or None when there is none."""
        ...


class TelemetryClient(Protocol):
    def emit_event(self, name: str, properties: dict[str, str]) -> None:
        """Fire-and-forget; must not block the caller."""
        ...
