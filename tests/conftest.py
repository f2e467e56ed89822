"""
Shared fakes for the pipeline collaborators.

Each fake records its calls so tests can assert on ordering and on
which stages ran.
"""

from __future__ import annotations

from typing import Any

import pytest

from rrchat.schemas.chat import RequestOverrides
from rrchat.schemas.response import GenerationConfig
from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord
from rrchat.services.feature_flags import StaticVariantProvider


class FakeChat:
    """Returns scripted completions in order; an Exception entry is raised instead."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: list[tuple[list[dict[str, Any]], GenerationConfig | None]] = []

    async def complete(self, messages, config=None):
        self.calls.append((messages, config))
        if not self.responses:
            raise AssertionError("Unexpected completion call")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeEmbeddings:
    def __init__(self, vector: list[float] | None = None):
        self.vector = [0.1, 0.2, 0.3] if vector is None else vector
        self.calls: list[str] = []

    async def generate_embedding(self, text):
        self.calls.append(text)
        return self.vector


class FakeRetriever:
    def __init__(
        self,
        documents: list[DocumentRecord] | None = None,
        images: list[SupportingImageRecord] | None = None,
    ):
        self.documents = documents or []
        self.images = images or []
        self.document_calls: list[tuple[str | None, list[float] | None, RequestOverrides]] = []
        self.image_calls: list[tuple[str | None, list[float]]] = []

    async def query_documents(self, query, embedding, overrides):
        self.document_calls.append((query, embedding, overrides))
        return list(self.documents)

    async def query_images(self, query, embedding, overrides):
        self.image_calls.append((query, embedding))
        return list(self.images)


class FakeVision:
    def __init__(self):
        self.calls: list[str] = []

    async def vectorize_text(self, text):
        self.calls.append(text)
        return [0.9, 0.8]


class FakeCredential:
    def __init__(self, token: str = "sig=abc"):
        self.token = token
        self.scopes: list[str] = []

    async def get_token(self, scope):
        self.scopes.append(scope)
        return self.token


class RecordingTelemetry:
    def __init__(self):
        self.events: list[tuple[str, dict[str, str]]] = []

    def emit_event(self, name, properties):
        self.events.append((name, dict(properties)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def plan_a() -> DocumentRecord:
    return DocumentRecord(id="1", title="planA", content="dental covered", category="benefits")


@pytest.fixture
def telemetry() -> RecordingTelemetry:
    return RecordingTelemetry()


@pytest.fixture
def no_variants() -> StaticVariantProvider:
    return StaticVariantProvider()
