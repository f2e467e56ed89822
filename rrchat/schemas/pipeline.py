"""
Per-reply pipeline state and stage results.

PipelineContext is created once at the start of ``ChatPipeline.reply``
and discarded when the response is returned; nothing in it outlives
the call.
"""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, Field

from rrchat.schemas.chat import ChatTurn, RequestOverrides
from rrchat.schemas.response import GenerationConfig
from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord


class OutcomeKind(str, Enum):
    COMPLETED = "completed"
    RECOVERED = "recovered"


class AnswerOutcome(BaseModel):
    """
    Result of the main-answer step.

    ``RECOVERED`` means the apology payload was substituted (rate limit
    or unparsable output); ``diagnostic`` says which.  Fatal failures
    are raised, never returned.
    """
    kind: OutcomeKind
    answer: str
    thoughts: str
    diagnostic: str | None = None
    latency_ms: int = 0

    class Config:
        frozen = True

    @property
    def recovered(self) -> bool:
        return self.kind == OutcomeKind.RECOVERED


class PipelineContext(BaseModel):
    """State threaded through the stages of one reply."""

    # ── Inputs ───────────────────────────────────────────────────────
    history: list[ChatTurn]
    overrides: RequestOverrides
    session_id: str
    question: str

    # ── Stage outputs (populated progressively) ─────────────────────
    embedding: list[float] | None = None
    query: str | None = None
    documents: list[DocumentRecord] = Field(default_factory=list)
    images: list[SupportingImageRecord] | None = None
    generation_config: GenerationConfig | None = None
    outcome: AnswerOutcome | None = None
    answer: str = ""

    # ── Timing ──────────────────────────────────────────────────────
    start_time: float = Field(default_factory=time.time)
    stage_timings: dict[str, float] = Field(default_factory=dict)

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time
