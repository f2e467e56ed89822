"""
Schemas for the pipeline input: conversation history and request overrides.

ChatTurn and RequestOverrides are created by the caller and never
mutated by the pipeline.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RetrievalMode(str, Enum):
    TEXT = "text"
    VECTOR = "vector"
    HYBRID = "hybrid"


class ChatTurn(BaseModel):
    """One user question and, for past turns, the bot's reply."""
    user: str
    bot: str | None = None

    class Config:
        frozen = True


class RequestOverrides(BaseModel):
    """Optional per-request knobs.  Every field has a default."""
    retrieval_mode: RetrievalMode = RetrievalMode.HYBRID
    top: int = Field(default=3, ge=1, le=50)
    semantic_captions: bool = False
    semantic_ranker: bool = False
    exclude_category: str | None = None
    suggest_followup_questions: bool = False
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    class Config:
        frozen = True


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""
    history: list[ChatTurn] = Field(default_factory=list)
    overrides: RequestOverrides | None = None
    session_id: str | None = Field(
        default=None,
        description="Caller-generated identifier used to correlate telemetry and target variants.",
    )
