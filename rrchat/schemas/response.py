"""
Schemas for generation settings and the pipeline result.

GenerationConfig is resolved once per reply; ApproachResponse is the
terminal result handed back to the caller.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from rrchat.schemas.retrieval import DocumentRecord, SupportingImageRecord

DEFAULT_MODEL_ID = "gpt-4-16k"
DEFAULT_MAX_TOKENS = 128
DEFAULT_TEMPERATURE = 1.5


class GenerationConfig(BaseModel):
    """Model parameters applied to the answer and follow-up completions."""
    model_id: str = DEFAULT_MODEL_ID
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    answer_prefix: str = ""

    class Config:
        frozen = True

    def __str__(self) -> str:
        return (
            f"temperature: {self.temperature} modelid: {self.model_id} "
            f"max_tokens: {self.max_tokens}"
        )


class ApproachResponse(BaseModel):
    """
    Complete pipeline output.  ``answer`` and ``thoughts`` are always
    non-empty; ``images`` is None when image retrieval is not configured.
    """
    data_points: list[DocumentRecord] = Field(default_factory=list)
    images: list[SupportingImageRecord] | None = None
    answer: str
    thoughts: str
    citation_base_url: str = ""

    class Config:
        frozen = True
