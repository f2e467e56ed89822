"""
Pydantic schemas for every pipeline boundary.
"""

from rrchat.schemas.chat import (
    ChatRequest,
    ChatTurn,
    RequestOverrides,
    RetrievalMode,
)
from rrchat.schemas.retrieval import (
    DocumentRecord,
    SupportingImageRecord,
)
from rrchat.schemas.response import (
    ApproachResponse,
    GenerationConfig,
)
from rrchat.schemas.pipeline import (
    AnswerOutcome,
    OutcomeKind,
    PipelineContext,
)

__all__ = [
    # Chat input
    "ChatRequest",
    "ChatTurn",
    "RequestOverrides",
    "RetrievalMode",
    # Retrieval
    "DocumentRecord",
    "SupportingImageRecord",
    # Response
    "ApproachResponse",
    "GenerationConfig",
    # Pipeline
    "AnswerOutcome",
    "OutcomeKind",
    "PipelineContext",
]
