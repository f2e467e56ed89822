"""
Pipeline errors.

Everything raised out of ``ChatPipeline.reply`` derives from
ChatPipelineError so the API layer can map it in one place.
RateLimitedError never leaves the answer step: it is converted into
the apology payload there.
"""


class ChatPipelineError(Exception):
    """Base class for errors raised by the chat pipeline."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmptyHistoryError(ChatPipelineError):
    """The request carried no history, or the last turn has no user question."""


class EmbeddingError(ChatPipelineError):
    """The embedding collaborator returned no vector for the question or search query."""


class QueryGenerationError(ChatPipelineError):
    """The completion call used to plan the search query returned no content."""


class GenerationError(ChatPipelineError):
    """The completion collaborator failed for a reason other than rate limiting."""


class RateLimitedError(ChatPipelineError):
    """The completion collaborator signalled HTTP 429."""


class FollowupGenerationError(ChatPipelineError):
    """Follow-up questions could not be produced or parsed."""
