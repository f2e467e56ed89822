"""
OpenAI client singleton plus the chat-completion adapter.

Works against OpenAI or Azure OpenAI (``USE_AZURE_OPENAI``); on Azure
the model id is the deployment name.  Provider errors are translated
into the pipeline's own exceptions here so no other module imports
``openai``.
"""

from __future__ import annotations

import threading
from typing import Any

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from rrchat.core.config import settings
from rrchat.core.errors import GenerationError, RateLimitedError
from rrchat.schemas.response import GenerationConfig
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.services.llm")


# ── Singleton OpenAI client ─────────────────────────────────────────
_client_lock = threading.Lock()
_client_instance: Any | None = None


def get_openai_client() -> Any:
    """
    Return a module-level async OpenAI client singleton.

    Raises RuntimeError when the API key (or the Azure endpoint) is
    missing.
    """
    global _client_instance
    if _client_instance is not None:
        return _client_instance

    with _client_lock:
        if _client_instance is not None:
            return _client_instance

        if not settings.openai_api_key:
            raise RuntimeError("OpenAI API key not configured (OPENAI_API_KEY).")

        if settings.use_azure_openai:
            if not settings.azure_openai_endpoint:
                raise RuntimeError("Azure OpenAI endpoint not configured (AZURE_OPENAI_ENDPOINT).")
            _client_instance = AsyncAzureOpenAI(
                api_key=settings.openai_api_key,
                azure_endpoint=settings.azure_openai_endpoint,
                api_version=settings.azure_openai_api_version,
                timeout=settings.llm_timeout_seconds,
            )
        else:
            _client_instance = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout_seconds,
            )
        logger.info("OpenAI client singleton initialized (azure=%s).", settings.use_azure_openai)
        return _client_instance


class OpenAIChatService:
    """Chat completions; ``config`` None means the deployment defaults."""

    def __init__(self, client: Any | None = None, default_model: str | None = None):
        self._client = client
        self._default_model = default_model or settings.chat_deployment

    @property
    def client(self) -> Any:
        return self._client if self._client is not None else get_openai_client()

    async def complete(
        self,
        messages: list[dict[str, Any]],
        config: GenerationConfig | None = None,
    ) -> str | None:
        kwargs: dict[str, Any] = {"model": self._default_model, "messages": messages}
        if config is not None:
            kwargs.update(
                model=config.model_id,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
            )

        logger.debug("[LLM] IN  messages=%d model=%s", len(messages), kwargs["model"])
        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.RateLimitError as e:
            logger.warning("[LLM] Rate limited (429): %s", e)
            raise RateLimitedError(f"Status: 429 {e}") from e
        except openai.OpenAIError as e:
            logger.error("[LLM] Completion failed: %s", e)
            raise GenerationError(f"Completion failed: {e}") from e

        if not response.choices:
            return None
        content = response.choices[0].message.content
        logger.debug("[LLM] OUT response_len=%d", len(content or ""))
        return content
