"""
Image-path collaborators: text vectorization for image search and the
credential used to build time-limited image URLs.
"""

from __future__ import annotations

import httpx

from rrchat.core.config import settings
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.services.vision")


class AzureVisionService:
    """Vectorizes text into the image embedding space (Computer Vision ``vectorizeText``)."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        api_version: str | None = None,
        model_version: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._url = f"{endpoint.rstrip('/')}/computervision/retrieval:vectorizeText"
        self._params = {
            "api-version": api_version or settings.vision_api_version,
            "model-version": model_version or settings.vision_model_version,
        }
        self._headers = {"Ocp-Apim-Subscription-Key": api_key}
        self._http = http_client

    async def vectorize_text(self, text: str) -> list[float]:
        if self._http is not None:
            response = await self._http.post(
                self._url, params=self._params, headers=self._headers, json={"text": text},
            )
        else:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.post(
                    self._url, params=self._params, headers=self._headers, json={"text": text},
                )
        response.raise_for_status()
        vector = response.json().get("vector") or []
        logger.debug("[VISION] Vectorized text into %d dims", len(vector))
        return vector


class StaticTokenCredential:
    """Returns a pre-issued SAS token for every scope."""

    def __init__(self, token: str):
        self._token = token.lstrip("?")

    async def get_token(self, scope: str) -> str:
        return self._token
