"""
Variant providers: resolve a named experiment into its configuration string.

StaticVariantProvider reads a JSON file (or a dict) and is what tests
and local runs use.  SplitEvaluatorVariantProvider asks a Split
evaluator service, targeting the caller's session id.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx

from rrchat.core.config import settings
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.services.feature_flags")


class StaticVariantProvider:
    """
    Variants from a mapping of name -> configuration.

    String values are returned verbatim; any other JSON value is
    re-serialized so callers always receive a string.
    """

    def __init__(self, variants: dict[str, Any] | None = None):
        self._variants = dict(variants or {})

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticVariantProvider":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Variants file {path} must contain a JSON object")
        logger.info("Loaded %d variant(s) from %s", len(data), path)
        return cls(data)

    async def get_variant(self, name: str, targeting_id: str | None = None) -> str | None:
        value = self._variants.get(name)
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value)


class SplitEvaluatorVariantProvider:
    """Treatment configs from a Split evaluator (``/client/get-treatment-with-config``)."""

    def __init__(
        self,
        base_url: str,
        auth_key: str,
        *,
        default_key: str = "anonymous",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._url = f"{base_url.rstrip('/')}/client/get-treatment-with-config"
        self._headers = {"Authorization": auth_key}
        self._default_key = default_key
        self._http = http_client

    async def get_variant(self, name: str, targeting_id: str | None = None) -> str | None:
        params = {"key": targeting_id or self._default_key, "split-name": name}
        try:
            if self._http is not None:
                response = await self._http.get(self._url, params=params, headers=self._headers)
            else:
                async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                    response = await client.get(self._url, params=params, headers=self._headers)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError, RecursionError) as e:
            logger.warning("[FLAGS] Split evaluator failed for %s: %s", name, e)
            return None

        treatment = payload.get("treatment")
        config = payload.get("config")
        logger.debug("[FLAGS] %s -> treatment=%s has_config=%s", name, treatment, config is not None)
        if treatment == "control" or not isinstance(config, str):
            return None
        return config
