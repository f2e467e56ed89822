"""
Fire-and-forget telemetry.

``emit_event`` never awaits and never raises into the caller: the Split
sender schedules the POST as a background task and only logs failures.
"""

from __future__ import annotations

import asyncio
import time

import httpx

from rrchat.core.config import settings
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.services.telemetry")


class LoggingTelemetry:
    """Writes events to the application log."""

    def emit_event(self, name: str, properties: dict[str, str]) -> None:
        logger.info("[EVENT] %s %s", name, properties)


class SplitEventsTelemetry:
    """Tracks events against Split so experiments can measure them."""

    def __init__(
        self,
        sdk_key: str,
        *,
        url: str | None = None,
        environment: str | None = None,
        traffic_type: str = "user",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._url = url or settings.split_events_url
        self._headers = {"Authorization": f"Bearer {sdk_key}"}
        self._environment = environment or settings.split_environment
        self._traffic_type = traffic_type
        self._http = http_client
        self._pending: set[asyncio.Task] = set()

    def emit_event(self, name: str, properties: dict[str, str]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[EVENT] No running loop; dropping %s", name)
            return

        payload = {
            "eventTypeId": name,
            "trafficTypeName": self._traffic_type,
            "key": properties.get("TargetingId", "anonymous"),
            "environmentName": self._environment,
            "timestamp": int(time.time() * 1000),
            "properties": properties,
        }
        task = loop.create_task(self._send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, payload: dict) -> None:
        try:
            if self._http is not None:
                response = await self._http.post(self._url, json=payload, headers=self._headers)
            else:
                async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                    response = await client.post(self._url, json=payload, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("[EVENT] Split event %s not delivered: %s", payload["eventTypeId"], e)

    async def flush(self) -> None:
        """Wait for in-flight events (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
