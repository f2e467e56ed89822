"""
Wall-clock timing for pipeline stages and completion calls.

Usage:
    async with Timer("stage_retrieval") as t:
        documents = await retriever.query_documents(...)
    telemetry.emit_event("latency", {"ms": str(t.elapsed_ms)})
"""

from __future__ import annotations

import time
from typing import Any

from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.timing")


class Timer:
    """Context-manager timer (sync + async compatible)."""

    def __init__(self, label: str = ""):
        self.label = label
        self._start: float = 0.0
        self.elapsed_s: float = 0.0

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed_s * 1000)

    def _stop(self) -> None:
        self.elapsed_s = time.perf_counter() - self._start
        if self.label:
            logger.info("%s completed in %dms", self.label, self.elapsed_ms)

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: Any) -> None:
        self._stop()

    async def __aenter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    async def __aexit__(self, *_: Any) -> None:
        self._stop()
