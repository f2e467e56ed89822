"""
Logging for the chat service.

Every module logs through a child of the ``rrchat`` logger with a
bracketed stage tag first, so one reply can be followed across stages:

    [PIPELINE]   orchestrator start/finish
    [QUERY]      query planning
    [RETRIEVAL]  document and image search
    [ANSWER]     answer state transitions (debug)
    [FOLLOWUPS]  follow-up questions
    [LLM] [EMBED] [VISION] [FLAGS] [EVENT]  collaborator adapters
    [CHAT]       HTTP route

The level follows ``settings.environment``: INFO in development,
WARNING elsewhere.  Records do not propagate to the root logger.
"""

from __future__ import annotations

import logging
import sys

from rrchat.core.config import settings

LOGGER_NAMESPACE = "rrchat"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

_configured = False


def default_level() -> int:
    return logging.INFO if settings.environment == "development" else logging.WARNING


def setup_logging(level: int | None = None) -> None:
    """Attach the stderr handler to the ``rrchat`` logger once per process."""
    global _configured
    if _configured:
        return

    level = default_level() if level is None else level
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    namespace = logging.getLogger(LOGGER_NAMESPACE)
    namespace.setLevel(level)
    namespace.addHandler(handler)
    namespace.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return ``name`` under the ``rrchat`` namespace, configuring logging on first use."""
    setup_logging()
    if name != LOGGER_NAMESPACE and not name.startswith(LOGGER_NAMESPACE + "."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
