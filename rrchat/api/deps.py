"""
Application wiring: builds the ChatPipeline from settings once per
process and hands it to the routes through FastAPI dependencies.
"""

from __future__ import annotations

import threading

from rrchat.core.config import settings
from rrchat.pipeline.orchestrator import ChatPipeline
from rrchat.services.embedding import OpenAIEmbeddingService
from rrchat.services.feature_flags import SplitEvaluatorVariantProvider, StaticVariantProvider
from rrchat.services.interfaces import TelemetryClient, VariantProvider
from rrchat.services.llm import OpenAIChatService
from rrchat.services.telemetry import LoggingTelemetry, SplitEventsTelemetry
from rrchat.services.vector_store import ChromaRetriever
from rrchat.services.vision import AzureVisionService, StaticTokenCredential
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.api.deps")

_lock = threading.Lock()
_pipeline: ChatPipeline | None = None
_telemetry: TelemetryClient | None = None


def _build_variants() -> VariantProvider:
    if settings.variants_file:
        return StaticVariantProvider.from_file(settings.variants_file)
    if settings.split_evaluator_url and settings.split_evaluator_auth_key:
        logger.info("Variants resolved by Split evaluator at %s", settings.split_evaluator_url)
        return SplitEvaluatorVariantProvider(
            settings.split_evaluator_url, settings.split_evaluator_auth_key,
        )
    logger.info("No variant source configured; generation defaults apply")
    return StaticVariantProvider()


def _build_telemetry() -> TelemetryClient:
    if settings.split_sdk_key:
        return SplitEventsTelemetry(settings.split_sdk_key)
    return LoggingTelemetry()


def _build_pipeline() -> ChatPipeline:
    vision = credential = None
    if settings.vision_endpoint and settings.vision_api_key and settings.image_sas_token:
        vision = AzureVisionService(settings.vision_endpoint, settings.vision_api_key)
        credential = StaticTokenCredential(settings.image_sas_token)
        logger.info("Image retrieval enabled")

    embeddings = OpenAIEmbeddingService()
    return ChatPipeline(
        chat=OpenAIChatService(),
        embeddings=embeddings,
        retriever=ChromaRetriever(embeddings),
        variants=_build_variants(),
        telemetry=get_telemetry(),
        vision=vision,
        credential=credential,
        citation_base_url=settings.citation_base_url,
    )


def get_telemetry() -> TelemetryClient:
    global _telemetry
    if _telemetry is None:
        with _lock:
            if _telemetry is None:
                _telemetry = _build_telemetry()
    return _telemetry


def get_chat_pipeline() -> ChatPipeline:
    """Return the process-wide pipeline, building it on first use."""
    global _pipeline
    if _pipeline is None:
        telemetry = get_telemetry()
        with _lock:
            if _pipeline is None:
                _pipeline = _build_pipeline()
                logger.info("[OK] Chat pipeline ready (telemetry=%s)", type(telemetry).__name__)
    return _pipeline
