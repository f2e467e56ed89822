"""
Pipeline orchestrator: top-level entry point.

``ChatPipeline.reply`` runs the stages strictly in sequence, each one
consuming the previous one's output:

  1. Validate history
  2. Embed the question (skipped in text mode)
  3. Plan the search query (skipped in vector mode)
  4. Retrieve documents (+ images when configured)
  5. Resolve the generation config from variants
  6. Generate the answer
  7. Generate follow-up questions (if requested)
  8. Assemble the ApproachResponse

Cancelling the task running ``reply`` aborts the pending stage; no
later stage starts and nothing partial is returned.
"""

from __future__ import annotations

import json
import uuid

from rrchat.core.errors import EmbeddingError, EmptyHistoryError
from rrchat.pipeline.answer_generator import generate_answer
from rrchat.pipeline.config_resolver import resolve_generation_config
from rrchat.pipeline.followups import append_followups, generate_followups
from rrchat.pipeline.query_planner import plan_query
from rrchat.pipeline.retrieval import retrieve
from rrchat.schemas.chat import ChatTurn, RequestOverrides, RetrievalMode
from rrchat.schemas.pipeline import PipelineContext
from rrchat.schemas.response import ApproachResponse
from rrchat.services.interfaces import (
    ChatCompletionService,
    EmbeddingService,
    Retriever,
    TelemetryClient,
    TokenCredential,
    VariantProvider,
    VisionService,
)
from rrchat.services.telemetry import LoggingTelemetry
from rrchat.utils.logging import get_logger
from rrchat.utils.timing import Timer

logger = get_logger("rrchat.pipeline.orchestrator")


class ChatPipeline:
    """
    Read-retrieve-read chat over injected collaborators.

    Image grounding is a capability fixed at construction: it is on
    exactly when a vision service is given, and then a token credential
    is required too.
    """

    def __init__(
        self,
        *,
        chat: ChatCompletionService,
        embeddings: EmbeddingService,
        retriever: Retriever,
        variants: VariantProvider,
        telemetry: TelemetryClient | None = None,
        vision: VisionService | None = None,
        credential: TokenCredential | None = None,
        citation_base_url: str = "",
    ):
        if vision is not None and credential is None:
            raise ValueError("Image retrieval requires a token credential for image URLs")
        self.chat = chat
        self.embeddings = embeddings
        self.retriever = retriever
        self.variants = variants
        self.telemetry = telemetry or LoggingTelemetry()
        self.vision = vision
        self.credential = credential
        self.citation_base_url = citation_base_url

    @property
    def supports_images(self) -> bool:
        return self.vision is not None

    async def reply(
        self,
        history: list[ChatTurn],
        overrides: RequestOverrides | None = None,
        *,
        session_id: str | None = None,
    ) -> ApproachResponse:
        """Answer the last user turn of ``history``, grounded in retrieved sources."""
        question = _last_question(history)
        ctx = PipelineContext(
            history=list(history),
            overrides=overrides or RequestOverrides(),
            session_id=session_id or str(uuid.uuid4()),
            question=question,
        )
        mode = ctx.overrides.retrieval_mode
        logger.info("[PIPELINE] Started | mode=%s | question: %s", mode.value, question[:80])

        # ── Embedding ───────────────────────────────────────────────
        if mode != RetrievalMode.TEXT:
            with Timer() as t:
                ctx.embedding = await self.embeddings.generate_embedding(question)
            if not ctx.embedding:
                raise EmbeddingError("Failed to get embedding for the question")
            self._stage_completed(ctx, "embedding", t)

        # ── Query planning ──────────────────────────────────────────
        with Timer() as t:
            ctx.query = await plan_query(self.chat, question, mode)
        self._stage_completed(ctx, "query_planning", t)

        # ── Retrieval ───────────────────────────────────────────────
        with Timer("stage_retrieval") as t:
            ctx.documents, ctx.images = await retrieve(
                self.retriever,
                question=question,
                query=ctx.query,
                embedding=ctx.embedding,
                overrides=ctx.overrides,
                vision=self.vision,
            )
        self._stage_completed(
            ctx, "retrieval", t,
            Documents=str(len(ctx.documents)),
            Images=str(len(ctx.images)) if ctx.images is not None else "disabled",
        )

        # ── Generation config ───────────────────────────────────────
        ctx.generation_config = await resolve_generation_config(
            self.variants,
            targeting_id=ctx.session_id,
            temperature_override=ctx.overrides.temperature,
        )
        config = ctx.generation_config

        # ── Answer ──────────────────────────────────────────────────
        with Timer("stage_answer") as t:
            ctx.outcome = await generate_answer(
                self.chat,
                history=ctx.history,
                documents=ctx.documents,
                config=config,
                images=ctx.images,
                credential=self.credential,
            )
        ctx.stage_timings["answer"] = t.elapsed_s
        ctx.answer = ctx.outcome.answer

        self._emit("chat_latency_in_ms", {
            "TargetingId": ctx.session_id,
            "MaxTokens": str(config.max_tokens),
            "Temperature": str(config.temperature),
            "ModelId": config.model_id,
            "chat_latency_in_ms": str(ctx.outcome.latency_ms),
        })
        self._emit("json", {
            "TargetingId": ctx.session_id,
            "Json": json.dumps({"answer": ctx.outcome.answer, "thoughts": ctx.outcome.thoughts}),
        })

        # ── Follow-ups ──────────────────────────────────────────────
        if ctx.overrides.suggest_followup_questions:
            with Timer() as t:
                questions = await generate_followups(self.chat, ctx.answer, config)
            self._stage_completed(ctx, "followups", t, Questions=str(len(questions)))
            ctx.answer = append_followups(ctx.answer, questions)

        response = ApproachResponse(
            data_points=ctx.documents,
            images=ctx.images,
            answer=ctx.answer,
            thoughts=ctx.outcome.thoughts,
            citation_base_url=self.citation_base_url,
        )

        logger.info(
            "[PIPELINE] Done in %.2fs | documents=%d | outcome=%s",
            ctx.elapsed_seconds, len(ctx.documents), ctx.outcome.kind.value,
        )
        self._emit("reply_completed", {
            "TargetingId": ctx.session_id,
            "Outcome": ctx.outcome.kind.value,
            "Documents": str(len(ctx.documents)),
        })
        return response

    def _stage_completed(
        self,
        ctx: PipelineContext,
        stage: str,
        timer: Timer,
        **details: str,
    ) -> None:
        """Record the stage timing and emit a ``stage_completed`` event."""
        ctx.stage_timings[stage] = timer.elapsed_s
        self._emit("stage_completed", {
            "TargetingId": ctx.session_id,
            "Stage": stage,
            "latency_in_ms": str(timer.elapsed_ms),
            **details,
        })

    def _emit(self, name: str, properties: dict[str, str]) -> None:
        """Telemetry must never fail a reply."""
        try:
            self.telemetry.emit_event(name, properties)
        except Exception as e:
            logger.warning("[PIPELINE] Telemetry event %s dropped: %s", name, e)


def _last_question(history: list[ChatTurn]) -> str:
    if not history:
        raise EmptyHistoryError("History is empty")
    question = history[-1].user
    if not question or not question.strip():
        raise EmptyHistoryError("User question is empty")
    return question
