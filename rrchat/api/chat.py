"""
Thin API route for the chat endpoint.

No business logic: validates the request, calls ChatPipeline.reply()
and returns the ApproachResponse.  Everything else lives in the
pipeline modules.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from rrchat.api.deps import get_chat_pipeline, get_telemetry
from rrchat.core.errors import EmptyHistoryError
from rrchat.pipeline.orchestrator import ChatPipeline
from rrchat.schemas.chat import ChatRequest
from rrchat.schemas.response import ApproachResponse
from rrchat.services.interfaces import TelemetryClient
from rrchat.utils.logging import get_logger

logger = get_logger("rrchat.api.chat")

router = APIRouter(tags=["Chat"])


@router.post("/chat", response_model=ApproachResponse)
async def chat(
    request: ChatRequest,
    pipeline: ChatPipeline = Depends(get_chat_pipeline),
    telemetry: TelemetryClient = Depends(get_telemetry),
):
    """Answer the last user turn of the conversation."""
    if not request.history:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="history is required")

    q = request.history[-1].user.strip()[:80]
    logger.info("[CHAT] New question: %s (%d turn(s))", q, len(request.history))

    try:
        return await pipeline.reply(
            request.history, request.overrides, session_id=request.session_id,
        )
    except EmptyHistoryError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.error("[CHAT] Error: %s", e, exc_info=True)
        try:
            telemetry.emit_event("error", {
                "TargetingId": request.session_id or "",
                "Error": f"{type(e).__name__}: {e}",
            })
        except Exception as emit_err:
            logger.warning("[CHAT] Error event dropped: %s", emit_err)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error processing chat: {e}",
        )
