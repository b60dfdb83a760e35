from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from chatrelay.core.deps import get_relay
from chatrelay.core.errors import ProviderError
from chatrelay.core.logging import LogContext, with_context
from chatrelay.core.metrics import (
    chatrelay_catalog_requests_total,
    chatrelay_frames_total,
    chatrelay_turn_duration_seconds,
    chatrelay_turns_total,
)
from chatrelay.domain.chat import ChatTurnRequest
from chatrelay.domain.frames import (
    UI_MESSAGE_STREAM_HEADER,
    ErrorFrame,
    FinishFrame,
    Frame,
    encode_done,
    encode_frame,
)
from chatrelay.domain.models import ModelDescriptor
from chatrelay.relay.stream import StreamRelay

router = APIRouter()
log = logging.getLogger(__name__)


@router.get("/chat/models", response_model=list[ModelDescriptor])
async def list_models(relay: StreamRelay = Depends(get_relay)) -> list[ModelDescriptor]:
    try:
        models = await relay.list_models()
    except ProviderError as e:
        chatrelay_catalog_requests_total.labels(status="error").inc()
        log.warning("models.list.failed", extra={"detail": e.detail})
        raise
    chatrelay_catalog_requests_total.labels(status="ok").inc()
    log.info("models.list", extra={"count": len(models)})
    return models


@router.post("/chat")
async def chat(
    request: Request,
    body: ChatTurnRequest,
    relay: StreamRelay = Depends(get_relay),
) -> StreamingResponse:
    request_id = getattr(request.state, "request_id", None)
    model = (body.model or "").strip()
    logger = with_context(
        log,
        LogContext(request_id=request_id, model=model or None, trigger=body.trigger),
    )

    # Validation errors surface here as 400s, before any streaming starts.
    frames = relay.handle_chat_request(body.messages, body.model)
    logger.info("chat.turn.request", extra={"messages": len(body.messages), "message_id": body.message_id})

    async def stream_gen() -> AsyncIterator[bytes]:
        started = time.perf_counter()
        outcome = "cancelled"
        frame_count = 0
        try:
            async for frame in frames:
                frame_count += 1
                chatrelay_frames_total.labels(type=frame.type).inc()
                outcome = _outcome(frame, outcome)
                yield encode_frame(frame)
            yield encode_done()
        finally:
            elapsed = time.perf_counter() - started
            chatrelay_turns_total.labels(model=model, outcome=outcome).inc()
            chatrelay_turn_duration_seconds.labels(model=model).observe(elapsed)
            logger.info(
                "chat.turn.done",
                extra={"outcome": outcome, "frames": frame_count, "latency_ms": int(elapsed * 1000)},
            )
            # Runs on client disconnect too; closing `frames` releases the provider stream.
            await frames.aclose()

    return StreamingResponse(
        stream_gen(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            UI_MESSAGE_STREAM_HEADER: "v1",
        },
    )


def _outcome(frame: Frame, current: str) -> str:
    if isinstance(frame, FinishFrame):
        return "finish"
    if isinstance(frame, ErrorFrame):
        return "error"
    return current
