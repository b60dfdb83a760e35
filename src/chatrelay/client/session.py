from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from chatrelay.client.state import ConversationState, Status, apply_frame
from chatrelay.core.errors import InvalidRequest, NotFound
from chatrelay.domain.chat import Message, TextPart
from chatrelay.domain.frames import decode_frame, is_terminal

log = logging.getLogger(__name__)

NO_TERMINAL_FRAME = "Stream ended without a terminal frame"


def _require_model(model_id: str | None) -> str:
    model = (model_id or "").strip()
    if not model:
        raise InvalidRequest("Model is required")
    return model


def _error_detail(status_code: int, body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    try:
        detail = json.loads(text).get("detail")
    except (ValueError, AttributeError):
        detail = None
    return f"Chat request failed ({status_code}): {detail or text[:500]}"


class ChatSession:
    """Client-side chat state machine.

    Owns one conversation and its status. At most one turn is in flight; a new
    `send`/`regenerate` (or `cancel`) abandons the current one first, and frames
    that belong to an abandoned turn are never applied.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        chat_path: str = "/api/chat",
        state: ConversationState | None = None,
    ):
        self._client = client
        self._chat_path = chat_path
        self.state = state or ConversationState()
        self._ticket = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def messages(self) -> list[Message]:
        return self.state.messages

    @property
    def status(self) -> Status:
        return self.state.status

    @property
    def error(self) -> str | None:
        return self.state.error

    async def send(self, text: str, model_id: str) -> None:
        """Append a user message and stream the assistant reply into the conversation."""
        model = _require_model(model_id)
        if not text or not text.strip():
            raise InvalidRequest("Message text is required")

        await self._abandon_in_flight()
        self.state.messages.append(Message(role="user", parts=[TextPart(text=text)]))
        await self._run_turn(model, trigger="submit-message")

    async def regenerate(self, message_id: str, model_id: str) -> None:
        """Re-run generation for `message_id`, discarding everything after it.

        An assistant target is dropped too; a user target is kept and answered again.
        Raises NotFound, leaving the session untouched, if the id is unknown.
        """
        model = _require_model(model_id)
        if self.state.index_of(message_id) is None:
            raise NotFound(f"Message not found: {message_id}")

        await self._abandon_in_flight()
        index = self.state.index_of(message_id)
        if index is None:
            raise NotFound(f"Message not found: {message_id}")
        target = self.state.messages[index]
        cut = index if target.role == "assistant" else index + 1
        del self.state.messages[cut:]
        await self._run_turn(model, trigger="regenerate-message", message_id=message_id)

    async def cancel(self) -> None:
        """Abandon the in-flight turn, if any, and return to idle."""
        await self._abandon_in_flight()

    async def aclose(self) -> None:
        await self._abandon_in_flight()

    async def _abandon_in_flight(self) -> None:
        # Another caller may start a turn while we wait, so loop until none is active.
        while self._task is not None:
            task = self._task
            self._task = None
            self._ticket += 1
            ticket = self._ticket
            task.cancel()
            await asyncio.wait({task})
            if ticket == self._ticket:
                self.state.reset()
                log.info("client.turn.cancelled")

    async def _run_turn(
        self, model: str, *, trigger: str, message_id: str | None = None
    ) -> None:
        self._ticket += 1
        ticket = self._ticket
        self.state.begin_turn()

        payload: dict[str, Any] = {
            "messages": [m.model_dump(mode="json") for m in self.state.messages],
            "model": model,
            "trigger": trigger,
        }
        if message_id is not None:
            payload["messageId"] = message_id

        task = asyncio.create_task(self._stream(ticket, payload))
        self._task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            # Caller was torn down mid-turn.
            if self._task is task:
                self._task = None
                self._ticket += 1
                task.cancel()
                self.state.reset()
            raise

        if self._task is task:
            self._task = None
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()

    async def _stream(self, ticket: int, payload: dict[str, Any]) -> None:
        try:
            async with self._client.stream("POST", self._chat_path, json=payload) as resp:
                if resp.status_code >= 400:
                    self._fail(ticket, _error_detail(resp.status_code, await resp.aread()))
                    return
                async for line in resp.aiter_lines():
                    frame = decode_frame(line)
                    if frame is None:
                        continue
                    if ticket != self._ticket:
                        log.debug("client.frame.stale", extra={"frame_type": frame.type})
                        return
                    apply_frame(self.state, frame)
                    if is_terminal(frame):
                        break
        except httpx.HTTPError as e:
            self._fail(ticket, f"Chat request failed: {e}")
            return
        except ValueError as e:
            self._fail(ticket, f"Malformed stream frame: {e}")
            return
        except Exception as e:
            self._fail(ticket, f"Unexpected error: {e}")
            raise

        if ticket == self._ticket and self.state.in_flight:
            self._fail(ticket, NO_TERMINAL_FRAME)

    def _fail(self, ticket: int, reason: str) -> None:
        if ticket != self._ticket:
            return
        log.warning("client.turn.failed", extra={"reason": reason})
        self.state.fail(reason)
