"""Client-side conversation state and the frame reducer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from chatrelay.domain.chat import Message, TextPart, new_message_id
from chatrelay.domain.frames import (
    ErrorFrame,
    FinishFrame,
    Frame,
    StartFrame,
    TextDeltaFrame,
    TextStartFrame,
)

log = logging.getLogger(__name__)


class Status(str, Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    STREAMING = "streaming"
    ERROR = "error"


IN_FLIGHT = (Status.SUBMITTED, Status.STREAMING)


@dataclass
class ConversationState:
    messages: list[Message] = field(default_factory=list)
    status: Status = Status.IDLE
    error: str | None = None
    # Id of the assistant message the current turn is writing into.
    active_message_id: str | None = None

    @property
    def in_flight(self) -> bool:
        return self.status in IN_FLIGHT

    def index_of(self, message_id: str) -> int | None:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None

    def active_message(self) -> Message | None:
        if self.active_message_id is None:
            return None
        index = self.index_of(self.active_message_id)
        return None if index is None else self.messages[index]

    def begin_turn(self) -> None:
        self.status = Status.SUBMITTED
        self.error = None
        self.active_message_id = None

    def fail(self, reason: str) -> None:
        self.status = Status.ERROR
        self.error = reason
        self.active_message_id = None

    def reset(self) -> None:
        self.status = Status.IDLE
        self.active_message_id = None


def _open_assistant_message(state: ConversationState, message_id: str | None) -> Message:
    if not message_id or state.index_of(message_id) is not None:
        message_id = new_message_id()
    message = Message(id=message_id, role="assistant", parts=[])
    state.messages.append(message)
    state.active_message_id = message.id
    state.status = Status.STREAMING
    return message


def _append_text(message: Message, text: str) -> None:
    last = message.parts[-1] if message.parts else None
    if isinstance(last, TextPart):
        last.text += text
    else:
        message.parts.append(TextPart(text=text))


def apply_frame(state: ConversationState, frame: Frame) -> None:
    """Apply one frame of the active turn to `state`, in arrival order.

    Frames that arrive while no turn is in flight are discarded.
    """
    if not state.in_flight:
        log.debug("client.frame.discarded", extra={"frame_type": frame.type, "status": state.status.value})
        return

    if isinstance(frame, ErrorFrame):
        state.fail(frame.error_text)
        return

    message = state.active_message()
    if message is None:
        message = _open_assistant_message(
            state, frame.message_id if isinstance(frame, StartFrame) else None
        )

    if isinstance(frame, TextStartFrame):
        message.parts.append(TextPart(text=""))
    elif isinstance(frame, TextDeltaFrame):
        _append_text(message, frame.text)
    elif isinstance(frame, FinishFrame):
        state.reset()
