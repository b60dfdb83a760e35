"""Server-to-client stream frames and their SSE encoding."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

log = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"
UI_MESSAGE_STREAM_HEADER = "x-vercel-ai-ui-message-stream"


class _Frame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StartFrame(_Frame):
    type: Literal["start"] = "start"
    message_id: str | None = Field(default=None, alias="messageId")


class TextStartFrame(_Frame):
    type: Literal["text-start"] = "text-start"


class TextDeltaFrame(_Frame):
    type: Literal["text-delta"] = "text-delta"
    text: str


class FinishFrame(_Frame):
    type: Literal["finish"] = "finish"
    finish_reason: str | None = Field(default=None, alias="finishReason")


class ErrorFrame(_Frame):
    type: Literal["error"] = "error"
    error_text: str = Field(alias="errorText")


Frame = Annotated[
    Union[StartFrame, TextStartFrame, TextDeltaFrame, FinishFrame, ErrorFrame],
    Field(discriminator="type"),
]

FRAME_TYPES = frozenset({"start", "text-start", "text-delta", "finish", "error"})
TERMINAL_FRAMES = (FinishFrame, ErrorFrame)

_frame_adapter: TypeAdapter[Frame] = TypeAdapter(Frame)


def is_terminal(frame: Frame) -> bool:
    return isinstance(frame, TERMINAL_FRAMES)


def encode_frame(frame: Frame) -> bytes:
    payload = frame.model_dump_json(by_alias=True, exclude_none=True)
    return f"{SSE_DATA_PREFIX} {payload}\n\n".encode("utf-8")


def encode_done() -> bytes:
    return f"{SSE_DATA_PREFIX} {SSE_DONE}\n\n".encode("utf-8")


def decode_frame(line: str) -> Frame | None:
    """Parse one SSE line. Returns None for non-data lines, `[DONE]` and unknown frame types.

    Raises ValueError when a data line carries malformed JSON or an invalid known frame.
    """
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    data = line[len(SSE_DATA_PREFIX):].strip()
    if not data or data == SSE_DONE:
        return None
    obj = json.loads(data)
    if not isinstance(obj, dict):
        raise ValueError(f"Frame must be a JSON object, got: {data[:200]}")
    if obj.get("type") not in FRAME_TYPES:
        log.debug("frames.unknown_type", extra={"frame_type": obj.get("type")})
        return None
    return _frame_adapter.validate_python(obj)
