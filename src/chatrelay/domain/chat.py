from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROLES = ("system", "user", "assistant")


def new_message_id() -> str:
    return f"msg_{uuid4().hex}"


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class OpaquePart(BaseModel):
    """Any non-text part. Kept as-is so newer part kinds survive a round trip."""

    model_config = ConfigDict(extra="allow")

    type: str

    @field_validator("type")
    @classmethod
    def _not_text(cls, value: str) -> str:
        if value == "text":
            raise ValueError("text parts must carry a 'text' field")
        return value


Part = Annotated[Union[TextPart, OpaquePart], Field(union_mode="left_to_right")]


class Message(BaseModel):
    id: str = Field(default_factory=new_message_id)
    # Plain string on the wire; unknown roles are rejected during conversion.
    role: str
    parts: list[Part] = Field(default_factory=list)

    def text(self) -> str:
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))


class ChatTurnRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[Message]
    model: str | None = None
    trigger: Literal["submit-message", "regenerate-message"] | None = None
    message_id: str | None = Field(default=None, alias="messageId")


class ProviderMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str
