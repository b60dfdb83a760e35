from __future__ import annotations

from collections.abc import Sequence

from chatrelay.core.errors import ValidationError
from chatrelay.domain.chat import ROLES, Message, ProviderMessage, TextPart

TEXT_SEPARATOR = "\n"


def to_provider_format(history: Sequence[Message]) -> list[ProviderMessage]:
    """Flatten rich messages into role/content pairs, preserving order.

    Text parts are joined with a newline. Non-text parts have no provider
    equivalent and are dropped, as are messages that carry no text part.
    """
    if not history:
        raise ValidationError("Conversation history is empty")

    out: list[ProviderMessage] = []
    for index, message in enumerate(history):
        if message.role not in ROLES:
            raise ValidationError(f"Message {index} has unrecognized role: {message.role!r}")
        texts = [p.text for p in message.parts if isinstance(p, TextPart)]
        if not texts:
            continue
        out.append(ProviderMessage(role=message.role, content=TEXT_SEPARATOR.join(texts)))

    if not out:
        raise ValidationError("Conversation history has no text content")
    return out
