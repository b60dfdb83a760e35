from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

from chatrelay.core.errors import InvalidRequest, ProviderError, ValidationError
from chatrelay.domain.chat import Message, ProviderMessage, new_message_id
from chatrelay.domain.events import Done, ProviderFailure, TextDelta, TextStart
from chatrelay.domain.frames import (
    ErrorFrame,
    FinishFrame,
    Frame,
    StartFrame,
    TextDeltaFrame,
    TextStartFrame,
)
from chatrelay.domain.models import ModelDescriptor
from chatrelay.providers.base import GatewayAdapter
from chatrelay.relay.catalog import to_descriptors
from chatrelay.relay.conversion import to_provider_format

log = logging.getLogger(__name__)

NO_TERMINAL_EVENT = "Provider stream ended without a terminal event"
INTERNAL_ERROR = "Internal error while streaming the response"


def validate_model_id(model_id: str | None) -> str:
    model = (model_id or "").strip()
    if not model:
        raise InvalidRequest("Model is required")
    return model


class StreamRelay:
    """Runs one chat turn against a gateway and re-frames its output.

    Holds no state between turns; one instance may serve concurrent requests.
    """

    def __init__(self, gateway: GatewayAdapter):
        self._gateway = gateway

    def handle_chat_request(
        self, history: Sequence[Message], model_id: str | None
    ) -> AsyncIterator[Frame]:
        """Validate eagerly, then return the lazy frame stream.

        Raises InvalidRequest before the provider is contacted.
        """
        model = validate_model_id(model_id)
        try:
            provider_messages = to_provider_format(history)
        except ValidationError as e:
            raise InvalidRequest(e.detail) from e
        return self._frames(model, provider_messages)

    async def _frames(
        self, model: str, provider_messages: list[ProviderMessage]
    ) -> AsyncIterator[Frame]:
        yield StartFrame(message_id=new_message_id())
        try:
            async with aclosing(self._gateway.stream_completion(model, provider_messages)) as events:
                async for event in events:
                    if isinstance(event, TextDelta):
                        yield TextDeltaFrame(text=event.text)
                    elif isinstance(event, TextStart):
                        yield TextStartFrame()
                    elif isinstance(event, Done):
                        yield FinishFrame(finish_reason=event.finish_reason)
                        return
                    elif isinstance(event, ProviderFailure):
                        log.warning("relay.provider_failure", extra={"model": model, "reason": event.reason})
                        yield ErrorFrame(error_text=event.reason)
                        return
        except ProviderError as e:
            yield ErrorFrame(error_text=e.detail)
            return
        except Exception:
            log.exception("relay.stream_failed", extra={"model": model})
            yield ErrorFrame(error_text=INTERNAL_ERROR)
            return
        log.warning("relay.no_terminal_event", extra={"model": model})
        yield ErrorFrame(error_text=NO_TERMINAL_EVENT)

    async def list_models(self) -> list[ModelDescriptor]:
        entries = await self._gateway.list_models()
        return to_descriptors(entries)
