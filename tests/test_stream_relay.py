from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from chatrelay.core.errors import InvalidRequest, ProviderError
from chatrelay.domain.chat import Message, ProviderMessage, TextPart
from chatrelay.domain.events import Done, ProviderEvent, ProviderFailure, TextDelta, TextStart
from chatrelay.domain.frames import (
    ErrorFrame,
    FinishFrame,
    StartFrame,
    TextDeltaFrame,
    TextStartFrame,
    is_terminal,
)
from chatrelay.providers.base import GatewayAdapter
from chatrelay.relay.stream import INTERNAL_ERROR, NO_TERMINAL_EVENT, StreamRelay


class ScriptedAdapter(GatewayAdapter):
    """Replays a fixed list of events; an Exception instance in the list is raised."""

    name = "scripted"

    def __init__(self, events: list[ProviderEvent | Exception]) -> None:
        self.events = events
        self.calls: list[tuple[str, list[ProviderMessage]]] = []
        self.closed = False

    async def list_models(self):
        return []

    async def stream_completion(
        self, model_id: str, messages: list[ProviderMessage]
    ) -> AsyncIterator[ProviderEvent]:
        self.calls.append((model_id, messages))
        try:
            for event in self.events:
                if isinstance(event, Exception):
                    raise event
                yield event
        finally:
            self.closed = True


def _history() -> list[Message]:
    return [Message(id="u1", role="user", parts=[TextPart(text="hi")])]


async def _collect(relay: StreamRelay, model: str = "m1", history: list[Message] | None = None):
    return [f async for f in relay.handle_chat_request(history or _history(), model)]


@pytest.mark.asyncio
async def test_relays_deltas_in_order_then_finish() -> None:
    adapter = ScriptedAdapter([TextDelta("Hel"), TextDelta("lo"), Done("stop")])
    frames = await _collect(StreamRelay(adapter))

    assert isinstance(frames[0], StartFrame)
    assert frames[0].message_id
    assert frames[1:] == [TextDeltaFrame(text="Hel"), TextDeltaFrame(text="lo"), FinishFrame(finish_reason="stop")]
    assert adapter.calls == [("m1", [ProviderMessage(role="user", content="hi")])]
    assert adapter.closed


@pytest.mark.asyncio
async def test_text_start_is_forwarded() -> None:
    adapter = ScriptedAdapter([TextDelta("a"), TextStart(), TextDelta("b"), Done()])
    frames = await _collect(StreamRelay(adapter))
    assert [f.type for f in frames] == ["start", "text-delta", "text-start", "text-delta", "finish"]
    assert isinstance(frames[2], TextStartFrame)


@pytest.mark.asyncio
async def test_provider_failure_becomes_terminal_error_frame() -> None:
    adapter = ScriptedAdapter([TextDelta("par"), ProviderFailure("rate limited"), TextDelta("late")])
    frames = await _collect(StreamRelay(adapter))

    assert frames[-1] == ErrorFrame(error_text="rate limited")
    assert [f for f in frames if is_terminal(f)] == [frames[-1]]
    assert TextDeltaFrame(text="late") not in frames
    assert adapter.closed


@pytest.mark.asyncio
async def test_raised_provider_error_becomes_error_frame() -> None:
    adapter = ScriptedAdapter([TextDelta("par"), ProviderError("Gateway streaming request failed")])
    frames = await _collect(StreamRelay(adapter))

    assert frames[-2] == TextDeltaFrame(text="par")
    assert frames[-1] == ErrorFrame(error_text="Gateway streaming request failed")


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_error_frame() -> None:
    adapter = ScriptedAdapter([RuntimeError("kaboom")])
    frames = await _collect(StreamRelay(adapter))
    assert frames[-1] == ErrorFrame(error_text=INTERNAL_ERROR)


@pytest.mark.asyncio
async def test_stream_without_terminal_event_ends_with_error() -> None:
    adapter = ScriptedAdapter([TextDelta("cut")])
    frames = await _collect(StreamRelay(adapter))
    assert frames[-1] == ErrorFrame(error_text=NO_TERMINAL_EVENT)


@pytest.mark.asyncio
async def test_exactly_one_terminal_frame() -> None:
    scripts: list[list[ProviderEvent | Exception]] = [
        [Done()],
        [TextDelta("x"), Done(), Done()],
        [ProviderFailure("a"), Done()],
        [TextDelta("x")],
        [ProviderError("down")],
    ]
    for script in scripts:
        frames = await _collect(StreamRelay(ScriptedAdapter(script)))
        assert sum(1 for f in frames if is_terminal(f)) == 1
        assert is_terminal(frames[-1])


@pytest.mark.asyncio
@pytest.mark.parametrize("model", ["", "   ", None])
async def test_blank_model_is_invalid_request(model) -> None:
    adapter = ScriptedAdapter([Done()])
    with pytest.raises(InvalidRequest):
        StreamRelay(adapter).handle_chat_request(_history(), model)
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_model_id_is_trimmed() -> None:
    adapter = ScriptedAdapter([Done()])
    await _collect(StreamRelay(adapter), model="  openai/gpt-4o  ")
    assert adapter.calls[0][0] == "openai/gpt-4o"


@pytest.mark.asyncio
async def test_conversion_error_aborts_before_provider_call() -> None:
    adapter = ScriptedAdapter([Done()])
    relay = StreamRelay(adapter)

    with pytest.raises(InvalidRequest):
        relay.handle_chat_request([], "m1")
    with pytest.raises(InvalidRequest):
        relay.handle_chat_request([Message(role="robot", parts=[TextPart(text="x")])], "m1")
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_closing_the_frame_stream_closes_the_provider_stream() -> None:
    adapter = ScriptedAdapter([TextDelta("a"), TextDelta("b"), Done()])
    frames = StreamRelay(adapter).handle_chat_request(_history(), "m1")

    assert isinstance(await anext(frames), StartFrame)
    assert await anext(frames) == TextDeltaFrame(text="a")
    await frames.aclose()

    assert adapter.closed
