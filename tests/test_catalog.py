from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from chatrelay.domain.models import CatalogEntry
from chatrelay.providers.base import GatewayAdapter
from chatrelay.relay.catalog import to_descriptors
from chatrelay.relay.stream import StreamRelay

CATALOG = [
    CatalogEntry(id="openai/gpt-4o", name="GPT-4o", category="language"),
    CatalogEntry(id="openai/text-embedding-3-small", name="Embedding", category="embedding"),
    CatalogEntry(id="anthropic/claude-sonnet", name=None, category=None),
    CatalogEntry(id="openai/gpt-4o", name="GPT-4o duplicate", category="language"),
    CatalogEntry(id="google/imagen", name="Imagen", category="image"),
    CatalogEntry(id="alibaba/qwen-plus", name="Qwen Plus"),
]


class CatalogAdapter(GatewayAdapter):
    name = "dummy"

    def __init__(self) -> None:
        self.calls = 0

    async def list_models(self) -> list[CatalogEntry]:
        self.calls += 1
        return list(CATALOG)

    async def stream_completion(self, model_id, messages) -> AsyncIterator:
        raise NotImplementedError
        yield


def test_filters_dedupes_and_sorts() -> None:
    out = to_descriptors(CATALOG)

    assert [m.id for m in out] == ["alibaba/qwen-plus", "anthropic/claude-sonnet", "openai/gpt-4o"]
    # First occurrence wins; missing names fall back to the id.
    assert out[2].name == "GPT-4o"
    assert out[1].name == "anthropic/claude-sonnet"


def test_empty_catalog() -> None:
    assert to_descriptors([]) == []


@pytest.mark.asyncio
async def test_relay_list_models_is_idempotent() -> None:
    adapter = CatalogAdapter()
    relay = StreamRelay(adapter)

    first = await relay.list_models()
    second = await relay.list_models()

    assert first == second
    assert adapter.calls == 2
    ids = [m.id for m in first]
    assert ids == sorted(ids)
    assert len(ids) == len(set(ids))
