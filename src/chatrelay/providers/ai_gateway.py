from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from chatrelay.core.errors import ProviderError
from chatrelay.domain.chat import ProviderMessage
from chatrelay.domain.events import Done, ProviderEvent, ProviderFailure, TextDelta
from chatrelay.domain.models import CatalogEntry
from chatrelay.providers.base import GatewayAdapter

log = logging.getLogger(__name__)

_DETAIL_LIMIT = 500


def _safe_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _truncate(detail: str) -> str:
    if len(detail) > _DETAIL_LIMIT:
        return detail[:_DETAIL_LIMIT] + "…"
    return detail


def _error_reason(obj: dict[str, Any]) -> str:
    err = obj.get("error")
    if isinstance(err, dict):
        return _safe_text(err.get("message")) or json.dumps(err, ensure_ascii=False)[:_DETAIL_LIMIT]
    return _safe_text(err)


class AIGatewayAdapter(GatewayAdapter):
    """AI Gateway over its OpenAI-compatible HTTP API."""

    name = "ai-gateway"

    def __init__(self, *, client: httpx.AsyncClient, api_key: str):
        self._client = client
        self._headers = {"Authorization": f"Bearer {api_key}"}

    async def list_models(self) -> list[CatalogEntry]:
        try:
            resp = await self._client.get("/models", headers=self._headers)
        except httpx.TimeoutException as e:
            log.exception("Gateway models request timed out: %s", e)
            raise ProviderError("Gateway models request timed out", timeout=True) from e
        except httpx.HTTPError as e:
            log.exception("Gateway models request failed: %s", e)
            raise ProviderError("Gateway models request failed") from e

        if resp.status_code >= 400:
            raise ProviderError(f"Gateway models request failed ({resp.status_code})")

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError("Gateway returned a malformed model catalog") from e

        items = data.get("data") if isinstance(data, dict) else None
        if items is None and isinstance(data, dict):
            items = []
        if not isinstance(items, list):
            raise ProviderError("Gateway returned a malformed model catalog")

        out: list[CatalogEntry] = []
        for item in items:
            if not isinstance(item, dict):
                raise ProviderError("Gateway returned a malformed model catalog")
            model_id = item.get("id")
            if not model_id:
                continue
            out.append(
                CatalogEntry(
                    id=str(model_id),
                    name=_safe_text(item.get("name")) or None,
                    category=_safe_text(item.get("type")) or None,
                )
            )
        return out

    async def stream_completion(
        self, model_id: str, messages: list[ProviderMessage]
    ) -> AsyncIterator[ProviderEvent]:
        payload: dict[str, Any] = {
            "model": model_id,
            "messages": [m.model_dump(mode="json") for m in messages],
            "stream": True,
        }

        finish_reason: str | None = None
        try:
            async with self._client.stream(
                "POST", "/chat/completions", json=payload, headers=self._headers
            ) as resp:
                if resp.status_code >= 400:
                    body = await resp.aread()
                    detail = _truncate(body.decode("utf-8", errors="replace"))
                    yield ProviderFailure(f"Gateway returned {resp.status_code}: {detail}")
                    return

                async for line in resp.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data_part = line[5:].strip()
                    if data_part == "[DONE]":
                        yield Done(finish_reason=finish_reason)
                        return
                    try:
                        obj = json.loads(data_part)
                    except json.JSONDecodeError:
                        yield ProviderFailure(f"Gateway sent a malformed chunk: {_truncate(data_part)}")
                        return
                    if obj.get("error"):
                        yield ProviderFailure(_error_reason(obj) or "Gateway reported an error")
                        return
                    for choice in obj.get("choices") or []:
                        delta = choice.get("delta") or {}
                        text = delta.get("content")
                        if text:
                            yield TextDelta(text=_safe_text(text))
                        if choice.get("finish_reason"):
                            finish_reason = _safe_text(choice["finish_reason"])
        except httpx.TimeoutException as e:
            log.exception("Gateway streaming timed out: %s", e)
            raise ProviderError("Gateway streaming timed out", timeout=True) from e
        except httpx.HTTPError as e:
            log.exception("Gateway streaming failed: %s", e)
            raise ProviderError("Gateway streaming request failed") from e

        # Some upstreams close the stream after finish_reason without sending [DONE].
        if finish_reason is not None:
            yield Done(finish_reason=finish_reason)
        else:
            yield ProviderFailure("Gateway stream ended unexpectedly")
