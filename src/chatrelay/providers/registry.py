from __future__ import annotations

from collections.abc import Callable

import httpx

from chatrelay.core.config import Settings
from chatrelay.core.errors import ConfigurationError
from chatrelay.providers.ai_gateway import AIGatewayAdapter
from chatrelay.providers.base import GatewayAdapter

GatewayFactory = Callable[[httpx.AsyncClient, str], GatewayAdapter]

_FACTORIES: dict[str, GatewayFactory] = {
    AIGatewayAdapter.name: lambda client, api_key: AIGatewayAdapter(client=client, api_key=api_key),
}


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.gateway_base_url,
        timeout=httpx.Timeout(
            settings.gateway_timeout_seconds, connect=settings.gateway_connect_timeout_seconds
        ),
    )


def build_gateway(provider: str, *, client: httpx.AsyncClient, api_key: str) -> GatewayAdapter:
    try:
        factory = _FACTORIES[provider]
    except KeyError as e:
        raise ConfigurationError(f"Unknown gateway provider: {provider}") from e
    return factory(client, api_key)
