from __future__ import annotations

from fastapi import Depends, Request

from chatrelay.core.config import get_gateway_api_key, get_settings
from chatrelay.core.errors import ConfigurationError
from chatrelay.providers.base import GatewayAdapter
from chatrelay.providers.registry import build_gateway
from chatrelay.relay.stream import StreamRelay


def get_gateway(request: Request) -> GatewayAdapter:
    settings = get_settings()
    client = getattr(request.app.state, "gateway_http_client", None)
    if client is None:
        raise ConfigurationError("Gateway HTTP client is not configured")
    return build_gateway(settings.gateway_provider, client=client, api_key=get_gateway_api_key())


def get_relay(gateway: GatewayAdapter = Depends(get_gateway)) -> StreamRelay:
    return StreamRelay(gateway)
