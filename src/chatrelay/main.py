from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chatrelay import __version__
from chatrelay.api import api_router
from chatrelay.core.config import get_settings, resolve_gateway_api_key
from chatrelay.core.errors import ChatRelayError, ConfigurationError, to_http_exception
from chatrelay.core.logging import configure_logging
from chatrelay.core.middleware import RequestIdMiddleware
from chatrelay.providers.registry import create_http_client

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(level=settings.chatrelay_log_level)
    log.info("app.start", extra={"env": settings.chatrelay_env, "provider": settings.gateway_provider})
    if resolve_gateway_api_key(settings) is None:
        # Requests will fail with ConfigurationError until a key is provided.
        log.error("app.config.missing_gateway_api_key")

    gateway_client: httpx.AsyncClient = create_http_client(settings)
    app.state.gateway_http_client = gateway_client
    yield
    await gateway_client.aclose()
    log.info("app.stop")


async def _chatrelay_error_handler(request: Request, exc: ChatRelayError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        log.error("app.config.error", extra={"detail": exc.detail, "path": request.url.path})
    http_exc = to_http_exception(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def create_app() -> FastAPI:
    app = FastAPI(title="ChatRelay", version=__version__, lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(ChatRelayError, _chatrelay_error_handler)
    app.include_router(api_router)
    return app


app = create_app()
