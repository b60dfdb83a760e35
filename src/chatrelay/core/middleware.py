from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from chatrelay.core.config import get_settings


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        header_name = settings.chatrelay_request_id_header

        request_id = request.headers.get(header_name) or uuid.uuid4().hex
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        # For streamed responses this only covers time to first byte.
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        response.headers[header_name] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)
        return response
