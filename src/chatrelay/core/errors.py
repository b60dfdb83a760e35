from __future__ import annotations

from fastapi import HTTPException


class ChatRelayError(Exception):
    """Base class for errors raised by the relay and the client."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(ChatRelayError):
    """Conversation history cannot be converted to the provider format."""


class InvalidRequest(ChatRelayError):
    """Request is malformed (blank model id, blank text, unconvertible history)."""


class ConfigurationError(ChatRelayError):
    """Operational misconfiguration, e.g. no gateway credential."""


class ProviderError(ChatRelayError):
    def __init__(self, detail: str, *, timeout: bool = False) -> None:
        super().__init__(detail)
        self.timeout = timeout


class NotFound(ChatRelayError):
    pass


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=400, detail=detail)


def not_found(detail: str = "Not found") -> HTTPException:
    return HTTPException(status_code=404, detail=detail)


def internal_error(detail: str = "Internal server error") -> HTTPException:
    return HTTPException(status_code=500, detail=detail)


def bad_gateway(detail: str = "Bad gateway") -> HTTPException:
    return HTTPException(status_code=502, detail=detail)


def gateway_timeout(detail: str = "Gateway timeout") -> HTTPException:
    return HTTPException(status_code=504, detail=detail)


def to_http_exception(exc: ChatRelayError) -> HTTPException:
    if isinstance(exc, (InvalidRequest, ValidationError)):
        return bad_request(exc.detail)
    if isinstance(exc, NotFound):
        return not_found(exc.detail)
    if isinstance(exc, ProviderError):
        return gateway_timeout(exc.detail) if exc.timeout else bad_gateway(exc.detail)
    return internal_error(exc.detail)
