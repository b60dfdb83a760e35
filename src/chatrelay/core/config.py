from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from chatrelay.core.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    chatrelay_env: Literal["local", "test", "prod"] = "local"
    chatrelay_log_level: str = "INFO"
    chatrelay_request_id_header: str = "X-Request-ID"
    chatrelay_host: str = "127.0.0.1"
    chatrelay_port: int = 8000

    # Gateway credential: first non-empty one wins.
    ai_gateway_api_key: str | None = None
    vercel_api_sdk_key: str | None = None

    gateway_provider: Literal["ai-gateway"] = "ai-gateway"
    gateway_base_url: str = "https://ai-gateway.vercel.sh/v1"
    gateway_timeout_seconds: float = 120.0
    gateway_connect_timeout_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


def resolve_gateway_api_key(settings: Settings) -> str | None:
    for candidate in (settings.ai_gateway_api_key, settings.vercel_api_sdk_key):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


@lru_cache
def get_gateway_api_key() -> str:
    """Resolve the gateway credential once per process.

    Failures are not cached, so a fixed environment is picked up on the next call.
    """
    api_key = resolve_gateway_api_key(get_settings())
    if api_key is None:
        raise ConfigurationError(
            "Missing AI gateway API key. Set AI_GATEWAY_API_KEY (or VERCEL_API_SDK_KEY)."
        )
    return api_key
