from __future__ import annotations

import pytest

from chatrelay.core.config import Settings, get_gateway_api_key, get_settings, resolve_gateway_api_key
from chatrelay.core.errors import ConfigurationError


def test_primary_key_wins() -> None:
    settings = Settings(ai_gateway_api_key="primary", vercel_api_sdk_key="secondary")
    assert resolve_gateway_api_key(settings) == "primary"


def test_blank_primary_falls_back() -> None:
    settings = Settings(ai_gateway_api_key="  ", vercel_api_sdk_key="secondary")
    assert resolve_gateway_api_key(settings) == "secondary"


def test_no_key() -> None:
    settings = Settings(ai_gateway_api_key=None, vercel_api_sdk_key="")
    assert resolve_gateway_api_key(settings) is None


def test_credential_is_resolved_once_and_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "first")
    get_settings.cache_clear()
    get_gateway_api_key.cache_clear()
    try:
        assert get_gateway_api_key() == "first"
        monkeypatch.setenv("AI_GATEWAY_API_KEY", "second")
        get_settings.cache_clear()
        assert get_gateway_api_key() == "first"
    finally:
        get_settings.cache_clear()
        get_gateway_api_key.cache_clear()


def test_missing_credential_is_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AI_GATEWAY_API_KEY", raising=False)
    monkeypatch.delenv("VERCEL_API_SDK_KEY", raising=False)
    get_settings.cache_clear()
    get_gateway_api_key.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            get_gateway_api_key()
    finally:
        get_settings.cache_clear()
        get_gateway_api_key.cache_clear()
