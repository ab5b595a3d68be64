"""Tests for UaePassSettings defaults and env loading."""
import httpx
import pytest

from uaepass.config import DEFAULT_ACR_VALUES, DEFAULT_SCOPE, Environment, UaePassSettings


def test_defaults_follow_environment():
    s = UaePassSettings(client_id="c", client_secret="s", redirect_uri="https://r")
    assert s.environment is Environment.STAGING
    assert s.base_url == "https://stg-id.uaepass.ae"
    assert s.scope == DEFAULT_SCOPE
    assert s.response_type == "code"
    assert s.timeout_seconds == 30
    assert s.enable_logging is False

    prod = UaePassSettings(client_id="c", client_secret="s", redirect_uri="https://r", environment="production")
    assert prod.base_url == "https://id.uaepass.ae"


def test_explicit_base_url_trailing_slash_stripped():
    s = UaePassSettings(client_id="c", client_secret="s", redirect_uri="https://r", base_url="https://idp.test/")
    assert s.endpoint("token") == "https://idp.test/idshub/token"
    assert s.resolved_jwks_uri == "https://idp.test/idshub/jwks"
    assert s.resolved_issuer == "https://idp.test/idshub"


def test_proxy_with_credentials():
    s = UaePassSettings(
        client_id="c",
        client_secret="s",
        redirect_uri="https://r",
        proxy_url="http://proxy.corp:3128",
        proxy_username="u",
        proxy_password="p",
    )
    proxy = s.build_proxy()
    assert isinstance(proxy, httpx.Proxy)
    assert proxy.url.host == "proxy.corp"
    assert proxy.auth == ("u", "p")


def test_no_proxy_by_default():
    s = UaePassSettings(client_id="c", client_secret="s", redirect_uri="https://r")
    assert s.build_proxy() is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("UAEPASS_CLIENT_ID", "env-client")
    monkeypatch.setenv("UAEPASS_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("UAEPASS_REDIRECT_URI", "https://app.test/callback")
    monkeypatch.setenv("UAEPASS_ENVIRONMENT", "Production")
    monkeypatch.setenv("UAEPASS_TIMEOUT_SECONDS", "12")
    monkeypatch.setenv("UAEPASS_ENABLE_LOGGING", "true")
    monkeypatch.delenv("UAEPASS_BASE_URL", raising=False)
    monkeypatch.delenv("UAEPASS_ACR_VALUES", raising=False)
    s = UaePassSettings.from_env()
    assert s.client_id == "env-client"
    assert s.client_secret == "env-secret"
    assert s.redirect_uri == "https://app.test/callback"
    assert s.environment is Environment.PRODUCTION
    assert s.base_url == "https://id.uaepass.ae"
    assert s.timeout_seconds == 12.0
    assert s.enable_logging is True
    assert s.acr_values == DEFAULT_ACR_VALUES


def test_unknown_environment_rejected():
    with pytest.raises(ValueError):
        UaePassSettings(client_id="c", client_secret="s", redirect_uri="https://r", environment="qa")
