"""
Authorization and logout URL helpers for UAE PASS login initiation.
State and nonce generation for the authorization request.

The authorize URL carries raw (not percent-encoded) values because the UAE PASS
staging API expects them that way; the logout redirect_uri IS percent-encoded.
Keep both behaviours until confirmed against current provider documentation.
"""
import secrets
from urllib.parse import quote

from uaepass.errors import InvalidArgument


def generate_state() -> str:
    """Opaque value for CSRF protection; returned in callback."""
    return secrets.token_urlsafe(32)


def generate_nonce() -> str:
    """Random value for ID token binding (optional for UAE PASS)."""
    return secrets.token_urlsafe(32)


def build_authorize_url(
    *,
    base_url: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
    response_type: str = "code",
    acr_values: str | None = None,
    nonce: str | None = None,
    prompt: str | None = None,
    ui_locales: str | None = None,
) -> str:
    """Build {base}/idshub/authorize URL with required and optional params, unencoded."""
    if not state:
        raise InvalidArgument("State parameter is required")
    params = [
        ("response_type", response_type),
        ("client_id", client_id),
        ("scope", scope),
        ("state", state),
        ("redirect_uri", redirect_uri),
    ]
    if acr_values:
        params.append(("acr_values", acr_values))
    if nonce:
        params.append(("nonce", nonce))
    if prompt:
        params.append(("prompt", prompt))
    if ui_locales:
        params.append(("ui_locales", ui_locales))
    query = "&".join(f"{key}={value}" for key, value in params)
    return f"{base_url.rstrip('/')}/idshub/authorize?{query}"


def build_logout_url(*, base_url: str, redirect_uri: str | None = None) -> str:
    """Build {base}/idshub/logout, with a percent-encoded redirect_uri when given."""
    url = f"{base_url.rstrip('/')}/idshub/logout"
    if redirect_uri:
        url += f"?redirect_uri={quote(redirect_uri, safe='')}"
    return url
