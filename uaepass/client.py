"""
UAE PASS protocol client: authorize URL, code exchange, userinfo, refresh, logout URL, ID token check.

Each call performs at most one HTTP request and never retries; the caller owns any
retry/backoff policy. The client is stateless between calls apart from its httpx pool.
"""
import base64
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from uaepass.authorize import build_authorize_url, build_logout_url
from uaepass.config import UaePassSettings
from uaepass.errors import InvalidArgument, ProtocolError, UpstreamError
from uaepass.id_token import IdTokenValidator
from uaepass.models import TokenResponse, UserProfile

logger = logging.getLogger(__name__)


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """'Basic base64(client_id:client_secret)' per RFC 6749 §2.3.1."""
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class UaePassClient:
    def __init__(
        self,
        settings: UaePassSettings,
        *,
        http_client: httpx.Client | None = None,
        id_token_validator: IdTokenValidator | None = None,
    ):
        self.settings = settings
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(
            timeout=settings.timeout_seconds,
            proxy=settings.build_proxy(),
        )
        self._id_token_validator = id_token_validator

    def __enter__(self) -> "UaePassClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def _debug(self, msg: str, *args: Any) -> None:
        if self.settings.enable_logging:
            logger.debug(msg, *args)

    # --- URL builders (no network) ---

    def build_authorization_url(
        self,
        state: str,
        nonce: str | None = None,
        prompt: str | None = None,
        ui_locales: str | None = None,
    ) -> str:
        s = self.settings
        url = build_authorize_url(
            base_url=s.base_url,
            client_id=s.client_id,
            redirect_uri=s.redirect_uri,
            scope=s.scope,
            state=state,
            response_type=s.response_type,
            acr_values=s.acr_values,
            nonce=nonce,
            prompt=prompt,
            ui_locales=ui_locales,
        )
        self._debug("Generated UAE PASS authorization URL: %s", url)
        return url

    def build_logout_url(self, redirect_uri: str | None = None) -> str:
        url = build_logout_url(base_url=self.settings.base_url, redirect_uri=redirect_uri)
        self._debug("Generated UAE PASS logout URL: %s", url)
        return url

    # --- HTTP calls ---

    def _send(self, method: str, url: str, *, headers: dict[str, str], operation: str, timeout: float | None) -> Any:
        """One request; returns decoded JSON. Maps failures onto UpstreamError / ProtocolError."""
        kwargs = {} if timeout is None else {"timeout": timeout}
        try:
            r = self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("UAE PASS %s request failed: %s", operation, e)
            raise UpstreamError(f"UAE PASS {operation} request failed: {e}") from e

        if not r.is_success:
            logger.error("UAE PASS %s failed with status %s", operation, r.status_code)
            raise UpstreamError(
                f"UAE PASS {operation} failed: {r.status_code} - {r.text}",
                status_code=r.status_code,
                body=r.text,
            )
        try:
            return r.json()
        except ValueError as e:
            raise ProtocolError(f"UAE PASS {operation} returned a non-JSON body") from e

    def _token_request(self, query: str, *, operation: str, timeout: float | None) -> TokenResponse:
        s = self.settings
        # Raw query values, same as the authorize URL
        url = f"{s.endpoint('token')}?{query}"
        self._debug("UAE PASS %s at %s", operation, s.endpoint("token"))
        data = self._send(
            "POST",
            url,
            headers={
                "Authorization": basic_auth_header(s.client_id, s.client_secret),
                "Accept": "application/json",
            },
            operation=operation,
            timeout=timeout,
        )
        if not isinstance(data, dict):
            raise ProtocolError(f"UAE PASS {operation} returned an unexpected payload")
        try:
            token = TokenResponse.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"Failed to parse UAE PASS {operation} response") from e
        if not token.access_token:
            raise ProtocolError("UAE PASS returned empty access token")
        self._debug("UAE PASS %s succeeded", operation)
        return token

    def exchange_code(self, code: str, state: str, *, timeout: float | None = None) -> TokenResponse:
        """
        Exchange the authorization code for tokens. state is required for the caller's own
        correlation but is not sent to the provider.
        """
        if not code:
            raise InvalidArgument("Authorization code is required")
        if not state:
            raise InvalidArgument("State parameter is required")
        query = f"grant_type=authorization_code&redirect_uri={self.settings.redirect_uri}&code={code}"
        return self._token_request(query, operation="token exchange", timeout=timeout)

    def refresh_token(self, refresh_token: str, *, timeout: float | None = None) -> TokenResponse:
        """Exchange a refresh_token for new tokens. Nothing in this package calls it automatically."""
        if not refresh_token:
            raise InvalidArgument("Refresh token is required")
        query = f"grant_type=refresh_token&refresh_token={refresh_token}"
        return self._token_request(query, operation="token refresh", timeout=timeout)

    def get_user_profile(self, access_token: str, *, timeout: float | None = None) -> UserProfile:
        if not access_token:
            raise InvalidArgument("Access token is required")
        url = self.settings.endpoint("userinfo")
        self._debug("Retrieving UAE PASS user profile from %s", url)
        data = self._send(
            "GET",
            url,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
            operation="profile retrieval",
            timeout=timeout,
        )
        if not isinstance(data, dict) or not data:
            raise ProtocolError("UAE PASS returned an empty user profile")
        try:
            profile = UserProfile.model_validate(data)
        except ValidationError as e:
            raise ProtocolError("Failed to parse UAE PASS user profile") from e
        self._debug("Retrieved UAE PASS user profile (userType=%s)", profile.user_type)
        return profile

    # --- ID token ---

    @property
    def id_token_validator(self) -> IdTokenValidator:
        if self._id_token_validator is None:
            s = self.settings
            self._id_token_validator = IdTokenValidator(
                jwks_uri=s.resolved_jwks_uri,
                issuer=s.resolved_issuer,
                audience=s.client_id,
                timeout=s.timeout_seconds,
            )
        return self._id_token_validator

    def verify_id_token(self, id_token: str, nonce: str | None = None) -> dict:
        """Verified claims, or IdTokenError."""
        return self.id_token_validator.verify(id_token, nonce=nonce)

    def validate_id_token(self, id_token: str, nonce: str | None = None) -> bool:
        if not id_token:
            raise InvalidArgument("ID token is required")
        return self.id_token_validator.is_valid(id_token, nonce=nonce)
