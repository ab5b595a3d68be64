"""
UAE PASS client configuration. Values come from the caller or from UAEPASS_* env vars.
No secrets in this file; client_secret comes from env or the caller.
"""
import enum
import os
from dataclasses import dataclass

import httpx


class Environment(str, enum.Enum):
    STAGING = "staging"
    PRODUCTION = "production"


BASE_URLS = {
    Environment.STAGING: "https://stg-id.uaepass.ae",
    Environment.PRODUCTION: "https://id.uaepass.ae",
}

DEFAULT_SCOPE = "urn:uae:digitalid:profile:general"
DEFAULT_ACR_VALUES = "urn:safelayer:tws:policies:authentication:level:low"
DEFAULT_TIMEOUT_SECONDS = 30.0


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class UaePassSettings:
    client_id: str
    client_secret: str
    redirect_uri: str
    base_url: str = ""
    scope: str = DEFAULT_SCOPE
    # Authorization code flow only
    response_type: str = "code"
    acr_values: str | None = DEFAULT_ACR_VALUES
    environment: Environment = Environment.STAGING
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    enable_logging: bool = False
    proxy_url: str | None = None
    proxy_username: str | None = None
    proxy_password: str | None = None
    jwks_uri: str | None = None
    issuer: str | None = None

    def __post_init__(self) -> None:
        self.environment = Environment(self.environment)
        if not self.base_url:
            self.base_url = BASE_URLS[self.environment]
        self.base_url = self.base_url.rstrip("/")

    def endpoint(self, path: str) -> str:
        """Provider endpoint under /idshub, e.g. endpoint("token")."""
        return f"{self.base_url}/idshub/{path.lstrip('/')}"

    @property
    def resolved_jwks_uri(self) -> str:
        return self.jwks_uri or self.endpoint("jwks")

    @property
    def resolved_issuer(self) -> str:
        return self.issuer or f"{self.base_url}/idshub"

    def build_proxy(self) -> httpx.Proxy | None:
        """httpx proxy for enterprise environments; credentials only when both are set."""
        if not self.proxy_url:
            return None
        if self.proxy_username and self.proxy_password:
            return httpx.Proxy(self.proxy_url, auth=(self.proxy_username, self.proxy_password))
        return httpx.Proxy(self.proxy_url)

    @classmethod
    def from_env(cls) -> "UaePassSettings":
        """Build settings from UAEPASS_* environment variables."""
        return cls(
            client_id=os.environ.get("UAEPASS_CLIENT_ID", ""),
            client_secret=os.environ.get("UAEPASS_CLIENT_SECRET", ""),
            redirect_uri=os.environ.get("UAEPASS_REDIRECT_URI", "http://127.0.0.1:8000/callback"),
            base_url=os.environ.get("UAEPASS_BASE_URL", ""),
            scope=os.environ.get("UAEPASS_SCOPE", DEFAULT_SCOPE),
            acr_values=os.environ.get("UAEPASS_ACR_VALUES", DEFAULT_ACR_VALUES) or None,
            environment=Environment(os.environ.get("UAEPASS_ENVIRONMENT", "staging").strip().lower()),
            timeout_seconds=float(os.environ.get("UAEPASS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
            enable_logging=_env_bool("UAEPASS_ENABLE_LOGGING"),
            proxy_url=os.environ.get("UAEPASS_PROXY_URL") or None,
            proxy_username=os.environ.get("UAEPASS_PROXY_USERNAME") or None,
            proxy_password=os.environ.get("UAEPASS_PROXY_PASSWORD") or None,
            jwks_uri=os.environ.get("UAEPASS_JWKS_URI") or None,
            issuer=os.environ.get("UAEPASS_ISSUER") or None,
        )
