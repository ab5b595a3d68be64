"""
ID token verification via the provider JWKS.
Resolves the signing key by kid, verifies the RS256 signature and iss, aud, exp, iat, nonce.
"""
import logging

import jwt
from jwt import PyJWKClient

from uaepass.errors import IdTokenError, InvalidArgument

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256"]
JWKS_CACHE_LIFESPAN = 300


class IdTokenValidator:
    def __init__(
        self,
        *,
        jwks_uri: str,
        issuer: str,
        audience: str,
        leeway: int = 30,
        jwks_client: PyJWKClient | None = None,
        timeout: float = 30,
    ):
        self.issuer = issuer
        self.audience = audience
        self.leeway = leeway
        # PyJWKClient caches the JWK set and keys
        self._jwks_client = jwks_client or PyJWKClient(
            uri=jwks_uri,
            cache_jwk_set=True,
            lifespan=JWKS_CACHE_LIFESPAN,
            timeout=timeout,
        )

    def verify(self, id_token: str, nonce: str | None = None) -> dict:
        """Return decoded claims. Raises IdTokenError on any verification failure."""
        if not id_token:
            raise InvalidArgument("ID token is required")
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
            claims = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=ALGORITHMS,
                audience=self.audience,
                issuer=self.issuer,
                leeway=self.leeway,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise IdTokenError("ID token expired") from e
        except jwt.InvalidAudienceError as e:
            raise IdTokenError("Invalid audience") from e
        except jwt.InvalidIssuerError as e:
            raise IdTokenError("Invalid issuer") from e
        except jwt.PyJWKClientError as e:
            raise IdTokenError(f"Signing key not available: {e}") from e
        except jwt.InvalidTokenError as e:
            raise IdTokenError(f"ID token verification failed: {e}") from e
        if nonce is not None and claims.get("nonce") != nonce:
            raise IdTokenError("Nonce mismatch")
        return claims

    def is_valid(self, id_token: str, nonce: str | None = None) -> bool:
        """Pass/fail verdict; failures are logged, not raised."""
        try:
            self.verify(id_token, nonce=nonce)
        except IdTokenError as e:
            logger.warning("ID token rejected: %s", e)
            return False
        return True
