"""
Error taxonomy for the UAE PASS client.
Nothing here is retried automatically; callers decide what to do with each failure.
"""


class UaePassError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgument(UaePassError, ValueError):
    """Required caller input is missing or empty. Raised before any network call."""


class UpstreamError(UaePassError):
    """
    Provider answered with a non-2xx status, or the request never completed.
    status_code is None for transport failures (connect error, timeout).
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProtocolError(UaePassError):
    """2xx response that does not match the expected JSON contract."""


class StateMismatchError(UaePassError):
    """Callback state does not match the state issued for this login attempt (possible CSRF)."""


class IdentityRejected(UaePassError):
    """Profile was fetched but does not qualify as an authenticated identity."""


class UnsupportedUserType(IdentityRejected):
    def __init__(self, user_type: str | None):
        super().__init__(f"User type '{user_type or ''}' is not supported")
        self.user_type = user_type


class IdentityNotVerified(IdentityRejected):
    def __init__(self):
        super().__init__("User Emirates ID is not verified")


class IdTokenError(UaePassError):
    """ID token failed signature or claim verification."""
