"""
Callback sequence: state check, code exchange, userinfo, optional id_token check, identity gate.
The pending flow is passed in explicitly; the caller has already removed it from the store.
"""
import logging
import secrets
from collections.abc import Iterable

from demo_web.flow_store import PendingFlow
from uaepass.client import UaePassClient
from uaepass.errors import StateMismatchError
from uaepass.models import UserProfile
from uaepass.validation import DEFAULT_SUPPORTED_USER_TYPES, ensure_authenticated_profile

logger = logging.getLogger(__name__)


def check_state(flow: PendingFlow | None, received_state: str | None) -> PendingFlow:
    """Raise StateMismatchError unless the received state equals the one issued for this attempt."""
    if flow is None or not received_state:
        raise StateMismatchError("Invalid state parameter - possible CSRF attack")
    if not secrets.compare_digest(flow.state.encode("utf-8"), received_state.encode("utf-8")):
        raise StateMismatchError("Invalid state parameter - possible CSRF attack")
    return flow


def complete_login(
    client: UaePassClient,
    flow: PendingFlow | None,
    *,
    code: str,
    state: str,
    supported_user_types: Iterable[str] = DEFAULT_SUPPORTED_USER_TYPES,
    verify_id_token: bool = False,
    correlation_id: str = "",
) -> UserProfile:
    """
    Run the post-callback steps and return an authenticated profile.
    Any UaePassError propagates; nothing is called on the provider before the state check passes.
    """
    flow = check_state(flow, state)

    logger.info("Exchanging authorization code for token. CorrelationId: %s", correlation_id)
    token = client.exchange_code(code, state)

    if verify_id_token and token.id_token:
        client.verify_id_token(token.id_token, nonce=flow.nonce)

    logger.info("Retrieving user profile. CorrelationId: %s", correlation_id)
    profile = client.get_user_profile(token.access_token)

    return ensure_authenticated_profile(profile, supported_user_types)
