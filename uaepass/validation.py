"""
User-type allowlist and the authenticated-identity gate applied after userinfo.
"""
from collections.abc import Iterable

from uaepass.errors import IdentityNotVerified, UnsupportedUserType
from uaepass.models import UserProfile

# SOP1 basic, SOP2 and SOP3 verified account levels
DEFAULT_SUPPORTED_USER_TYPES = ("SOP3", "SOP2", "SOP1")


def is_user_type_supported(
    user_type: str | None,
    supported_types: Iterable[str] = DEFAULT_SUPPORTED_USER_TYPES,
) -> bool:
    """Case-insensitive allowlist check. Empty user_type is never supported."""
    if not user_type:
        return False
    wanted = user_type.casefold()
    return any(wanted == t.casefold() for t in supported_types)


def is_authenticated_profile(
    profile: UserProfile,
    supported_types: Iterable[str] = DEFAULT_SUPPORTED_USER_TYPES,
) -> bool:
    return is_user_type_supported(profile.user_type, supported_types) and bool(profile.emirates_id)


def ensure_authenticated_profile(
    profile: UserProfile,
    supported_types: Iterable[str] = DEFAULT_SUPPORTED_USER_TYPES,
) -> UserProfile:
    """Raise UnsupportedUserType or IdentityNotVerified; return the profile when it passes."""
    if not is_user_type_supported(profile.user_type, supported_types):
        raise UnsupportedUserType(profile.user_type)
    if not profile.emirates_id:
        raise IdentityNotVerified()
    return profile
