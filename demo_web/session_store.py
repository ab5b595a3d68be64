"""
In-memory store for authenticated demo sessions (session_id -> UserSession).
Keeps only what the profile page shows; no tokens are retained after login.
"""
import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from demo_web.config import SESSION_TTL_SECONDS
from uaepass.models import UserProfile


@dataclass
class UserSession:
    emirates_id: str
    user_type: str
    full_name_en: str
    full_name_ar: str | None = None
    email: str | None = None
    mobile: str | None = None
    logged_in_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: float = field(default_factory=time.monotonic)

    def expired(self, ttl: float = SESSION_TTL_SECONDS) -> bool:
        return (time.monotonic() - self.last_seen) > ttl

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserSession":
        return cls(
            emirates_id=profile.emirates_id,
            user_type=profile.user_type,
            full_name_en=profile.full_name_en,
            full_name_ar=profile.full_name_ar,
            email=profile.email,
            mobile=profile.mobile,
        )


_sessions: dict[str, UserSession] = {}
_lock = threading.Lock()


def create_session(user: UserSession) -> str:
    """Store the session under a fresh id and return the id (for the cookie)."""
    session_id = secrets.token_urlsafe(32)
    with _lock:
        _sessions[session_id] = user
    return session_id


def get_session(session_id: str | None) -> UserSession | None:
    if not session_id:
        return None
    with _lock:
        user = _sessions.get(session_id)
        if user is None:
            return None
        if user.expired():
            del _sessions[session_id]
            return None
        user.last_seen = time.monotonic()
        return user


def clear_session(session_id: str | None) -> UserSession | None:
    if not session_id:
        return None
    with _lock:
        return _sessions.pop(session_id, None)


def clear_all() -> None:
    with _lock:
        _sessions.clear()
