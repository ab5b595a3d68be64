"""
In-memory store for pending login attempts (attempt_id -> expected state, nonce).
Used between /login and /callback. Entries are one-time: get_flow removes them. TTL to avoid unbounded growth.
"""
import threading
import time
from dataclasses import dataclass

from demo_web.config import FLOW_TTL_SECONDS


@dataclass
class PendingFlow:
    state: str
    nonce: str | None
    created_at: float

    def expired(self, ttl: float = FLOW_TTL_SECONDS) -> bool:
        return (time.monotonic() - self.created_at) > ttl


_pending: dict[str, PendingFlow] = {}
_lock = threading.Lock()


def store_flow(attempt_id: str, state: str, nonce: str | None = None) -> None:
    with _lock:
        _clean_expired()
        _pending[attempt_id] = PendingFlow(state=state, nonce=nonce, created_at=time.monotonic())


def get_flow(attempt_id: str | None) -> PendingFlow | None:
    """Pop the pending flow; None if unknown or expired."""
    if not attempt_id:
        return None
    with _lock:
        flow = _pending.pop(attempt_id, None)
    if flow is None or flow.expired():
        return None
    return flow


def _clean_expired() -> None:
    now = time.monotonic()
    expired = [a for a, f in _pending.items() if (now - f.created_at) > FLOW_TTL_SECONDS]
    for a in expired:
        del _pending[a]
