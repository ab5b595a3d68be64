"""
Demo web configuration. Provider settings come from UAEPASS_* env vars (see uaepass.config).
"""
import os

from uaepass.config import UaePassSettings
from uaepass.validation import DEFAULT_SUPPORTED_USER_TYPES

# Where UAE PASS sends the browser after /idshub/logout
LOGOUT_REDIRECT_URL = os.environ.get("DEMO_LOGOUT_REDIRECT_URL", "http://127.0.0.1:8000/")

# Comma-separated allowlist, case-insensitive
SUPPORTED_USER_TYPES = tuple(
    t.strip()
    for t in os.environ.get("DEMO_SUPPORTED_USER_TYPES", ",".join(DEFAULT_SUPPORTED_USER_TYPES)).split(",")
    if t.strip()
)

# Pending login attempt lifetime (user has this long to finish at UAE PASS)
FLOW_TTL_SECONDS = int(os.environ.get("DEMO_FLOW_TTL_SECONDS", "600"))

# Idle lifetime of an authenticated demo session
SESSION_TTL_SECONDS = int(os.environ.get("DEMO_SESSION_TTL_SECONDS", "3600"))

# Verify id_token (when the provider returns one) before accepting the login
VERIFY_ID_TOKEN = os.environ.get("UAEPASS_VERIFY_ID_TOKEN", "").strip().lower() in ("1", "true", "yes", "on")

# Analytics JSON file (visits + page feedback)
DATA_COLLECTION_PATH = os.environ.get("DEMO_DATA_COLLECTION_PATH", "data-collection/user-data.json")

# Cookies carrying the login attempt id and the session id; values are opaque server-side keys
ATTEMPT_COOKIE = "uaepass_attempt"
SESSION_COOKIE = "uaepass_session"
COOKIE_SECURE = os.environ.get("DEMO_COOKIE_SECURE", "").strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> UaePassSettings:
    return UaePassSettings.from_env()
