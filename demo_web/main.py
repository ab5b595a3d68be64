"""
Demo relying party for UAE PASS.
GET /login redirects to UAE PASS; /callback checks state, exchanges the code, loads the profile
and opens a server-side session; /profile shows it; /logout ends it at both ends.
Port 8000.
"""
import html
import logging
import secrets
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from demo_web.analytics import DataCollectionStore, get_store
from demo_web.analytics import router as analytics_router
from demo_web.config import (
    ATTEMPT_COOKIE,
    COOKIE_SECURE,
    FLOW_TTL_SECONDS,
    LOGOUT_REDIRECT_URL,
    SESSION_COOKIE,
    SESSION_TTL_SECONDS,
    SUPPORTED_USER_TYPES,
    VERIFY_ID_TOKEN,
    load_settings,
)
from demo_web.flow_store import get_flow, store_flow
from demo_web.login_flow import complete_login
from demo_web.session_store import UserSession, clear_session, create_session, get_session
from uaepass.authorize import generate_nonce, generate_state
from uaepass.client import UaePassClient
from uaepass.errors import ProtocolError, StateMismatchError, UaePassError, UpstreamError

logger = logging.getLogger(__name__)

_client: UaePassClient | None = None


def get_uaepass_client() -> UaePassClient:
    """Dependency: shared protocol client built from UAEPASS_* env vars."""
    global _client
    if _client is None:
        _client = UaePassClient(load_settings())
    return _client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the shared httpx pool on shutdown."""
    yield
    global _client
    if _client is not None:
        _client.close()
        _client = None


app = FastAPI(title="UAE PASS Demo", version="1.0.0", lifespan=lifespan)
app.include_router(analytics_router)


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body>
{body}
  <p><a href="/">Home</a></p>
</body>
</html>""",
        status_code=status_code,
    )


def _error_page(message: str, status_code: int, correlation_id: str = "") -> HTMLResponse:
    ref = f"\n  <p>Reference: <code>{html.escape(correlation_id)}</code></p>" if correlation_id else ""
    return _page("Error", f"  <h1>Error</h1>\n  <p>{html.escape(message)}</p>{ref}", status_code)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "demo_web"}


@app.get("/", response_class=HTMLResponse)
def home():
    """Home page with login, profile and analytics links."""
    return _page(
        "UAE PASS Demo",
        """  <h1>UAE PASS integration demo</h1>
  <p><a href="/login">Log in with UAE PASS</a></p>
  <p><a href="/profile">Profile</a> (requires login)</p>
  <p><a href="/about">About</a> | <a href="/analytics">Analytics</a></p>""",
    )


@app.get("/about", response_class=HTMLResponse)
def about():
    return _page(
        "About",
        """  <h1>About</h1>
  <p>Relying-party demo for UAE PASS: authorization code flow with Basic client authentication,
  userinfo retrieval, user-type allowlist and Emirates ID checks.</p>""",
    )


@app.get("/analytics", response_class=HTMLResponse)
def analytics_page(store: DataCollectionStore = Depends(get_store)):
    """Read-only summary of recorded visits and feedback."""
    try:
        data = store.load()
    except OSError:
        logger.exception("Error loading analytics data")
        return _error_page("Analytics data is unavailable.", 500)
    helpful = sum(1 for f in data.page_feedback if f.was_helpful)
    return _page(
        "Analytics",
        f"""  <h1>Analytics</h1>
  <ul>
    <li>Total visits: {len(data.user_visits)}</li>
    <li>Total feedback: {len(data.page_feedback)}</li>
    <li>Helpful: {helpful}</li>
    <li>Not helpful: {len(data.page_feedback) - helpful}</li>
    <li>Last updated: {html.escape(data.last_updated.isoformat())}</li>
  </ul>""",
    )


@app.get("/login")
def login(client: UaePassClient = Depends(get_uaepass_client)):
    """
    Generate state (and nonce when id_token verification is on); remember them under a fresh
    attempt id; redirect to UAE PASS /idshub/authorize.
    """
    state = generate_state()
    # UAE PASS does not require nonce; only send one when it will be checked
    nonce = generate_nonce() if VERIFY_ID_TOKEN else None
    attempt_id = secrets.token_urlsafe(32)
    store_flow(attempt_id, state=state, nonce=nonce)

    url = client.build_authorization_url(state, nonce=nonce)
    logger.info("Redirecting user to UAE PASS authorization")
    response = RedirectResponse(url=url, status_code=302)
    response.set_cookie(
        ATTEMPT_COOKIE,
        attempt_id,
        max_age=FLOW_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )
    return response


@app.get("/callback", response_class=HTMLResponse)
def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    client: UaePassClient = Depends(get_uaepass_client),
):
    """
    Handle redirect from UAE PASS. The pending attempt is consumed on every path,
    so a state can be used at most once.
    """
    correlation_id = str(uuid.uuid4())
    logger.info(
        "UAE PASS callback received. CorrelationId: %s, Code: %s, State: %s",
        correlation_id,
        bool(code),
        bool(state),
    )
    flow = get_flow(request.cookies.get(ATTEMPT_COOKIE))

    if error:
        logger.error("UAE PASS authorization error. CorrelationId: %s, Error: %s", correlation_id, error)
        response = _error_page(
            f"UAE PASS authorization failed: {error} - {error_description or ''}", 400, correlation_id
        )
    elif not code or not state:
        logger.error("Missing parameters. CorrelationId: %s", correlation_id)
        response = _error_page("Missing required parameters: code or state", 400, correlation_id)
    else:
        try:
            profile = complete_login(
                client,
                flow,
                code=code,
                state=state,
                supported_user_types=SUPPORTED_USER_TYPES,
                verify_id_token=VERIFY_ID_TOKEN,
                correlation_id=correlation_id,
            )
        except StateMismatchError as e:
            logger.warning("State validation failed. CorrelationId: %s", correlation_id)
            response = _error_page(str(e), 400, correlation_id)
        except (UpstreamError, ProtocolError) as e:
            logger.error("UAE PASS authentication failed. CorrelationId: %s, Error: %s", correlation_id, e)
            response = _error_page("UAE PASS authentication failed. Please try again.", 502, correlation_id)
        except UaePassError as e:
            logger.error("UAE PASS login rejected. CorrelationId: %s, Reason: %s", correlation_id, e)
            response = _error_page(str(e), 400, correlation_id)
        else:
            session_id = create_session(UserSession.from_profile(profile))
            logger.info(
                "UAE PASS authentication successful. CorrelationId: %s, UserType: %s",
                correlation_id,
                profile.user_type,
            )
            response = RedirectResponse(url="/profile", status_code=302)
            response.set_cookie(
                SESSION_COOKIE,
                session_id,
                max_age=SESSION_TTL_SECONDS,
                httponly=True,
                samesite="lax",
                secure=COOKIE_SECURE,
            )

    response.delete_cookie(ATTEMPT_COOKIE)
    return response


@app.get("/profile", response_class=HTMLResponse)
def profile(request: Request):
    user = get_session(request.cookies.get(SESSION_COOKIE))
    if user is None:
        logger.warning("User not authenticated, redirecting to home")
        return RedirectResponse(url="/", status_code=302)
    rows = [
        ("Emirates ID", user.emirates_id),
        ("Name (EN)", user.full_name_en),
        ("Name (AR)", user.full_name_ar),
        ("Email", user.email),
        ("Mobile", user.mobile),
        ("User type", user.user_type),
        ("Logged in at (UTC)", user.logged_in_at.isoformat()),
    ]
    rows_html = "".join(
        f"<tr><th>{html.escape(label)}</th><td>{html.escape(value or '')}</td></tr>" for label, value in rows
    )
    return _page(
        "Profile",
        f"""  <h1>Welcome, {html.escape(user.full_name_en or user.emirates_id)}</h1>
  <table>{rows_html}</table>
  <p><a href="/logout">Log out</a></p>""",
    )


@app.get("/logout")
def logout(request: Request, client: UaePassClient = Depends(get_uaepass_client)):
    """Drop the local session and send the browser to UAE PASS logout."""
    user = clear_session(request.cookies.get(SESSION_COOKIE))
    if user is not None:
        logger.info("User logout. UserType: %s", user.user_type)
    response = RedirectResponse(url=client.build_logout_url(LOGOUT_REDIRECT_URL), status_code=302)
    response.delete_cookie(SESSION_COOKIE)
    return response


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "demo_web.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
