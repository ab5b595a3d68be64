"""
Pytest configuration for demo_web. Provider calls go to an httpx MockTransport; analytics to tmp_path.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from demo_web import session_store
from demo_web.analytics import DataCollectionStore, get_store
from demo_web.main import app, get_uaepass_client
from uaepass.client import UaePassClient
from uaepass.config import UaePassSettings

PROFILE = {
    "sub": "uaepass-sub-1",
    "uuid": "u-1",
    "userType": "SOP3",
    "idn": "784-1990-1234567-1",
    "fullnameEN": "Ali Saeed",
    "fullnameAR": "علي سعيد",
    "email": "ali@example.ae",
    "mobile": "971500000000",
}


class FakeProvider:
    """Minimal UAE PASS: /idshub/token and /idshub/userinfo with configurable replies."""

    def __init__(self):
        self.token_status = 200
        self.token_payload = {"access_token": "at-1", "token_type": "Bearer", "expires_in": 3600}
        self.userinfo_status = 200
        self.userinfo_payload = dict(PROFILE)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/idshub/token":
            return httpx.Response(self.token_status, json=self.token_payload)
        if request.url.path == "/idshub/userinfo":
            return httpx.Response(self.userinfo_status, json=self.userinfo_payload)
        return httpx.Response(404, text="not found")


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def uaepass_client(provider):
    settings = UaePassSettings(
        base_url="https://stg-id.uaepass.ae",
        client_id="sandbox_stage",
        client_secret="sandbox_secret",
        redirect_uri="http://127.0.0.1:8000/callback",
    )
    client = UaePassClient(settings, http_client=httpx.Client(transport=httpx.MockTransport(provider)))
    yield client
    client._http.close()


@pytest.fixture
def store(tmp_path):
    return DataCollectionStore(tmp_path / "data-collection" / "user-data.json")


@pytest.fixture
def client(uaepass_client, store):
    app.dependency_overrides[get_uaepass_client] = lambda: uaepass_client
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
    session_store.clear_all()
