"""Tests for UaePassClient: token exchange, refresh, userinfo against a mocked provider."""
import base64
import json

import httpx
import pytest

from uaepass.client import UaePassClient, basic_auth_header
from uaepass.config import UaePassSettings
from uaepass.errors import InvalidArgument, ProtocolError, UpstreamError

BASE = "https://stg-id.uaepass.ae"


def _settings(**overrides):
    kwargs = dict(
        base_url=BASE,
        client_id="sandbox_stage",
        client_secret="sandbox_secret",
        redirect_uri="https://client.example/callback",
    )
    kwargs.update(overrides)
    return UaePassSettings(**kwargs)


class Recorder:
    """MockTransport handler that records requests and replies with a canned response."""

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.payload = payload
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)


def _client(handler, **overrides):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return UaePassClient(_settings(**overrides), http_client=http)


def test_basic_auth_header():
    header = basic_auth_header("id", "secret")
    assert header == "Basic " + base64.b64encode(b"id:secret").decode()


def test_client_builds_authorization_url_from_settings():
    client = _client(Recorder())
    url = client.build_authorization_url("abc", nonce="n")
    assert url.startswith(f"{BASE}/idshub/authorize?response_type=code&client_id=sandbox_stage")
    assert "&state=abc&" in url
    assert "redirect_uri=https://client.example/callback" in url
    assert "acr_values=urn:safelayer:tws:policies:authentication:level:low" in url
    assert url.endswith("&nonce=n")


def test_client_authorization_url_empty_state_makes_no_request():
    handler = Recorder()
    client = _client(handler)
    with pytest.raises(InvalidArgument):
        client.build_authorization_url("")
    assert handler.requests == []


def test_client_logout_url():
    client = _client(Recorder())
    assert client.build_logout_url() == f"{BASE}/idshub/logout"
    assert client.build_logout_url("https://a.test/x y").endswith("redirect_uri=https%3A%2F%2Fa.test%2Fx%20y")


def test_exchange_code_success():
    handler = Recorder(payload={"access_token": "abc", "token_type": "Bearer", "expires_in": 3600})
    token = _client(handler).exchange_code("code-1", "state-1")
    assert token.access_token == "abc"
    assert token.token_type == "Bearer"
    assert token.expires_in == 3600
    assert token.refresh_token is None

    assert len(handler.requests) == 1
    req = handler.requests[0]
    assert req.method == "POST"
    assert req.url.path == "/idshub/token"
    assert req.url.params["grant_type"] == "authorization_code"
    assert req.url.params["code"] == "code-1"
    assert req.url.params["redirect_uri"] == "https://client.example/callback"
    # state is never sent to the provider
    assert "state" not in req.url.params
    assert req.headers["Authorization"] == basic_auth_header("sandbox_stage", "sandbox_secret")
    assert req.headers["Accept"] == "application/json"


def test_exchange_code_query_not_percent_encoded():
    handler = Recorder(payload={"access_token": "abc"})
    _client(handler).exchange_code("c", "s")
    raw = handler.requests[0].url.query.decode()
    assert raw == "grant_type=authorization_code&redirect_uri=https://client.example/callback&code=c"


def test_exchange_code_empty_access_token_is_protocol_error():
    handler = Recorder(payload={"access_token": ""})
    with pytest.raises(ProtocolError):
        _client(handler).exchange_code("c", "s")


def test_exchange_code_non_json_is_protocol_error():
    handler = Recorder(text="<html>oops</html>")
    with pytest.raises(ProtocolError):
        _client(handler).exchange_code("c", "s")


def test_exchange_code_wrong_shape_is_protocol_error():
    handler = Recorder(payload=["access_token", "abc"])
    with pytest.raises(ProtocolError):
        _client(handler).exchange_code("c", "s")


def test_exchange_code_bad_field_type_is_protocol_error():
    handler = Recorder(payload={"access_token": "abc", "expires_in": "soon"})
    with pytest.raises(ProtocolError):
        _client(handler).exchange_code("c", "s")


def test_exchange_code_401_is_upstream_error():
    handler = Recorder(status_code=401, text='{"error":"invalid_client"}')
    with pytest.raises(UpstreamError) as exc:
        _client(handler).exchange_code("c", "s")
    assert exc.value.status_code == 401
    assert "invalid_client" in exc.value.body
    assert len(handler.requests) == 1


@pytest.mark.parametrize("code,state", [("", "s"), ("c", ""), (None, "s")])
def test_exchange_code_missing_input(code, state):
    handler = Recorder(payload={"access_token": "abc"})
    with pytest.raises(InvalidArgument):
        _client(handler).exchange_code(code, state)
    assert handler.requests == []


def test_transport_error_is_upstream_error_without_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError) as exc:
        _client(handler).exchange_code("c", "s")
    assert exc.value.status_code is None


def test_refresh_token_success():
    handler = Recorder(payload={"access_token": "new", "token_type": "Bearer", "expires_in": 60, "refresh_token": "rt2"})
    token = _client(handler).refresh_token("rt1")
    assert token.access_token == "new"
    assert token.refresh_token == "rt2"
    raw = handler.requests[0].url.query.decode()
    assert raw == "grant_type=refresh_token&refresh_token=rt1"
    assert handler.requests[0].headers["Authorization"].startswith("Basic ")


def test_refresh_token_failures():
    with pytest.raises(InvalidArgument):
        _client(Recorder()).refresh_token("")
    with pytest.raises(UpstreamError) as exc:
        _client(Recorder(status_code=400, payload={"error": "invalid_grant"})).refresh_token("rt")
    assert exc.value.status_code == 400
    with pytest.raises(ProtocolError):
        _client(Recorder(payload={"access_token": ""})).refresh_token("rt")


def test_get_user_profile_preserves_unknown_fields():
    handler = Recorder(payload={"sub": "x", "idn": "784-1990-1234567-1", "newField": "z"})
    profile = _client(handler).get_user_profile("at-1")
    assert profile.sub == "x"
    assert profile.emirates_id == "784-1990-1234567-1"
    assert profile.extra == {"newField": "z"}

    req = handler.requests[0]
    assert req.method == "GET"
    assert str(req.url) == f"{BASE}/idshub/userinfo"
    assert req.headers["Authorization"] == "Bearer at-1"


def test_get_user_profile_maps_provider_fields():
    payload = {
        "sub": "s1",
        "uuid": "u1",
        "userType": "SOP3",
        "idn": "784",
        "firstnameEN": "Ali",
        "lastnameEN": "Saeed",
        "fullnameEN": "Ali Saeed",
        "fullnameAR": "علي سعيد",
        "mobile": "971500000000",
        "nationalityEN": "ARE",
        "acr": "urn:safelayer:tws:policies:authentication:level:low",
        "amr": ["urn:digitalid:authentication:method:mobileid"],
    }
    profile = _client(Recorder(payload=payload)).get_user_profile("at")
    assert profile.user_type == "SOP3"
    assert profile.first_name == "Ali"
    assert profile.full_name == "Ali Saeed"
    assert profile.full_name_ar == "علي سعيد"
    assert profile.phone_number == "971500000000"
    assert profile.nationality_en == "ARE"
    assert profile.amr == ["urn:digitalid:authentication:method:mobileid"]
    assert profile.extra == {}


def test_get_user_profile_without_idn_has_empty_emirates_id():
    profile = _client(Recorder(payload={"sub": "visitor", "unifiedID": "123"})).get_user_profile("at")
    assert profile.emirates_id == ""
    assert profile.unified_id == "123"


@pytest.mark.parametrize("payload", [{}, [], "text", None])
def test_get_user_profile_empty_or_malformed(payload):
    with pytest.raises(ProtocolError):
        _client(Recorder(text=json.dumps(payload))).get_user_profile("at")


def test_get_user_profile_upstream_error():
    with pytest.raises(UpstreamError) as exc:
        _client(Recorder(status_code=401, text="Unauthorized")).get_user_profile("expired")
    assert exc.value.status_code == 401
    assert exc.value.body == "Unauthorized"


def test_get_user_profile_requires_token():
    handler = Recorder()
    with pytest.raises(InvalidArgument):
        _client(handler).get_user_profile("")
    assert handler.requests == []


def test_per_call_timeout_is_passed_to_httpx():
    seen = {}

    def handler(request):
        seen["timeout"] = request.extensions.get("timeout")
        return httpx.Response(200, json={"access_token": "abc"})

    _client(handler).exchange_code("c", "s", timeout=2.5)
    assert seen["timeout"]["read"] == 2.5


def test_client_context_manager_closes_owned_client():
    with UaePassClient(_settings()) as client:
        http = client._http
    assert http.is_closed


def test_client_does_not_close_borrowed_client():
    http = httpx.Client(transport=httpx.MockTransport(Recorder()))
    with UaePassClient(_settings(), http_client=http):
        pass
    assert not http.is_closed
    http.close()
