import json

import httpx
import pytest

from giftshop.api.deps import get_auth_client
from giftshop.main import app
from giftshop.services.auth_client import AuthClient


@pytest.fixture
def provider():
    """Fake identity provider; records requests and answers from ``responses``."""
    state = {"requests": [], "responses": {}}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        key = (request.method, request.url.path, request.url.params.get("grant_type"))
        status, body = state["responses"].get(key, (200, {}))
        return httpx.Response(status, json=body)

    client = AuthClient("http://auth.test/auth/v1", "anon-key", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_auth_client] = lambda: client
    return state


def test_login_page_sanitizes_next(client):
    assert client.get("/login?next=/dashboard/orders").json()["next"] == "/dashboard/orders"
    assert client.get("/login?next=https://evil.example").json()["next"] == "/dashboard"
    assert client.get("/login?next=//evil.example").json()["next"] == "/dashboard"


def test_password_login_sets_session_cookie(client, provider, settings):
    provider["responses"][("POST", "/auth/v1/token", "password")] = (
        200, {"access_token": "tok-123", "expires_in": 3600, "user": {"id": "u1"}})
    resp = client.post("/login/password", json={"email": "a@example.com", "password": "pw", "next": "/dashboard"})
    assert resp.status_code == 200
    assert resp.json()["redirect_to"] == "/dashboard"
    assert resp.cookies.get(settings.SESSION_COOKIE) == "tok-123"
    sent = provider["requests"][0]
    assert json.loads(sent.content) == {"email": "a@example.com", "password": "pw"}
    assert sent.headers["apikey"] == "anon-key"


def test_password_login_bad_credentials(client, provider):
    provider["responses"][("POST", "/auth/v1/token", "password")] = (
        400, {"error_description": "Invalid login credentials"})
    resp = client.post("/login/password", json={"email": "a@example.com", "password": "nope"})
    assert resp.status_code == 401


def test_magic_link_sends_otp_with_callback(client, provider):
    resp = client.post("/login/magic-link", json={"email": "a@example.com", "next": "/dashboard/orders"})
    assert resp.status_code == 200
    sent = provider["requests"][0]
    assert sent.url.path == "/auth/v1/otp"
    assert sent.url.params["redirect_to"].endswith("/auth/callback?next=/dashboard/orders")


def test_magic_link_rejects_bad_email(client, provider):
    assert client.post("/login/magic-link", json={"email": "not-an-email"}).status_code == 422
    assert provider["requests"] == []


def test_callback_exchanges_code(client, provider, settings):
    provider["responses"][("POST", "/auth/v1/token", "pkce")] = (200, {"access_token": "tok-456"})
    resp = client.get("/auth/callback?code=abc&next=/dashboard/orders", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/dashboard/orders"
    assert resp.cookies.get(settings.SESSION_COOKIE) == "tok-456"


def test_callback_failure_redirects_to_login(client, provider):
    provider["responses"][("POST", "/auth/v1/token", "pkce")] = (400, {"msg": "invalid code"})
    resp = client.get("/auth/callback?code=bad", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"].startswith("/login?error=")


def test_callback_without_code_just_redirects(client, provider):
    resp = client.get("/auth/callback", follow_redirects=False)
    assert resp.headers["location"] == "/dashboard"
    assert provider["requests"] == []


def test_profile_update_forwards_to_provider(client, provider, auth_headers):
    resp = client.post("/dashboard/profile", json={"full_name": "Sarah Connor"}, headers=auth_headers("user-1"))
    assert resp.status_code == 200
    sent = provider["requests"][0]
    assert sent.method == "PUT"
    assert sent.url.path == "/auth/v1/user"
    assert json.loads(sent.content) == {"data": {"full_name": "Sarah Connor"}}
    assert sent.headers["authorization"].startswith("Bearer ")


def test_profile_update_provider_down(client, auth_headers):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    down = AuthClient("http://auth.test/auth/v1", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_auth_client] = lambda: down
    resp = client.post("/dashboard/profile", json={"full_name": "Sarah"}, headers=auth_headers("user-1"))
    assert resp.status_code == 502


def test_logout_clears_cookie(client):
    resp = client.post("/logout", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/"
