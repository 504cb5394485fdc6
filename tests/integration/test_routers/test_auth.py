"""Integration tests for authentication routes."""

import base64
import hashlib
import json
import httpx
import pytest
from httpx import AsyncClient
from podcaster.core.dependencies import get_auth_service
from podcaster.main import app

TOKEN_PAYLOAD = {
    "access_token": "provider-access-token",
    "refresh_token": "provider-refresh-token",
    "expires_in": 3600,
    "expires_at": 1893456000,
    "user": {"id": "user-1", "email": "host@example.com"},
}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signin_success(client: AsyncClient, auth_handler):
    auth_handler.routes[("POST", "/auth/v1/token")] = httpx.Response(200, json=TOKEN_PAYLOAD)

    response = await client.post(
        "/api/auth/signin", json={"email": "host@example.com", "password": "secret"}
    )

    assert response.status_code == 200
    assert response.json()["error"] is None
    assert response.json()["data"]["access_token"] == "provider-access-token"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signin_missing_password(client: AsyncClient):
    """Test a missing field answers 400 without calling the provider."""
    response = await client.post("/api/auth/signin", json={"email": "host@example.com"})

    assert response.status_code == 400
    assert response.json() == {"error": {"message": "Email and password are required"}}


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "body",
    [
        ["host@example.com", "secret"],
        "host@example.com",
        {"email": 1, "password": "secret"},
        {"email": "host@example.com", "password": {"value": "secret"}},
    ],
)
async def test_signin_wrongly_shaped_body(client: AsyncClient, body):
    """Test JSON that is not a credentials object answers 400, not 500."""
    response = await client.post("/api/auth/signin", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": {"message": "Email and password are required"}}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signin_rejected(client: AsyncClient, auth_handler):
    auth_handler.routes[("POST", "/auth/v1/token")] = httpx.Response(
        400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
    )

    response = await client.post(
        "/api/auth/signin", json={"email": "host@example.com", "password": "wrong"}
    )

    assert response.status_code == 400
    assert response.json()["data"] is None
    assert response.json()["error"]["message"] == "Invalid login credentials"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signin_malformed_body(client: AsyncClient):
    """Test an unreadable body answers 500 with the envelope."""
    response = await client.post(
        "/api/auth/signin", content=b"not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 500
    assert response.json() == {"data": None, "error": {"message": "Internal server error"}}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signin_unexpected_failure(client: AsyncClient):
    class BrokenAuthService:
        async def sign_in(self, email, password):
            raise RuntimeError("boom")

    app.dependency_overrides[get_auth_service] = lambda: BrokenAuthService()

    response = await client.post(
        "/api/auth/signin", json={"email": "host@example.com", "password": "secret"}
    )

    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Internal server error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signout_clears_upload_tasks(client: AsyncClient, auth_handler, auth_headers):
    """Test signing out drops the caller's upload tasks."""
    auth_handler.routes[("POST", "/auth/v1/logout")] = httpx.Response(204)
    await client.post(
        "/files/upload",
        files={"files": ("one.mp3", b"\x01" * 1024, "audio/mpeg")},
        headers=auth_headers,
    )
    assert len((await client.get("/uploads", headers=auth_headers)).json()) == 1

    response = await client.post("/api/auth/signout", headers=auth_headers)

    assert response.status_code == 200
    assert (await client.get("/uploads", headers=auth_headers)).json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_session(client: AsyncClient, auth_handler, auth_headers):
    auth_handler.routes[("GET", "/auth/v1/user")] = httpx.Response(
        200, json={"id": "5f0c2a4e-7d1b-4c38-9a7e-2b1f6d9e0a11", "email": "test@example.com"}
    )

    response = await client.get("/api/auth/session", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "test@example.com"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_signup_validates_password(client: AsyncClient):
    response = await client.post(
        "/api/auth/signup", json={"email": "host@example.com", "password": "abc"}
    )
    assert response.status_code == 422


def pkce_token_reply(request: httpx.Request) -> httpx.Response:
    """Token endpoint that, like GoTrue, refuses a PKCE grant without both halves."""
    body = json.loads(request.content)
    if not body.get("auth_code") or not body.get("code_verifier"):
        return httpx.Response(
            400,
            json={
                "error": "validation_failed",
                "msg": "invalid request: both auth code and code verifier should be non-empty",
            },
        )
    return httpx.Response(200, json=TOKEN_PAYLOAD)


def cookie_value(response, name: str) -> str:
    for header in response.headers.get_list("set-cookie"):
        if header.startswith(f"{name}="):
            return header.split(";", 1)[0].split("=", 1)[1]
    raise AssertionError(f"{name} cookie not set")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_oauth_url(client: AsyncClient):
    """Test the authorize URL carries an S256 challenge for a cookie-held verifier."""
    response = await client.get("/api/auth/oauth/github")

    assert response.status_code == 200
    url = httpx.URL(response.json()["data"]["url"])
    assert str(url).startswith("http://supabase.test/auth/v1/authorize?provider=github")
    assert url.params["code_challenge_method"] == "s256"

    verifier = cookie_value(response, "oauth_code_verifier")
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    assert url.params["code_challenge"] == expected
    set_cookie = response.headers.get_list("set-cookie")[0].lower()
    assert "httponly" in set_cookie
    assert "path=/auth" in set_cookie


@pytest.mark.asyncio
@pytest.mark.integration
async def test_callback_sets_cookie_and_redirects(client: AsyncClient, auth_handler):
    """Test the OAuth callback exchanges code and verifier, then redirects to the dashboard."""
    auth_handler.routes[("POST", "/auth/v1/token")] = pkce_token_reply
    start = await client.get("/api/auth/oauth/github")
    verifier = cookie_value(start, "oauth_code_verifier")

    response = await client.get(
        "/auth/callback",
        params={"code": "oauth-code"},
        headers={"Cookie": f"oauth_code_verifier={verifier}"},
    )

    assert response.status_code == 307
    assert response.headers["location"] == "http://test/dashboard"
    assert cookie_value(response, "access_token") == "provider-access-token"
    access_cookie = [
        header for header in response.headers.get_list("set-cookie")
        if header.startswith("access_token=")
    ][0]
    assert "httponly" in access_cookie.lower()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_callback_without_verifier_sets_no_session(client: AsyncClient, auth_handler):
    """Test a callback missing its verifier never reaches a session."""
    auth_handler.routes[("POST", "/auth/v1/token")] = pkce_token_reply

    response = await client.get("/auth/callback", params={"code": "oauth-code"})

    assert response.status_code == 307
    assert response.headers["location"] == "http://test/dashboard"
    assert not any(
        header.startswith("access_token=")
        for header in response.headers.get_list("set-cookie")
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_callback_rejected_exchange_sets_no_session(client: AsyncClient, auth_handler):
    auth_handler.routes[("POST", "/auth/v1/token")] = httpx.Response(
        400, json={"msg": "invalid flow state, no valid flow state found"}
    )

    response = await client.get(
        "/auth/callback",
        params={"code": "oauth-code"},
        headers={"Cookie": "oauth_code_verifier=stale-verifier"},
    )

    assert response.status_code == 307
    assert not any(
        header.startswith("access_token=")
        for header in response.headers.get_list("set-cookie")
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_callback_without_code(client: AsyncClient):
    response = await client.get("/auth/callback")

    assert response.status_code == 307
    assert response.headers["location"] == "http://test/dashboard"
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cookie_authenticates_requests(client: AsyncClient, auth_headers):
    """Test the callback cookie works in place of a bearer header."""
    token = auth_headers["Authorization"].split(" ", 1)[1]

    response = await client.get("/storage/usage", headers={"Cookie": f"access_token={token}"})

    assert response.status_code == 200
