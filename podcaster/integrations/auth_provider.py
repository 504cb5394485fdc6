"""
Client for the hosted auth provider (GoTrue REST API).

Every call returns an AuthResponse ``{data, error}`` pair. Provider-side
rejections and transport failures both end up in ``error``; nothing here
raises for them.
"""

import base64
import hashlib
import secrets
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx

from ..config import settings
from ..schemas.auth import AuthResponse
from ..utils.constants import NETWORK_ERROR_MESSAGE
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict):
        for field in ("msg", "error_description", "message", "error"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    return f"Authentication failed ({response.status_code})"


def generate_pkce_pair() -> Tuple[str, str]:
    """A PKCE code verifier and its S256 challenge."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class AuthProviderClient:
    """Async client for sign-in, sign-up, sign-out, session and password reset."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or settings.auth_url).rstrip("/")
        self.api_key = api_key if api_key is not None else (
            settings.supabase_service_role_key or settings.supabase_anon_key
        )
        self._transport = transport
        self._timeout = timeout

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        headers["Authorization"] = f"Bearer {access_token or self.api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None,
    ) -> AuthResponse:
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self._transport, timeout=self._timeout
        ) as client:
            try:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    headers=self._headers(access_token),
                )
            except httpx.HTTPError as e:
                logger.error("Auth provider unreachable", path=path, error=str(e))
                return AuthResponse.failure(NETWORK_ERROR_MESSAGE)

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Auth provider rejected request",
                path=path,
                status=response.status_code,
                message=message,
            )
            return AuthResponse.failure(message, status=response.status_code)

        data = response.json() if response.content else None
        return AuthResponse(data=data, error=None)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        """Exchange e-mail and password for a session."""
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )

    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> AuthResponse:
        """Register a new user."""
        return await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )

    async def sign_out(self, access_token: str) -> AuthResponse:
        """Revoke the session behind an access token."""
        return await self._request("POST", "/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> AuthResponse:
        """Retrieve the user a session belongs to."""
        return await self._request("GET", "/user", access_token=access_token)

    async def reset_password_for_email(self, email: str, redirect_to: str) -> AuthResponse:
        """Send a password reset e-mail."""
        return await self._request(
            "POST",
            "/recover",
            params={"redirect_to": redirect_to},
            json={"email": email},
        )

    async def exchange_code_for_session(self, code: str, code_verifier: str) -> AuthResponse:
        """Trade an OAuth authorization code and its PKCE verifier for a session."""
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier},
        )

    def oauth_authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        """URL that starts a PKCE OAuth sign-in with an external provider."""
        query = urlencode(
            {
                "provider": provider,
                "redirect_to": redirect_to,
                "code_challenge": code_challenge,
                "code_challenge_method": "s256",
            }
        )
        return f"{self.base_url}/authorize?{query}"
