"""Authentication service over the hosted auth provider."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from ..core.session import AuthSession, SessionBroker, SessionEvent
from ..integrations.auth_provider import AuthProviderClient, generate_pkce_pair
from ..schemas.auth import AuthResponse
from ..utils.logger import get_logger

logger = get_logger(__name__)


def session_from_auth_data(data: Any) -> Optional[AuthSession]:
    """
    Build a session from a provider token payload.
    Returns None when the payload carries no access token or user.
    """
    if not isinstance(data, dict):
        return None
    # Sign-up answers with the session nested under "session" when e-mail
    # confirmation is off.
    if "access_token" not in data and isinstance(data.get("session"), dict):
        data = data["session"]

    access_token = data.get("access_token")
    user = data.get("user") or {}
    if not access_token or not user.get("id"):
        return None

    expires_at = None
    if data.get("expires_at"):
        expires_at = datetime.fromtimestamp(int(data["expires_at"]), tz=timezone.utc)

    return AuthSession(
        user_id=user["id"],
        access_token=access_token,
        email=user.get("email"),
        refresh_token=data.get("refresh_token"),
        expires_at=expires_at,
    )


class AuthService:
    """Service for authentication operations."""

    def __init__(self, client: AuthProviderClient, broker: SessionBroker):
        self.client = client
        self.broker = broker

    def _announce(self, response: AuthResponse) -> Optional[AuthSession]:
        session = session_from_auth_data(response.data) if response.ok else None
        if session:
            logger.info("User signed in", user_id=session.user_id)
            self.broker.publish(SessionEvent.SIGNED_IN, session)
        return session

    async def sign_in(self, email: str, password: str) -> AuthResponse:
        """Sign in with e-mail and password."""
        response = await self.client.sign_in_with_password(email, password)
        self._announce(response)
        return response

    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> AuthResponse:
        """
        Register a new user.
        The provider only returns a session when no e-mail confirmation is pending.
        """
        response = await self.client.sign_up(email, password, metadata)
        self._announce(response)
        return response

    async def sign_out(self, session: AuthSession) -> AuthResponse:
        """Revoke the session and tell listeners the owner is gone."""
        response = await self.client.sign_out(session.access_token)
        if response.ok:
            logger.info("User signed out", user_id=session.user_id)
            self.broker.publish(SessionEvent.SIGNED_OUT, session)
        return response

    async def get_session(self, session: AuthSession) -> AuthResponse:
        """The provider's view of the user behind a session."""
        response = await self.client.get_user(session.access_token)
        if response.ok:
            response = AuthResponse(
                data={
                    "user": response.data,
                    "access_token": session.access_token,
                    "expires_at": int(session.expires_at.timestamp()) if session.expires_at else None,
                }
            )
        return response

    async def reset_password(self, email: str, redirect_to: str) -> AuthResponse:
        """Send a password reset e-mail."""
        return await self.client.reset_password_for_email(email, redirect_to)

    async def exchange_code(self, code: str, code_verifier: str) -> AuthResponse:
        """Finish an OAuth sign-in."""
        response = await self.client.exchange_code_for_session(code, code_verifier)
        self._announce(response)
        return response

    def oauth_url(self, provider: str, redirect_to: str) -> Tuple[str, str]:
        """Authorize URL plus the verifier the callback has to present."""
        verifier, challenge = generate_pkce_pair()
        return self.client.oauth_authorize_url(provider, redirect_to, challenge), verifier
