"""Request authentication against tokens issued by the auth provider."""

from datetime import datetime, timezone
from typing import Optional
from fastapi import HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from ..config import settings
from ..core.session import AuthSession
from ..utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> AuthSession:
    """
    Verify an access token and turn its claims into a session.
    Raises HTTPException 401 if the token is invalid or expired.
    """
    if not settings.jwt_secret_key:
        logger.error("SUPABASE_JWT_SECRET is not configured; refusing access token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        logger.info("Rejected access token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    expires_at = None
    if claims.get("exp"):
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

    return AuthSession(
        user_id=user_id,
        access_token=token,
        email=claims.get("email"),
        expires_at=expires_at,
    )


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> AuthSession:
    """Dependency resolving the caller's session from the bearer token or cookie."""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(token)
