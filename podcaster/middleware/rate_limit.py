"""Request throttling with slowapi, per signed-in user where possible."""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from ..config import settings
from ..schemas.shared import ErrorResponse
from ..utils.logger import get_logger
from .auth import ACCESS_TOKEN_COOKIE, decode_access_token

logger = get_logger(__name__)


def rate_limit_key(request: Request) -> str:
    """
    Bucket for a request: the verified user id when a valid token is sent,
    otherwise the client address. Forged tokens fall back to the address.
    """
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    token = credentials if scheme.lower() == "bearer" else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        try:
            session = decode_access_token(token)
        except HTTPException:
            session = None
        if session:
            return f"user:{session.user_id}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer 429 in the same shape as the other API errors."""
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            detail=f"Too many requests: {exc.detail}", error_code="RATE_LIMITED"
        ).model_dump(),
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
