"""Authentication routes."""

from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError as PydanticValidationError
from ..config import settings
from ..core.dependencies import get_auth_service
from ..core.session import AuthSession
from ..middleware.auth import ACCESS_TOKEN_COOKIE, get_current_session
from ..middleware.rate_limit import limiter
from ..schemas.auth import AuthResponse, ResetPasswordRequest, SignInRequest, SignUpRequest
from ..services.auth_service import AuthService, session_from_auth_data
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["authentication"])
callback_router = APIRouter(prefix="/auth", tags=["authentication"])

INTERNAL_ERROR = {"data": None, "error": {"message": "Internal server error"}}
MISSING_CREDENTIALS = {"error": {"message": "Email and password are required"}}

CODE_VERIFIER_COOKIE = "oauth_code_verifier"
CODE_VERIFIER_MAX_AGE = 600


def _envelope(response: AuthResponse) -> JSONResponse:
    """Render a provider response; provider errors answer 400."""
    return JSONResponse(
        status_code=status.HTTP_200_OK if response.ok else status.HTTP_400_BAD_REQUEST,
        content=response.model_dump(mode="json"),
    )


def _site_url(request: Request, path: str) -> str:
    return str(request.base_url).rstrip("/") + path


@router.post("/signin")
@limiter.limit("10/minute")
async def signin(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Sign in with e-mail and password."""
    try:
        body = await request.json()
        try:
            credentials = SignInRequest.model_validate(body)
        except PydanticValidationError:
            credentials = None
        if credentials is None or not credentials.email or not credentials.password:
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=MISSING_CREDENTIALS)
        response = await auth_service.sign_in(credentials.email, credentials.password)
        return _envelope(response)
    except Exception as e:
        logger.error("Sign in API error", exc_info=e)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR)


@router.post("/signup")
@limiter.limit("5/minute")
async def signup(
    request: Request,
    register_data: SignUpRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user."""
    response = await auth_service.sign_up(
        register_data.email, register_data.password, register_data.metadata
    )
    return _envelope(response)


@router.post("/signout")
async def signout(
    session: AuthSession = Depends(get_current_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Sign out and drop the session cookie."""
    response = _envelope(await auth_service.sign_out(session))
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@router.get("/session")
async def get_session(
    session: AuthSession = Depends(get_current_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Current session and user."""
    return _envelope(await auth_service.get_session(session))


@router.post("/reset-password")
@limiter.limit("5/minute")
async def reset_password(
    request: Request,
    reset_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Send a password reset e-mail."""
    response = await auth_service.reset_password(
        reset_data.email, _site_url(request, settings.password_reset_path)
    )
    return _envelope(response)


@router.get("/oauth/{provider}")
async def oauth_url(
    provider: str,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    URL that starts an OAuth sign-in with the given provider.
    The PKCE verifier rides along in an httponly cookie for the callback.
    """
    url, verifier = auth_service.oauth_url(provider, _site_url(request, "/auth/callback"))
    response = JSONResponse(
        content=AuthResponse(data={"provider": provider, "url": url}).model_dump(mode="json")
    )
    response.set_cookie(
        CODE_VERIFIER_COOKIE,
        verifier,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
        max_age=CODE_VERIFIER_MAX_AGE,
        path="/auth",
    )
    return response


@callback_router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Finish an OAuth sign-in and send the user on to the dashboard."""
    redirect = RedirectResponse(
        url=_site_url(request, settings.auth_redirect_path),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )
    if not code:
        return redirect

    verifier = request.cookies.get(CODE_VERIFIER_COOKIE)
    redirect.delete_cookie(CODE_VERIFIER_COOKIE, path="/auth")
    if not verifier:
        logger.warning("OAuth callback without a code verifier")
        return redirect

    response = await auth_service.exchange_code(code, verifier)
    session = session_from_auth_data(response.data) if response.ok else None
    if session is None:
        logger.warning(
            "OAuth code exchange failed",
            error=response.error.message if response.error else "no session returned",
        )
        return redirect

    expires_in = response.data.get("expires_in")
    redirect.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session.access_token,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
        max_age=int(expires_in) if expires_in else None,
    )
    return redirect
