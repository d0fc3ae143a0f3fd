"""Authentication routes."""

import logging
import secrets
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Cookie, Header, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from lodge.adapter.error import OAuthError
from lodge.application.usecase.auth import (
    ChangePasswordUseCase,
    GetCurrentIdentityUseCase,
    LinkVerifiedPhoneUseCase,
    PasswordLoginUseCase,
    RegisterOrLinkUseCase,
    SendVerificationCodeUseCase,
    SocialLoginUseCase,
    VerifyCodeUseCase,
)
from lodge.application.usecase.auth.change_password import ChangePasswordRequest
from lodge.application.usecase.auth.get_current_identity import (
    GetCurrentIdentityRequest,
    IdentityResponse,
)
from lodge.application.usecase.auth.link_phone import LinkPhoneRequest
from lodge.application.usecase.auth.password_login import PasswordLoginRequest
from lodge.application.usecase.auth.register import RegisterRequest, RegisterResponse
from lodge.application.usecase.auth.send_code import (
    SendVerificationCodeRequest,
    SendVerificationCodeResponse,
)
from lodge.application.usecase.auth.session import SessionResponse
from lodge.application.usecase.auth.social_login import SocialLoginRequest
from lodge.application.usecase.auth.verify_code import (
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from lodge.config import Settings
from lodge.domain.error import DomainError, NotFoundError
from lodge.domain.service import AuthService
from lodge.domain.value import AuthProvider
from lodge.util.jwt import JWTError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)

AUTH_COOKIE = "auth_token"


class PhoneRequest(BaseModel):
    """Request carrying a phone number."""

    phone: str


class ChangePasswordBody(BaseModel):
    """Change password request body."""

    current_password: str
    new_password: str


class LinkPhoneBody(BaseModel):
    """Link phone request body."""

    phone: str
    code: str


class InitiateSocialLoginRequest(BaseModel):
    """Initiate social login request."""

    provider: AuthProvider = AuthProvider.GOOGLE


class InitiateSocialLoginResponse(BaseModel):
    """Initiate social login response."""

    authorization_url: str


class LogoutResponse(BaseModel):
    """Logout response."""

    success: bool
    message: str


class AuthStatusResponse(BaseModel):
    """Response for checking authentication status.

    Used by /auth/me to return the current identity if authenticated,
    or indicate unauthenticated state without raising an error.
    """

    authenticated: bool
    identity: IdentityResponse | None = None


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Set the HTTP-only session cookie.

    Production sits behind HTTPS on a separate front-end origin, which
    requires SameSite=None and Secure.
    """
    is_production = settings.environment == "production"
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        secure=is_production,
        samesite="none" if is_production else "lax",
        path="/",
        max_age=settings.auth.jwt_expiry_days * 24 * 60 * 60,
    )


def _session_token(auth_token: str | None, authorization: str | None) -> str:
    """Pick the session token from the cookie or a bearer header.

    Raises:
        JWTError: If neither carries a token
    """
    if auth_token:
        return auth_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    raise JWTError("Missing session token")


@router.post("/code/send", response_model=SendVerificationCodeResponse)
async def send_code(
    request: PhoneRequest,
    use_case: FromDishka[SendVerificationCodeUseCase],
) -> SendVerificationCodeResponse:
    """Send a one-time verification code to a phone number.

    Example:
        POST /auth/code/send
        {"phone": "9876543210"}

        Response:
        {"provider": "primary", "expires_in_seconds": 600}
    """
    return await use_case.execute(SendVerificationCodeRequest(phone=request.phone))


@router.post("/code/resend", response_model=SendVerificationCodeResponse)
async def resend_code(
    request: PhoneRequest,
    use_case: FromDishka[SendVerificationCodeUseCase],
) -> SendVerificationCodeResponse:
    """Send a new code, subject to the resend cooldown."""
    return await use_case.execute(
        SendVerificationCodeRequest(phone=request.phone, resend=True)
    )


@router.post("/code/verify", response_model=VerifyCodeResponse)
async def verify_code(
    request: VerifyCodeRequest,
    response: Response,
    use_case: FromDishka[VerifyCodeUseCase],
    settings: FromDishka[Settings],
) -> VerifyCodeResponse:
    """Sign in with a one-time code, creating the identity on first use."""
    result = await use_case.execute(request)
    _set_session_cookie(response, result.token, settings)
    return result


@router.post(
    "/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED
)
async def register(
    request: RegisterRequest,
    response: Response,
    use_case: FromDishka[RegisterOrLinkUseCase],
    settings: FromDishka[Settings],
) -> RegisterResponse:
    """Register with email and password, linking to an existing partial account.

    Example:
        POST /auth/register
        {
            "name": "Asha",
            "email": "asha@example.com",
            "password": "Str0ng!pass",
            "phone": "+919876543210",
            "verification_code": "123456"
        }
    """
    result = await use_case.execute(request)
    logger.info(
        f"Registration completed: identity={result.identity_id}, linked={result.linked}"
    )
    _set_session_cookie(response, result.token, settings)
    return result


@router.post("/login", response_model=SessionResponse)
async def login(
    request: PasswordLoginRequest,
    response: Response,
    use_case: FromDishka[PasswordLoginUseCase],
    settings: FromDishka[Settings],
) -> SessionResponse:
    """Sign in with email and password."""
    result = await use_case.execute(request)
    _set_session_cookie(response, result.token, settings)
    return result


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Logout by clearing the session cookie."""
    response.delete_cookie(key=AUTH_COOKIE, path="/")
    return LogoutResponse(success=True, message="Successfully logged out")


@router.get("/me", response_model=AuthStatusResponse)
async def get_current_identity(
    use_case: FromDishka[GetCurrentIdentityUseCase],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> AuthStatusResponse:
    """Get current identity if authenticated, or return unauthenticated status.

    This endpoint is safe to call without authentication - it will return
    authenticated=false instead of raising an error.
    """
    try:
        token = _session_token(auth_token, authorization)
        identity = await use_case.execute(GetCurrentIdentityRequest(token=token))
        return AuthStatusResponse(authenticated=True, identity=identity)
    except JWTError:
        return AuthStatusResponse(authenticated=False)
    except NotFoundError:
        # Valid token for an identity that was merged away
        return AuthStatusResponse(authenticated=False)


@router.post("/password", response_model=SessionResponse)
async def change_password(
    request: ChangePasswordBody,
    response: Response,
    use_case: FromDishka[ChangePasswordUseCase],
    settings: FromDishka[Settings],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> SessionResponse:
    """Change the password; earlier sessions stop working."""
    result = await use_case.execute(
        ChangePasswordRequest(
            token=_session_token(auth_token, authorization),
            current_password=request.current_password,
            new_password=request.new_password,
        )
    )
    _set_session_cookie(response, result.token, settings)
    return result


@router.post("/phone/link", response_model=IdentityResponse)
async def link_phone(
    request: LinkPhoneBody,
    use_case: FromDishka[LinkVerifiedPhoneUseCase],
    auth_token: str | None = Cookie(default=None),
    authorization: str | None = Header(default=None),
) -> IdentityResponse:
    """Attach a verified phone number to the signed-in identity."""
    return await use_case.execute(
        LinkPhoneRequest(
            token=_session_token(auth_token, authorization),
            phone=request.phone,
            code=request.code,
        )
    )


@router.post("/social/login", response_model=InitiateSocialLoginResponse)
async def initiate_social_login(
    request: InitiateSocialLoginRequest,
    auth_service: FromDishka[AuthService],
) -> InitiateSocialLoginResponse:
    """Initiate social OAuth login flow.

    Returns:
        Authorization URL to redirect to
    """
    logger.info(f"Initiating {request.provider.value} login")
    state = secrets.token_urlsafe(32)
    auth_url = await auth_service.initiate_login(request.provider, state)
    return InitiateSocialLoginResponse(authorization_url=auth_url)


@router.get("/callback/google")
async def google_callback(
    code: str,
    state: str,
    use_case: FromDishka[SocialLoginUseCase],
    settings: FromDishka[Settings],
):
    """Handle Google OAuth callback and complete login.

    Issues the session cookie and redirects to the front end. Failures
    redirect to the front end's error page.
    """
    try:
        result = await use_case.execute(
            SocialLoginRequest(provider=AuthProvider.GOOGLE, code=code, state=state)
        )
    except (OAuthError, DomainError) as e:
        logger.error(f"Google login failed: {e}")
        query = urlencode({"error": "auth_failed", "message": str(e)})
        return RedirectResponse(
            url=f"{settings.api.frontend_url}/auth/error?{query}",
            status_code=status.HTTP_302_FOUND,
        )

    logger.info(f"Google login successful for identity: {result.identity_id}")

    # Cookies must be set on the returned RedirectResponse itself
    redirect_response = RedirectResponse(
        url=settings.api.frontend_url,
        status_code=status.HTTP_302_FOUND,
    )
    _set_session_cookie(redirect_response, result.token, settings)
    return redirect_response
