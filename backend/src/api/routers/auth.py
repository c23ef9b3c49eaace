"""Authentication endpoints: login, registration, and password reset."""
from fastapi import APIRouter, Cookie, Depends, Request, Response

from api.dependencies import get_auth_service, get_session_claims, get_settings
from core.config import Settings
from core.rate_limiter import enforce_code_request_limits
from core.session import RESET_COOKIE, SESSION_COOKIE, SessionClaims
from schemas.auth import (
    EmailResponse,
    FindEmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SendCodeRequest,
    UserSummary,
    VerifyResetCodeRequest,
)
from services.auth_service import AuthService, clean_email

router = APIRouter(prefix="/auth", tags=["auth"])

# Reset authorization is only ever read by /auth/reset-password
RESET_COOKIE_PATH = "/auth"


def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
    }


async def _apply_code_rate_limits(request: Request, email: str) -> None:
    client_ip = request.client.host if request.client else None
    # Picked up by RateLimitHeadersMiddleware
    request.state.rate_limit = await enforce_code_request_limits(email, client_ip)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    """
    Log in with an email or username.

    The session token is set as an HTTP-only cookie valid for 7 days.
    Unknown accounts and wrong passwords get the same 400 response.
    """
    token, user = await service.login(data.email_or_username, data.password)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        path="/",
        **_cookie_options(settings),
    )
    return LoginResponse(
        message="Login successful",
        user=UserSummary(
            id=user.id,
            name=user.full_name,
            email=user.email,
            username=user.username,
            state=user.state_id,
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Clear the session cookie. Sessions are stateless; nothing is revoked server-side."""
    response.delete_cookie(key=SESSION_COOKIE, path="/", **_cookie_options(settings))
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    claims: SessionClaims = Depends(get_session_claims),
    service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Get the current user's profile with trial and premium status."""
    user, status = await service.get_current_user(claims)
    return ProfileResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        username=user.username,
        state=user.state_id,
        min_credits_required=user.min_credits_required,
        hours_per_credit=user.hours_per_credit,
        profile_picture=user.profile_picture or "",
        is_trial=status.is_trial,
        is_premium=status.is_premium,
    )


@router.post("/send-otp", response_model=MessageResponse)
async def send_otp(
    data: SendCodeRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a registration code to an unregistered address."""
    # Malformed addresses are refused before they count against any quota
    await _apply_code_rate_limits(request, clean_email(data.email))
    await service.request_registration_code(data.email)
    return MessageResponse(message="OTP sent successfully")


@router.post("/verify-otp", response_model=MessageResponse, status_code=201)
async def verify_otp_and_register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Create an account using a registration code."""
    await service.complete_registration(data)
    return MessageResponse(message="User registered successfully")


@router.post("/find-user-email", response_model=EmailResponse)
async def find_user_email(
    data: FindEmailRequest,
    service: AuthService = Depends(get_auth_service),
) -> EmailResponse:
    """Find an account's email from its username or email (starts the reset flow)."""
    email = await service.find_account_email(data.username_or_email)
    return EmailResponse(email=email)


@router.post("/send-reset-otp", response_model=MessageResponse)
async def send_reset_otp(
    data: SendCodeRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Email a password reset code to a registered address."""
    # Malformed addresses are refused before they count against any quota
    await _apply_code_rate_limits(request, clean_email(data.email))
    await service.request_password_reset(data.email)
    return MessageResponse(message="OTP sent successfully")


@router.post("/verify-reset-otp", response_model=MessageResponse)
async def verify_reset_otp(
    data: VerifyResetCodeRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """
    Verify a password reset code.

    Consumes the code and sets a short-lived reset authorization cookie that
    /auth/reset-password requires.
    """
    reset_token = await service.verify_reset_code(data.email, data.otp)
    response.set_cookie(
        key=RESET_COOKIE,
        value=reset_token,
        max_age=settings.reset_authorization_minutes * 60,
        path=RESET_COOKIE_PATH,
        **_cookie_options(settings),
    )
    return MessageResponse(message="OTP verified.")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    response: Response,
    reset_token: str | None = Cookie(default=None),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Set a new password. Requires the cookie from /auth/verify-reset-otp."""
    await service.reset_password(data.email, data.new_password, reset_token)
    response.delete_cookie(key=RESET_COOKIE, path=RESET_COOKIE_PATH, **_cookie_options(settings))
    return MessageResponse(message="Password reset successful.")
