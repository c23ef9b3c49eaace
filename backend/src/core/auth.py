"""Request authentication gates for cookie-based sessions."""
import logging

from fastapi import Depends
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.session import (
    ADMIN_SESSION_COOKIE,
    SESSION_COOKIE,
    SessionClaims,
    TokenError,
    decode_admin_token,
    decode_session_token,
)
from db.session import get_async_session
from models.user import User
from services.exceptions import InvalidTokenError, UnauthorizedError

logger = logging.getLogger(__name__)


# Cookie schemes (auto_error=False so a missing cookie maps to our own 401)
session_cookie = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)
admin_cookie = APIKeyCookie(name=ADMIN_SESSION_COOKIE, auto_error=False)


def get_session_claims(
    token: str | None = Depends(session_cookie),
    settings: Settings = Depends(get_settings),
) -> SessionClaims:
    """
    Dependency that verifies the session cookie and returns its claims.

    No database access: a user deleted after the token was issued still
    passes this gate until the token expires.

    Raises:
        UnauthorizedError: If no session cookie was sent.
        InvalidTokenError: If the token is malformed, expired, or badly signed.
    """
    if not token:
        raise UnauthorizedError()
    try:
        return decode_session_token(token, settings)
    except TokenError as e:
        # Log the reason server-side only; callers see one generic error
        logger.warning("Session token rejected: %s", e)
        raise InvalidTokenError() from None


async def get_current_user(
    claims: SessionClaims = Depends(get_session_claims),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Dependency that returns the user behind a verified session.

    Use for routes that need the user record; routes that only need the
    identity should depend on get_session_claims.
    """
    user = await db.get(User, claims.user_id)
    if user is None:
        raise UnauthorizedError()
    return user


def get_admin_username(
    token: str | None = Depends(admin_cookie),
    settings: Settings = Depends(get_settings),
) -> str:
    """Dependency that verifies the admin session cookie and returns the admin username."""
    if not token:
        raise UnauthorizedError()
    try:
        return decode_admin_token(token, settings)
    except TokenError as e:
        logger.warning("Admin token rejected: %s", e)
        raise InvalidTokenError() from None
