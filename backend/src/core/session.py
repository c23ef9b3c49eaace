"""Signed, expiring tokens for user sessions, admin sessions and password resets."""
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from core.config import Settings

SESSION_COOKIE = "token"
ADMIN_SESSION_COOKIE = "admin_token"
RESET_COOKIE = "reset_token"

PASSWORD_RESET_PURPOSE = "password_reset"
ADMIN_ROLE = "admin"


class TokenError(Exception):
    """Raised when a token cannot be decoded or fails a claim check."""


@dataclass(frozen=True)
class SessionClaims:
    """Identity carried by a verified session token."""

    user_id: UUID
    issued_at: datetime
    expires_at: datetime


def _encode(claims: dict, settings: Settings, lifetime: timedelta, now: datetime | None) -> str:
    issued = now or datetime.now(UTC)
    payload = {**claims, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.PyJWTError as e:
        raise TokenError(str(e)) from e


def create_session_token(
    user_id: UUID,
    settings: Settings,
    now: datetime | None = None,
) -> str:
    """Mint a session token for a user, valid for settings.session_expire_days."""
    return _encode(
        {"sub": str(user_id)},
        settings,
        timedelta(days=settings.session_expire_days),
        now,
    )


def decode_session_token(token: str, settings: Settings) -> SessionClaims:
    """
    Verify signature and expiry of a session token.

    Raises:
        TokenError: If the token is malformed, expired, badly signed, or its
            subject is not a user id.
    """
    payload = _decode(token, settings)
    if payload.get("purpose") or payload.get("role"):
        raise TokenError("not a session token")
    try:
        user_id = UUID(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenError("invalid subject") from e
    return SessionClaims(
        user_id=user_id,
        issued_at=datetime.fromtimestamp(payload["iat"], UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )


def create_reset_token(email: str, settings: Settings, now: datetime | None = None) -> str:
    """Mint a short-lived token proving a reset code was verified for email."""
    return _encode(
        {"sub": email, "purpose": PASSWORD_RESET_PURPOSE},
        settings,
        timedelta(minutes=settings.reset_authorization_minutes),
        now,
    )


def decode_reset_token(token: str, settings: Settings) -> str:
    """Return the email a reset token was issued for."""
    payload = _decode(token, settings)
    if payload.get("purpose") != PASSWORD_RESET_PURPOSE:
        raise TokenError("not a reset token")
    return payload["sub"]


def create_admin_token(username: str, settings: Settings, now: datetime | None = None) -> str:
    """Mint an admin console session token."""
    return _encode(
        {"sub": username, "role": ADMIN_ROLE},
        settings,
        timedelta(hours=settings.admin_session_hours),
        now,
    )


def decode_admin_token(token: str, settings: Settings) -> str:
    """Return the admin username an admin token was issued for."""
    payload = _decode(token, settings)
    if payload.get("role") != ADMIN_ROLE:
        raise TokenError("not an admin token")
    return payload["sub"]
