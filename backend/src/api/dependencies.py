"""FastAPI dependencies for injection."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import get_admin_username, get_current_user, get_session_claims
from core.config import Settings, get_settings
from db.session import get_async_session
from services.auth_service import AuthService
from services.email_sender import EmailSender, build_email_sender


def get_email_sender(settings: Settings = Depends(get_settings)) -> EmailSender:
    """Return the email sender selected by settings (overridden in tests)."""
    return build_email_sender(settings)


def get_auth_service(
    db: AsyncSession = Depends(get_async_session),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """Build the auth service for this request."""
    return AuthService(db, email_sender, settings)


__all__ = [
    "get_admin_username",
    "get_async_session",
    "get_auth_service",
    "get_current_user",
    "get_email_sender",
    "get_session_claims",
    "get_settings",
]
