"""Pydantic schemas for authentication endpoints."""
from uuid import UUID

from pydantic import Field

from schemas.base import CamelModel


class LoginRequest(CamelModel):
    """Login with either an email or a username."""

    email_or_username: str
    password: str


class SendCodeRequest(CamelModel):
    """Request a one-time code for an email address."""

    email: str = ""


class RegisterRequest(CamelModel):
    """Complete registration with a one-time code."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    state: str = Field(..., description="Id of the selected state requirement record")
    otp: str


class FindEmailRequest(CamelModel):
    """Look up an account's email by username or email."""

    username_or_email: str | None = None


class VerifyResetCodeRequest(CamelModel):
    """Verify a password reset code."""

    email: str = ""
    otp: str = ""


class ResetPasswordRequest(CamelModel):
    """Set a new password after a reset code was verified."""

    email: str = ""
    new_password: str = ""


class MessageResponse(CamelModel):
    """Plain acknowledgement."""

    message: str


class UserSummary(CamelModel):
    """Public projection of a user returned by login."""

    id: UUID
    name: str
    email: str
    username: str
    state: UUID | None


class LoginResponse(CamelModel):
    """Login result; the session itself travels in a cookie."""

    message: str
    user: UserSummary


class ProfileResponse(CamelModel):
    """Current user's profile with derived account status."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    username: str
    state: UUID | None
    min_credits_required: int | None
    hours_per_credit: int | None
    profile_picture: str
    is_trial: bool
    is_premium: bool


class EmailResponse(CamelModel):
    """Email address found for an identifier."""

    email: str
