"""Pydantic schemas for admin console endpoints."""
from datetime import datetime
from uuid import UUID

from schemas.base import CamelModel


class AdminLoginRequest(CamelModel):
    """Admin console credentials."""

    username: str = ""
    password: str = ""


class AdminLoginResponse(CamelModel):
    """Admin login result; the admin session travels in a cookie."""

    success: bool


class AdminUserResponse(CamelModel):
    """User row in the admin console, with dependent record count."""

    id: UUID
    email: str
    username: str
    first_name: str
    last_name: str
    state_id: UUID | None
    is_subscribed: bool
    subscription_ends_at: datetime | None
    trial_ends_at: datetime | None
    created_at: datetime
    student_count: int


class AdminDeleteUserResponse(CamelModel):
    """Result of a cascading user delete."""

    message: str
    students_deleted: int
    logs_deleted: int
