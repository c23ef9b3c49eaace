"""Admin console endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin_username, get_async_session, get_settings
from core.config import Settings
from core.session import ADMIN_SESSION_COOKIE, create_admin_token
from schemas.admin import (
    AdminDeleteUserResponse,
    AdminLoginRequest,
    AdminLoginResponse,
    AdminUserResponse,
)
from services import admin_service
from services.exceptions import UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=AdminLoginResponse)
async def admin_login(
    data: AdminLoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> AdminLoginResponse:
    """
    Log in to the admin console.

    Credentials are checked against ADMIN_USERNAME and ADMIN_PASSWORD_HASH.
    On success an admin session cookie is set.
    """
    if not admin_service.authenticate_admin(data.username, data.password, settings):
        logger.warning("Admin login failed")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    response.set_cookie(
        key=ADMIN_SESSION_COOKIE,
        value=create_admin_token(settings.admin_username, settings),
        max_age=settings.admin_session_hours * 60 * 60,
        path="/admin",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return AdminLoginResponse(success=True)


@router.post("/logout", response_model=AdminLoginResponse)
async def admin_logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> AdminLoginResponse:
    """Clear the admin session cookie."""
    response.delete_cookie(
        key=ADMIN_SESSION_COOKIE,
        path="/admin",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return AdminLoginResponse(success=True)


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    _admin: str = Depends(get_admin_username),
    db: AsyncSession = Depends(get_async_session),
) -> list[AdminUserResponse]:
    """List every user with their student count."""
    rows = await admin_service.list_users_with_counts(db)
    return [
        AdminUserResponse(
            id=row.user.id,
            email=row.user.email,
            username=row.user.username,
            first_name=row.user.first_name,
            last_name=row.user.last_name,
            state_id=row.user.state_id,
            is_subscribed=row.user.is_subscribed,
            subscription_ends_at=row.user.subscription_ends_at,
            trial_ends_at=row.user.trial_ends_at,
            created_at=row.user.created_at,
            student_count=row.student_count,
        )
        for row in rows
    ]


@router.delete("/users/{user_id}", response_model=AdminDeleteUserResponse)
async def delete_user(
    user_id: UUID,
    admin: str = Depends(get_admin_username),
    db: AsyncSession = Depends(get_async_session),
) -> AdminDeleteUserResponse:
    """Delete a user with all of their students and daily logs."""
    stats = await admin_service.delete_user_cascade(db, user_id)
    if not stats.user_deleted:
        raise UserNotFoundError()
    logger.info("User %s deleted by admin %s", user_id, admin)
    return AdminDeleteUserResponse(
        message="User and related data deleted",
        students_deleted=stats.students_deleted,
        logs_deleted=stats.logs_deleted,
    )
