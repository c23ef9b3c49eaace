"""Service layer for the admin console."""
import hmac
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.security import verify_password
from models.daily_log import DailyLog
from models.student import Student
from models.user import User

logger = logging.getLogger(__name__)


@dataclass
class UserWithCounts:
    """A user together with the number of students they own."""

    user: User
    student_count: int


@dataclass
class UserDeletionStats:
    """Rows removed by a cascading user delete."""

    logs_deleted: int = 0
    students_deleted: int = 0
    user_deleted: bool = False


def authenticate_admin(username: str, password: str, settings: Settings) -> bool:
    """
    Check admin console credentials against settings.

    The password is compared with the configured bcrypt hash. With no hash
    configured, every attempt fails.
    """
    username_ok = hmac.compare_digest(username.encode(), settings.admin_username.encode())
    # Always run the hash check so timing does not reveal a correct username
    password_ok = verify_password(password, settings.admin_password_hash)
    return username_ok and password_ok


async def list_users_with_counts(db: AsyncSession) -> list[UserWithCounts]:
    """
    Return every user with their student count, newest first.

    Single aggregate query (LEFT OUTER JOIN + GROUP BY) rather than one count
    query per user.
    """
    student_count = func.count(Student.id).label("student_count")
    result = await db.execute(
        select(User, student_count)
        .outerjoin(Student, Student.user_id == User.id)
        .group_by(User.id)
        .order_by(User.created_at.desc()),
    )
    return [UserWithCounts(user=user, student_count=count) for user, count in result.all()]


async def delete_user_cascade(db: AsyncSession, user_id: UUID) -> UserDeletionStats:
    """
    Delete a user and every dependent record.

    Deletes in dependency order - daily logs, then students, then the user -
    so no step leaves orphaned references even without database cascades.

    Returns:
        UserDeletionStats; user_deleted is False when no such user exists
        (nothing else is deleted in that case).

    Note:
        Does not commit. Caller (session generator) handles commit at request end,
        so a failure part way rolls back every step.
    """
    stats = UserDeletionStats()
    user = await db.get(User, user_id)
    if user is None:
        return stats

    student_ids = select(Student.id).where(Student.user_id == user_id).scalar_subquery()
    result = await db.execute(delete(DailyLog).where(DailyLog.student_id.in_(student_ids)))
    stats.logs_deleted = result.rowcount

    result = await db.execute(delete(Student).where(Student.user_id == user_id))
    stats.students_deleted = result.rowcount

    await db.delete(user)
    await db.flush()
    stats.user_deleted = True

    logger.info(
        "Admin deleted user: user_id=%s students=%d logs=%d",
        user_id,
        stats.students_deleted,
        stats.logs_deleted,
    )
    return stats
