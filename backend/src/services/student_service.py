"""Service layer for students and their daily logs."""
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.daily_log import DailyLog
from models.student import Student
from schemas.student import DailyLogCreate, StudentCreate


async def create_student(db: AsyncSession, user_id: UUID, data: StudentCreate) -> Student:
    """
    Create a student owned by user_id.

    Note:
        Does not commit. Caller (session generator) handles commit at request end.
    """
    student = Student(
        user_id=user_id,
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        grade=data.grade,
        birth_date=data.birth_date,
    )
    db.add(student)
    await db.flush()
    return student


async def get_students(db: AsyncSession, user_id: UUID) -> list[Student]:
    """Get all students owned by a user, oldest first."""
    result = await db.execute(
        select(Student)
        .where(Student.user_id == user_id)
        .order_by(Student.created_at, Student.id),
    )
    return list(result.scalars().all())


async def get_student(db: AsyncSession, user_id: UUID, student_id: UUID) -> Student | None:
    """
    Get a specific student by ID, scoped to user.

    Returns:
        Student if found and owned by the user, None otherwise.
    """
    result = await db.execute(
        select(Student).where(
            Student.id == student_id,
            Student.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def delete_student(db: AsyncSession, user_id: UUID, student_id: UUID) -> bool:
    """
    Delete a student and their logs (database cascade).

    Returns:
        True if deleted, False if not found.
    """
    student = await get_student(db, user_id, student_id)
    if student is None:
        return False
    await db.delete(student)
    await db.flush()
    return True


async def add_daily_log(
    db: AsyncSession,
    student: Student,
    data: DailyLogCreate,
) -> DailyLog:
    """Record hours for a student. log_date defaults to today (UTC)."""
    log = DailyLog(
        student_id=student.id,
        log_date=data.log_date or datetime.now(UTC).date(),
        subject=data.subject.strip(),
        hours=data.hours,
        notes=data.notes,
    )
    db.add(log)
    await db.flush()
    return log


async def get_daily_logs(
    db: AsyncSession,
    student: Student,
    subject: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[DailyLog]:
    """
    List a student's logs, newest day first.

    Args:
        db: Database session.
        student: Student whose logs to list (ownership already checked).
        subject: Only logs for this subject (exact match).
        start: Only logs on or after this day.
        end: Only logs on or before this day.
    """
    stmt = select(DailyLog).where(DailyLog.student_id == student.id)
    if subject:
        stmt = stmt.where(DailyLog.subject == subject)
    if start:
        stmt = stmt.where(DailyLog.log_date >= start)
    if end:
        stmt = stmt.where(DailyLog.log_date <= end)
    result = await db.execute(stmt.order_by(DailyLog.log_date.desc(), DailyLog.id.desc()))
    return list(result.scalars().all())


async def get_log_for_day(
    db: AsyncSession,
    student: Student,
    subject: str,
    day: date | None = None,
) -> DailyLog | None:
    """Return the most recent log for subject on day (today, UTC, by default)."""
    day = day or datetime.now(UTC).date()
    logs = await get_daily_logs(db, student, subject=subject, start=day, end=day)
    return logs[0] if logs else None
