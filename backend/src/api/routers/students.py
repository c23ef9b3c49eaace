"""Student and daily log endpoints."""
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from models.student import Student
from models.user import User
from schemas.student import (
    DailyLogCreate,
    DailyLogResponse,
    StudentCreate,
    StudentResponse,
)
from services import student_service
from services.exceptions import StudentNotFoundError

router = APIRouter(prefix="/students", tags=["students"])


async def _get_owned_student(
    student_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Student:
    student = await student_service.get_student(db, current_user.id, student_id)
    if student is None:
        raise StudentNotFoundError()
    return student


@router.post("/", response_model=StudentResponse, status_code=201)
async def create_student(
    data: StudentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> StudentResponse:
    """Create a student for the current user."""
    student = await student_service.create_student(db, current_user.id, data)
    await db.refresh(student)
    return StudentResponse.model_validate(student)


@router.get("/", response_model=list[StudentResponse])
async def list_students(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> list[StudentResponse]:
    """List the current user's students."""
    students = await student_service.get_students(db, current_user.id)
    return [StudentResponse.model_validate(s) for s in students]


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student: Student = Depends(_get_owned_student),
) -> StudentResponse:
    """Get a single student."""
    return StudentResponse.model_validate(student)


@router.delete("/{student_id}", status_code=204)
async def delete_student(
    student_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> None:
    """Delete a student and all of their daily logs."""
    deleted = await student_service.delete_student(db, current_user.id, student_id)
    if not deleted:
        raise StudentNotFoundError()


@router.post("/{student_id}/logs", response_model=DailyLogResponse, status_code=201)
async def add_daily_log(
    data: DailyLogCreate,
    student: Student = Depends(_get_owned_student),
    db: AsyncSession = Depends(get_async_session),
) -> DailyLogResponse:
    """Record hours worked in one subject."""
    log = await student_service.add_daily_log(db, student, data)
    await db.refresh(log)
    return DailyLogResponse.model_validate(log)


@router.get("/{student_id}/logs", response_model=list[DailyLogResponse])
async def list_daily_logs(
    student: Student = Depends(_get_owned_student),
    db: AsyncSession = Depends(get_async_session),
    subject: str | None = Query(default=None, description="Only logs for this subject"),
    start: date | None = Query(default=None, description="Only logs on or after this day"),
    end: date | None = Query(default=None, description="Only logs on or before this day"),
) -> list[DailyLogResponse]:
    """List a student's daily logs, newest day first."""
    logs = await student_service.get_daily_logs(db, student, subject=subject, start=start, end=end)
    return [DailyLogResponse.model_validate(log) for log in logs]


@router.get("/{student_id}/logs/today", response_model=DailyLogResponse)
async def get_todays_log(
    subject: str = Query(..., min_length=1),
    day: date | None = Query(None, description="The caller's local date. Defaults to today in UTC."),
    student: Student = Depends(_get_owned_student),
    db: AsyncSession = Depends(get_async_session),
) -> DailyLogResponse:
    """
    Get today's log for a subject.

    The server only knows UTC, which rolls over hours before midnight in the
    Americas, so clients should send their own calendar date as `day`.
    """
    log = await student_service.get_log_for_day(db, student, subject, day)
    if log is None:
        raise HTTPException(status_code=404, detail="No log for today")
    return DailyLogResponse.model_validate(log)
