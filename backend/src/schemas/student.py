"""Pydantic schemas for student and daily log endpoints."""
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from schemas.base import CamelModel


class StudentCreate(CamelModel):
    """Schema for creating a student."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    grade: str | None = Field(default=None, max_length=20)
    birth_date: date | None = None


class StudentResponse(CamelModel):
    """Student as returned by the API."""

    id: UUID
    first_name: str
    last_name: str
    grade: str | None
    birth_date: date | None
    created_at: datetime


class DailyLogCreate(CamelModel):
    """Schema for recording a day's work in one subject."""

    subject: str = Field(..., min_length=1, max_length=100)
    hours: Decimal = Field(..., gt=0, le=24, decimal_places=2)
    log_date: date | None = Field(
        default=None,
        description="Day the work was done, in the caller's calendar. Defaults to today in UTC.",
    )
    notes: str | None = Field(default=None, max_length=5000)


class DailyLogResponse(CamelModel):
    """Daily log as returned by the API."""

    id: UUID
    student_id: UUID
    log_date: date
    subject: str
    hours: Decimal
    notes: str | None
    created_at: datetime
