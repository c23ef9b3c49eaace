"""Daily log model - hours recorded per student, subject and day."""
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.student import Student


class DailyLog(Base, UUIDv7Mixin, TimestampMixin):
    """One day's work for a student in one subject."""

    __tablename__ = "daily_logs"
    __table_args__ = (
        Index("ix_daily_logs_student_date", "student_id", "log_date"),
    )

    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        index=True,
    )
    log_date: Mapped[date] = mapped_column(Date)
    subject: Mapped[str] = mapped_column(String(100))
    hours: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped["Student"] = relationship(back_populates="daily_logs", lazy="raise")
