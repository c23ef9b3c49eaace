"""Student model - children tracked by a user."""
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.daily_log import DailyLog
    from models.user import User


class Student(Base, UUIDv7Mixin, TimestampMixin):
    """A student belonging to one user. Deleted with the user."""

    __tablename__ = "students"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    grade: Mapped[str | None] = mapped_column(String(20), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    user: Mapped["User"] = relationship(back_populates="students", lazy="raise")
    daily_logs: Mapped[list["DailyLog"]] = relationship(
        back_populates="student",
        passive_deletes=True,
        lazy="raise",
    )
