"""User model for registered parents/teachers."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.state_requirement import StateRequirement
    from models.student import Student


class User(Base, UUIDv7Mixin, TimestampMixin):
    """
    Registered account.

    Email and username are each globally unique (enforced by unique indexes).
    min_credits_required/hours_per_credit are denormalized copies of the
    chosen state's requirements at registration time.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    profile_picture: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    is_subscribed: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    subscription_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    trial_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    state_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("state_requirements.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    min_credits_required: Mapped[int | None] = mapped_column(Integer, nullable=True)
    hours_per_credit: Mapped[int | None] = mapped_column(Integer, nullable=True)

    state: Mapped["StateRequirement | None"] = relationship(lazy="raise")
    students: Mapped[list["Student"]] = relationship(
        back_populates="user",
        passive_deletes=True,
        lazy="raise",
    )

    @property
    def full_name(self) -> str:
        """First and last name joined with a space."""
        return f"{self.first_name} {self.last_name}"
