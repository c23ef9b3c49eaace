"""One-time code model for email verification and password reset."""
from datetime import datetime

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, UUIDv7Mixin


class OneTimeCode(Base, UUIDv7Mixin):
    """
    Short-lived 6-digit code emailed to prove control of an address.

    Issuing a new code deletes every earlier code for the same email, so at
    most one code per email is normally live. Rows past expires_at never
    verify and are purged by the cleanup task.
    """

    __tablename__ = "one_time_codes"
    __table_args__ = (
        Index("ix_one_time_codes_email_code", "email", "code"),
    )

    email: Mapped[str] = mapped_column(String(255), index=True)
    code: Mapped[str] = mapped_column(String(6))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
