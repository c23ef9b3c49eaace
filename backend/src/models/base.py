"""Declarative base and the column mixins every table shares."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid6 import uuid7


class Base(DeclarativeBase):
    pass


class UUIDv7Mixin:
    """
    Primary key `id` holding a UUIDv7.

    Generated in Python when the row is flushed, so services can read the id
    straight after `flush()`. v7 ids begin with a millisecond timestamp and
    therefore sort by insertion time.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid7)


class TimestampMixin:
    """
    `created_at`/`updated_at` as TIMESTAMPTZ filled by the database.

    clock_timestamp() is the wall clock at the statement, unlike now() which is
    frozen at transaction start.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.clock_timestamp(),
        onupdate=func.clock_timestamp(),
        nullable=False,
    )
