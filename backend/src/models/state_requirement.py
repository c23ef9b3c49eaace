"""Per-state homeschool requirement reference data."""
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class StateRequirement(Base, UUIDv7Mixin, TimestampMixin):
    """
    Schooling requirements for one state or region.

    Read-only from the auth flow: registration copies the two policy fields
    onto the new user so later edits here never change existing accounts.
    """

    __tablename__ = "state_requirements"

    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    abbreviation: Mapped[str | None] = mapped_column(String(10), nullable=True)
    min_credits_required: Mapped[int] = mapped_column(Integer)
    hours_per_credit: Mapped[int] = mapped_column(Integer)
