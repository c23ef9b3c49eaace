"""Pydantic schemas for state requirement endpoints."""
from uuid import UUID

from schemas.base import CamelModel


class StateResponse(CamelModel):
    """State requirement record as shown on the registration form."""

    id: UUID
    name: str
    abbreviation: str | None
    min_credits_required: int
    hours_per_credit: int
