"""Service layer for state requirement lookups."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.state_requirement import StateRequirement


async def get_state(db: AsyncSession, state_id: str | UUID) -> StateRequirement | None:
    """
    Resolve a state requirement record by id.

    Accepts the id as a string from request bodies; a malformed id resolves
    to None just like an unknown one.
    """
    if not isinstance(state_id, UUID):
        try:
            state_id = UUID(str(state_id).strip())
        except ValueError:
            return None
    return await db.get(StateRequirement, state_id)


async def list_states(db: AsyncSession) -> list[StateRequirement]:
    """Return all state requirement records ordered by name."""
    result = await db.execute(select(StateRequirement).order_by(StateRequirement.name))
    return list(result.scalars().all())
