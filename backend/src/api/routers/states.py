"""State requirement endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session
from schemas.state import StateResponse
from services import state_service

router = APIRouter(prefix="/states", tags=["states"])


@router.get("/", response_model=list[StateResponse])
async def list_states(
    db: AsyncSession = Depends(get_async_session),
) -> list[StateResponse]:
    """List states and their credit requirements. Public; used by the registration form."""
    states = await state_service.list_states(db)
    return [StateResponse.model_validate(s) for s in states]
