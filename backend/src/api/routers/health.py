"""Liveness probe reporting the database and Redis."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import get_redis_client
from db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str
    redis: str


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database probe failed")
        return "unhealthy"
    return "healthy"


async def _redis_status() -> str:
    redis_client = get_redis_client()
    if redis_client is None or not redis_client.is_connected:
        return "unavailable"
    return "healthy" if await redis_client.ping() else "unhealthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_async_session)) -> HealthResponse:
    """
    Overall status is "degraded" only when the database is down.

    Redis backs code-request throttling alone, which runs without it.
    """
    database = await _database_status(db)
    return HealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        database=database,
        redis=await _redis_status(),
    )
