"""Database engine and per-request sessions."""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Pooled asyncpg engine; pre-ping drops connections the server has closed."""
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


engine = build_engine(get_settings())

# Objects stay readable after commit; routers serialize them after the
# request's commit has run.
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Request-scoped unit of work.

    Services flush (ids and constraint errors surface early) and this
    dependency commits once the route returns. Any exception rolls the whole
    request back. Code issuance is the one place that commits early, so a
    failed email send cannot undo the stored code.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()
