"""
Nightly purge of data nobody can use any more.

Run from cron (e.g. daily at 03:00):

    python -m tasks.cleanup

Removes one-time codes past their expiry (they can never verify) and daily
logs whose date falls outside DAILY_LOG_RETENTION_DAYS.
"""
import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from db.session import async_session_factory
from models.daily_log import DailyLog
from services.otp_service import delete_expired_codes

logger = logging.getLogger(__name__)


@dataclass
class CleanupStats:
    """Rows removed by one run."""

    expired_codes_deleted: int = 0
    old_logs_deleted: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


async def cleanup_expired_codes(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete and commit codes whose expires_at is not after now. Returns the count."""
    deleted = await delete_expired_codes(db, now=now)
    await db.commit()
    if deleted:
        logger.info("Purged %d expired one-time codes", deleted)
    return deleted


async def cleanup_old_daily_logs(
    db: AsyncSession,
    now: datetime | None = None,
    retention_days: int | None = None,
) -> int:
    """
    Delete and commit daily logs dated before the retention cutoff.

    The cutoff is the calendar date retention_days before now; a log dated
    exactly on the cutoff is kept.

    Args:
        db: Session to run the delete in.
        now: Reference time, injectable so tests can pin the cutoff.
        retention_days: Overrides settings.daily_log_retention_days.

    Returns:
        Number of logs deleted.
    """
    now = now or datetime.now(UTC)
    if retention_days is None:
        retention_days = get_settings().daily_log_retention_days
    cutoff = (now - timedelta(days=retention_days)).date()

    result = await db.execute(delete(DailyLog).where(DailyLog.log_date < cutoff))
    await db.commit()

    if result.rowcount:
        logger.info(
            "Purged %d daily logs dated before %s (%d day retention)",
            result.rowcount, cutoff.isoformat(), retention_days,
        )
    return result.rowcount


async def run_cleanup(
    db: AsyncSession | None = None,
    now: datetime | None = None,
    retention_days: int | None = None,
) -> CleanupStats:
    """
    Run every purge in turn.

    Opens its own session from async_session_factory unless db is given
    (tests pass the transactional test session).
    """
    if db is None:
        async with async_session_factory() as session:
            return await run_cleanup(session, now=now, retention_days=retention_days)

    logger.info("Cleanup started")
    stats = CleanupStats(
        expired_codes_deleted=await cleanup_expired_codes(db, now=now),
        old_logs_deleted=await cleanup_old_daily_logs(
            db, now=now, retention_days=retention_days,
        ),
    )
    logger.info("Cleanup finished: %s", stats.to_dict())
    return stats


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_cleanup())


if __name__ == "__main__":
    main()
