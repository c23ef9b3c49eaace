"""Service layer for one-time code issuance and verification."""
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.one_time_code import OneTimeCode

CODE_MIN = 100000
CODE_MAX = 999999


def generate_code() -> str:
    """Generate a uniformly random 6-digit code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


async def issue_code(
    db: AsyncSession,
    email: str,
    ttl_minutes: int,
    now: datetime | None = None,
) -> OneTimeCode:
    """
    Replace every outstanding code for email with a fresh one.

    Args:
        db: Database session.
        email: Address the code is issued for.
        ttl_minutes: Minutes until the code stops verifying.
        now: Issue time. Defaults to datetime.now(UTC).

    Returns:
        The persisted OneTimeCode.

    Note:
        Does not commit. Delete and insert are not atomic with respect to a
        concurrent request for the same email; two live rows can result, and
        verification accepts either.
    """
    if now is None:
        now = datetime.now(UTC)

    await delete_codes(db, email)
    otp = OneTimeCode(
        email=email,
        code=generate_code(),
        expires_at=now + timedelta(minutes=ttl_minutes),
    )
    db.add(otp)
    await db.flush()
    return otp


async def find_valid_code(
    db: AsyncSession,
    email: str,
    code: str,
    now: datetime | None = None,
) -> OneTimeCode | None:
    """Return the newest unexpired code matching email and code, or None."""
    if now is None:
        now = datetime.now(UTC)

    result = await db.execute(
        select(OneTimeCode)
        .where(
            OneTimeCode.email == email,
            OneTimeCode.code == code,
            OneTimeCode.expires_at > now,
        )
        .order_by(OneTimeCode.id.desc())
        .limit(1),
    )
    return result.scalar_one_or_none()


async def delete_codes(db: AsyncSession, email: str) -> int:
    """Delete every code issued for email. Returns the number deleted."""
    result = await db.execute(delete(OneTimeCode).where(OneTimeCode.email == email))
    return result.rowcount


async def delete_expired_codes(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete every code whose expiry has passed. Returns the number deleted."""
    if now is None:
        now = datetime.now(UTC)
    result = await db.execute(delete(OneTimeCode).where(OneTimeCode.expires_at <= now))
    return result.rowcount
