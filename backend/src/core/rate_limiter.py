"""
Redis-based rate limiting enforcement.

This module contains the enforcement logic - the "how" of rate limiting.
For configuration (limits per scope), see rate_limit_config.py.
"""
import hashlib
import logging
import time

from core.rate_limit_config import (
    RateLimitExceededError,
    RateLimitResult,
    RateLimitScope,
)
from core.redis import get_redis_client

logger = logging.getLogger(__name__)


def _bucket_key(scope: RateLimitScope, subject: str) -> str:
    # Hash the subject so raw emails and IPs never appear in Redis keys
    digest = hashlib.sha256(subject.strip().lower().encode()).hexdigest()
    return f"rate:otp:{scope.value}:{digest}"


async def check_rate_limit(scope: RateLimitScope, subject: str) -> RateLimitResult:
    """
    Check if a code request is allowed and return full rate limit info.

    Falls back to allowing requests if Redis is unavailable.
    """
    # Import at call time so tests can monkeypatch rate_limit_config.RATE_LIMITS
    from core.rate_limit_config import RATE_LIMITS

    config = RATE_LIMITS[scope]
    permissive = RateLimitResult(
        allowed=True,
        limit=config.max_requests,
        remaining=config.max_requests,
        reset=0,
        retry_after=0,
    )

    redis_client = get_redis_client()
    if redis_client is None or not redis_client.is_connected:
        # Redis unavailable - fail open
        logger.warning("redis_unavailable", extra={"operation": "rate_limit"})
        return permissive

    now = int(time.time())
    counted = await redis_client.record_hit(
        _bucket_key(scope, subject),
        now=now,
        window_seconds=config.window_seconds,
        max_hits=config.max_requests,
    )
    if counted is None:
        return permissive

    return RateLimitResult(
        allowed=counted.allowed,
        limit=config.max_requests,
        remaining=max(0, counted.remaining),
        reset=now + config.window_seconds,
        retry_after=0 if counted.allowed else counted.retry_after,
    )


async def enforce_code_request_limits(email: str, client_ip: str | None) -> RateLimitResult:
    """
    Apply the per-email and per-client limits for one-time code requests.

    The client is checked first so a caller already over its own limit does
    not use up the target inbox's quota.

    Returns:
        The per-email result (used for response headers).

    Raises:
        RateLimitExceededError: If either limit is exhausted.
    """
    checks: list[tuple[RateLimitScope, str]] = []
    if client_ip:
        checks.append((RateLimitScope.CLIENT_IP, client_ip))
    checks.append((RateLimitScope.EMAIL, email))

    result = None
    for scope, subject in checks:
        result = await check_rate_limit(scope, subject)
        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                extra={"scope": scope.value, "retry_after": result.retry_after},
            )
            raise RateLimitExceededError(result)
    return result
