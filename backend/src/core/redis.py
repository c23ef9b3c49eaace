"""
Async Redis access for code-request throttling.

Redis is optional: every call degrades to "no answer" (None/False) when the
server is disabled, unreachable, or errors mid-operation, and callers treat
that as permission to proceed.
"""
import logging
import uuid
from typing import NamedTuple

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import NoScriptError, RedisError

logger = logging.getLogger(__name__)

# Records one hit in a sorted-set window keyed by timestamp.
# KEYS[1] bucket, ARGV: now, window seconds, max hits, unique member id.
# Returns {allowed, remaining, retry_after_seconds}.
RECORD_HIT_SCRIPT = """
local bucket = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local max_hits = tonumber(ARGV[3])

redis.call('ZREMRANGEBYSCORE', bucket, '-inf', now - window)
local hits = redis.call('ZCARD', bucket)

if hits >= max_hits then
    local first = redis.call('ZRANGE', bucket, 0, 0, 'WITHSCORES')
    local wait = window
    if first[2] then
        wait = math.max(1, math.ceil(tonumber(first[2]) + window - now))
    end
    return {0, 0, wait}
end

redis.call('ZADD', bucket, now, ARGV[4])
redis.call('EXPIRE', bucket, window)
return {1, max_hits - hits - 1, 0}
"""


class WindowCount(NamedTuple):
    """Outcome of recording one hit in a sliding window."""

    allowed: bool
    remaining: int
    retry_after: int


class RedisClient:
    """Pooled async Redis client that never raises to its callers."""

    def __init__(self, url: str, enabled: bool = True, pool_size: int = 20) -> None:
        self._url = url
        self._enabled = enabled
        self._pool_size = pool_size
        self._client: Redis | None = None
        self._record_hit_sha: str | None = None

    async def connect(self) -> None:
        """Open the pool, verify it with PING, and register the window script."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
        client = Redis(connection_pool=pool)
        try:
            await client.ping()
        except RedisError as e:
            logger.warning("Redis connection failed, throttling disabled: %s", e)
            await client.aclose()
            return
        self._client = client
        await self._register_script()
        logger.info("Redis connected")

    async def _register_script(self) -> None:
        self._record_hit_sha = None
        if self._client is None:
            return
        try:
            self._record_hit_sha = await self._client.script_load(RECORD_HIT_SCRIPT)
        except RedisError as e:
            logger.warning("Could not load window script: %s", e)

    async def close(self) -> None:
        """Release the pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._record_hit_sha = None
            logger.info("Redis connection closed")

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def script_loaded(self) -> bool:
        return self._record_hit_sha is not None

    async def ping(self) -> bool:
        """True when the server answers PING."""
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def flush(self) -> None:
        """Drop every key in the selected database."""
        if self._client is not None:
            await self._client.flushdb()

    async def record_hit(
        self,
        bucket: str,
        now: int,
        window_seconds: int,
        max_hits: int,
    ) -> WindowCount | None:
        """
        Count one hit against bucket unless it is already full.

        A NOSCRIPT reply (server restarted and lost its script cache) triggers
        one reload and retry.

        Returns:
            The window outcome, or None when Redis cannot answer.
        """
        member = f"{now}:{uuid.uuid4().hex}"
        for attempt in range(2):
            if self._client is None or self._record_hit_sha is None:
                return None
            try:
                allowed, remaining, retry_after = await self._client.evalsha(
                    self._record_hit_sha, 1, bucket, now, window_seconds, max_hits, member,
                )
            except NoScriptError:
                if attempt:
                    return None
                logger.warning("Window script missing on server, reloading")
                await self._register_script()
            except RedisError as e:
                logger.warning("Window script failed: %s", e)
                return None
            else:
                return WindowCount(bool(allowed), int(remaining), int(retry_after))
        return None


_client: RedisClient | None = None


def get_redis_client() -> RedisClient | None:
    """Client installed at startup, or None outside the app lifespan."""
    return _client


def set_redis_client(client: RedisClient | None) -> None:
    global _client  # noqa: PLW0603
    _client = client
