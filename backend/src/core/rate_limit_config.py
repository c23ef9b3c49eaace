"""
Limits on how often one-time codes may be emailed.

Registration and password-reset codes share the same buckets. Enforcement
lives in rate_limiter.py; change the numbers in RATE_LIMITS.
"""
from dataclasses import dataclass
from enum import Enum


class RateLimitScope(Enum):
    """What a one-time code request is counted against."""

    EMAIL = "email"  # Target address - caps mail sent to one inbox
    CLIENT_IP = "ip"  # Caller address - caps one client spraying many inboxes


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: int


@dataclass
class RateLimitResult:
    """Outcome of one check, carrying everything the response headers need."""

    allowed: bool
    limit: int
    remaining: int
    reset: int  # unix time the current window ends
    retry_after: int  # seconds; 0 when allowed


class RateLimitExceededError(Exception):
    """A code request hit its limit; the handler answers 429 from `result`."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__(f"Rate limit exceeded, retry in {result.retry_after}s")


RATE_LIMITS: dict[RateLimitScope, RateLimitConfig] = {
    RateLimitScope.EMAIL: RateLimitConfig(max_requests=5, window_seconds=10 * 60),
    RateLimitScope.CLIENT_IP: RateLimitConfig(max_requests=20, window_seconds=60 * 60),
}
