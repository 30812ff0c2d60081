"""Minimum-spacing rate limiter for outbound API calls."""

from __future__ import annotations

from typing import TYPE_CHECKING

from aiolimiter import AsyncLimiter

if TYPE_CHECKING:
    from types import TracebackType

    from rorlink.config.http_resilience import RateLimit


class RateLimiter:
    """Suspend callers so consecutive acquisitions are at least ``min_interval`` apart.

    A leaky bucket with capacity one: after an acquisition the bucket is full and
    drains completely in exactly ``min_interval`` seconds. Waiters are released in
    arrival order.
    """

    def __init__(self, min_interval: float) -> None:
        if min_interval <= 0:
            raise ValueError("min_interval must be positive")
        self.min_interval = min_interval
        self._limiter = AsyncLimiter(1, min_interval)

    @classmethod
    def from_config(cls, ratelimit: RateLimit) -> RateLimiter:
        return cls(ratelimit.per_seconds / ratelimit.max_calls)

    async def acquire(self) -> None:
        await self._limiter.acquire()

    async def __aenter__(self) -> None:
        await self.acquire()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        return None
