# leaseiq/service_layer/rate_limiter.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from ..config import Settings, settings
from ..errors import RateLimiterNotConfigured

log = logging.getLogger(__name__)

FIRECRAWL = "firecrawl"
GEOCODING = "geocoding"


@dataclass
class _Bucket:
    max_requests: int
    window_s: float
    tokens: int
    window_start: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class RateLimiter:
    """
    Per-resource token buckets. Each bucket is refilled to `max_requests`
    every window; `acquire` waits for the next refill when it is empty.

    One instance is shared by every worker of a run so the budget is global.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._buckets: dict[str, _Bucket] = {}

    def configure(self, resource: str, max_requests: int, window_seconds: float) -> None:
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError(f"invalid rate limit for {resource}: {max_requests}/{window_seconds}s")
        self._buckets[resource] = _Bucket(
            max_requests=int(max_requests),
            window_s=float(window_seconds),
            tokens=int(max_requests),
            window_start=self._clock(),
        )

    def is_configured(self, resource: str) -> bool:
        return resource in self._buckets

    def remove(self, resource: str) -> None:
        self._buckets.pop(resource, None)

    def clear(self) -> None:
        self._buckets.clear()

    def _refill(self, b: _Bucket, now: float) -> None:
        elapsed = now - b.window_start
        if elapsed >= b.window_s:
            b.window_start += (elapsed // b.window_s) * b.window_s
            b.tokens = b.max_requests

    async def acquire(self, resource: str) -> None:
        b = self._buckets.get(resource)
        if b is None:
            raise RateLimiterNotConfigured(resource)

        # The lock queues waiters FIFO; only the head of the queue sleeps.
        async with b.lock:
            while True:
                now = self._clock()
                self._refill(b, now)
                if b.tokens > 0:
                    b.tokens -= 1
                    return
                wait = b.window_start + b.window_s - now
                log.debug("rate limit %s exhausted; waiting %.3fs", resource, wait)
                await self._sleep(max(wait, 0.0))


def build_rate_limiter(
    s: Settings | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RateLimiter:
    s = s or settings
    limiter = RateLimiter(clock=clock, sleep=sleep)
    limiter.configure(FIRECRAWL, s.RATE_LIMIT_FIRECRAWL, 60.0)
    limiter.configure(GEOCODING, s.RATE_LIMIT_GEOCODING, 1.0)
    return limiter
