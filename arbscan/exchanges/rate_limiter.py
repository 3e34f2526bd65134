"""Per-exchange request throttling."""

import asyncio
import time

from loguru import logger


class RateLimiter:
    """Async token bucket.

    One instance per exchange adapter, so scan-loop quote reads and manual
    order/withdraw calls draw from the same request budget.
    """

    def __init__(self, requests_per_second: float = 10.0, burst: int = 2):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self.requests_per_second = float(requests_per_second)
        self.burst = burst
        self.capacity = max(1.0, self.requests_per_second + burst)
        self.tokens = self.capacity
        self.last_refill_time = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self.last_refill_time)
        if elapsed <= 0:
            return
        self.tokens = min(self.capacity, self.tokens + elapsed * self.requests_per_second)
        self.last_refill_time = now

    async def acquire(self) -> None:
        """Take one token, waiting until one is available."""
        async with self._lock:
            self._refill(time.monotonic())
            if self.tokens < 1:
                wait_time = (1.0 - self.tokens) / self.requests_per_second
                logger.debug(f"Rate limit reached, waiting {wait_time * 1000:.0f}ms")
                # Holding the lock keeps waiters in FIFO order
                await asyncio.sleep(wait_time)
                self._refill(time.monotonic())
            self.tokens -= 1

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None
