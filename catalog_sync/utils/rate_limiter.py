"""
Catalog API rate limiter using the Token Bucket algorithm.

An in-process, asyncio-safe limiter shared by every outbound Catalog API
call in a run. Callers await acquire() before each request; when the
bucket is empty the caller is suspended until a token refills.

Token Bucket Configuration:
- Capacity: rate tokens (one second of burst)
- Refill Rate: rate tokens per second
- Clock and sleep are injectable so tests never wait on real time

Usage:
    limiter = TokenBucketRateLimiter(rate=2)
    await limiter.acquire()  # Suspends until a token is available
    # Now safe to call the Catalog API
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("rate_limiter")


class TokenBucketRateLimiter:
    """
    Admits at most `rate` requests per second.

    Token bookkeeping happens under an asyncio.Lock so concurrent item
    tasks never race on the bucket state. Waiting happens outside the lock.
    """

    def __init__(
        self,
        rate: float,
        capacity: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the rate limiter.

        Args:
            rate: Tokens added per second
            capacity: Maximum tokens (burst capacity), defaults to rate
            clock: Monotonic clock returning seconds
            sleep: Coroutine used to wait for a refill
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = float(rate)
        self._capacity = float(capacity) if capacity is not None else max(1.0, float(rate))
        self._clock = clock
        self._sleep = sleep
        self._tokens = self._capacity
        self._last_refill = clock()
        self._lock = asyncio.Lock()
        self._waits = 0

        logger.info(f"TokenBucketRateLimiter initialized: rate={rate}/s, capacity={self._capacity}")

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._last_refill = now

    async def try_acquire(self) -> float:
        """
        Try to take one token.

        Returns:
            0.0 if a token was taken, otherwise the seconds until one is due
        """
        async with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return 0.0
            return (1 - self._tokens) / self._rate

    async def acquire(self) -> None:
        """Suspend the calling task until a token is acquired."""
        while True:
            wait_time = await self.try_acquire()
            if wait_time <= 0:
                return
            self._waits += 1
            logger.debug(f"No token available. Waiting {wait_time:.3f}s")
            await self._sleep(wait_time)

    @property
    def available_tokens(self) -> float:
        """Snapshot of the current token count (for monitoring)."""
        return self._tokens

    def get_status(self) -> dict:
        return {
            "available_tokens": self._tokens,
            "capacity": self._capacity,
            "rate_per_second": self._rate,
            "waits": self._waits,
        }
