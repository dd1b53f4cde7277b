"""
Rate limiter using token bucket algorithm.

The upstream provider meters calls per key. Every adapter request acquires
a token first, so call frequency stays bounded even when the cache misses
repeatedly.

Responsibility: Token bucket rate limiting for upstream requests
"""

import asyncio
import time
from typing import Callable, Optional


class RateLimiter:
    """
    Token bucket rate limiter for controlling request rates.

    Tokens are added at a constant rate up to burst capacity, and each
    request consumes one token. Callers that find the bucket empty sleep
    until the next token is due.

    Example:
        limiter = RateLimiter(rate=1.0, burst=5)
        await limiter.acquire()  # Blocks until token available
    """

    def __init__(self, rate: float, burst: int = 1, clock: Optional[Callable[[], float]] = None):
        """
        Initialize rate limiter.

        Args:
            rate: Requests per second (e.g., 2.0 = 2 req/sec)
            burst: Maximum burst size (tokens in bucket at full capacity)
            clock: Monotonic clock, injectable for tests
        """
        if rate <= 0:
            raise ValueError("Rate must be positive")
        if burst < 1:
            raise ValueError("Burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self._clock = clock or time.monotonic
        self.tokens = float(burst)
        self.last_update = self._clock()
        self.lock = asyncio.Lock()
        self.waits = 0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self.last_update
        self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
        self.last_update = now

    async def acquire(self) -> None:
        """
        Acquire a token, blocking until one is available.

        Waiters are served in lock order, so a burst of requests drains the
        bucket and then proceeds at the configured rate.
        """
        async with self.lock:
            self._refill()

            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.rate
                self.waits += 1
                await asyncio.sleep(wait_time)
                # The token earned while sleeping is consumed immediately
                self.tokens = 0
                self.last_update = self._clock()
            else:
                self.tokens -= 1

    def available(self) -> float:
        """Approximate tokens in bucket (for monitoring, does not lock)"""
        elapsed = self._clock() - self.last_update
        return min(self.burst, self.tokens + elapsed * self.rate)

    def reset(self) -> None:
        """Reset the limiter to full capacity"""
        self.tokens = float(self.burst)
        self.last_update = self._clock()
        self.waits = 0
