"""Token-bucket rate limiters for client-side pacing.

Feishu enforces per-app and per-chat send limits.  Pacing requests on the
client side keeps bursts of messages below them instead of burning retries
on frequency-limit errors.

:class:`TokenBucket` is thread-safe and blocks with :func:`time.sleep`;
:class:`AsyncTokenBucket` uses an :class:`asyncio.Lock` and awaits
:func:`asyncio.sleep`.  Both share the refill arithmetic in
:class:`_BucketState`.
"""

from __future__ import annotations

import asyncio
import threading
import time


class _BucketState:
    """Refill arithmetic shared by the sync and async buckets.

    Callers must hold their own lock around :meth:`reserve`.
    """

    __slots__ = ("burst", "last_refill", "rate", "tokens")

    def __init__(self, rate_rps: float, burst: int) -> None:
        if rate_rps <= 0:
            raise ValueError(f"rate_rps must be > 0, got {rate_rps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self.rate: float = rate_rps
        self.burst: int = burst
        self.tokens: float = float(burst)
        self.last_refill: float = time.monotonic()

    def reserve(self, tokens: int) -> float:
        """Take *tokens* and return how long the caller must wait first."""
        now = time.monotonic()
        self.tokens = min(self.burst, self.tokens + (now - self.last_refill) * self.rate)
        self.last_refill = now

        if self.tokens >= tokens:
            self.tokens -= tokens
            return 0.0

        wait = (tokens - self.tokens) / self.rate
        self.tokens = 0.0
        return wait


class TokenBucket:
    """Thread-safe token bucket for synchronous rate limiting.

    Parameters
    ----------
    rate_rps:
        Sustained refill rate in tokens per second.
    burst:
        Maximum number of tokens the bucket can hold.
    """

    __slots__ = ("_lock", "_state")

    def __init__(self, rate_rps: float, burst: int = 10) -> None:
        self._state = _BucketState(rate_rps, burst)
        self._lock = threading.Lock()

    @property
    def rate(self) -> float:
        return self._state.rate

    @property
    def burst(self) -> int:
        return self._state.burst

    def acquire(self, tokens: int = 1) -> float:
        """Take *tokens*, sleeping if necessary; return the seconds waited."""
        with self._lock:
            wait = self._state.reserve(tokens)
        if wait > 0:
            time.sleep(wait)
        return wait


class AsyncTokenBucket:
    """Async-safe token bucket; see :class:`TokenBucket`."""

    __slots__ = ("_lock", "_state")

    def __init__(self, rate_rps: float, burst: int = 10) -> None:
        self._state = _BucketState(rate_rps, burst)
        self._lock = asyncio.Lock()

    @property
    def rate(self) -> float:
        return self._state.rate

    @property
    def burst(self) -> int:
        return self._state.burst

    async def acquire(self, tokens: int = 1) -> float:
        """Take *tokens*, awaiting if necessary; return the seconds waited."""
        async with self._lock:
            wait = self._state.reserve(tokens)
        if wait > 0:
            await asyncio.sleep(wait)
        return wait
