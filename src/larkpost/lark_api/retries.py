"""Retry decision logic and exponential backoff computation.

Two pure functions used by the transports:

* :func:`should_retry` -- decide whether a failed attempt is retryable.
* :func:`compute_backoff` -- compute the delay before the next attempt.

Feishu reports some throttling inside an HTTP 200/400 envelope rather than
as a 429, so the envelope ``code`` takes part in the decision alongside the
HTTP status.
"""

from __future__ import annotations

import random

import httpx

# HTTP status codes that are safe to retry.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Envelope codes meaning "request frequency limit exceeded".
_RATE_LIMIT_CODES: frozenset[int] = frozenset({99991400})

# Network-level exceptions that warrant a retry.
_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def is_rate_limited(status_code: int | None, lark_code: int | None) -> bool:
    """Return ``True`` for an HTTP 429 or a Feishu frequency-limit code."""
    return status_code == 429 or lark_code in _RATE_LIMIT_CODES


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
    lark_code: int | None = None,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status of the response, or ``None`` if no response arrived.
    exception:
        The exception raised while sending, or ``None``.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts, including the first.
    lark_code:
        The ``code`` field of the response envelope, when one was parsed.
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if lark_code in _RATE_LIMIT_CODES:
        return True

    if status_code is not None:
        return status_code in _RETRYABLE_STATUSES

    return False


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 60.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Compute the delay in seconds before the next attempt.

    A server-provided ``Retry-After`` is used as-is; otherwise the delay is
    ``base * 2**attempt`` capped at *maximum*.  With *jitter* the result is
    scaled to a random 50-100 % of itself.
    """
    if retry_after is not None:
        delay = retry_after
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay
