"""Metrics hook protocol and no-op default implementation.

larkpost emits counters and timings while rendering documents and talking
to the Feishu API.  By default a :class:`NoopMetricsHook` is used; supply an
object satisfying :class:`MetricsHook` through ``LarkpostConfig.metrics`` to
route them to StatsD, Prometheus or anything else.

Emitted metric names:

* ``larkpost.documents_rendered_total``  -- counter, tag ``msg_type``
* ``larkpost.render_fallback_total``     -- counter
* ``larkpost.requests_total``            -- counter
* ``larkpost.retries_total``             -- counter
* ``larkpost.rate_limited_total``        -- counter
* ``larkpost.request_duration_ms``       -- timing
* ``larkpost.rate_limit_wait_ms``        -- timing
* ``larkpost.token_refresh_total``       -- counter
* ``larkpost.messages_sent_total``       -- counter, tag ``msg_type``
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* is an optional ``str -> str`` mapping that implementations may
    translate into labels, tags or name suffixes.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(hook: Any | None) -> MetricsHook:
    """Return *hook*, or a :class:`NoopMetricsHook` when it is ``None``."""
    return hook if hook is not None else NoopMetricsHook()
