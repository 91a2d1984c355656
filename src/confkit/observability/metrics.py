"""Metrics hook protocol and its no-op default.

confkit reports counters and timings for every HTTP request and for the
page-update workflow.  Without a configured backend a
:class:`NoopMetricsHook` absorbs them.  Any object that satisfies
:class:`MetricsHook` can be passed as ``metrics=`` to route them to
StatsD, Prometheus, Datadog and the like.

Emitted metric names:

* ``confkit.requests_total``             -- counter
* ``confkit.retries_total``              -- counter
* ``confkit.rate_limited_total``         -- counter
* ``confkit.request_duration_ms``        -- timing
* ``confkit.rate_limit_wait_ms``         -- timing
* ``confkit.version_conflicts_total``    -- counter
* ``confkit.version_refreshes_total``    -- counter
* ``confkit.page_updates_total``         -- counter (tag ``outcome``)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Structural type for a metrics backend.

    ``tags`` are string key/value pairs; backends map them onto labels,
    tags or name suffixes as they see fit.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Add *value* to the counter *name*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration of *ms* milliseconds under *name*."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set the gauge *name* to *value*."""
        ...


class NoopMetricsHook:
    """Discards every data point.

    Used whenever no backend is configured so call sites never need a
    ``None`` check.
    """

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
