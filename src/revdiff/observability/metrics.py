"""Metrics hook protocol and no-op default implementation.

revdiff reports counters and timings for every round trip, counters for
the walker and fetcher, and a gauge for the length of each walk.  Without
a configured hook a :class:`NoopMetricsHook` drops everything.

Emitted metric names:

* ``revdiff.requests_total``            -- counter, tagged by method/path/status
* ``revdiff.request_duration_ms``       -- timing
* ``revdiff.walk_round_trips_total``    -- counter
* ``revdiff.revisions_total``           -- counter
* ``revdiff.walk_pages``                -- gauge, pages taken by the last walk
* ``revdiff.documents_total``           -- counter
* ``revdiff.documents_missing_total``   -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* maps string keys to string values; backends translate them into
    their own labelling scheme.
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
    """Metrics implementation that silently discards all data points."""

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
