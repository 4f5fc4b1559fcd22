"""Resumable range walk over the revision ranges endpoint.

The server answers a range query in bounded pages.  Each page carries a
resume cursor; the walker keeps asking, passing the last cursor back,
until the server returns a zero cursor.  Completion is decided by the
server alone: there is no page limit on this side.

Any failed round trip ends the walk.  The error propagates unchanged, no
further request is made and whatever was collected so far is dropped.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator, Sequence
from typing import Union

from revdiff.config import ReplicationConfig
from revdiff.models import RangeWalkResult, RevisionRange, RevisionRangeResult
from revdiff.observability import MetricsHook, NoopMetricsHook, get_logger

from .revisions import AsyncRevisionAPI, RevisionAPI

log = get_logger("revdiff.walker")

RangeLike = Union[RevisionRange, Sequence[int]]


def _normalize(ranges: Sequence[RangeLike]) -> list[RevisionRange]:
    normalized = [RevisionRange.coerce(r) for r in ranges]
    if not normalized:
        raise ValueError("at least one revision range is required")
    return normalized


class _WalkState:
    """Per-walk bookkeeping shared by the sync and async walkers."""

    __slots__ = ("collection", "metrics", "previous", "result")

    def __init__(self, collection: str, range_count: int, metrics: MetricsHook) -> None:
        self.collection = collection
        self.metrics = metrics
        self.previous = 0
        self.result = RangeWalkResult(ranges=[[] for _ in range(range_count)])

    def absorb(self, page: RevisionRangeResult) -> None:
        self.result.round_trips += 1
        received = 0
        for row, revisions in zip(self.result.ranges, page.ranges):
            row.extend(revisions)
            received += len(revisions)

        self.metrics.increment(
            "revdiff.walk_round_trips_total", tags={"collection": self.collection},
        )
        self.metrics.increment(
            "revdiff.revisions_total", received, tags={"collection": self.collection},
        )
        log.debug(
            "range page received",
            extra={
                "extra_fields": {
                    "op": "walk_ranges",
                    "collection": self.collection,
                    "page": self.result.round_trips,
                    "revisions": received,
                    "resume": page.resume,
                }
            },
        )
        if page.resume and page.resume == self.previous:
            log.warning(
                "resume cursor did not advance",
                extra={
                    "extra_fields": {
                        "op": "walk_ranges",
                        "collection": self.collection,
                        "resume": page.resume,
                        "page": self.result.round_trips,
                    }
                },
            )
        self.previous = page.resume

    def finish(self) -> RangeWalkResult:
        self.metrics.gauge(
            "revdiff.walk_pages", self.result.round_trips, tags={"collection": self.collection},
        )
        log.info(
            "range walk complete",
            extra={
                "extra_fields": {
                    "op": "walk_ranges",
                    "collection": self.collection,
                    "round_trips": self.result.round_trips,
                    "revisions": len(self.result),
                }
            },
        )
        return self.result


class RangeDiffWalker:
    """Collect every revision inside a set of ranges.

    Parameters
    ----------
    api:
        A :class:`RevisionAPI` to issue range queries with.
    config:
        Optional configuration; only ``metrics`` is used.
    """

    def __init__(self, api: RevisionAPI, config: ReplicationConfig | None = None) -> None:
        self._api = api
        metrics = config.metrics if config is not None else None
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def iter_pages(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
    ) -> Iterator[RevisionRangeResult]:
        """Yield each page of the walk as it arrives.

        The last page yielded is the one with a zero resume cursor.
        """
        normalized = _normalize(ranges)
        resume = 0
        while True:
            page = self._api.get_ranges(batch_id, collection, normalized, resume)
            yield page
            if page.exhausted:
                return
            resume = page.resume

    def walk(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
    ) -> RangeWalkResult:
        """Walk *ranges* to completion.

        Parameters
        ----------
        batch_id:
            Snapshot handle; its lifetime is the caller's responsibility.
        collection:
            Collection name.
        ranges:
            :class:`RevisionRange` objects or ``(min, max)`` pairs.

        Returns
        -------
        RangeWalkResult
            One revision list per input range, in input order.

        Raises
        ------
        ValueError
            If *ranges* is empty (no request is made).
        """
        normalized = _normalize(ranges)
        state = _WalkState(collection, len(normalized), self._metrics)
        for page in self.iter_pages(batch_id, collection, normalized):
            state.absorb(page)
        return state.finish()


class AsyncRangeDiffWalker:
    """Async counterpart of :class:`RangeDiffWalker`.

    Cancelling the awaiting task aborts the in-flight round trip; the
    collected revisions are dropped.
    """

    def __init__(self, api: AsyncRevisionAPI, config: ReplicationConfig | None = None) -> None:
        self._api = api
        metrics = config.metrics if config is not None else None
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def iter_pages(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
    ) -> AsyncIterator[RevisionRangeResult]:
        """Yield each page of the walk as it arrives (async)."""
        normalized = _normalize(ranges)
        resume = 0
        while True:
            page = await self._api.get_ranges(batch_id, collection, normalized, resume)
            yield page
            if page.exhausted:
                return
            resume = page.resume

    async def walk(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
    ) -> RangeWalkResult:
        """Walk *ranges* to completion (async).

        See :meth:`RangeDiffWalker.walk`.
        """
        normalized = _normalize(ranges)
        state = _WalkState(collection, len(normalized), self._metrics)
        async for page in self.iter_pages(batch_id, collection, normalized):
            state.absorb(page)
        return state.finish()
