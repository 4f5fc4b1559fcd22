"""Tests for the resumable range walk (revdiff/replication/walker.py).

Covers:
- completion for several page sizes, single and multiple ranges
- resume cursor handling (omitted on first page, encoded afterwards)
- abort on the first failed round trip
- page streaming via iter_pages
- async walker equivalents, including cancellation
"""

from __future__ import annotations

import asyncio
import math

import pytest

from revdiff.config import ReplicationConfig
from revdiff.errors import RevisionDecodeError, RevisionTransportError
from revdiff.models import RevisionRange
from revdiff.replication.revisions import AsyncRevisionAPI, RevisionAPI
from revdiff.replication.walker import AsyncRangeDiffWalker, RangeDiffWalker
from revdiff.revision import decode_revision, encode_revision


def make_walker(server, config=None) -> RangeDiffWalker:
    return RangeDiffWalker(RevisionAPI(server, "shop"), config)


def make_async_walker(server, config=None) -> AsyncRangeDiffWalker:
    return AsyncRangeDiffWalker(AsyncRevisionAPI(server, "shop"), config)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

class TestWalkCompletion:
    def test_thousand_revisions_in_pages_of_three(self, fake_server):
        server = fake_server(list(range(1, 1001)), page_size=3)
        result = make_walker(server).walk("b1", "users", [[1, 1000]])

        assert result.revisions() == list(range(1, 1001))
        assert result.round_trips == math.ceil(1000 / 3)
        assert len(server.calls) == math.ceil(1000 / 3)

    @pytest.mark.parametrize("page_size", [1, 2, 7, 50, 99, 100, 101, 5000])
    def test_result_independent_of_page_size(self, fake_server, page_size):
        revisions = list(range(10, 1010, 10))
        server = fake_server(revisions, page_size=page_size)
        result = make_walker(server).walk("b1", "users", [(1, 2000)])
        assert result.revisions() == revisions
        assert result.round_trips == math.ceil(len(revisions) / page_size)

    def test_empty_range_takes_one_round_trip(self, fake_server):
        server = fake_server([5, 6, 7], page_size=2)
        result = make_walker(server).walk("b1", "users", [(100, 200)])
        assert result.ranges == [[]]
        assert result.round_trips == 1

    def test_multiple_ranges_stay_segmented(self, fake_server):
        server = fake_server(list(range(1, 31)), page_size=4)
        result = make_walker(server).walk("b1", "users", [(1, 5), (10, 12), (20, 30)])
        assert result.ranges == [
            [1, 2, 3, 4, 5],
            [10, 11, 12],
            list(range(20, 31)),
        ]
        assert result.revisions() == [1, 2, 3, 4, 5, 10, 11, 12, *range(20, 31)]

    def test_revisions_ascending_within_each_range(self, fake_server):
        server = fake_server([3, 1, 2, 9, 8, 7], page_size=2)
        result = make_walker(server).walk("b1", "users", [(1, 3), (7, 9)])
        for row in result.ranges:
            assert row == sorted(row)

    def test_accepts_revision_range_objects(self, fake_server):
        server = fake_server([1, 2, 3], page_size=2)
        result = make_walker(server).walk("b1", "users", [RevisionRange(1, 3)])
        assert result.revisions() == [1, 2, 3]

    def test_large_revision_values(self, fake_server):
        base = 1_700_000_000_000_000
        revisions = [base + i for i in range(25)]
        server = fake_server(revisions, page_size=6)
        result = make_walker(server).walk("b1", "users", [(base, base + 100)])
        assert result.revisions() == revisions

    def test_empty_range_list_rejected_without_request(self, fake_server):
        server = fake_server([1])
        with pytest.raises(ValueError):
            make_walker(server).walk("b1", "users", [])
        assert server.calls == []

    def test_invalid_range_rejected_without_request(self, fake_server):
        server = fake_server([1])
        with pytest.raises(ValueError):
            make_walker(server).walk("b1", "users", [(10, 1)])
        assert server.calls == []


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------

class TestWalkRequests:
    def test_first_request_has_no_resume(self, fake_server):
        server = fake_server(list(range(1, 10)), page_size=4)
        make_walker(server).walk("b1", "users", [(1, 9)])
        _, _, params, _ = server.calls[0]
        assert "resume" not in params
        assert params == {"batchId": "b1", "collection": "users"}

    def test_following_requests_carry_encoded_cursor(self, fake_server):
        server = fake_server(list(range(1, 10)), page_size=4)
        make_walker(server).walk("b1", "users", [(1, 9)])
        cursors = [decode_revision(c[2]["resume"]) for c in server.calls[1:]]
        assert cursors == [5, 9]
        assert server.calls[1][2]["resume"] == encode_revision(5)

    def test_every_request_carries_all_ranges(self, fake_server):
        server = fake_server(list(range(1, 10)), page_size=2)
        make_walker(server).walk("b1", "users", [(1, 4), (5, 9)])
        bodies = {tuple(map(tuple, c[3])) for c in server.calls}
        assert bodies == {(("_", "C"), ("D", "H"))}

    def test_server_decides_completion(self, fake_server):
        """No page cap: a long walk goes on until the zero cursor."""
        server = fake_server(list(range(1, 2501)), page_size=1)
        result = make_walker(server).walk("b1", "users", [(1, 2500)])
        assert result.round_trips == 2500


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestWalkAbort:
    def test_failure_propagates_and_stops(self, fake_server):
        error = RevisionTransportError("connection reset")
        server = fake_server(list(range(1, 100)), page_size=10, fail_on_call=3, error=error)
        with pytest.raises(RevisionTransportError) as exc_info:
            make_walker(server).walk("b1", "users", [(1, 100)])
        assert exc_info.value is error
        assert len(server.calls) == 3

    def test_failure_on_first_call(self, fake_server):
        server = fake_server([1], fail_on_call=1, error=RevisionTransportError("down"))
        with pytest.raises(RevisionTransportError):
            make_walker(server).walk("b1", "users", [(1, 2)])
        assert len(server.calls) == 1

    def test_row_count_mismatch_is_decode_error(self):
        class WrongRows:
            def request(self, method, path, **kwargs):
                return {"ranges": [["_"]], "resume": ""}

        with pytest.raises(RevisionDecodeError):
            make_walker(WrongRows()).walk("b1", "users", [(1, 2), (3, 4)])

    def test_stalled_cursor_is_not_capped(self):
        """A repeated cursor only warns; the server still ends the walk."""
        pages = iter([
            {"ranges": [["_"]], "resume": "A"},
            {"ranges": [[]], "resume": "A"},
            {"ranges": [["A"]], "resume": ""},
        ])

        class Stalling:
            calls = 0

            def request(self, method, path, **kwargs):
                Stalling.calls += 1
                return next(pages)

        result = make_walker(Stalling()).walk("b1", "users", [(1, 5)])
        assert result.revisions() == [1, 2]
        assert Stalling.calls == 3


# ---------------------------------------------------------------------------
# Streaming and metrics
# ---------------------------------------------------------------------------

class TestIterPages:
    def test_yields_each_page(self, fake_server):
        server = fake_server(list(range(1, 8)), page_size=3)
        pages = list(make_walker(server).iter_pages("b1", "users", [(1, 7)]))
        assert [p.ranges for p in pages] == [((1, 2, 3),), ((4, 5, 6),), ((7,),)]
        assert pages[-1].exhausted
        assert not any(p.exhausted for p in pages[:-1])

    def test_lazy(self, fake_server):
        server = fake_server(list(range(1, 8)), page_size=3)
        pages = make_walker(server).iter_pages("b1", "users", [(1, 7)])
        assert server.calls == []
        next(pages)
        assert len(server.calls) == 1


class TestWalkMetrics:
    def test_round_trips_and_revisions_counted(self, fake_server, metrics):
        server = fake_server(list(range(1, 11)), page_size=4)
        cfg = ReplicationConfig(metrics=metrics)
        make_walker(server, cfg).walk("b1", "users", [(1, 10)])
        assert metrics.total("revdiff.walk_round_trips_total") == 3
        assert metrics.total("revdiff.revisions_total") == 10

    def test_walk_length_reported_as_gauge(self, fake_server, metrics):
        server = fake_server(list(range(1, 11)), page_size=4)
        cfg = ReplicationConfig(metrics=metrics)
        make_walker(server, cfg).walk("b1", "users", [(1, 10)])
        assert metrics.gauges == [
            {"name": "revdiff.walk_pages", "value": 3, "tags": {"collection": "users"}},
        ]

    def test_no_gauge_for_aborted_walk(self, fake_server, metrics):
        server = fake_server(
            list(range(1, 11)), page_size=4, fail_on_call=2, error=RevisionTransportError("reset"),
        )
        with pytest.raises(RevisionTransportError):
            make_walker(server, ReplicationConfig(metrics=metrics)).walk("b1", "users", [(1, 10)])
        assert metrics.gauges == []

    @pytest.mark.asyncio
    async def test_async_walk_length_reported_as_gauge(self, async_fake_server, metrics):
        server = async_fake_server(list(range(1, 6)), page_size=2)
        await make_async_walker(server, ReplicationConfig(metrics=metrics)).walk(
            "b1", "users", [(1, 5)],
        )
        assert [g["value"] for g in metrics.gauges] == [3]


# ---------------------------------------------------------------------------
# Async walker
# ---------------------------------------------------------------------------

class TestAsyncWalker:
    @pytest.mark.asyncio
    async def test_walk_completes(self, async_fake_server):
        server = async_fake_server(list(range(1, 1001)), page_size=3)
        result = await make_async_walker(server).walk("b1", "users", [(1, 1000)])
        assert result.revisions() == list(range(1, 1001))
        assert result.round_trips == 334

    @pytest.mark.asyncio
    async def test_multiple_ranges(self, async_fake_server):
        server = async_fake_server(list(range(1, 21)), page_size=5)
        result = await make_async_walker(server).walk("b1", "users", [(1, 3), (15, 20)])
        assert result.ranges == [[1, 2, 3], [15, 16, 17, 18, 19, 20]]

    @pytest.mark.asyncio
    async def test_failure_stops_walk(self, async_fake_server):
        server = async_fake_server(
            list(range(1, 50)), page_size=5, fail_on_call=2,
            error=RevisionTransportError("timeout"),
        )
        with pytest.raises(RevisionTransportError):
            await make_async_walker(server).walk("b1", "users", [(1, 50)])
        assert len(server.calls) == 2

    @pytest.mark.asyncio
    async def test_iter_pages(self, async_fake_server):
        server = async_fake_server([1, 2, 3, 4], page_size=2)
        pages = [p async for p in make_async_walker(server).iter_pages("b1", "users", [(1, 4)])]
        assert len(pages) == 2

    @pytest.mark.asyncio
    async def test_cancellation_aborts_walk(self):
        started = asyncio.Event()

        class Hanging:
            calls = 0

            async def request(self, method, path, **kwargs):
                Hanging.calls += 1
                started.set()
                await asyncio.sleep(3600)

        task = asyncio.create_task(make_async_walker(Hanging()).walk("b1", "users", [(1, 2)]))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert Hanging.calls == 1
