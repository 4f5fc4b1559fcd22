"""Shared test fixtures for the revdiff test suite."""

from __future__ import annotations

from typing import Any

import pytest

from revdiff.config import ReplicationConfig
from revdiff.revision import decode_revision, encode_revision


class FakeRevisionServer:
    """In-memory stand-in for the replication endpoints.

    Serves range queries in pages of ``page_size`` revisions.  A resume
    cursor is the first revision not yet returned; a page that leaves
    nothing behind answers with an empty cursor.
    """

    def __init__(
        self,
        revisions: list[int],
        *,
        page_size: int = 1000,
        tree: dict | None = None,
        missing: set[int] | None = None,
        fail_on_call: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self.revisions = sorted(revisions)
        self.page_size = page_size
        self.tree = tree
        self.missing = missing or set()
        self.fail_on_call = fail_on_call
        self.error = error
        self.calls: list[tuple[str, str, dict[str, str], Any]] = []

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        expected: int = 200,
    ) -> Any:
        self.calls.append((method, path, dict(params or {}), json))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise self.error
        endpoint = path.rsplit("/", 1)[-1]
        if endpoint == "tree":
            return self.tree
        if endpoint == "ranges":
            return self._ranges(params or {}, json)
        if endpoint == "documents":
            return [
                {"_key": f"k{decode_revision(rev)}", "_rev": rev, "n": decode_revision(rev)}
                for rev in json
                if decode_revision(rev) not in self.missing
            ]
        raise AssertionError(f"unexpected path {path}")

    def _ranges(self, params: dict[str, str], body: list[list[str]]) -> dict:
        resume = decode_revision(params.get("resume", ""))
        rows: list[list[str]] = []
        taken = 0
        next_resume = 0
        for lo_text, hi_text in body:
            lo, hi = decode_revision(lo_text), decode_revision(hi_text)
            row: list[str] = []
            for rev in self.revisions:
                if rev < max(lo, resume) or rev > hi:
                    continue
                if taken == self.page_size:
                    next_resume = next_resume or rev
                    break
                row.append(encode_revision(rev))
                taken += 1
            rows.append(row)
        return {"ranges": rows, "resume": encode_revision(next_resume)}

    @property
    def range_calls(self) -> list[tuple[str, str, dict[str, str], Any]]:
        return [c for c in self.calls if c[1].endswith("/ranges")]


class AsyncFakeRevisionServer:
    """Async wrapper exposing a :class:`FakeRevisionServer`."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.sync = FakeRevisionServer(*args, **kwargs)

    @property
    def calls(self) -> list[tuple[str, str, dict[str, str], Any]]:
        return self.sync.calls

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        return self.sync.request(method, path, **kwargs)


@pytest.fixture
def config() -> ReplicationConfig:
    """Default test configuration with dummy credentials."""
    return ReplicationConfig(
        base_url="http://localhost:8529",
        database="shop",
        username="root",
        password="test-password-1234",
    )


@pytest.fixture
def fake_server() -> type[FakeRevisionServer]:
    """Factory for in-memory replication servers."""
    return FakeRevisionServer


@pytest.fixture
def async_fake_server() -> type[AsyncFakeRevisionServer]:
    """Factory for async in-memory replication servers."""
    return AsyncFakeRevisionServer


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def total(self, name: str) -> int:
        return sum(i["value"] for i in self.increments if i["name"] == name)


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
