"""Synchronous revdiff client.

:class:`RevisionDiffClient` wires configuration, transport, the revision
API, the range walker and the document fetcher together.

Usage::

    from revdiff import RevisionDiffClient

    with RevisionDiffClient(base_url="http://localhost:8529",
                            database="shop", username="root", password="") as client:
        tree = client.get_revision_tree(batch_id, "orders")
        walk = client.walk_ranges(batch_id, "orders", [(tree.range_min, tree.range_max)])
        docs = client.get_revision_documents(batch_id, "orders", walk.revisions())

The batch (snapshot) itself is created and deleted by the caller.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from revdiff.config import ReplicationConfig
from revdiff.models import (
    DocumentRecord,
    RangeWalkResult,
    RevisionRange,
    RevisionRangeResult,
    RevisionTree,
)
from revdiff.replication.fetcher import DocumentFetcher
from revdiff.replication.revisions import RevisionAPI
from revdiff.replication.transport import HttpTransport, Transport
from revdiff.replication.walker import RangeDiffWalker, RangeLike


class RevisionDiffClient:
    """Synchronous client for revision-based collection comparison.

    Parameters
    ----------
    transport:
        Optional transport to use instead of an :class:`HttpTransport`
        built from the configuration.
    **kwargs:
        Forwarded to :class:`ReplicationConfig`.
    """

    def __init__(self, *, transport: Transport | None = None, **kwargs: Any) -> None:
        self._config = ReplicationConfig(**kwargs)
        self._transport = transport if transport is not None else HttpTransport(self._config)
        self._api = RevisionAPI(
            self._transport, self._config.database, strict=self._config.strict_revisions,
        )
        self._walker = RangeDiffWalker(self._api, self._config)
        self._fetcher = DocumentFetcher(self._api, self._config)

    @property
    def config(self) -> ReplicationConfig:
        return self._config

    def get_revision_tree(self, batch_id: str, collection: str) -> RevisionTree:
        """Fetch the Merkle tree of *collection* in batch *batch_id*."""
        return self._api.get_tree(batch_id, collection)

    def get_revisions_by_ranges(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
        resume: int = 0,
    ) -> RevisionRangeResult:
        """Fetch a single page of a range query.

        Most callers want :meth:`walk_ranges`, which follows the resume
        cursor to the end.
        """
        normalized = [RevisionRange.coerce(r) for r in ranges]
        return self._api.get_ranges(batch_id, collection, normalized, resume)

    def walk_ranges(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
    ) -> RangeWalkResult:
        """Collect every revision inside *ranges*, following resume cursors."""
        return self._walker.walk(batch_id, collection, ranges)

    def get_revision_documents(
        self,
        batch_id: str,
        collection: str,
        revisions: Sequence[int],
    ) -> list[DocumentRecord]:
        """Fetch documents for *revisions*.

        The result may be shorter than *revisions*; see
        :class:`~revdiff.replication.fetcher.DocumentFetcher`.
        """
        return self._fetcher.fetch(batch_id, collection, revisions)

    def collect_revisions(self, batch_id: str, collection: str) -> RangeWalkResult:
        """Fetch the tree and walk its whole revision span."""
        tree = self.get_revision_tree(batch_id, collection)
        return self.walk_ranges(batch_id, collection, [tree.range])

    def close(self) -> None:
        """Close the underlying transport, if it can be closed."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> RevisionDiffClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
