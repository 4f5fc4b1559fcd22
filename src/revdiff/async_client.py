"""Asynchronous revdiff client.

:class:`AsyncRevisionDiffClient` mirrors :class:`RevisionDiffClient` but
every I/O method is a coroutine.  Wrap calls in ``asyncio.timeout`` or
cancel the task to abort an in-flight round trip.

Usage::

    import asyncio
    from revdiff import AsyncRevisionDiffClient

    async def main():
        async with AsyncRevisionDiffClient(database="shop", jwt=token) as client:
            walk = await client.walk_ranges(batch_id, "orders", [(1, 2**40)])
            print(len(walk))

    asyncio.run(main())
"""

from __future__ import annotations

import inspect
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
from revdiff.replication.fetcher import AsyncDocumentFetcher
from revdiff.replication.revisions import AsyncRevisionAPI
from revdiff.replication.transport import AsyncHttpTransport, AsyncTransport
from revdiff.replication.walker import AsyncRangeDiffWalker, RangeLike


class AsyncRevisionDiffClient:
    """Asynchronous client for revision-based collection comparison.

    Parameters
    ----------
    transport:
        Optional async transport to use instead of an
        :class:`AsyncHttpTransport` built from the configuration.
    **kwargs:
        Forwarded to :class:`ReplicationConfig`.
    """

    def __init__(self, *, transport: AsyncTransport | None = None, **kwargs: Any) -> None:
        self._config = ReplicationConfig(**kwargs)
        self._transport = transport if transport is not None else AsyncHttpTransport(self._config)
        self._api = AsyncRevisionAPI(
            self._transport, self._config.database, strict=self._config.strict_revisions,
        )
        self._walker = AsyncRangeDiffWalker(self._api, self._config)
        self._fetcher = AsyncDocumentFetcher(self._api, self._config)

    @property
    def config(self) -> ReplicationConfig:
        return self._config

    async def get_revision_tree(self, batch_id: str, collection: str) -> RevisionTree:
        return await self._api.get_tree(batch_id, collection)

    async def get_revisions_by_ranges(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
        resume: int = 0,
    ) -> RevisionRangeResult:
        normalized = [RevisionRange.coerce(r) for r in ranges]
        return await self._api.get_ranges(batch_id, collection, normalized, resume)

    async def walk_ranges(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RangeLike],
    ) -> RangeWalkResult:
        return await self._walker.walk(batch_id, collection, ranges)

    async def get_revision_documents(
        self,
        batch_id: str,
        collection: str,
        revisions: Sequence[int],
    ) -> list[DocumentRecord]:
        return await self._fetcher.fetch(batch_id, collection, revisions)

    async def collect_revisions(self, batch_id: str, collection: str) -> RangeWalkResult:
        """Fetch the tree and walk its whole revision span."""
        tree = await self.get_revision_tree(batch_id, collection)
        return await self.walk_ranges(batch_id, collection, [tree.range])

    async def close(self) -> None:
        """Close the transport; a plain synchronous ``close`` is accepted too."""
        close = getattr(self._transport, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result

    async def __aenter__(self) -> AsyncRevisionDiffClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
