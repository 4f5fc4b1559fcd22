"""Revision API wrappers for the replication endpoints.

Provides :class:`RevisionAPI` (sync) and :class:`AsyncRevisionAPI` (async)
thin wrappers around ``/_db/{db}/_api/replication/revisions/*``.  Each
method is exactly one round trip; transport concerns (auth, status checks,
JSON decoding) are delegated to the transport, wire-shape parsing to
:mod:`revdiff.models`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

from revdiff.errors import RevisionDecodeError
from revdiff.models import (
    DocumentRecord,
    RevisionRange,
    RevisionRangeResult,
    RevisionTree,
)
from revdiff.revision import encode_revision

from .transport import AsyncTransport, Transport


def revisions_path(database: str, endpoint: str) -> str:
    """Build ``/_db/{database}/_api/replication/revisions/{endpoint}``."""
    return f"/_db/{quote(database, safe='')}/_api/replication/revisions/{endpoint}"


def _base_params(batch_id: str, collection: str) -> dict[str, str]:
    return {"batchId": str(batch_id), "collection": collection}


def _ranges_request(
    batch_id: str,
    collection: str,
    ranges: Sequence[RevisionRange],
    resume: int,
) -> tuple[dict[str, str], list[list[str]]]:
    params = _base_params(batch_id, collection)
    if resume > 0:
        params["resume"] = encode_revision(resume)
    return params, [r.to_wire() for r in ranges]


def _parse_ranges(
    body: Any, ranges: Sequence[RevisionRange], strict: bool,
) -> RevisionRangeResult:
    result = RevisionRangeResult.from_wire(body, strict=strict)
    if len(result.ranges) != len(ranges):
        raise RevisionDecodeError(
            message=(
                f"Range result has {len(result.ranges)} rows for "
                f"{len(ranges)} requested ranges"
            ),
            context={"rows": len(result.ranges), "requested": len(ranges)},
        )
    return result


def _parse_documents(body: Any) -> list[DocumentRecord]:
    if not isinstance(body, list):
        raise RevisionDecodeError(
            message=f"Expected an array of documents, got {type(body).__name__}",
        )
    documents: list[DocumentRecord] = []
    for index, item in enumerate(body):
        if not isinstance(item, dict):
            raise RevisionDecodeError(
                message=f"Document {index} is not an object: {type(item).__name__}",
                context={"index": index},
            )
        documents.append(dict(item))
    return documents


class RevisionAPI:
    """Synchronous wrapper for the revision replication endpoints.

    Parameters
    ----------
    transport:
        Any :class:`Transport` implementation.
    database:
        Database name used in the request path.
    strict:
        Decode revision strings strictly (see
        :func:`revdiff.revision.decode_revision`).
    """

    def __init__(self, transport: Transport, database: str, *, strict: bool = False) -> None:
        self._transport = transport
        self._database = database
        self._strict = strict

    def get_tree(self, batch_id: str, collection: str) -> RevisionTree:
        """Fetch the revision tree of *collection* within batch *batch_id*.

        Returns
        -------
        RevisionTree
            The parsed tree, leaves in server order.
        """
        body = self._transport.request(
            "GET",
            revisions_path(self._database, "tree"),
            params=_base_params(batch_id, collection),
        )
        return RevisionTree.from_wire(body, strict=self._strict)

    def get_ranges(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RevisionRange],
        resume: int = 0,
    ) -> RevisionRangeResult:
        """Fetch one page of revisions falling into *ranges*.

        Parameters
        ----------
        ranges:
            Ranges to query; the result has one row per range, same order.
        resume:
            Cursor returned by the previous page, ``0`` for the first page.
            Sent only when non-zero.
        """
        params, body = _ranges_request(batch_id, collection, ranges, resume)
        data = self._transport.request(
            "PUT",
            revisions_path(self._database, "ranges"),
            params=params,
            json=body,
        )
        return _parse_ranges(data, ranges, self._strict)

    def get_documents(
        self,
        batch_id: str,
        collection: str,
        revisions: Sequence[int],
    ) -> list[DocumentRecord]:
        """Fetch the documents for *revisions* in one round trip.

        The server may return fewer documents than requested, e.g. when a
        revision no longer exists.
        """
        data = self._transport.request(
            "PUT",
            revisions_path(self._database, "documents"),
            params=_base_params(batch_id, collection),
            json=[encode_revision(rev) for rev in revisions],
        )
        return _parse_documents(data)


class AsyncRevisionAPI:
    """Asynchronous wrapper for the revision replication endpoints.

    Mirrors :class:`RevisionAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncTransport, database: str, *, strict: bool = False) -> None:
        self._transport = transport
        self._database = database
        self._strict = strict

    async def get_tree(self, batch_id: str, collection: str) -> RevisionTree:
        """Fetch the revision tree (async).

        See :meth:`RevisionAPI.get_tree`.
        """
        body = await self._transport.request(
            "GET",
            revisions_path(self._database, "tree"),
            params=_base_params(batch_id, collection),
        )
        return RevisionTree.from_wire(body, strict=self._strict)

    async def get_ranges(
        self,
        batch_id: str,
        collection: str,
        ranges: Sequence[RevisionRange],
        resume: int = 0,
    ) -> RevisionRangeResult:
        """Fetch one page of revisions (async).

        See :meth:`RevisionAPI.get_ranges`.
        """
        params, body = _ranges_request(batch_id, collection, ranges, resume)
        data = await self._transport.request(
            "PUT",
            revisions_path(self._database, "ranges"),
            params=params,
            json=body,
        )
        return _parse_ranges(data, ranges, self._strict)

    async def get_documents(
        self,
        batch_id: str,
        collection: str,
        revisions: Sequence[int],
    ) -> list[DocumentRecord]:
        """Fetch documents for *revisions* (async).

        See :meth:`RevisionAPI.get_documents`.
        """
        data = await self._transport.request(
            "PUT",
            revisions_path(self._database, "documents"),
            params=_base_params(batch_id, collection),
            json=[encode_revision(rev) for rev in revisions],
        )
        return _parse_documents(data)
