"""Bulk document retrieval by revision.

Unlike the range walk, document retrieval makes no length promise: the
server silently leaves out revisions it no longer has, so the result can be
shorter than the request.  Elements that are returned keep request order.
Callers must check ``len(result)`` before pairing results with inputs.
"""

from __future__ import annotations

from collections.abc import Sequence

from revdiff.config import ReplicationConfig
from revdiff.models import DocumentRecord
from revdiff.observability import MetricsHook, NoopMetricsHook, get_logger
from revdiff.utils.chunk import chunk

from .revisions import AsyncRevisionAPI, RevisionAPI

log = get_logger("revdiff.fetcher")


def _batches(revisions: Sequence[int], batch_size: int | None) -> list[list[int]]:
    if not revisions:
        raise ValueError("at least one revision is required")
    if batch_size is None:
        return [list(revisions)]
    return chunk(revisions, batch_size)


def _report(metrics: MetricsHook, collection: str, requested: int, received: int) -> None:
    metrics.increment("revdiff.documents_total", received, tags={"collection": collection})
    if received < requested:
        metrics.increment(
            "revdiff.documents_missing_total",
            requested - received,
            tags={"collection": collection},
        )
        log.warning(
            "fewer documents than requested revisions",
            extra={
                "extra_fields": {
                    "op": "fetch_documents",
                    "collection": collection,
                    "requested": requested,
                    "received": received,
                }
            },
        )


class DocumentFetcher:
    """Materialise documents for a list of revisions.

    Parameters
    ----------
    api:
        A :class:`RevisionAPI` to issue document requests with.
    config:
        Optional configuration; ``document_batch_size`` and ``metrics`` are
        used.
    """

    def __init__(self, api: RevisionAPI, config: ReplicationConfig | None = None) -> None:
        self._api = api
        self._batch_size = config.document_batch_size if config is not None else None
        metrics = config.metrics if config is not None else None
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def fetch(
        self,
        batch_id: str,
        collection: str,
        revisions: Sequence[int],
    ) -> list[DocumentRecord]:
        """Fetch the documents for *revisions*.

        Returns
        -------
        list[DocumentRecord]
            Documents in request order.  When every revision exists,
            ``result[i]`` belongs to ``revisions[i]``; otherwise the list
            is shorter and no error is raised.

        Raises
        ------
        ValueError
            If *revisions* is empty.
        """
        documents: list[DocumentRecord] = []
        for batch in _batches(revisions, self._batch_size):
            documents.extend(self._api.get_documents(batch_id, collection, batch))
        _report(self._metrics, collection, len(revisions), len(documents))
        return documents


class AsyncDocumentFetcher:
    """Async counterpart of :class:`DocumentFetcher`."""

    def __init__(self, api: AsyncRevisionAPI, config: ReplicationConfig | None = None) -> None:
        self._api = api
        self._batch_size = config.document_batch_size if config is not None else None
        metrics = config.metrics if config is not None else None
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    async def fetch(
        self,
        batch_id: str,
        collection: str,
        revisions: Sequence[int],
    ) -> list[DocumentRecord]:
        """Fetch the documents for *revisions* (async).

        See :meth:`DocumentFetcher.fetch`.
        """
        documents: list[DocumentRecord] = []
        for batch in _batches(revisions, self._batch_size):
            documents.extend(await self._api.get_documents(batch_id, collection, batch))
        _report(self._metrics, collection, len(revisions), len(documents))
        return documents
