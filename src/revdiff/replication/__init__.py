"""revdiff.replication -- replication API transport, wrappers and algorithms.

This sub-package provides:

* :mod:`.transport` -- Transport protocols and ``httpx`` implementations.
* :mod:`.revisions` -- One-round-trip wrappers for the revision endpoints.
* :mod:`.walker` -- Resumable range walk.
* :mod:`.fetcher` -- Bulk document retrieval.
"""

from __future__ import annotations

from .fetcher import AsyncDocumentFetcher, DocumentFetcher
from .revisions import AsyncRevisionAPI, RevisionAPI, revisions_path
from .transport import AsyncHttpTransport, AsyncTransport, HttpTransport, Transport
from .walker import AsyncRangeDiffWalker, RangeDiffWalker

__all__ = [
    "AsyncDocumentFetcher",
    "AsyncHttpTransport",
    "AsyncRangeDiffWalker",
    "AsyncRevisionAPI",
    "AsyncTransport",
    "DocumentFetcher",
    "HttpTransport",
    "RangeDiffWalker",
    "RevisionAPI",
    "Transport",
    "revisions_path",
]
