"""revdiff: revision-tree based collection comparison client.

Public re-exports
-----------------

* **Clients:** :class:`RevisionDiffClient`, :class:`AsyncRevisionDiffClient`
* **Configuration:** :class:`ReplicationConfig`
* **Codec:** :func:`encode_revision`, :func:`decode_revision`
* **Errors:** Every :class:`RevdiffError` subclass and :class:`ErrorCode`
* **Models:** Tree, range and walk result types

Usage::

    from revdiff import RevisionDiffClient

    client = RevisionDiffClient(database="shop", username="root", password="")
    walk = client.collect_revisions(batch_id, "orders")
    documents = client.get_revision_documents(batch_id, "orders", walk.revisions())
"""

from __future__ import annotations

from revdiff.async_client import AsyncRevisionDiffClient

# ── Clients ────────────────────────────────────────────────────────────
from revdiff.client import RevisionDiffClient

# ── Configuration ───────────────────────────────────────────────────────
from revdiff.config import ReplicationConfig

# ── Errors ──────────────────────────────────────────────────────────────
from revdiff.errors import (
    ErrorCode,
    RevdiffError,
    RevisionDecodeError,
    RevisionFormatError,
    RevisionSemanticError,
    RevisionTransportError,
    UnexpectedStatusError,
    is_replication_unsupported,
)

# ── Models ──────────────────────────────────────────────────────────────
from revdiff.models import (
    DocumentRecord,
    RangeWalkResult,
    RevisionRange,
    RevisionRangeResult,
    RevisionTree,
    RevisionTreeNode,
)

# ── Codec ───────────────────────────────────────────────────────────────
from revdiff.revision import (
    ALPHABET,
    decode_revision,
    encode_revision,
    format_revision,
    parse_revision,
)

__all__ = [
    # Clients
    "RevisionDiffClient",
    "AsyncRevisionDiffClient",
    # Configuration
    "ReplicationConfig",
    # Codec
    "ALPHABET",
    "encode_revision",
    "decode_revision",
    "parse_revision",
    "format_revision",
    # Errors
    "RevdiffError",
    "ErrorCode",
    "RevisionTransportError",
    "UnexpectedStatusError",
    "RevisionSemanticError",
    "RevisionDecodeError",
    "RevisionFormatError",
    "is_replication_unsupported",
    # Models
    "DocumentRecord",
    "RevisionRange",
    "RevisionRangeResult",
    "RangeWalkResult",
    "RevisionTree",
    "RevisionTreeNode",
]
