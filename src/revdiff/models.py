"""Public data models for the revdiff client.

All types are plain dataclasses.  Everything received from the server is
frozen: a :class:`RevisionTree` is summary data produced remotely and is
never built or changed on this side.

Wire parsing lives next to each model as a ``from_wire`` classmethod so
that field names (``maxDepth``, ``rangeMin``, ...) stay in one place.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from revdiff.errors import RevisionDecodeError
from revdiff.revision import MAX_REVISION, encode_revision, parse_revision

DocumentRecord = dict[str, Any]
"""A schema-free document body as returned by the server."""


def _require(payload: dict[str, Any], key: str, kind: str) -> Any:
    try:
        return payload[key]
    except KeyError:
        raise RevisionDecodeError(
            message=f"{kind} is missing field {key!r}",
            context={"field": key},
        ) from None


def _require_int(payload: dict[str, Any], key: str, kind: str) -> int:
    value = _require(payload, key, kind)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RevisionDecodeError(
            message=f"{kind} field {key!r} must be an integer, got {value!r}",
            context={"field": key, "value": value},
        )
    return value


def _require_list(value: Any, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise RevisionDecodeError(
            message=f"Expected {what} to be an array, got {type(value).__name__}",
            context={"field": what},
        )
    return value


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RevisionRange:
    """Inclusive revision range used as a query input.

    Attributes
    ----------
    min:
        Lowest revision of the range.
    max:
        Highest revision of the range; must be ``>= min``.
    """

    min: int
    max: int

    def __post_init__(self) -> None:
        for name in ("min", "max"):
            value = getattr(self, name)
            if value < 0 or value > MAX_REVISION:
                raise ValueError(f"range {name} {value} is outside [0, 2**64)")
        if self.min > self.max:
            raise ValueError(f"range min {self.min} is greater than max {self.max}")

    @classmethod
    def coerce(cls, value: RevisionRange | Sequence[int]) -> RevisionRange:
        """Accept either a :class:`RevisionRange` or a ``(min, max)`` pair."""
        if isinstance(value, RevisionRange):
            return value
        lo, hi = value
        return cls(lo, hi)

    def to_wire(self) -> list[str]:
        return [encode_revision(self.min), encode_revision(self.max)]


@dataclass(frozen=True)
class RevisionRangeResult:
    """One page of a range query.

    Attributes
    ----------
    ranges:
        One row per requested range, in request order.  Each row lists the
        revisions found in that range on this page.
    resume:
        Cursor for the next page; ``0`` when the walk is complete.
    """

    ranges: tuple[tuple[int, ...], ...]
    resume: int = 0

    @property
    def exhausted(self) -> bool:
        return self.resume == 0

    @classmethod
    def from_wire(cls, payload: Any, *, strict: bool = False) -> RevisionRangeResult:
        if not isinstance(payload, dict):
            raise RevisionDecodeError(
                message=f"Expected a ranges object, got {type(payload).__name__}",
            )
        rows = _require_list(_require(payload, "ranges", "Range result"), "ranges")
        parsed = tuple(
            tuple(parse_revision(rev, strict=strict) for rev in _require_list(row, "ranges row"))
            for row in rows
        )
        resume = parse_revision(payload.get("resume"), strict=strict)
        return cls(ranges=parsed, resume=resume)


@dataclass
class RangeWalkResult:
    """Everything a completed range walk collected.

    Attributes
    ----------
    ranges:
        One list per input range, in input order.  Each list holds the
        revisions of that range across all pages, in the order received.
    round_trips:
        Number of requests the walk needed.
    """

    ranges: list[list[int]] = field(default_factory=list)
    round_trips: int = 0

    def revisions(self) -> list[int]:
        """All revisions, range after range, as one flat list."""
        return [rev for row in self.ranges for rev in row]

    def __len__(self) -> int:
        return sum(len(row) for row in self.ranges)


# ---------------------------------------------------------------------------
# Merkle tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RevisionTreeNode:
    """A leaf of the revision tree.

    Attributes
    ----------
    hash:
        Opaque content hash of the leaf's partition.
    count:
        Number of documents in the partition.
    """

    hash: str
    count: int

    @classmethod
    def from_wire(cls, payload: Any) -> RevisionTreeNode:
        if not isinstance(payload, dict):
            raise RevisionDecodeError(
                message=f"Expected a tree node object, got {type(payload).__name__}",
            )
        node_hash = _require(payload, "hash", "Tree node")
        if not isinstance(node_hash, str):
            raise RevisionDecodeError(
                message=f"Tree node hash must be a string, got {node_hash!r}",
                context={"field": "hash", "value": node_hash},
            )
        count = _require_int(payload, "count", "Tree node")
        if count < 0:
            raise RevisionDecodeError(
                message=f"Tree node count must be >= 0, got {count}",
                context={"field": "count", "value": count},
            )
        return cls(hash=node_hash, count=count)


@dataclass(frozen=True)
class RevisionTree:
    """Merkle-tree summary of a collection's revisions.

    Attributes
    ----------
    version:
        Tree format version; trees of different versions cannot be compared.
    max_depth:
        Depth of the tree.
    range_min:
        Lowest revision covered by the tree.
    range_max:
        Highest revision covered by the tree.
    nodes:
        Leaves in left-to-right order.  The order is significant.
    """

    version: int
    max_depth: int
    range_min: int
    range_max: int
    nodes: tuple[RevisionTreeNode, ...] = ()

    @classmethod
    def from_wire(cls, payload: Any, *, strict: bool = False) -> RevisionTree:
        if not isinstance(payload, dict):
            raise RevisionDecodeError(
                message=f"Expected a revision tree object, got {type(payload).__name__}",
            )
        nodes = _require_list(_require(payload, "nodes", "Revision tree"), "nodes")
        return cls(
            version=_require_int(payload, "version", "Revision tree"),
            max_depth=_require_int(payload, "maxDepth", "Revision tree"),
            range_min=parse_revision(_require(payload, "rangeMin", "Revision tree"), strict=strict),
            range_max=parse_revision(_require(payload, "rangeMax", "Revision tree"), strict=strict),
            nodes=tuple(RevisionTreeNode.from_wire(n) for n in nodes),
        )

    @property
    def range(self) -> RevisionRange:
        """The whole revision span the tree covers."""
        return RevisionRange(self.range_min, self.range_max)

    @property
    def total_count(self) -> int:
        return sum(node.count for node in self.nodes)

    def is_compatible(self, other: RevisionTree) -> bool:
        """True when both trees partition the same space the same way."""
        return (
            self.version == other.version
            and self.max_depth == other.max_depth
            and self.range_min == other.range_min
            and self.range_max == other.range_max
            and len(self.nodes) == len(other.nodes)
        )

    def differing_leaves(self, other: RevisionTree) -> list[int]:
        """Indices of leaves whose hash or count differ from *other*.

        Raises
        ------
        ValueError
            If the two trees do not have the same shape.
        """
        if not self.is_compatible(other):
            raise ValueError(
                "Cannot compare revision trees of different shape "
                f"(version {self.version}/{other.version}, depth {self.max_depth}/{other.max_depth}, "
                f"{len(self.nodes)}/{len(other.nodes)} leaves)"
            )
        return [
            i for i, (mine, theirs) in enumerate(zip(self.nodes, other.nodes))
            if mine != theirs
        ]
