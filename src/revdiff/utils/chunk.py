"""Split a sequence into ordered batches of at most *size* items.

Used by the document fetcher to cap the number of revisions sent per
request when ``document_batch_size`` is configured.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split *items* into consecutive batches of at most *size*.

    Concatenating the batches gives back the input in its original order.
    An empty input returns an empty list (not ``[[]]``).

    Raises
    ------
    ValueError
        If *size* is less than 1.

    Examples
    --------
    >>> chunk([1, 2, 3, 4, 5], 2)
    [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")

    if not items:
        return []

    return [list(items[i : i + size]) for i in range(0, len(items), size)]
