"""Revision id codec.

Revision ids are 64-bit integers that travel as short opaque strings.  The
string form is a positional base-64 number, most significant digit first,
over a fixed URL-safe alphabet::

    -_ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789

The alphabet order is part of the wire format.  Zero means "no revision" and
is the only value whose string form is empty.

Decoding is permissive by default: a byte outside the alphabet contributes
a zero digit instead of raising.  Peers rely on this, so strict checking is
an explicit opt-in (``strict=True``).

Usage::

    >>> encode_revision(1)
    '_'
    >>> decode_revision('"_"')
    1
"""

from __future__ import annotations

from typing import Union

from revdiff.errors import RevisionDecodeError, RevisionFormatError

RevisionId = int
"""A revision id; ``0`` means absent."""

ALPHABET = "-_ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

MAX_REVISION = (1 << 64) - 1

_MASK = MAX_REVISION
_QUOTE = ord('"')
_INVALID = 0xFF

# byte -> digit value, _INVALID for bytes outside the alphabet.
_DECODE_TABLE: bytes = bytes(
    ALPHABET.index(chr(b)) if chr(b) in ALPHABET else _INVALID
    for b in range(256)
)

RevisionText = Union[str, bytes, bytearray, memoryview]


def encode_revision(revision: int) -> str:
    """Encode *revision* into its shortest opaque string.

    Negative values are taken as the two's-complement bit pattern of a
    signed 64-bit integer, so ``-1`` encodes like ``2**64 - 1``.

    Raises
    ------
    ValueError
        If *revision* does not fit into 64 bits.
    """
    if revision < -(1 << 63) or revision > MAX_REVISION:
        raise ValueError(f"revision {revision} does not fit into 64 bits")
    value = revision & _MASK
    if value == 0:
        return ""

    digits: list[str] = []
    while value > 0:
        digits.append(ALPHABET[value & 0x3F])
        value >>= 6
    return "".join(reversed(digits))


def decode_revision(value: RevisionText, *, strict: bool = False) -> int:
    """Decode an opaque revision string into its integer value.

    *value* may be text or raw bytes; both forms decode identically.  Every
    ``"`` byte is skipped, so quoted and unquoted wire forms give the same
    result.  The result is reduced to 64 bits and is never negative.

    Parameters
    ----------
    value:
        The encoded revision.
    strict:
        Raise :class:`RevisionFormatError` on symbols outside the alphabet
        instead of treating them as zero digits.
    """
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)

    total = 0
    for position, symbol in enumerate(raw):
        if symbol == _QUOTE:
            continue
        digit = _DECODE_TABLE[symbol]
        if digit == _INVALID:
            if strict:
                raise RevisionFormatError(
                    message=f"Invalid revision symbol {chr(symbol)!r} at position {position}",
                    context={"value": raw.decode("utf-8", "replace"), "position": position, "symbol": symbol},
                )
            digit = 0
        total = (total * 64 + digit) & _MASK
    return total


def parse_revision(value: object, *, strict: bool = False) -> int:
    """Read a revision field out of a decoded JSON document.

    Strings and bytes go through :func:`decode_revision`.  Plain integers
    are accepted as-is so that responses carrying numeric ids still parse;
    ``None`` is treated as absent (``0``).
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise RevisionDecodeError(
            message=f"Expected a revision, got {value!r}",
            context={"value": value},
        )
    if isinstance(value, int):
        if value < 0 or value > MAX_REVISION:
            raise RevisionDecodeError(
                message=f"Numeric revision {value} is out of range",
                context={"value": value},
            )
        return value
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return decode_revision(value, strict=strict)
    raise RevisionDecodeError(
        message=f"Expected a revision string, got {type(value).__name__}",
        context={"value": repr(value)},
    )


def format_revision(revision: int) -> str:
    """Return the quoted JSON form of *revision* (``'""'`` for zero)."""
    return f'"{encode_revision(revision)}"'
