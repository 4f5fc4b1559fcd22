"""Credential redaction for debug dumps.

:func:`redact` is applied to every request/response dump before it is
written.  It enforces the following rules:

* Values under sensitive keys (``authorization``, ``password``, ``jwt``,
  ...) are replaced with ``<redacted>``.
* Every configured secret string is scrubbed wherever it appears.
* ``bearer``/``basic`` credentials inside strings are masked.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from typing import Any

# Substrings: if any of these appear in a key name (case-insensitive), the
# value is redacted.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "authorization",
    "password",
    "passwd",
    "jwt",
    "token",
    "secret",
    "cookie",
})

_AUTH_SCHEME_RE = re.compile(r"\b(bearer|basic)\s+\S+", re.IGNORECASE)


def _mask_string(value: str, secrets: tuple[str, ...]) -> str:
    for secret in secrets:
        if secret and secret in value:
            value = value.replace(secret, "<redacted>")
    return _AUTH_SCHEME_RE.sub(lambda m: f"{m.group(1)} <redacted>", value)


def _redact_value(value: Any, secrets: tuple[str, ...]) -> Any:
    if isinstance(value, dict):
        result: dict = {}
        for key, item in value.items():
            key_lower = key.lower() if isinstance(key, str) else ""
            if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
                result[key] = "<redacted>"
            else:
                result[key] = _redact_value(item, secrets)
        return result
    if isinstance(value, list):
        return [_redact_value(item, secrets) for item in value]
    if isinstance(value, str):
        return _mask_string(value, secrets)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def redact(payload: Any, secrets: Iterable[str] = ()) -> Any:
    """Return a deep copy of *payload* with credentials removed.

    Parameters
    ----------
    payload:
        Any JSON-like structure (dicts, lists, strings, numbers).
    secrets:
        Exact credential strings to scrub from every string value.

    Returns
    -------
    Any
        A new structure; the original *payload* is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "bearer abc"})
    {'Authorization': '<redacted>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_value(safe, tuple(s for s in secrets if s))
