"""Client configuration for revdiff.

:class:`ReplicationConfig` captures every tuneable knob of the client.
Instances are passed to the transports, the walker and fetcher, and both
client facades.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

_SECRET_FIELDS = ("password", "jwt")


@dataclass
class ReplicationConfig:
    """Complete configuration for a revdiff client.

    Parameters
    ----------
    base_url:
        Server root URL, e.g. ``http://localhost:8529``.
    database:
        Name of the database holding the collections to compare.
    username:
        User for HTTP basic authentication.
    password:
        Password for HTTP basic authentication.  Never logged.
    jwt:
        Bearer token.  Takes precedence over basic authentication when
        set.  Never logged.
    timeout_seconds:
        HTTP request timeout in seconds.  A timed-out round trip raises
        :class:`RevisionTransportError` with code ``TIMEOUT``.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    document_batch_size:
        Maximum number of revisions per document request.  ``None`` sends
        every requested revision in a single round trip.
    strict_revisions:
        Reject revision strings containing symbols outside the alphabet
        instead of decoding them permissively.
    metrics:
        Optional :class:`~revdiff.observability.MetricsHook`.
    debug_dump_payload:
        Write the (redacted) request and response of every round trip to
        *stderr*.
    """

    # ── Server ──────────────────────────────────────────────────────────
    base_url: str = "http://localhost:8529"

    database: str = "_system"

    # ── Auth ────────────────────────────────────────────────────────────
    username: str | None = None

    password: str | None = None

    jwt: str | None = None

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Protocol ────────────────────────────────────────────────────────
    document_batch_size: int | None = None

    strict_revisions: bool = False

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.database:
            raise ValueError("database must not be empty")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.document_batch_size is not None and self.document_batch_size < 1:
            raise ValueError(
                f"document_batch_size must be >= 1 or None, got {self.document_batch_size}"
            )

    def auth_headers(self) -> dict[str, str]:
        """Return the ``Authorization`` header for the configured credentials."""
        if self.jwt:
            return {"Authorization": f"bearer {self.jwt}"}
        return {}

    def basic_auth(self) -> tuple[str, str] | None:
        if self.jwt or self.username is None:
            return None
        return (self.username, self.password or "")

    def secrets(self) -> list[str]:
        """Credential values that must never appear in logs or dumps."""
        return [v for v in (self.password, self.jwt) if v]

    def __repr__(self) -> str:
        """Mask credentials to prevent accidental leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name in _SECRET_FIELDS and val:
                parts.append(f"{f.name}='****'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ReplicationConfig({', '.join(parts)})"
