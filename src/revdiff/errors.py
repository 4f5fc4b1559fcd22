"""Full error hierarchy for the revdiff client.

Every public error class inherits from RevdiffError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Nothing in the package retries: every error aborts the call that raised
it and is handed to the caller unchanged.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# Exact text the server uses when a collection cannot serve revision trees.
REPLICATION_UNSUPPORTED_MESSAGE = "this collection doesn't support revision-based replication"


# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the client can raise."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    TIMEOUT = "TIMEOUT"
    UNEXPECTED_STATUS = "UNEXPECTED_STATUS"
    REMOTE_ERROR = "REMOTE_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    INVALID_REVISION = "INVALID_REVISION"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class RevdiffError(Exception):
    """Base exception for all revdiff errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class RevisionTransportError(RevdiffError):
    """The request/response exchange itself failed (DNS, connection reset,
    timeout).

    Context keys: ``method``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.TRANSPORT_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class UnexpectedStatusError(RevdiffError):
    """The server answered with a status other than the expected one.

    Context keys: ``status_code``, ``expected``, ``method``, ``path``,
    ``remote_message``, ``error_num``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.UNEXPECTED_STATUS,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")

    @property
    def remote_message(self) -> str | None:
        return self.context.get("remote_message")


class RevisionSemanticError(UnexpectedStatusError):
    """The server reported a domain failure in its error body
    (``{"error": true, "errorMessage": ..., "errorNum": ...}``).

    The message text is carried verbatim in ``context["remote_message"]``
    and is not interpreted here; see :func:`is_replication_unsupported`.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.REMOTE_ERROR,
        )

    def __str__(self) -> str:
        return self.remote_message or self.message


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------

class RevisionDecodeError(RevdiffError):
    """A response body could not be parsed into the expected structure.

    Context keys: ``path``, ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.DECODE_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class RevisionFormatError(RevisionDecodeError):
    """A revision string contained a symbol outside the alphabet.

    Only raised when strict decoding is requested; the default codec is
    permissive.

    Context keys: ``value``, ``position``, ``symbol``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.INVALID_REVISION,
        )


# ---------------------------------------------------------------------------
# Remote message matching
# ---------------------------------------------------------------------------

def is_replication_unsupported(exc: BaseException) -> bool:
    """Return ``True`` if *exc* is the server saying the collection cannot
    serve revision-based replication.

    The server only signals this through its error message, so the check is
    an exact string comparison.  Keep all such matching in this function.
    """
    if isinstance(exc, UnexpectedStatusError):
        return exc.remote_message == REPLICATION_UNSUPPORTED_MESSAGE
    return False
