"""Sync and async HTTP transports for the replication API.

A transport performs exactly one exchange per call:

1. Send the HTTP request with auth headers and query parameters.
2. On a network failure or timeout -- raise :class:`RevisionTransportError`.
3. On a status other than the expected one -- raise
   :class:`RevisionSemanticError` when the body carries a server error
   message, :class:`UnexpectedStatusError` otherwise.
4. On success -- return the parsed JSON body, or raise
   :class:`RevisionDecodeError` if it is not JSON.

Transports never retry.  Retry and backoff belong to the caller.

:class:`Transport` and :class:`AsyncTransport` are the structural
interfaces the rest of the package depends on; any object with a matching
``request`` method can stand in for :class:`HttpTransport`.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any, Protocol, runtime_checkable

import httpx

from revdiff.config import ReplicationConfig
from revdiff.errors import (
    ErrorCode,
    RevisionDecodeError,
    RevisionSemanticError,
    RevisionTransportError,
    UnexpectedStatusError,
)
from revdiff.observability import MetricsHook, NoopMetricsHook, get_logger

log = get_logger("revdiff.transport")


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

@runtime_checkable
class Transport(Protocol):
    """Anything that can run one request against the server."""

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        expected: int = 200,
    ) -> Any:
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Async counterpart of :class:`Transport`."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        expected: int = 200,
    ) -> Any:
        ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _raise_for_status(
    response: httpx.Response, method: str, path: str, expected: int,
) -> None:
    """Raise the typed error for a response whose status is not *expected*."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    ctx: dict[str, Any] = {
        "status_code": status,
        "expected": expected,
        "method": method,
        "path": path,
    }
    if isinstance(body, dict) and body.get("errorMessage"):
        remote_message = str(body["errorMessage"])
        ctx["remote_message"] = remote_message
        ctx["error_num"] = body.get("errorNum")
        raise RevisionSemanticError(
            message=f"{method} {path} failed with status {status}: {remote_message}",
            context=ctx,
        )

    ctx["body"] = response.text[:500]
    raise UnexpectedStatusError(
        message=f"{method} {path} returned status {status}, expected {expected}",
        context=ctx,
    )


def _parse_body(response: httpx.Response, method: str, path: str) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise RevisionDecodeError(
            message=f"Response to {method} {path} is not valid JSON: {exc}",
            context={"method": method, "path": path, "body": response.text[:500]},
            cause=exc,
        ) from exc


def _wrap_transport_error(exc: httpx.TransportError, method: str, path: str) -> RevisionTransportError:
    code = ErrorCode.TIMEOUT if isinstance(exc, httpx.TimeoutException) else ErrorCode.TRANSPORT_ERROR
    log.warning(
        "Request failed",
        extra={
            "extra_fields": {
                "op": "request",
                "method": method,
                "path": path,
                "error": str(exc),
                "error_type": type(exc).__name__,
            }
        },
    )
    return RevisionTransportError(
        message=f"{'Timeout' if code == ErrorCode.TIMEOUT else 'Transport error'} on {method} {path}: {exc}",
        context={"method": method, "path": path},
        cause=exc,
        code=code,
    )


def _dump_payload(
    method: str,
    url: str,
    payload: Any,
    response_status: int | None,
    response_body: Any,
    secrets: list[str],
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from revdiff.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, secrets), indent=2, default=str),
        file=sys.stderr,
    )


def _emit_debug_dump(
    config: ReplicationConfig,
    method: str,
    response: httpx.Response,
    json_payload: Any,
) -> None:
    """Emit a redacted debug dump of request/response if enabled."""
    if not config.debug_dump_payload:
        return
    try:
        resp_body = response.json()
    except ValueError:
        resp_body = response.text[:1000]
    _dump_payload(
        method, str(response.url), json_payload,
        response.status_code, resp_body,
        secrets=config.secrets(),
    )


def _clean_params(params: dict[str, str] | None) -> dict[str, str] | None:
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _client_kwargs(config: ReplicationConfig) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "base_url": config.base_url,
        "headers": {
            "Accept": "application/json",
            **config.auth_headers(),
        },
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": config.http_proxy,
    }
    auth = config.basic_auth()
    if auth is not None:
        kwargs["auth"] = auth
    return kwargs


def _record(metrics: MetricsHook, method: str, path: str, status: str, elapsed_ms: float | None) -> None:
    tags = {"method": method, "path": path, "status": status}
    metrics.increment("revdiff.requests_total", tags=tags)
    if elapsed_ms is not None:
        metrics.timing("revdiff.request_duration_ms", elapsed_ms, tags=tags)


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class HttpTransport:
    """Synchronous ``httpx`` transport.

    Parameters
    ----------
    config:
        A :class:`ReplicationConfig` controlling URL, auth and timeouts.
    client:
        Optional pre-built :class:`httpx.Client` (e.g. one mounted on an
        :class:`httpx.MockTransport`).  The transport closes it on
        :meth:`close` either way.
    """

    def __init__(self, config: ReplicationConfig, client: httpx.Client | None = None) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = client if client is not None else httpx.Client(**_client_kwargs(config))

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        expected: int = 200,
    ) -> Any:
        """Execute one HTTP request and return the decoded JSON body.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``PUT``, ...).
        path:
            Path relative to ``base_url``.
        params:
            Query parameters; entries whose value is ``None`` are dropped.
        json:
            Request body, serialised as JSON when not ``None``.
        expected:
            The only status code treated as success.

        Raises
        ------
        RevisionTransportError
            Network failure or timeout.
        RevisionSemanticError
            Unexpected status with a server error message.
        UnexpectedStatusError
            Any other unexpected status.
        RevisionDecodeError
            The success body is not JSON.
        """
        t0 = time.monotonic()
        try:
            response = self._client.request(
                method, path, params=_clean_params(params), json=json,
            )
        except httpx.TransportError as exc:
            _record(self._metrics, method, path, "error", None)
            raise _wrap_transport_error(exc, method, path) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        _record(self._metrics, method, path, str(response.status_code), elapsed_ms)
        _emit_debug_dump(self._config, method, response, json)

        if response.status_code != expected:
            _raise_for_status(response, method, path, expected)
        return _parse_body(response, method, path)

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncHttpTransport:
    """Asynchronous ``httpx`` transport.

    Mirrors :class:`HttpTransport`.  Task cancellation propagates as
    :class:`asyncio.CancelledError` and aborts the in-flight request.
    """

    def __init__(
        self, config: ReplicationConfig, client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = client if client is not None else httpx.AsyncClient(**_client_kwargs(config))

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        expected: int = 200,
    ) -> Any:
        """Execute one HTTP request (async).

        See :meth:`HttpTransport.request` for full documentation.
        """
        t0 = time.monotonic()
        try:
            response = await self._client.request(
                method, path, params=_clean_params(params), json=json,
            )
        except httpx.TransportError as exc:
            _record(self._metrics, method, path, "error", None)
            raise _wrap_transport_error(exc, method, path) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        _record(self._metrics, method, path, str(response.status_code), elapsed_ms)
        _emit_debug_dump(self._config, method, response, json)

        if response.status_code != expected:
            _raise_for_status(response, method, path, expected)
        return _parse_body(response, method, path)

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
