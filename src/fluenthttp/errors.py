# === NAVMAP v1 ===
# {
#   "module": "fluenthttp.errors",
#   "purpose": "Define the exception hierarchy and transport failure classification",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "transport", "name": "Transport Failures", "anchor": "TRN", "kind": "api"},
#     {"id": "response", "name": "Response Errors", "anchor": "RSP", "kind": "api"},
#     {"id": "classify", "name": "classify_exception", "anchor": "function-classify-exception", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared by the request executor and response materializer.

Failures fall into two families.  Transport failures mean the response was never
loaded; they carry a :class:`FailureKind` that the retry policy inspects.  Response
errors mean something came back but cannot be handed to the caller, either
because the status code was not allowed or because the engine produced no
response object at all.  Neither response error is ever retried.
"""

from __future__ import annotations

import socket
import ssl
from enum import Enum
from typing import Optional

import httpx

__all__ = [
    "FailureKind",
    "FluentHttpError",
    "ConfigurationError",
    "TransportFailure",
    "TimeoutFailure",
    "UnknownHostFailure",
    "ConnectionRefusedFailure",
    "TLSFailure",
    "GenericIOFailure",
    "StatusCodeError",
    "ProtocolError",
    "classify_exception",
    "wrap_transport_error",
]


class FailureKind(str, Enum):
    """Transport-level failure categories understood by the retry policy."""

    TIMEOUT = "timeout"
    UNKNOWN_HOST = "unknown_host"
    CONNECTION_REFUSED = "connection_refused"
    TLS = "tls"
    GENERIC_IO = "generic_io"


class FluentHttpError(RuntimeError):
    """Base exception for every failure raised by the fluent client."""


class ConfigurationError(FluentHttpError):
    """Raised when builder or environment inputs cannot be used."""


class TransportFailure(FluentHttpError):
    """Raised when a request could not be completed at the transport level."""

    kind: FailureKind = FailureKind.GENERIC_IO

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class TimeoutFailure(TransportFailure):
    """Connect or read exceeded the configured duration."""

    kind = FailureKind.TIMEOUT


class UnknownHostFailure(TransportFailure):
    """Host name resolution failed."""

    kind = FailureKind.UNKNOWN_HOST


class ConnectionRefusedFailure(TransportFailure):
    """The peer actively refused the connection."""

    kind = FailureKind.CONNECTION_REFUSED


class TLSFailure(TransportFailure):
    """TLS handshake or certificate validation failed."""

    kind = FailureKind.TLS


class GenericIOFailure(TransportFailure):
    """Any other transport-level I/O error."""

    kind = FailureKind.GENERIC_IO


class StatusCodeError(FluentHttpError):
    """Raised when a response arrived with a status code that is not allowed.

    Attributes:
        status_line: Rendered status line, e.g. ``HTTP/1.1 404 Not Found``.
        status_code: Numeric status code of the response.
    """

    def __init__(self, status_line: str, status_code: int, *, url: Optional[str] = None) -> None:
        message = f"Status line {status_line} was returned for {url}" if url else status_line
        super().__init__(message)
        self.status_line = status_line
        self.status_code = status_code
        self.url = url


class ProtocolError(FluentHttpError):
    """Raised when the HTTP engine produced no response without raising."""


_FAILURE_TYPES = {
    FailureKind.TIMEOUT: TimeoutFailure,
    FailureKind.UNKNOWN_HOST: UnknownHostFailure,
    FailureKind.CONNECTION_REFUSED: ConnectionRefusedFailure,
    FailureKind.TLS: TLSFailure,
    FailureKind.GENERIC_IO: GenericIOFailure,
}

_UNKNOWN_HOST_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "[errno -2]",
    "[errno -3]",
    "[errno 11001]",
)
_REFUSED_MARKERS = ("connection refused", "[errno 111]", "[errno 61]", "[winerror 10061]")
_TLS_MARKERS = ("ssl", "certificate_verify_failed", "tlsv1", "handshake")


def _exception_chain(exc: BaseException):
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_exception(exc: BaseException) -> FailureKind:
    """Map an engine exception onto a :class:`FailureKind`.

    Type checks run against the whole ``__cause__``/``__context__`` chain because
    httpx re-raises the underlying socket errors wrapped twice.  Message markers
    are only consulted when no typed cause is available.

    Args:
        exc: Exception raised by the HTTP engine.

    Returns:
        The failure category to report to the retry policy.

    Examples:
        >>> classify_exception(httpx.ReadTimeout("timed out"))
        <FailureKind.TIMEOUT: 'timeout'>
    """
    chain = list(_exception_chain(exc))
    for item in chain:
        if isinstance(item, TransportFailure):
            return item.kind
        if isinstance(item, (httpx.TimeoutException, socket.timeout, TimeoutError)):
            return FailureKind.TIMEOUT
        if isinstance(item, socket.gaierror):
            return FailureKind.UNKNOWN_HOST
        if isinstance(item, ConnectionRefusedError):
            return FailureKind.CONNECTION_REFUSED
        if isinstance(item, ssl.SSLError):
            return FailureKind.TLS

    text = " ".join(str(item).lower() for item in chain)
    if any(marker in text for marker in _UNKNOWN_HOST_MARKERS):
        return FailureKind.UNKNOWN_HOST
    if any(marker in text for marker in _REFUSED_MARKERS):
        return FailureKind.CONNECTION_REFUSED
    if isinstance(exc, httpx.ConnectError) and any(marker in text for marker in _TLS_MARKERS):
        return FailureKind.TLS
    return FailureKind.GENERIC_IO


def wrap_transport_error(exc: BaseException, url: Optional[str] = None) -> TransportFailure:
    """Build the typed transport failure for ``exc`` (caller chains it with ``from``)."""

    kind = classify_exception(exc)
    message = str(exc) or exc.__class__.__name__
    if kind is FailureKind.UNKNOWN_HOST:
        message = f"Unknown host or offline: {message}"
    return _FAILURE_TYPES[kind](message, url=url)
