# === NAVMAP v1 ===
# {
#   "module": "fluenthttp.materialize",
#   "purpose": "Convert raw HTTPX responses into the fixed set of output shapes",
#   "sections": [
#     {"id": "responseshape", "name": "ResponseShape", "anchor": "class-responseshape", "kind": "class"},
#     {"id": "statusline", "name": "StatusLine", "anchor": "class-statusline", "kind": "class"},
#     {"id": "materializedresponse", "name": "MaterializedResponse", "anchor": "class-materializedresponse", "kind": "class"},
#     {"id": "responsestream", "name": "ResponseStream", "anchor": "class-responsestream", "kind": "class"},
#     {"id": "materialize", "name": "materialize", "anchor": "function-materialize", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Convert raw HTTPX responses into the fixed set of output shapes.

Every shape except :attr:`ResponseShape.STREAM` is fully computed before
:func:`materialize` returns, so the executor may close the connection right
away.  The stream shape hands the connection over to the returned
:class:`ResponseStream`, which releases it when the body is exhausted or when
the caller closes the stream, whichever happens first, and never twice.
"""

from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Any, Callable, Iterator, Optional

import httpx

from .errors import ProtocolError, StatusCodeError, wrap_transport_error
from .network.policy import DEFAULT_TEXT_ENCODING, HTTP_OK, STREAM_CHUNK_SIZE

logger = logging.getLogger(__name__)


class ResponseShape(str, Enum):
    """Output shapes a caller can request."""

    BYTES = "bytes"
    TEXT = "text"
    STATUS_LINE = "status_line"
    STREAM = "stream"
    CHECKSUM = "checksum"


@dataclass(frozen=True)
class StatusLine:
    """Status metadata of a response, rendered like ``HTTP/1.1 200 OK``."""

    http_version: str
    status_code: int
    reason_phrase: str

    @classmethod
    def from_response(cls, response: httpx.Response) -> "StatusLine":
        return cls(
            http_version=response.http_version or "HTTP/1.1",
            status_code=response.status_code,
            reason_phrase=response.reason_phrase or "",
        )

    def __str__(self) -> str:
        return f"{self.http_version} {self.status_code} {self.reason_phrase}".rstrip()


@dataclass(frozen=True)
class MaterializedResponse:
    """Result of :func:`materialize`.

    Attributes:
        shape: Shape that was requested.
        value: ``bytes``, ``str``, :class:`StatusLine`, :class:`ResponseStream`
            or an ``int`` checksum depending on ``shape``.
        status_line: Status line of the underlying response.
        encoding: Charset declared by the response, if any.
    """

    shape: ResponseShape
    value: Any
    status_line: StatusLine
    encoding: Optional[str] = None

    @property
    def defers_release(self) -> bool:
        """Whether the returned value, not the executor, closes the connection."""

        return self.shape is ResponseShape.STREAM


class ResponseStream:
    """Pass-through reader over a response body that owns its connection.

    The release callback fires once, when end-of-data is detected or when
    :meth:`close` is called.  Abandoning a partially read stream does not
    release the connection; callers must close it (a ``with`` block does).
    """

    def __init__(
        self,
        chunks: Iterator[bytes],
        release: Callable[[], object],
        *,
        url: Optional[str] = None,
    ) -> None:
        self._chunks = iter(chunks)
        self._release = release
        self._buffer = bytearray()
        self._eof = False
        self._closed = False
        self._released = False
        self.url = url

    def __enter__(self) -> "ResponseStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(STREAM_CHUNK_SIZE)
            if not chunk:
                return
            yield chunk

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return not self._closed

    def read(self, size: Optional[int] = -1) -> bytes:
        """Read up to ``size`` bytes, or everything that is left when ``size < 0``."""

        if self._closed:
            raise ValueError("I/O operation on closed stream")
        if size is None or size < 0:
            while not self._eof:
                self._pull()
            data = bytes(self._buffer)
            self._buffer.clear()
            return data
        while len(self._buffer) < size and not self._eof:
            self._pull()
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def readall(self) -> bytes:
        return self.read(-1)

    def close(self) -> None:
        """Close the stream and release the connection if still held."""

        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self._fire_release()

    def _pull(self) -> None:
        try:
            chunk = next(self._chunks)
        except StopIteration:
            self._eof = True
            self._fire_release()
            return
        except httpx.RequestError as exc:
            raise wrap_transport_error(exc, self.url) from exc
        if chunk:
            self._buffer.extend(chunk)

    def _fire_release(self) -> None:
        if self._released:
            return
        self._released = True
        logger.debug("stream finished, releasing connection", extra={"url": self.url})
        self._release()


def is_allowed_status(status_code: int, allowed_status_codes: AbstractSet[int] = frozenset()) -> bool:
    """Return ``True`` for 200 or any explicitly allowed status code."""

    return status_code == HTTP_OK or status_code in allowed_status_codes


def decode_text(body: bytes, encoding: Optional[str] = None) -> str:
    """Decode ``body`` with ``encoding``, falling back to UTF-8 for unknown charsets."""

    try:
        return body.decode(encoding or DEFAULT_TEXT_ENCODING, errors="replace")
    except LookupError:
        logger.debug("unknown charset %r, decoding as %s", encoding, DEFAULT_TEXT_ENCODING)
        return body.decode(DEFAULT_TEXT_ENCODING, errors="replace")


def crc32_checksum(body: bytes) -> int:
    """Unsigned 32-bit CRC of ``body``."""

    return zlib.crc32(body) & 0xFFFFFFFF


def materialize(
    response: Optional[httpx.Response],
    shape: ResponseShape,
    allowed_status_codes: AbstractSet[int] = frozenset(),
    *,
    release: Optional[Callable[[], object]] = None,
    url: Optional[str] = None,
    default_encoding: str = DEFAULT_TEXT_ENCODING,
) -> MaterializedResponse:
    """Shape ``response`` into the requested output.

    Args:
        response: Response returned by the HTTP engine; ``None`` is reported as
            :class:`~fluenthttp.errors.ProtocolError`.
        shape: Requested output shape.
        allowed_status_codes: Status codes accepted in addition to 200.
        release: Single-fire connection release; required for the stream shape,
            which takes ownership of it.
        url: Request URL, used in log lines and error messages.
        default_encoding: Charset for the text shape when the response has none.

    Returns:
        The materialized value together with the response's status line.

    Raises:
        ProtocolError: If ``response`` is ``None``.
        StatusCodeError: If the status is neither 200 nor allowed (not raised
            for the status-line shape, which reports any status).
    """
    if response is None:
        logger.debug("%s loaded: response is null", url)
        raise ProtocolError(f"HTTP engine returned no response for {url}")

    status_line = StatusLine.from_response(response)
    logger.debug("%s loaded: %s", url, status_line, extra={"shape": shape.value})

    if shape is ResponseShape.STATUS_LINE:
        return MaterializedResponse(shape, status_line, status_line)

    if not is_allowed_status(response.status_code, allowed_status_codes):
        raise StatusCodeError(str(status_line), response.status_code, url=url)

    charset = response.charset_encoding

    if shape is ResponseShape.STREAM:
        if release is None:
            raise ValueError("the stream shape needs a release callback to own the connection")
        stream = ResponseStream(response.iter_bytes(STREAM_CHUNK_SIZE), release, url=url)
        return MaterializedResponse(shape, stream, status_line, charset)

    body = response.read()
    if shape is ResponseShape.BYTES:
        value: Any = body
    elif shape is ResponseShape.TEXT:
        value = decode_text(body, charset or default_encoding)
    elif shape is ResponseShape.CHECKSUM:
        value = crc32_checksum(body)
    else:  # pragma: no cover - exhaustive over ResponseShape
        raise ValueError(f"unsupported response shape: {shape!r}")
    return MaterializedResponse(shape, value, status_line, charset)


__all__ = [
    "ResponseShape",
    "StatusLine",
    "MaterializedResponse",
    "ResponseStream",
    "is_allowed_status",
    "decode_text",
    "crc32_checksum",
    "materialize",
]
