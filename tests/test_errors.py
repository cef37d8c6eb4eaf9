"""Tests for transport failure classification and the error hierarchy."""

import socket
import ssl

import httpx
import pytest

from fluenthttp.errors import (
    ConnectionRefusedFailure,
    FailureKind,
    FluentHttpError,
    GenericIOFailure,
    StatusCodeError,
    TimeoutFailure,
    TLSFailure,
    TransportFailure,
    UnknownHostFailure,
    classify_exception,
    wrap_transport_error,
)


def _chained(outer: BaseException, inner: BaseException) -> BaseException:
    try:
        try:
            raise inner
        except BaseException as exc:
            raise outer from exc
    except BaseException as caught:
        return caught


class TestClassifyException:
    @pytest.mark.parametrize(
        "exc",
        [httpx.ReadTimeout("timed out"), httpx.ConnectTimeout("timed out"), socket.timeout()],
    )
    def test_timeouts(self, exc):
        assert classify_exception(exc) is FailureKind.TIMEOUT

    def test_unknown_host_from_cause(self):
        exc = _chained(httpx.ConnectError("boom"), socket.gaierror(-2, "Name or service not known"))
        assert classify_exception(exc) is FailureKind.UNKNOWN_HOST

    def test_unknown_host_from_message(self):
        exc = httpx.ConnectError("[Errno -2] Name or service not known")
        assert classify_exception(exc) is FailureKind.UNKNOWN_HOST

    def test_connection_refused_from_cause(self):
        exc = _chained(httpx.ConnectError("boom"), ConnectionRefusedError(111, "refused"))
        assert classify_exception(exc) is FailureKind.CONNECTION_REFUSED

    def test_connection_refused_from_message(self):
        exc = httpx.ConnectError("[Errno 111] Connection refused")
        assert classify_exception(exc) is FailureKind.CONNECTION_REFUSED

    def test_tls_from_cause(self):
        exc = _chained(httpx.ConnectError("boom"), ssl.SSLError("certificate verify failed"))
        assert classify_exception(exc) is FailureKind.TLS

    def test_tls_from_message(self):
        exc = httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed")
        assert classify_exception(exc) is FailureKind.TLS

    def test_generic_io(self):
        assert classify_exception(httpx.ReadError("connection reset")) is FailureKind.GENERIC_IO

    def test_existing_failure_keeps_kind(self):
        assert classify_exception(TLSFailure("x")) is FailureKind.TLS


class TestWrapTransportError:
    @pytest.mark.parametrize(
        "exc, expected",
        [
            (httpx.ReadTimeout("timed out"), TimeoutFailure),
            (httpx.ConnectError("[Errno 111] Connection refused"), ConnectionRefusedFailure),
            (httpx.ReadError("reset"), GenericIOFailure),
        ],
    )
    def test_types(self, exc, expected):
        failure = wrap_transport_error(exc, "https://example.org/")
        assert type(failure) is expected
        assert failure.url == "https://example.org/"
        assert failure.kind is expected.kind

    def test_unknown_host_message_prefix(self):
        failure = wrap_transport_error(httpx.ConnectError("[Errno -2] Name or service not known"))
        assert isinstance(failure, UnknownHostFailure)
        assert str(failure).startswith("Unknown host or offline: ")

    def test_empty_message_uses_class_name(self):
        assert str(wrap_transport_error(httpx.ReadError(""))) == "ReadError"


class TestHierarchy:
    def test_everything_is_a_fluent_http_error(self):
        assert issubclass(TransportFailure, FluentHttpError)
        assert issubclass(StatusCodeError, FluentHttpError)
        assert issubclass(FluentHttpError, RuntimeError)

    def test_status_code_error_fields(self):
        err = StatusCodeError("HTTP/1.1 404 Not Found", 404, url="https://example.org/x")
        assert err.status_code == 404
        assert err.status_line == "HTTP/1.1 404 Not Found"
        assert str(err) == "Status line HTTP/1.1 404 Not Found was returned for https://example.org/x"
