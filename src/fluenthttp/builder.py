"""Fluent builder surface over the request executor.

Example:
    >>> client = FluentHttpClient().with_retries(3).with_user_agent("Chrome")
    >>> text = client.get("https://example.org/").with_auto_system_proxy().as_string()  # doctest: +SKIP

Client setters affect every later request; they replace the immutable
:class:`~fluenthttp.settings.ClientConfiguration` snapshot rather than
mutating it, so a request that is already executing keeps the settings it
started with.  Request builders are single-use value collectors: each
``as_*`` call freezes the collected values into a
:class:`~fluenthttp.executor.RequestSpec` and executes it.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Mapping, Optional, Set, TypeVar, Union

import httpx

from .cookies import CookieSession
from .errors import ConfigurationError
from .executor import HttpMethod, RequestExecutor, RequestSpec
from .logging_config import add_console_handler
from .materialize import (
    MaterializedResponse,
    ResponseShape,
    ResponseStream,
    StatusLine,
    crc32_checksum,
    decode_text,
)
from .network.client import TransportFactory
from .network.proxy import ProxyResolver, ProxySelection
from .settings import ClientConfiguration

__all__ = ["FluentHttpClient", "RequestBuilder", "GetRequestBuilder", "PostRequestBuilder"]

_B = TypeVar("_B", bound="RequestBuilder")


class FluentHttpClient:
    """Entry point holding cross-request settings and the cookie session.

    Args:
        name: Optional suffix for this instance's logger
            (``fluenthttp.client.<name>``) so instances can log at different levels.
        config: Starting configuration; defaults to :class:`ClientConfiguration`.
        proxy_resolver: Resolver for proxy selections; defaults to the
            process-wide proxy properties.
        transport_factory: Optional HTTPX transport override (used by tests).
    """

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        config: Optional[ClientConfiguration] = None,
        proxy_resolver: Optional[ProxyResolver] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self.name = name
        logger_name = "fluenthttp.client" + (f".{name}" if name else "")
        self.logger = logging.getLogger(logger_name)
        self._config = config or ClientConfiguration()
        self._session: Optional[CookieSession] = None
        self._session_lock = threading.Lock()
        self._executor = RequestExecutor(
            proxy_resolver=proxy_resolver,
            transport_factory=transport_factory,
            log=self.logger,
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> ClientConfiguration:
        return self._config

    def _update(self, **changes: object) -> "FluentHttpClient":
        self._config = self._config.with_updates(**changes)
        return self

    def with_logging_headers(self, enabled: bool = True) -> "FluentHttpClient":
        return self._update(log_headers=enabled)

    def with_logging_cookies(self, enabled: bool = True) -> "FluentHttpClient":
        return self._update(log_cookies=enabled)

    def with_logging_to_console(
        self, debug_to_console: bool, error_to_console: Optional[bool] = None
    ) -> "FluentHttpClient":
        """Attach a console handler to this client's logger.

        ``debug_to_console`` logs everything from DEBUG up; otherwise
        ``error_to_console`` (defaulting to ``debug_to_console``) logs errors only.
        """
        if error_to_console is None:
            error_to_console = debug_to_console
        if debug_to_console:
            add_console_handler(self.logger, logging.DEBUG)
        elif error_to_console:
            add_console_handler(self.logger, logging.ERROR)
        return self

    def with_retries(self, max_retries: int) -> "FluentHttpClient":
        return self._update(max_retries=max_retries)

    def with_retry_backoff(self, seconds: float) -> "FluentHttpClient":
        return self._update(retry_backoff_sec=seconds)

    def with_user_agent(self, user_agent: str) -> "FluentHttpClient":
        return self._update(user_agent=user_agent)

    def with_redirect_handling(self, enabled: bool = True) -> "FluentHttpClient":
        return self._update(follow_redirects=enabled)

    def with_connect_timeout(self, seconds: float) -> "FluentHttpClient":
        return self._update(connect_timeout_sec=seconds)

    def with_read_timeout(self, seconds: float) -> "FluentHttpClient":
        return self._update(read_timeout_sec=seconds)

    def with_tcp_no_delay(self, enabled: bool = True) -> "FluentHttpClient":
        return self._update(tcp_no_delay=enabled)

    def with_propagating_errors(self, enabled: bool = True) -> "FluentHttpClient":
        """Raise typed errors (default) or log them and return ``None``."""

        return self._update(propagate_errors=enabled)

    def with_trusting_all_certificates(self, enabled: bool = True) -> "FluentHttpClient":
        return self._update(trust_all_certificates=enabled)

    def with_default_encoding(self, encoding: str) -> "FluentHttpClient":
        return self._update(default_encoding=encoding)

    def with_reusing_cookie_store(self, enabled: bool = True) -> "FluentHttpClient":
        """Keep one cookie session across requests, e.g. to stay logged in."""

        return self._update(reuse_cookie_store=enabled)

    def with_cookie_store(
        self, cookies: Union[httpx.Cookies, CookieSession, None]
    ) -> "FluentHttpClient":
        with self._session_lock:
            if cookies is None or isinstance(cookies, CookieSession):
                self._session = cookies
            else:
                self._session = CookieSession(cookies)
        return self

    @property
    def cookie_store(self) -> Optional[httpx.Cookies]:
        """Cookies of the reused session, or of the last request otherwise."""

        session = self._session
        return session.cookies if session is not None else None

    def _session_for(self, ignore_cookies: bool) -> Optional[CookieSession]:
        if ignore_cookies:
            return None
        with self._session_lock:
            if not self._config.reuse_cookie_store or self._session is None:
                self._session = CookieSession()
            return self._session

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def get(self, url: str) -> "GetRequestBuilder":
        return GetRequestBuilder(self, url)

    def post(self, url: str) -> "PostRequestBuilder":
        return PostRequestBuilder(self, url)

    def execute(
        self, spec: RequestSpec, shape: ResponseShape
    ) -> Optional[MaterializedResponse]:
        """Execute a prepared request with the current configuration snapshot."""

        session = self._session_for(spec.ignore_cookies)
        return self._executor.execute(spec, self._config, shape, session=session)

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in self._config.model_dump().items())
        return f"FluentHttpClient(name={self.name!r}, {fields}, cookie_store={self._session!r})"


class RequestBuilder:
    """Collect per-request values; ``as_*`` methods execute the request."""

    method: HttpMethod = HttpMethod.GET

    def __init__(self, client: FluentHttpClient, url: str) -> None:
        self._client = client
        self.url = url
        self._headers: Dict[str, str] = {}
        self._params: Dict[str, str] = {}
        self._body: Optional[str] = None
        self._credentials: Optional[tuple] = None
        self._allowed_status_codes: Set[int] = set()
        self._proxy = ProxySelection.none()
        self._ignore_cookies = False
        self._bytes: Optional[MaterializedResponse] = None

    # headers ---------------------------------------------------------

    def with_header(self: _B, name: str, value: str) -> _B:
        """Set a header; a later value for the same (case-insensitive) name wins."""

        for existing in [key for key in self._headers if key.lower() == name.lower()]:
            del self._headers[existing]
        self._headers[name] = value
        return self

    def with_headers(self: _B, headers: Mapping[str, str]) -> _B:
        """Replace all headers collected so far."""

        self._headers = {}
        for name, value in headers.items():
            self.with_header(name, value)
        return self

    def with_param(self: _B, name: str, value: str) -> _B:
        self._params[name] = value
        return self

    def with_params(self: _B, params: Mapping[str, str]) -> _B:
        self._params = dict(params)
        return self

    # session & auth --------------------------------------------------

    def with_ignoring_cookies(self: _B, ignore: bool = True) -> _B:
        self._ignore_cookies = ignore
        return self

    def with_basic_authentication(self: _B, login: str, password: str) -> _B:
        """Send basic credentials preemptively on the first request."""

        self._credentials = (login, password)
        return self

    def with_allowed_status_codes(self: _B, *status_codes: int) -> _B:
        self._allowed_status_codes.update(status_codes)
        return self

    # proxies ---------------------------------------------------------

    def with_proxy(self: _B, host: str, port: int) -> _B:
        if not host or not 0 < port < 65536:
            raise ConfigurationError(f"invalid proxy {host!r}:{port!r}")
        self._proxy = ProxySelection.explicit(host, port)
        return self

    def with_http_system_proxy(self: _B) -> _B:
        self._proxy = ProxySelection.system_http()
        return self

    def with_https_system_proxy(self: _B) -> _B:
        self._proxy = ProxySelection.system_https()
        return self

    def with_auto_system_proxy(self: _B) -> _B:
        """Pick the http or https system proxy from the URL, honouring non-proxy hosts."""

        self._proxy = ProxySelection.auto()
        return self

    def without_proxy(self: _B) -> _B:
        self._proxy = ProxySelection.none()
        return self

    # execution -------------------------------------------------------

    def build_spec(self) -> RequestSpec:
        return RequestSpec(
            method=self.method,
            url=self.url,
            headers=self._headers,
            params=self._params,
            body=self._body,
            credentials=self._credentials,
            allowed_status_codes=self._allowed_status_codes,
            proxy=self._proxy,
            ignore_cookies=self._ignore_cookies,
        )

    def _execute(self, shape: ResponseShape) -> Optional[MaterializedResponse]:
        return self._client.execute(self.build_spec(), shape)

    def _load_bytes(self) -> Optional[MaterializedResponse]:
        if self._bytes is None:
            self._bytes = self._execute(ResponseShape.BYTES)
        return self._bytes

    def as_bytes(self) -> Optional[bytes]:
        result = self._load_bytes()
        return None if result is None else result.value

    def as_string(self) -> Optional[str]:
        result = self._load_bytes()
        if result is None:
            return None
        encoding = result.encoding or self._client.config.default_encoding
        return decode_text(result.value, encoding)

    def as_crc32(self) -> Optional[int]:
        result = self._load_bytes()
        return None if result is None else crc32_checksum(result.value)

    def as_status_line(self) -> Optional[StatusLine]:
        """Execute the request and return its status line without reading the body."""

        result = self._execute(ResponseShape.STATUS_LINE)
        return None if result is None else result.value

    def as_stream(self) -> Optional[ResponseStream]:
        """Return the body as a stream; closing or exhausting it closes the connection."""

        result = self._execute(ResponseShape.STREAM)
        return None if result is None else result.value


class GetRequestBuilder(RequestBuilder):
    """GET request; parameters are sent as the query string."""

    method = HttpMethod.GET


class PostRequestBuilder(RequestBuilder):
    """POST request; parameters are form-encoded unless a raw body is set."""

    method = HttpMethod.POST

    def with_request_body(self, body: str) -> "PostRequestBuilder":
        self._body = body
        return self
