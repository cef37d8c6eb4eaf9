# === NAVMAP v1 ===
# {
#   "module": "fluenthttp.executor",
#   "purpose": "Execute one request with retries, connection ownership, and error policy",
#   "sections": [
#     {"id": "httpmethod", "name": "HttpMethod", "anchor": "class-httpmethod", "kind": "class"},
#     {"id": "requestspec", "name": "RequestSpec", "anchor": "class-requestspec", "kind": "class"},
#     {"id": "requestexecutor", "name": "RequestExecutor", "anchor": "class-requestexecutor", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Execute one request with retries, connection ownership, and error policy.

:class:`RequestExecutor` runs the lifecycle of a single :class:`RequestSpec`:

1. resolve the proxy and build a fresh HTTPX client for the attempt, seeded
   with the request's cookie session (if any);
2. send the request with preemptive basic authentication and the request
   headers;
3. hand the response to :func:`~fluenthttp.materialize.materialize`;
4. on a transport failure, ask the retry policy whether to try again.

The attempt's client and response are released in a ``finally`` block unless
the stream shape was materialized successfully, in which case the returned
stream owns the release.  With ``propagate_errors`` switched off every
failure is logged and ``None`` is returned instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import AbstractSet, Mapping, Optional, Tuple

import httpx

from .cookies import CookieSession
from .errors import ConfigurationError, FluentHttpError, wrap_transport_error
from .materialize import MaterializedResponse, ResponseShape, materialize
from .network.client import TransportFactory, create_http_client
from .network.connection import ConnectionHandle
from .network.instrumentation import create_header_logging_hooks, log_cookies
from .network.policy import FORM_CONTENT_TYPE, REQUEST_BODY_CONTENT_TYPE
from .network.proxy import ProxyResolver, ProxySelection
from .network.retry import create_request_retry_policy
from .settings import ClientConfiguration

logger = logging.getLogger(__name__)

_SUPPORTED_SCHEMES = ("http", "https")


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


@dataclass(frozen=True)
class RequestSpec:
    """Everything needed to execute one request; immutable once built.

    Attributes:
        method: ``GET`` or ``POST``.
        url: Target URL.
        headers: Request headers in insertion order.
        params: Query parameters (GET) or form fields (POST), in order.
        body: Raw text body for POST; takes precedence over ``params``.
        credentials: ``(login, password)`` for preemptive basic authentication.
        allowed_status_codes: Codes accepted in addition to 200.
        proxy: Proxy selection to resolve before sending.
        ignore_cookies: Skip the cookie session for this request when ``True``.
    """

    method: HttpMethod
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    credentials: Optional[Tuple[str, str]] = None
    allowed_status_codes: AbstractSet[int] = frozenset()
    proxy: ProxySelection = field(default_factory=ProxySelection.none)
    ignore_cookies: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", HttpMethod(self.method))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "allowed_status_codes", frozenset(self.allowed_status_codes))

    @property
    def is_idempotent(self) -> bool:
        """Body-less (GET-class) requests are safe to repeat."""

        return self.method is HttpMethod.GET and self.body is None

    def describe(self) -> str:
        login = self.credentials[0] if self.credentials else None
        parts = [self.url, str(self.proxy.mode.value), f"ignore_cookies={self.ignore_cookies}"]
        if login is not None:
            parts.append(f"login={login}")
        return f"{self.method.value.lower()}({', '.join(parts)})"


class RequestExecutor:
    """Run request specs against the HTTP engine.

    Args:
        proxy_resolver: Resolver for each request's proxy selection; defaults to one
            reading the process-wide proxy properties.
        transport_factory: Optional transport override passed to
            :func:`~fluenthttp.network.client.create_http_client`.
        log: Logger for request-level records; defaults to this module's logger.
    """

    def __init__(
        self,
        *,
        proxy_resolver: Optional[ProxyResolver] = None,
        transport_factory: Optional[TransportFactory] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.proxy_resolver = proxy_resolver or ProxyResolver()
        self.transport_factory = transport_factory
        self.logger = log or logger

    def execute(
        self,
        spec: RequestSpec,
        config: ClientConfiguration,
        shape: ResponseShape,
        *,
        session: Optional[CookieSession] = None,
    ) -> Optional[MaterializedResponse]:
        """Execute ``spec`` and materialize the response as ``shape``.

        Args:
            spec: Request to execute.
            config: Configuration snapshot used for every attempt.
            shape: Output shape to produce.
            session: Cookie session to attach, or ``None`` to send no cookies.

        Returns:
            The materialized response, or ``None`` when the request failed and
            ``config.propagate_errors`` is off.

        Raises:
            FluentHttpError: Any failure, when ``config.propagate_errors`` is on.
        """
        self.logger.debug("FluentHttpClient.%s", spec.describe())
        policy = create_request_retry_policy(
            max_retries=config.max_retries,
            is_idempotent=spec.is_idempotent,
            backoff_sec=config.retry_backoff_sec,
        )
        try:
            for attempt in policy:
                with attempt:
                    result = self._attempt(
                        spec, config, shape, session, attempt.retry_state.attempt_number
                    )
        except FluentHttpError as exc:
            if config.propagate_errors:
                raise
            self.logger.warning(
                "FluentHttpClient.%s(%s) failed: %s",
                spec.method.value.lower(),
                spec.url,
                exc,
                exc_info=True,
                extra={"url": spec.url, "failure": type(exc).__name__},
            )
            return None
        return result

    def _attempt(
        self,
        spec: RequestSpec,
        config: ClientConfiguration,
        shape: ResponseShape,
        session: Optional[CookieSession],
        attempt_number: int,
    ) -> MaterializedResponse:
        proxy = self.proxy_resolver.resolve(spec.url, spec.proxy)
        hooks = create_header_logging_hooks(self.logger) if config.log_headers else None
        client = create_http_client(
            config,
            proxy,
            transport_factory=self.transport_factory,
            cookies=session.snapshot() if session is not None else None,
            event_hooks=hooks,
        )
        handle = ConnectionHandle(client, url=spec.url)
        transferred = False
        try:
            try:
                request = self._build_request(client, spec)
                auth = httpx.BasicAuth(*spec.credentials) if spec.credentials else None
            except (TypeError, ValueError) as exc:
                # non-ASCII header values, missing credentials
                raise ConfigurationError(f"Invalid request for {spec.url!r}: {exc}") from exc
            self.logger.debug(
                "sending request", extra={"url": spec.url, "attempt": attempt_number}
            )
            response = client.send(request, auth=auth, stream=True)
            handle.attach(response)
            if session is not None:
                session.absorb(client.cookies)
                if config.log_cookies:
                    log_cookies(self.logger, session.describe())
            result = materialize(
                response,
                shape,
                spec.allowed_status_codes,
                release=handle.release,
                url=spec.url,
                default_encoding=config.default_encoding,
            )
            transferred = result.defers_release
            return result
        except httpx.UnsupportedProtocol as exc:
            raise ConfigurationError(f"Unsupported url {spec.url!r}: {exc}") from exc
        except (httpx.RequestError, OSError) as exc:
            raise wrap_transport_error(exc, spec.url) from exc
        except httpx.InvalidURL as exc:
            raise ConfigurationError(f"Invalid url {spec.url!r}: {exc}") from exc
        finally:
            if not transferred:
                handle.release()

    def _build_request(self, client: httpx.Client, spec: RequestSpec) -> httpx.Request:
        headers = httpx.Headers(dict(spec.headers))
        params = dict(spec.params)
        if spec.method is HttpMethod.GET:
            request = client.build_request("GET", spec.url, params=params or None, headers=headers)
        else:
            content: Optional[bytes] = None
            data: Optional[dict] = None
            if spec.body is not None:
                content = spec.body.encode("utf-8")
                if "content-type" not in headers:
                    headers["Content-Type"] = REQUEST_BODY_CONTENT_TYPE
            elif params:
                data = params
                if "content-type" not in headers:
                    headers["Content-Type"] = FORM_CONTENT_TYPE
            request = client.build_request(
                "POST", spec.url, headers=headers, content=content, data=data
            )
        if request.url.scheme not in _SUPPORTED_SCHEMES:
            raise ConfigurationError(f"Unsupported url {spec.url!r}: scheme must be http or https")
        return request


__all__ = ["HttpMethod", "RequestSpec", "RequestExecutor"]
