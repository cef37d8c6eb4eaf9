# === NAVMAP v1 ===
# {
#   "module": "fluenthttp.network.client",
#   "purpose": "Per-attempt HTTPX client factory.",
#   "sections": [
#     {
#       "id": "create-ssl-context",
#       "name": "create_ssl_context",
#       "anchor": "function-create-ssl-context",
#       "kind": "function"
#     },
#     {
#       "id": "create-transport",
#       "name": "create_transport",
#       "anchor": "function-create-transport",
#       "kind": "function"
#     },
#     {
#       "id": "create-http-client",
#       "name": "create_http_client",
#       "anchor": "function-create-http-client",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Per-attempt HTTPX client factory.

Each request attempt gets its own :class:`httpx.Client`, built from the
client configuration snapshot and the resolved proxy.  That keeps proxy,
TLS, and timeout settings request-scoped and guarantees a fresh connection
on every retry.  Closing the client tears the connection down.

Key design:
- **Transport seam**: Callers may pass a ``transport_factory`` returning any
  :class:`httpx.BaseTransport` (tests use :class:`httpx.MockTransport`).
- **Explicit proxies**: ``trust_env`` is off; proxies come only from the
  proxy resolver.
- **TLS**: certifi bundle by default; the opt-in trust-all mode disables
  verification and logs an error (without failing) if it cannot be set up.
"""

from __future__ import annotations

import functools
import logging
import socket
import ssl
from typing import TYPE_CHECKING, Callable, Mapping, Optional

import certifi
import httpx

from fluenthttp.network.proxy import NO_PROXY, ProxyInfo

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checkers only
    from fluenthttp.settings import ClientConfiguration

logger = logging.getLogger(__name__)

TransportFactory = Callable[["ClientConfiguration", ProxyInfo], httpx.BaseTransport]


@functools.lru_cache(maxsize=1)
def _verifying_ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def _trust_all_ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def create_ssl_context(trust_all_certificates: bool = False) -> ssl.SSLContext:
    """Create the SSL context for a transport.

    Args:
        trust_all_certificates: Accept any server certificate and host name.

    Returns:
        Configured ssl.SSLContext; the verifying certifi context when trust-all
        mode was not requested or could not be set up.
    """
    if trust_all_certificates:
        try:
            ctx = _trust_all_ssl_context()
        except (ssl.SSLError, OSError, ValueError):
            logger.error("Error setting up trust-all certificate mode", exc_info=True)
        else:
            logger.warning("TLS certificate verification DISABLED for this request")
            return ctx
    return _verifying_ssl_context()


def create_transport(config: "ClientConfiguration", proxy: ProxyInfo) -> httpx.BaseTransport:
    """Build the default HTTP transport for one attempt."""

    socket_options = [
        (socket.IPPROTO_TCP, socket.TCP_NODELAY, 1 if config.tcp_no_delay else 0),
    ]
    return httpx.HTTPTransport(
        verify=create_ssl_context(config.trust_all_certificates),
        proxy=proxy.url,
        retries=0,  # retries are decided by the request retry policy
        socket_options=socket_options,
    )


def timeout_for(config: "ClientConfiguration") -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.connect_timeout_sec,
        read=config.read_timeout_sec,
        write=config.read_timeout_sec,
        pool=config.connect_timeout_sec,
    )


def create_http_client(
    config: "ClientConfiguration",
    proxy: Optional[ProxyInfo] = None,
    *,
    transport_factory: Optional[TransportFactory] = None,
    cookies: Optional[httpx.Cookies] = None,
    event_hooks: Optional[Mapping[str, list]] = None,
) -> httpx.Client:
    """Create the HTTPX client for one request attempt.

    Args:
        config: Client configuration snapshot.
        proxy: Resolved proxy; disabled proxies connect directly.
        transport_factory: Optional override for :func:`create_transport`.
        cookies: Cookies to seed the client jar with.
        event_hooks: HTTPX event hooks (header logging).

    Returns:
        A client the caller owns and must close.
    """
    proxy = proxy or NO_PROXY
    factory = transport_factory or create_transport
    if proxy.enabled:
        logger.debug("Using proxy: %s:%s", proxy.host, proxy.port)
    else:
        logger.debug("Not using proxy.")

    return httpx.Client(
        transport=factory(config, proxy),
        timeout=timeout_for(config),
        follow_redirects=config.follow_redirects,
        headers={"User-Agent": config.user_agent},
        cookies=cookies,
        event_hooks=dict(event_hooks or {}),
        trust_env=False,
    )


__all__ = [
    "TransportFactory",
    "create_ssl_context",
    "create_transport",
    "timeout_for",
    "create_http_client",
]
