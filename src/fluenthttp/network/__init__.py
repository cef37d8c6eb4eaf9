"""Network subsystem: per-attempt HTTPX clients, proxy resolution, and retry policy.

Modules:
- client: per-attempt HTTPX client factory (TLS, timeouts, transport seam)
- connection: single-fire guard owning one attempt's client and response
- instrumentation: header and cookie logging hooks
- policy: HTTP policy constants (timeouts, user agent, proxy property names)
- proxy: proxy selection and resolution against process-wide properties
- retry: retry decision table and the Tenacity loop that drives it

Example:
    >>> from fluenthttp.network import ProxyResolver, ProxySelection, should_retry
    >>> resolver = ProxyResolver({})
    >>> resolver.resolve("http://example.org/", ProxySelection.auto()).enabled
    False
"""

from fluenthttp.network.connection import ConnectionHandle
from fluenthttp.network.policy import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    USER_AGENT_MOZILLA,
)
from fluenthttp.network.proxy import (
    NO_PROXY,
    ProxyInfo,
    ProxyMode,
    ProxyResolver,
    ProxySelection,
)
from fluenthttp.network.retry import create_request_retry_policy, should_retry

__all__ = [
    # Connection ownership
    "ConnectionHandle",
    # Defaults
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_READ_TIMEOUT",
    "USER_AGENT_MOZILLA",
    # Proxy resolution
    "NO_PROXY",
    "ProxyInfo",
    "ProxyMode",
    "ProxyResolver",
    "ProxySelection",
    # Retry policy
    "create_request_retry_policy",
    "should_retry",
]
