"""
fluenthttp: fluent builder around a synchronous HTTPX client.

Typical use::

    from fluenthttp import FluentHttpClient

    client = FluentHttpClient().with_retries(3).with_reusing_cookie_store()
    client.post("https://example.org/login").with_param("user", "me").as_status_line()
    page = client.get("https://example.org/account").as_string()

Each request runs on a fresh HTTPX client built from the current configuration
snapshot; cookies, retries, proxies and the response shape are decided per
request.
"""

# errors first: settings pulls in the network package, which needs them.
from .errors import (
    ConfigurationError,
    ConnectionRefusedFailure,
    FailureKind,
    FluentHttpError,
    GenericIOFailure,
    ProtocolError,
    StatusCodeError,
    TimeoutFailure,
    TLSFailure,
    TransportFailure,
    UnknownHostFailure,
)
from .settings import (
    ClientConfiguration,
    LoggingConfiguration,
    ProxyProperties,
    load_system_properties,
)
from .logging_config import add_console_handler, set_console_level, setup_logging
from .cookies import CookieSession
from .materialize import MaterializedResponse, ResponseShape, ResponseStream, StatusLine
from .network.proxy import ProxyInfo, ProxyMode, ProxyResolver, ProxySelection
from .executor import HttpMethod, RequestExecutor, RequestSpec
from .builder import FluentHttpClient, GetRequestBuilder, PostRequestBuilder, RequestBuilder

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # builder
    "FluentHttpClient",
    "RequestBuilder",
    "GetRequestBuilder",
    "PostRequestBuilder",
    # execution
    "HttpMethod",
    "RequestSpec",
    "RequestExecutor",
    "CookieSession",
    # responses
    "ResponseShape",
    "MaterializedResponse",
    "ResponseStream",
    "StatusLine",
    # proxies
    "ProxyInfo",
    "ProxyMode",
    "ProxyResolver",
    "ProxySelection",
    # configuration
    "ClientConfiguration",
    "LoggingConfiguration",
    "ProxyProperties",
    "load_system_properties",
    "add_console_handler",
    "set_console_level",
    "setup_logging",
    # errors
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
]
