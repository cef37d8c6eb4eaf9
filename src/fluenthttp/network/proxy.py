"""Proxy resolution for outgoing requests.

A request selects one of five proxy modes.  The resolver turns that selection
into a concrete :class:`ProxyInfo` by reading the process-wide proxy properties
through an injected mapping (see :func:`fluenthttp.settings.load_system_properties`).
Resolution never raises: a missing or malformed property degrades to "no proxy".

Example:
    >>> resolver = ProxyResolver({"http.proxyHost": "proxy.local", "http.proxyPort": "3128"})
    >>> resolver.resolve("http://example.org/", ProxySelection.auto()).url
    'http://proxy.local:3128'
"""

from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from .policy import (
    HTTP_NON_PROXY_HOSTS,
    HTTP_PROXY_HOST,
    HTTP_PROXY_PORT,
    HTTPS_NON_PROXY_HOSTS,
    HTTPS_PROXY_HOST,
    HTTPS_PROXY_PORT,
)

logger = logging.getLogger(__name__)

PropertySource = Union[Mapping[str, str], Callable[[], Mapping[str, str]]]

_HOST_LIST_SPLIT = re.compile(r"[|,]")


class ProxyMode(str, Enum):
    """How a request chooses its proxy."""

    NONE = "none"
    EXPLICIT = "explicit"
    SYSTEM_HTTP = "system_http"
    SYSTEM_HTTPS = "system_https"
    AUTO = "auto"


@dataclass(frozen=True)
class ProxySelection:
    """Proxy mode chosen for one request, plus the host/port for explicit mode."""

    mode: ProxyMode = ProxyMode.NONE
    host: Optional[str] = None
    port: int = 0

    @classmethod
    def none(cls) -> "ProxySelection":
        return cls(ProxyMode.NONE)

    @classmethod
    def explicit(cls, host: str, port: int) -> "ProxySelection":
        return cls(ProxyMode.EXPLICIT, host, port)

    @classmethod
    def system_http(cls) -> "ProxySelection":
        return cls(ProxyMode.SYSTEM_HTTP)

    @classmethod
    def system_https(cls) -> "ProxySelection":
        return cls(ProxyMode.SYSTEM_HTTPS)

    @classmethod
    def auto(cls) -> "ProxySelection":
        return cls(ProxyMode.AUTO)


@dataclass(frozen=True)
class ProxyInfo:
    """Resolved proxy endpoint; ``enabled`` only with a host and a positive port."""

    host: Optional[str] = None
    port: int = 0
    non_proxy_hosts: Tuple[str, ...] = field(default=())

    @property
    def enabled(self) -> bool:
        return bool(self.host) and self.port > 0

    @property
    def url(self) -> Optional[str]:
        if not self.enabled:
            return None
        return f"http://{self.host}:{self.port}"

    def __str__(self) -> str:
        text = f"Proxy{{proxyHost={self.host!r}, proxyPort={self.port}"
        if self.non_proxy_hosts:
            text += f", nonProxyHosts={list(self.non_proxy_hosts)}"
        return text + "}"


NO_PROXY = ProxyInfo()


def split_host_list(value: Optional[str]) -> Tuple[str, ...]:
    """Split a pipe- or comma-delimited host list, dropping blanks."""

    if not value:
        return ()
    return tuple(part.strip() for part in _HOST_LIST_SPLIT.split(value) if part.strip())


def host_excluded(host: Optional[str], patterns: Tuple[str, ...]) -> bool:
    """Return ``True`` when ``host`` matches an entry of a non-proxy host list.

    Matching is case-insensitive; entries may use ``*`` wildcards such as
    ``*.example.com``.
    """
    if not host:
        return False
    candidate = host.lower()
    for pattern in patterns:
        pattern = pattern.lower()
        if candidate == pattern or ("*" in pattern and fnmatch.fnmatchcase(candidate, pattern)):
            return True
    return False


class ProxyResolver:
    """Resolve a :class:`ProxySelection` against process-wide proxy properties.

    Args:
        properties: Mapping of property names (``http.proxyHost`` ...) to values,
            or a zero-argument callable returning such a mapping.  Defaults to
            :func:`fluenthttp.settings.load_system_properties`, read at each
            resolution.
    """

    def __init__(self, properties: Optional[PropertySource] = None) -> None:
        if properties is None:
            from ..settings import load_system_properties

            properties = load_system_properties
        self._properties = properties

    def _read(self) -> Mapping[str, str]:
        source = self._properties
        if callable(source):
            return source()
        return source

    def resolve(self, url: str, selection: Optional[ProxySelection] = None) -> ProxyInfo:
        """Return the proxy to use for ``url`` under ``selection``."""

        selection = selection or ProxySelection.none()
        mode = selection.mode
        if mode is ProxyMode.NONE:
            return NO_PROXY
        if mode is ProxyMode.EXPLICIT:
            return ProxyInfo(selection.host, selection.port)

        props = self._read()
        if mode is ProxyMode.SYSTEM_HTTP:
            return self._system_proxy(props, https=False)
        if mode is ProxyMode.SYSTEM_HTTPS:
            return self._system_proxy(props, https=True)
        return self._auto_detect(url, props)

    def _system_proxy(self, props: Mapping[str, str], *, https: bool) -> ProxyInfo:
        host_key, port_key = (
            (HTTPS_PROXY_HOST, HTTPS_PROXY_PORT) if https else (HTTP_PROXY_HOST, HTTP_PROXY_PORT)
        )
        host = props.get(host_key) or None
        raw_port = props.get(port_key)
        port = 0
        if raw_port:
            try:
                port = int(str(raw_port).strip())
            except ValueError:
                port = 0
            if not 0 < port < 65536:
                logger.error("Invalid system property %s : %s", port_key, raw_port)
                port = 0
        return ProxyInfo(host, port)

    def _auto_detect(self, url: str, props: Mapping[str, str]) -> ProxyInfo:
        try:
            parts = urlsplit(url)
        except ValueError:
            logger.error("Cannot inspect url for proxy detection: %s", url)
            return NO_PROXY
        https = parts.scheme.lower() == "https"
        list_key = HTTPS_NON_PROXY_HOSTS if https else HTTP_NON_PROXY_HOSTS
        raw_list = props.get(list_key)
        non_proxy_hosts = split_host_list(raw_list)
        if host_excluded(parts.hostname, non_proxy_hosts):
            logger.debug("Not using proxy due to %s=%s", list_key, raw_list)
            return ProxyInfo(non_proxy_hosts=non_proxy_hosts)
        info = self._system_proxy(props, https=https)
        return ProxyInfo(info.host, info.port, non_proxy_hosts)


__all__ = [
    "ProxyMode",
    "ProxySelection",
    "ProxyInfo",
    "ProxyResolver",
    "NO_PROXY",
    "split_host_list",
    "host_excluded",
]
