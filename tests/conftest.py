"""
Pytest Configuration

Shared fixtures for hermetic HTTP tests.  Every client built here routes its
requests through an :class:`httpx.MockTransport` via the ``transport_factory``
seam, so no test touches the network.

Usage:
    def test_example(make_client):
        client, transport = make_client(lambda request: httpx.Response(200))
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

import httpx
import pytest

from fluenthttp import ClientConfiguration, FluentHttpClient, ProxyInfo, ProxyResolver

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records requests and counts how often it is closed."""

    def __init__(self, handler: Handler) -> None:
        self.requests: List[httpx.Request] = []
        self.closed = 0

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def close(self) -> None:
        self.closed += 1


class TransportRecorder:
    """Transport factory handing out one :class:`RecordingTransport` per attempt."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.transports: List[RecordingTransport] = []
        self.proxies: List[ProxyInfo] = []
        self.configs: List[ClientConfiguration] = []

    def __call__(self, config: ClientConfiguration, proxy: ProxyInfo) -> httpx.BaseTransport:
        self.configs.append(config)
        self.proxies.append(proxy)
        transport = RecordingTransport(self.handler)
        self.transports.append(transport)
        return transport

    @property
    def requests(self) -> List[httpx.Request]:
        return [request for transport in self.transports for request in transport.requests]

    @property
    def attempts(self) -> int:
        return len(self.transports)

    @property
    def closes(self) -> int:
        return sum(transport.closed for transport in self.transports)


@pytest.fixture
def make_client() -> Callable[..., Tuple[FluentHttpClient, TransportRecorder]]:
    """Factory building a client wired to a recording mock transport."""

    def factory(
        handler: Handler,
        *,
        properties: Optional[dict] = None,
        config: Optional[ClientConfiguration] = None,
        name: Optional[str] = None,
    ) -> Tuple[FluentHttpClient, TransportRecorder]:
        recorder = TransportRecorder(handler)
        client = FluentHttpClient(
            name,
            config=config,
            proxy_resolver=ProxyResolver(properties or {}),
            transport_factory=recorder,
        )
        return client, recorder

    return factory


@pytest.fixture
def ok_handler() -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"hello")

    return handler


@pytest.fixture(autouse=True)
def _reset_fluenthttp_loggers():
    """Drop handlers attached by console-logging tests."""

    yield
    for name in list(logging.root.manager.loggerDict):
        if name == "fluenthttp" or name.startswith("fluenthttp."):
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                if getattr(handler, "_fluenthttp_managed", False):
                    logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)
