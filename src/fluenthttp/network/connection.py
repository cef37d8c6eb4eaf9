"""Single-fire ownership guard for the connection behind one request attempt.

The executor opens one short-lived :class:`httpx.Client` per attempt.  The
:class:`ConnectionHandle` owns that client and the response it produced.  It
is released exactly once, either by the executor's cleanup block or, for the
stream shape, by the returned stream when the caller finishes reading.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ConnectionHandle:
    """Own an HTTPX client and its response until :meth:`release` is called."""

    def __init__(self, client: httpx.Client, *, url: Optional[str] = None) -> None:
        self._client: Optional[httpx.Client] = client
        self._response: Optional[httpx.Response] = None
        self._lock = threading.Lock()
        self._released = False
        self.url = url

    @property
    def client(self) -> Optional[httpx.Client]:
        return self._client

    @property
    def released(self) -> bool:
        return self._released

    def attach(self, response: Optional[httpx.Response]) -> None:
        """Record the response whose connection this handle must close."""

        self._response = response

    def release(self) -> bool:
        """Close the response and client once.

        Returns:
            ``True`` when this call performed the release, ``False`` if the
            handle had already been released.
        """
        with self._lock:
            if self._released:
                return False
            self._released = True
            response, client = self._response, self._client
            self._response = None
            self._client = None

        try:
            if response is not None:
                response.close()
            if client is not None:
                client.close()
        except Exception:
            logger.error("Error releasing connection for %s", self.url, exc_info=True)
        else:
            logger.debug("connection released", extra={"url": self.url})
        return True


__all__ = ["ConnectionHandle"]
