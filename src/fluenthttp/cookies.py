"""Cookie session shared across requests.

A :class:`CookieSession` wraps an :class:`httpx.Cookies` jar with a lock.  The
executor copies the session's cookies into each per-attempt client before the
request and merges the client's cookies back afterwards; both steps hold the
lock, so concurrent requests on one reused session never interleave updates.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterator, List, Optional

import httpx

logger = logging.getLogger(__name__)


class CookieSession:
    """Lock-guarded cookie jar reused by the requests of one client."""

    def __init__(self, cookies: Optional[httpx.Cookies] = None) -> None:
        self._cookies = cookies if cookies is not None else httpx.Cookies()
        self._lock = threading.RLock()

    @property
    def cookies(self) -> httpx.Cookies:
        """Underlying jar; mutate it only through this session's methods."""

        return self._cookies

    def snapshot(self) -> httpx.Cookies:
        """Return a copy of the current cookies for a new client."""

        with self._lock:
            return httpx.Cookies(self._cookies)

    def absorb(self, cookies: httpx.Cookies) -> None:
        """Merge ``cookies`` (typically a finished client's jar) into the session."""

        with self._lock:
            for cookie in cookies.jar:
                self._cookies.jar.set_cookie(cookie)

    def clear(self) -> None:
        with self._lock:
            self._cookies.clear()

    def describe(self) -> List[str]:
        """Render ``name=value / domain path`` lines for debug logging."""

        with self._lock:
            return [
                f"{cookie.name} = {cookie.value} / {cookie.domain}{cookie.path}"
                for cookie in self._cookies.jar
            ]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            names = [cookie.name for cookie in self._cookies.jar]
        return iter(names)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cookies.jar)

    def __repr__(self) -> str:
        return f"CookieSession({len(self)} cookies)"


__all__ = ["CookieSession"]
