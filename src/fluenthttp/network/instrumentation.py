"""HTTP header and cookie logging hooks.

Header logging is wired in as HTTPX event hooks on the per-attempt client;
cookie logging runs after each exchange against the cookie jar that was used.
Both are opt-in and only emit DEBUG records, with credential headers masked.
"""

import logging
from typing import Iterable, Optional

import httpx

from fluenthttp.logging_config import mask_sensitive_data


def _log_header_block(logger: logging.Logger, label: str, headers: httpx.Headers) -> None:
    logger.debug("%s Headers: ", label)
    items = list(headers.multi_items())
    if not items:
        logger.debug("No headers found.")
        return
    for name, value in items:
        masked = mask_sensitive_data({name: value})[name]
        logger.debug(" %sHeader %s = %s", label, name, masked)


def create_header_logging_hooks(logger: logging.Logger) -> dict:
    """Create HTTPX event hooks that log request and response headers.

    Returns:
        Dict with 'request' and 'response' hooks for an HTTPX client

    Usage:
        >>> hooks = create_header_logging_hooks(logging.getLogger("demo"))
        >>> client = httpx.Client(event_hooks=hooks)
    """

    def on_request(request: httpx.Request) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            _log_header_block(logger, "Request", request.headers)

    def on_response(response: httpx.Response) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            _log_header_block(logger, "Response", response.headers)

    return {
        "request": [on_request],
        "response": [on_response],
    }


def log_cookies(logger: logging.Logger, cookies: Optional[Iterable[str]]) -> None:
    """Log pre-rendered cookie descriptions (see ``CookieSession.describe``)."""

    if not logger.isEnabledFor(logging.DEBUG):
        return
    lines = list(cookies or ())
    logger.debug("Cookies: ")
    if not lines:
        logger.debug("No cookies found.")
        return
    for line in lines:
        logger.debug(" Cookie %s", line)


__all__ = [
    "create_header_logging_hooks",
    "log_cookies",
]
