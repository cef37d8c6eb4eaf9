"""
Logging Utilities

This module centralizes logging setup for the fluent HTTP client. It provides
helpers for masking credentials before headers reach a log record, a JSON
formatter for structured output, and a managed console handler that can be
attached to any client logger for development purposes.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, TextIO, Union

from .settings import LoggingConfiguration

PACKAGE_LOGGER = "fluenthttp"
CONSOLE_HANDLER_NAME = "fluenthttp-console"

_SENSITIVE_KEYS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "password",
    "token",
    "secret",
    "api_key",
    "apikey",
}

LevelLike = Union[int, str]


def mask_sensitive_data(payload: Mapping[str, object]) -> Dict[str, object]:
    """Remove secrets from header-like payloads prior to logging.

    Args:
        payload: Arbitrary key-value pairs, typically request or response headers.

    Returns:
        Copy of the payload where credential-bearing fields are replaced with
        `***masked***`.

    Examples:
        >>> mask_sensitive_data({"Authorization": "Basic abc", "Accept": "*/*"})
        {'Authorization': '***masked***', 'Accept': '*/*'}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("url", "attempt", "failure", "shape", "status"):
            if hasattr(record, key):
                log_obj[key] = getattr(record, key)
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


def _resolve_level(level: Optional[LevelLike]) -> Optional[int]:
    if level is None or isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _managed_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if getattr(handler, "_fluenthttp_managed", False):
            return handler
    return None


def add_console_handler(
    logger: Union[logging.Logger, str],
    level: Optional[LevelLike] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Attach the managed console handler to ``logger`` once.

    Calling it again on the same logger leaves the existing handler in place.
    When ``level`` is given it becomes the logger's level.

    Args:
        logger: Logger or logger name.
        level: Optional level name or number for the logger.
        stream: Output stream; defaults to ``sys.stdout``.

    Returns:
        The logger the handler is attached to.
    """
    if isinstance(logger, str):
        logger = logging.getLogger(logger)
    if _managed_handler(logger) is None:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(logging.Formatter("%(levelname)s %(threadName)s %(message)s"))
        handler.set_name(CONSOLE_HANDLER_NAME)
        handler._fluenthttp_managed = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logging.getLogger(__name__).info(
            "Added console handler for %s to enable console logging for development purposes.",
            logger.name,
        )
    resolved = _resolve_level(level)
    if resolved is not None:
        logger.setLevel(resolved)
    return logger


def set_console_level(logger: Union[logging.Logger, str], level: LevelLike) -> bool:
    """Change only the threshold of the managed console handler.

    Returns:
        ``True`` if a managed handler was found and updated.
    """
    if isinstance(logger, str):
        logger = logging.getLogger(logger)
    handler = _managed_handler(logger)
    if handler is None:
        return False
    handler.setLevel(_resolve_level(level) or logging.NOTSET)
    return True


def setup_logging(
    config: Optional[LoggingConfiguration] = None, stream: Optional[TextIO] = None
) -> logging.Logger:
    """Configure the package logger from a :class:`LoggingConfiguration`.

    Examples:
        >>> logger = setup_logging(LoggingConfiguration(level="DEBUG"))
        >>> logger.name
        'fluenthttp'
    """
    config = config or LoggingConfiguration.from_env()
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, config.level, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_fluenthttp_managed", False):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream or sys.stdout)
    if config.json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handler.set_name(CONSOLE_HANDLER_NAME)
    handler._fluenthttp_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = True
    return logger


__all__ = [
    "add_console_handler",
    "set_console_level",
    "setup_logging",
    "mask_sensitive_data",
    "JSONFormatter",
]
