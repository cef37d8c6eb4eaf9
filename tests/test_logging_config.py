"""Tests for logging helpers: masking, JSON output and the managed console handler."""

import io
import json
import logging

import httpx

from fluenthttp.logging_config import (
    JSONFormatter,
    add_console_handler,
    mask_sensitive_data,
    set_console_level,
    setup_logging,
)
from fluenthttp.network.instrumentation import create_header_logging_hooks, log_cookies
from fluenthttp.settings import LoggingConfiguration


def test_mask_sensitive_data():
    masked = mask_sensitive_data(
        {"Authorization": "Basic abc", "Cookie": "a=b", "Accept": "*/*"}
    )
    assert masked == {"Authorization": "***masked***", "Cookie": "***masked***", "Accept": "*/*"}


def test_json_formatter_includes_extras():
    record = logging.LogRecord("fluenthttp.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    record.url = "https://example.org/"
    record.attempt = 2
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "hello x"
    assert payload["url"] == "https://example.org/"
    assert payload["attempt"] == 2
    assert payload["level"] == "INFO"


class TestConsoleHandler:
    def test_added_once(self):
        logger = logging.getLogger("fluenthttp.client.console-once")
        add_console_handler(logger, "DEBUG")
        add_console_handler(logger, "DEBUG")
        managed = [h for h in logger.handlers if getattr(h, "_fluenthttp_managed", False)]
        assert len(managed) == 1
        assert logger.level == logging.DEBUG

    def test_writes_to_stream(self):
        stream = io.StringIO()
        logger = add_console_handler("fluenthttp.client.console-stream", logging.INFO, stream)
        logger.info("visible")
        assert "INFO" in stream.getvalue()
        assert "visible" in stream.getvalue()

    def test_set_console_level(self):
        logger = logging.getLogger("fluenthttp.client.console-level")
        assert set_console_level(logger, "ERROR") is False
        add_console_handler(logger)
        assert set_console_level(logger, "ERROR") is True


def test_setup_logging_json():
    stream = io.StringIO()
    logger = setup_logging(LoggingConfiguration(level="INFO", json_format=True), stream)
    logger.info("configured", extra={"status": 200})
    line = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert line["status"] == 200
    assert line["logger"] == "fluenthttp"


def test_setup_logging_replaces_managed_handler():
    setup_logging(stream=io.StringIO())
    logger = setup_logging(stream=io.StringIO())
    managed = [h for h in logger.handlers if getattr(h, "_fluenthttp_managed", False)]
    assert len(managed) == 1


class TestInstrumentation:
    def test_header_hooks_mask_credentials(self, caplog):
        logger = logging.getLogger("fluenthttp.client.headers")
        hooks = create_header_logging_hooks(logger)
        request = httpx.Request(
            "GET", "https://example.org/", headers={"Authorization": "Basic c2VjcmV0", "X-Trace": "1"}
        )
        with caplog.at_level(logging.DEBUG, logger="fluenthttp.client.headers"):
            for hook in hooks["request"]:
                hook(request)
        assert "Request Headers" in caplog.text
        assert "X-Trace = 1" in caplog.text.replace("x-trace", "X-Trace")
        assert "c2VjcmV0" not in caplog.text

    def test_header_hooks_silent_above_debug(self, caplog):
        logger = logging.getLogger("fluenthttp.client.quiet")
        hooks = create_header_logging_hooks(logger)
        with caplog.at_level(logging.INFO, logger="fluenthttp.client.quiet"):
            hooks["response"][0](httpx.Response(200, headers={"X-A": "b"}))
        assert caplog.text == ""

    def test_log_cookies(self, caplog):
        logger = logging.getLogger("fluenthttp.client.cookies")
        with caplog.at_level(logging.DEBUG, logger="fluenthttp.client.cookies"):
            log_cookies(logger, [])
            log_cookies(logger, ["session = abc / example.org/"])
        assert "No cookies found." in caplog.text
        assert "session = abc / example.org/" in caplog.text
