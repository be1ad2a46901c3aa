"""Tests for logger configuration and JSON output."""

import json
import logging
import sys

import pytest

from a402.core.logging import LOGGER_NAME, JsonFormatter, configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()


class TestJsonFormat:
    """Each JSON log line must parse on its own."""

    def test_quotes_are_escaped(self, capsys):
        configure_logging(level="INFO", json_format=True)

        get_logger("verify").info('Invalid address: "0xzz"')
        get_logger("chain.reader").warning("line one\nline two")

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        first, second = (json.loads(line) for line in lines)
        assert first["message"] == 'Invalid address: "0xzz"'
        assert first["name"] == "a402.verify"
        assert first["level"] == "INFO"
        assert second["message"] == "line one\nline two"

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("a402", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "failed"
        assert "ValueError: boom" in entry["exception"]


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_reconfigure_replaces_handler(self):
        configure_logging()
        logger = configure_logging(level="DEBUG")

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_child_logger_name(self):
        assert get_logger("storage").name == "a402.storage"
        assert get_logger().name == "a402"
