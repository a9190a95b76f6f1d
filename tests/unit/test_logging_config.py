"""Unit tests for gossipgrid logging configuration."""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from unittest import mock

import gossipgrid
from gossipgrid.logging_config import (
    LOGGER_NAME,
    JsonFormatter,
    _clear_handlers,
    _get_level,
    _get_logger,
)


class TestSilentByDefault:
    """The library is silent unless configured."""

    def test_import_produces_no_log_output(self, capfd):
        import importlib

        importlib.reload(gossipgrid)

        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_logger_has_null_handler(self):
        logger = logging.getLogger(LOGGER_NAME)
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)


class TestEnableConsoleLogging:
    """Tests for enable_console_logging."""

    def test_outputs_to_stderr_at_level(self, capfd):
        gossipgrid.enable_console_logging(level="DEBUG")
        assert _get_logger().level == logging.DEBUG

        logging.getLogger(f"{LOGGER_NAME}.agent.gossip").debug("gossip message")

        assert "gossip message" in capfd.readouterr().err

    def test_custom_format(self, capfd):
        gossipgrid.enable_console_logging(level="INFO", format="[GG] %(message)s")

        logging.getLogger(f"{LOGGER_NAME}.test").info("hello")

        assert "[GG] hello" in capfd.readouterr().err


class TestEnableFileLogging:
    """Tests for enable_file_logging."""

    def test_writes_to_rotating_file(self, tmp_path):
        log_file = tmp_path / "nested" / "agents.log"
        handler = gossipgrid.enable_file_logging(log_file, level="INFO", max_bytes=1024, backup_count=2)

        logging.getLogger(f"{LOGGER_NAME}.test").info("file message")
        handler.flush()

        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        assert "file message" in log_file.read_text()


class TestEnableJsonLogging:
    """Tests for enable_json_logging."""

    def test_outputs_valid_json(self, capfd):
        gossipgrid.enable_json_logging(level="INFO")

        logging.getLogger(f"{LOGGER_NAME}.test").info("json test")

        data = json.loads(capfd.readouterr().err.strip())
        assert data["message"] == "json test"
        assert data["level"] == "INFO"
        assert data["logger"] == f"{LOGGER_NAME}.test"
        assert "timestamp" in data

    def test_writes_json_to_file(self, tmp_path):
        log_file = tmp_path / "agents.json"
        handler = gossipgrid.enable_json_logging(level="INFO", path=log_file)

        logging.getLogger(f"{LOGGER_NAME}.test").info("json file test")
        handler.flush()

        assert json.loads(log_file.read_text().strip())["message"] == "json file test"


class TestConfigureFromEnv:
    """Tests for configure_from_env."""

    def test_level_from_env(self):
        with mock.patch.dict(os.environ, {"GG_LOGGING": "DEBUG"}, clear=True):
            gossipgrid.configure_from_env()
        assert _get_logger().level == logging.DEBUG

    def test_file_from_env(self, tmp_path):
        env = {"GG_LOGGING": "INFO", "GG_LOG_FILE": str(tmp_path / "env.log")}
        with mock.patch.dict(os.environ, env, clear=True):
            gossipgrid.configure_from_env()
        assert any(isinstance(h, RotatingFileHandler) for h in _get_logger().handlers)

    def test_json_from_env(self, capfd):
        with mock.patch.dict(os.environ, {"GG_LOGGING": "INFO", "GG_LOG_JSON": "1"}, clear=True):
            gossipgrid.configure_from_env()

        logging.getLogger(f"{LOGGER_NAME}.test").info("json env test")

        assert json.loads(capfd.readouterr().err.strip())["message"] == "json env test"

    def test_does_nothing_without_env(self):
        initial = len(_get_logger().handlers)
        with mock.patch.dict(os.environ, {}, clear=True):
            gossipgrid.configure_from_env()
        assert len(_get_logger().handlers) == initial


class TestLevels:
    """Tests for set_level, set_module_level and disable_logging."""

    def test_set_level(self):
        gossipgrid.set_level("WARNING")
        assert _get_logger().level == logging.WARNING
        gossipgrid.set_level(logging.ERROR)
        assert _get_logger().level == logging.ERROR

    def test_module_level_filters_independently(self, capfd):
        gossipgrid.enable_console_logging(level="DEBUG")
        gossipgrid.set_module_level("navigation", "CRITICAL")

        logging.getLogger(f"{LOGGER_NAME}.navigation.pathfinding").warning("quiet warning")
        logging.getLogger(f"{LOGGER_NAME}.agent").debug("noisy debug")

        err = capfd.readouterr().err
        assert "quiet warning" not in err
        assert "noisy debug" in err
        logging.getLogger(f"{LOGGER_NAME}.navigation").setLevel(logging.NOTSET)

    def test_disable_logging(self, capfd):
        gossipgrid.enable_console_logging(level="DEBUG")
        gossipgrid.disable_logging()

        logging.getLogger(f"{LOGGER_NAME}.test").critical("this should not appear")

        assert "this should not appear" not in capfd.readouterr().err
        assert all(isinstance(h, logging.NullHandler) for h in _get_logger().handlers)


class TestHelpers:
    """Tests for JsonFormatter and internal helpers."""

    def test_json_formatter_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys

            exc_info = sys.exc_info()
        record = logging.LogRecord("gossipgrid.x", logging.ERROR, "x.py", 1, "failed", (), exc_info)

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "failed"
        assert "RuntimeError" in data["exception"]

    def test_get_level(self):
        assert _get_level("debug") == logging.DEBUG
        assert _get_level(logging.ERROR) == logging.ERROR
        assert _get_level("INVALID") == logging.INFO

    def test_clear_handlers_keeps_null_handler(self):
        logger = _get_logger()
        logger.addHandler(logging.StreamHandler())

        _clear_handlers()

        assert all(isinstance(h, logging.NullHandler) for h in logger.handlers)
        assert logger.handlers
