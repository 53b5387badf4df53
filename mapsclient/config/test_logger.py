"""
Unit tests for logger_module.py.

Tests cover:
- Logger initialization and handler attachment
- Console-only logging when no file is given
- Idempotency of initialization
- Convenience logging methods
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

import mapsclient.config.logger_module as logger_module
from mapsclient.config.logger_module import (
    initialize_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset root handlers and the initialization flag around each test."""
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    root_logger.handlers.clear()
    logger_module._logger_initialized = False

    yield

    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)
    logger_module._logger_initialized = False


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestInitializeLogger:
    """Test cases for initialize_logger function."""

    def test_initialize_logger_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "mapsclient.log"

        initialize_logger(log_file=str(log_file))

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 2
        handler_types = [type(h).__name__ for h in root_logger.handlers]
        assert "StreamHandler" in handler_types
        assert "FileHandler" in handler_types
        assert log_file.exists()

    def test_initialize_logger_console_only(self):
        """Passing log_file=None attaches only the console handler."""
        initialize_logger(log_level="WARNING", log_file=None)

        root_logger = logging.getLogger()
        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1
        assert not isinstance(root_logger.handlers[0], logging.FileHandler)

    def test_initialize_logger_invalid_level(self, tmp_path):
        """Unknown level names fall back to INFO."""
        initialize_logger(log_level="INVALID", log_file=str(tmp_path / "test.log"))

        assert logging.getLogger().level == logging.INFO

    def test_initialize_logger_idempotency(self, tmp_path):
        log_file = tmp_path / "test.log"

        initialize_logger(log_file=str(log_file))
        initialize_logger(log_file=str(log_file))
        initialize_logger(log_level="DEBUG", log_file=str(log_file))

        assert len(logging.getLogger().handlers) == 2
        assert logging.getLogger().level == logging.INFO

    def test_initialize_logger_handler_levels(self, tmp_path):
        initialize_logger(log_file=str(tmp_path / "test.log"))

        levels = {
            isinstance(handler, logging.FileHandler): handler.level
            for handler in logging.getLogger().handlers
        }
        assert levels[False] == logging.INFO
        assert levels[True] == logging.DEBUG


class TestConvenienceMethods:
    """Test cases for convenience logging methods."""

    def test_messages_written_to_file(self, tmp_path):
        log_file = tmp_path / "test.log"
        initialize_logger(log_level="DEBUG", log_file=str(log_file))

        log_debug("Signed token with key ABC")
        log_info("Minted token #1")
        log_warning("geocode attempt 1/4 failed")
        log_error("geocode failed after 4 attempt(s)")
        _flush()

        log_content = log_file.read_text()
        assert "DEBUG" in log_content
        assert "Signed token with key ABC" in log_content
        assert "Minted token #1" in log_content
        assert "WARNING" in log_content
        assert "geocode failed after 4 attempt(s)" in log_content

    def test_log_levels_respected(self, tmp_path):
        log_file = tmp_path / "test.log"
        initialize_logger(log_level="WARNING", log_file=str(log_file))

        log_debug("Debug message")
        log_info("Info message")
        log_warning("Warning message")
        _flush()

        log_content = log_file.read_text()
        assert "Debug message" not in log_content
        assert "Info message" not in log_content
        assert "Warning message" in log_content

    def test_convenience_methods_before_initialization(self):
        """Helpers work before initialize_logger is called."""
        log_warning("Warning without initialization")

    @patch("logging.getLogger")
    def test_convenience_methods_use_package_logger(self, mock_get_logger):
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        log_debug("debug message")
        log_info("info message")
        log_warning("warning message")
        log_error("error message")

        mock_get_logger.assert_called_with("mapsclient")
        mock_logger.debug.assert_called_once_with("debug message")
        mock_logger.info.assert_called_once_with("info message")
        mock_logger.warning.assert_called_once_with("warning message")
        mock_logger.error.assert_called_once_with("error message")
