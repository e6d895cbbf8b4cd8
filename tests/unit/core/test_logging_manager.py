"""
Tests for logging_manager module.

Tests ChronicleLogger file output, the null-safe logging helpers and the
CLI error formatting.
"""
import pytest
from unittest.mock import MagicMock

import click

from chronicle.core.exceptions import NotFound
from chronicle.core.logging_manager import (
    ChronicleLogger,
    NullLogger,
    format_cli_error,
    handle_cli_error,
    safe_logger,
    setup_logger,
)


def _flush(logger: ChronicleLogger) -> None:
    for handler in logger.main_logger.handlers + logger.error_logger.handlers:
        handler.flush()


class TestChronicleLogger:
    """Tests for the rotating component logger."""

    def test_creates_component_and_error_logs(self, tmp_path):
        """Operations go to <component>.log, errors to errors.log."""
        logger = ChronicleLogger(tmp_path, "database")

        logger.log_operation("canvas_exported", {"canvas_id": "c1", "bytes": 42})
        try:
            raise NotFound("Canvas not found: c9")
        except NotFound as e:
            logger.log_error(e, {"operation": "export_canvas"})
        _flush(logger)

        main_log = (tmp_path / "database.log").read_text(encoding="utf-8")
        error_log = (tmp_path / "errors.log").read_text(encoding="utf-8")
        assert "canvas_exported" in main_log
        assert '"canvas_id": "c1"' in main_log
        assert "NotFound: Canvas not found: c9" in error_log
        assert "code=NOT_FOUND" in error_log
        assert "operation=export_canvas" in error_log

    def test_debug_messages_reach_component_log(self, tmp_path):
        logger = ChronicleLogger(tmp_path, "feeds")
        logger.log_debug("Starting list_timeline", {"limit": 30})
        _flush(logger)

        assert "Starting list_timeline" in (tmp_path / "feeds.log").read_text(
            encoding="utf-8"
        )

    def test_setup_logger_uses_operations_subdir(self, tmp_path):
        """setup_logger should place logs under <log_dir>/operations."""
        logger = setup_logger(tmp_path, "cli")
        assert logger.log_dir == tmp_path / "operations"
        assert (tmp_path / "operations").is_dir()


class TestNullLogger:
    """Tests for NullLogger class."""

    def test_null_logger_methods_are_no_ops(self):
        """Every NullLogger method accepts the ChronicleLogger arguments."""
        logger = NullLogger()
        logger.log_operation("op", {"key": "value"})
        logger.log_error(ValueError("boom"), {"context": "test"})
        logger.log_debug("debug", {"key": "value"})
        logger.log_info("info")
        logger.log_warning("warning", {"key": "value"})

    def test_null_logger_log_cli_error_returns_formatted(self):
        """NullLogger.log_cli_error should return formatted error string."""
        result = NullLogger().log_cli_error(ValueError("test error"))
        assert "ValueError" in result
        assert "test error" in result


class TestSafeLogger:
    """Tests for safe_logger function."""

    def test_returns_logger_when_provided(self):
        mock_logger = MagicMock(spec=ChronicleLogger)
        assert safe_logger(mock_logger) is mock_logger

    def test_returns_shared_null_logger_when_none(self):
        first = safe_logger(None)
        assert isinstance(first, NullLogger)
        assert safe_logger(None) is first

    def test_forwards_calls_to_real_logger(self):
        mock_logger = MagicMock(spec=ChronicleLogger)
        details = {"canvas_id": "c1"}

        safe_logger(mock_logger).log_operation("canvas_imported", details)
        mock_logger.log_operation.assert_called_once_with("canvas_imported", details)


class TestCliErrors:
    """Tests for CLI error formatting and handling."""

    def test_format_includes_error_code(self):
        message = format_cli_error(NotFound("Share not found"))
        assert message == "❌ NotFound [NOT_FOUND]: Share not found"

    def test_format_without_code(self):
        assert format_cli_error(ValueError("bad")) == "❌ ValueError: bad"

    def test_handle_cli_error_logs_and_exits(self):
        """handle_cli_error logs through the context logger and exits 1."""
        mock_logger = MagicMock(spec=ChronicleLogger)
        mock_logger.log_cli_error.return_value = "❌ NotFound [NOT_FOUND]: gone"
        ctx = click.Context(click.Command("test"), obj={"logger": mock_logger})
        error = NotFound("gone")

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ctx, error, "copy_shared_canvas", {"user_id": "u1"})

        assert exc_info.value.code == 1
        mock_logger.log_cli_error.assert_called_once_with(
            error,
            {"operation": "copy_shared_canvas", "user_id": "u1"},
            show_traceback=False,
        )
