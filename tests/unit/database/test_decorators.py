"""Tests for database decorators and context managers."""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from chronicle.core.exceptions import DatabaseError, NotFound
from chronicle.core.logging_manager import ChronicleLogger
from chronicle.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)


class TestDatabaseOperation:
    """Tests for DatabaseOperation context manager."""

    def test_successful_operation(self):
        """DatabaseOperation should log completion on success."""
        mock_logger = MagicMock(spec=ChronicleLogger)

        with DatabaseOperation(mock_logger, "export_canvas"):
            result = 1 + 1

        assert result == 2
        mock_logger.log_operation.assert_called_once()
        call_args = mock_logger.log_operation.call_args
        assert call_args[0][0] == "export_canvas_completed"
        assert call_args[0][1]["success"] is True

    def test_successful_operation_with_none_logger(self):
        """DatabaseOperation should work with None logger (uses NullLogger)."""
        with DatabaseOperation(None, "export_canvas"):
            result = 1 + 1

        assert result == 2

    def test_integrity_error_raises_database_error(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        with pytest.raises(DatabaseError) as exc_info:
            with DatabaseOperation(mock_logger, "create_link"):
                raise IntegrityError("statement", {}, Exception("duplicate"))

        assert "Data integrity violation" in str(exc_info.value)
        mock_logger.log_error.assert_called_once()

    def test_sqlalchemy_error_raises_database_error(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        with pytest.raises(DatabaseError) as exc_info:
            with DatabaseOperation(mock_logger, "create_link"):
                raise SQLAlchemyError("connection failed")

        assert "Database operation failed" in str(exc_info.value)
        mock_logger.log_error.assert_called_once()

    def test_other_exceptions_propagate(self):
        """Non-SQLAlchemy exceptions pass through unchanged but are logged."""
        mock_logger = MagicMock(spec=ChronicleLogger)

        with pytest.raises(NotFound):
            with DatabaseOperation(mock_logger, "get_canvas"):
                raise NotFound("Canvas not found: c1")

        mock_logger.log_error.assert_called_once()
        mock_logger.log_operation.assert_not_called()

    def test_log_start_option(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        with DatabaseOperation(mock_logger, "import_canvas", log_start=True):
            pass

        mock_logger.log_debug.assert_called_once_with("Starting import_canvas")

    def test_no_log_start_by_default(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        with DatabaseOperation(mock_logger, "import_canvas"):
            pass

        mock_logger.log_debug.assert_not_called()

    def test_duration_is_logged(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        with DatabaseOperation(mock_logger, "import_canvas"):
            pass

        details = mock_logger.log_operation.call_args[0][1]
        assert isinstance(details["duration_seconds"], float)
        assert details["duration_seconds"] >= 0


class _Manager:
    """Minimal object carrying a logger, as managers do."""

    def __init__(self, logger):
        self.logger = logger

    @log_database_operation("list_things")
    def list_things(self, canvas_id, limit=None):
        return [canvas_id, limit]

    @log_database_operation("fail_things")
    def fail_things(self):
        raise NotFound("nothing here")

    @handle_db_errors
    def broken_query(self):
        raise SQLAlchemyError("no such table: canvases")

    @handle_db_errors
    def missing(self):
        raise NotFound("Item not found: i1")


class TestLogDatabaseOperation:
    """Tests for the log_database_operation decorator."""

    def test_logs_start_and_completion(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        result = _Manager(mock_logger).list_things("c1", limit=5)

        assert result == ["c1", 5]
        start_message, start_details = mock_logger.log_debug.call_args[0]
        assert start_message == "Starting list_things"
        assert start_details["args_count"] == 1
        assert start_details["kwargs_keys"] == ["limit"]
        assert mock_logger.log_operation.call_args[0][0] == "list_things_completed"

    def test_logs_and_reraises_failures(self):
        mock_logger = MagicMock(spec=ChronicleLogger)

        with pytest.raises(NotFound):
            _Manager(mock_logger).fail_things()

        error, context = mock_logger.log_error.call_args[0]
        assert isinstance(error, NotFound)
        assert context["operation"] == "fail_things"
        mock_logger.log_operation.assert_not_called()

    def test_works_without_logger(self):
        assert _Manager(None).list_things("c1") == ["c1", None]


class TestHandleDbErrors:
    """Tests for the handle_db_errors decorator."""

    def test_converts_sqlalchemy_errors(self):
        with pytest.raises(DatabaseError, match="no such table"):
            _Manager(None).broken_query()

    def test_domain_errors_pass_through(self):
        with pytest.raises(NotFound):
            _Manager(None).missing()
