#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Centralized logging for Chronicle operations.

Every component (database, archive import/export, feeds, CLI) logs
through a ChronicleLogger: one rotating file for the component's
activity and one shared rotating file holding errors only. Structured
details are serialized as JSON so the logs stay greppable.

Components that may run without logging receive ``None`` and wrap it
with ``safe_logger()``, which substitutes a no-op NullLogger.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click


class ChronicleLogger:
    """
    Structured, rotating logger for a single component.

    Attributes:
        log_dir: Directory for log files
        component_name: Name of the component using this logger
        main_logger: Logger for all operations of the component
        error_logger: Logger for errors only (shared errors.log)
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "chronicle",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        """
        Initialize the logger and its handlers.

        Args:
            log_dir: Directory for log files
            component_name: Component identifier (e.g. 'database', 'archive')
            max_bytes: Maximum log file size before rotation (default: 10MB)
            backup_count: Number of rotated files to keep (default: 5)
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._setup_loggers()

    def _setup_loggers(self) -> None:
        """Create the component and error loggers with their handlers."""
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = logging.getLogger(f"chronicle.{self.component_name}")
        self.main_logger.setLevel(logging.DEBUG)
        self.main_logger.propagate = False
        self.main_logger.handlers = []

        self.error_logger = logging.getLogger(f"chronicle.{self.component_name}.errors")
        self.error_logger.setLevel(logging.ERROR)
        self.error_logger.propagate = False
        self.error_logger.handlers = []

        self._create_file_handler(
            self.main_logger,
            self.log_dir / f"{self.component_name}.log",
            logging.DEBUG,
        )
        self._create_file_handler(
            self.error_logger,
            self.log_dir / "errors.log",
            logging.ERROR,
        )

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        self.main_logger.addHandler(console_handler)

    def _create_file_handler(
        self, logger: logging.Logger, file_path: Path, level: int
    ) -> None:
        """
        Attach a rotating file handler to a logger.

        Args:
            logger: Logger instance to add the handler to
            file_path: Path for the log file
            level: Logging level for the handler
        """
        handler = RotatingFileHandler(
            file_path,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)

    @staticmethod
    def _format(prefix: str, message: str, details: Optional[Dict[str, Any]]) -> str:
        if details:
            return f"{prefix} - {message}: {json.dumps(details, default=str)}"
        return f"{prefix} - {message}"

    def log_operation(
        self, operation: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log a completed operation.

        Args:
            operation: Name of the operation
            details: Optional operation details
        """
        self.main_logger.info(self._format("OPERATION", operation, details or {}))

    def log_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an error with its code, context and traceback to errors.log.

        Args:
            error: Exception that occurred
            context: Optional context information
        """
        context = dict(context or {})
        code = getattr(error, "code", None)
        if code:
            context.setdefault("code", code)

        self.error_logger.error(f"ERROR - {type(error).__name__}: {error}")
        if context:
            self.error_logger.error(
                "Context: " + ", ".join(f"{k}={v}" for k, v in context.items())
            )
        self.error_logger.error(f"Traceback:\n{traceback.format_exc()}")

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log debug information."""
        self.main_logger.debug(self._format("DEBUG", message, details))

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Log general information."""
        self.main_logger.info(self._format("INFO", message, details))

    def log_warning(
        self, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log a warning."""
        self.main_logger.warning(self._format("WARNING", message, details))

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log full error details and return a short message for the terminal.

        Args:
            error: Exception to log
            context: Optional context about where the error occurred
            show_traceback: Include the traceback in the returned message

        Returns:
            Human-readable error message

        Examples:
            >>> logger.log_cli_error(NotFound("Canvas not found: c1"))
            '❌ NotFound [NOT_FOUND]: Canvas not found: c1'
        """
        self.log_error(error, context or {"source": "cli"})
        message = format_cli_error(error)
        if show_traceback:
            return f"{message}\n\n{traceback.format_exc()}"
        return message


def format_cli_error(error: Exception) -> str:
    """Render an exception as a single CLI line, including its code if any."""
    code = getattr(error, "code", None)
    label = f"{type(error).__name__} [{code}]" if code else type(error).__name__
    return f"❌ {label}: {error}"


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Standard error handling for CLI commands.

    Logs the complete error through the logger stored on the click
    context, prints a clean message to stderr and exits.

    Args:
        ctx: Click context holding 'logger' and 'verbose'
        error: Exception that occurred
        operation: Name of the failed operation (e.g. 'import_canvas')
        additional_context: Extra context (canvas id, file path, ...)
        exit_code: Process exit code (default: 1)

    Note:
        This function never returns.
    """
    obj = ctx.obj or {}
    logger: Optional[ChronicleLogger] = obj.get("logger")
    verbose: bool = obj.get("verbose", False)

    context = {"operation": operation}
    if additional_context:
        context.update(additional_context)

    click.echo(
        safe_logger(logger).log_cli_error(error, context, show_traceback=verbose),
        err=True,
    )
    sys.exit(exit_code)


class NullLogger:
    """
    No-op logger with the ChronicleLogger interface.

    Lets code call logger methods unconditionally.
    """

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return format_cli_error(error)


_null_logger = NullLogger()


def safe_logger(logger: Optional[ChronicleLogger]) -> ChronicleLogger:
    """
    Return the provided logger, or a shared NullLogger if None.

    Args:
        logger: ChronicleLogger instance or None

    Returns:
        A logger that is always safe to call
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]


def setup_logger(log_dir: Path, component_name: str) -> ChronicleLogger:
    """
    Create a ChronicleLogger writing under ``<log_dir>/operations``.

    Args:
        log_dir: Base log directory (typically paths.LOG_DIR)
        component_name: Component identifier

    Returns:
        Configured ChronicleLogger
    """
    operations_dir = Path(log_dir) / "operations"
    operations_dir.mkdir(parents=True, exist_ok=True)
    return ChronicleLogger(operations_dir, component_name=component_name)
