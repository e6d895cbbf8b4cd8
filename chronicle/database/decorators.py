#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators and context managers for database operations.

- log_database_operation: timing and error logging around a manager method
- handle_db_errors: SQLAlchemy exceptions surfaced as DatabaseError
- DatabaseOperation: both of the above for a block of code
"""
from __future__ import annotations

import time
from datetime import datetime
from functools import wraps
from types import TracebackType
from typing import Callable, Optional, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from chronicle.core.exceptions import DatabaseError
from chronicle.core.logging_manager import ChronicleLogger, safe_logger


def _convert_sqlalchemy_error(error: SQLAlchemyError) -> DatabaseError:
    if isinstance(error, IntegrityError):
        return DatabaseError(f"Data integrity violation: {error}")
    return DatabaseError(f"Database operation failed: {error}")


def log_database_operation(operation_name: str):
    """
    Decorator to log database operations with timing and context.

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"
            logger = safe_logger(getattr(self, "logger", None))

            logger.log_debug(
                f"Starting {operation_name}",
                {
                    "operation_id": operation_id,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "operation_id": operation_id,
                        "duration_seconds": duration,
                    },
                )
                raise

            duration = (datetime.now() - start_time).total_seconds()
            logger.log_operation(
                f"{operation_name}_completed",
                {
                    "operation_id": operation_id,
                    "duration_seconds": duration,
                    "success": True,
                },
            )
            return result

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator to handle common database errors.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except SQLAlchemyError as e:
            raise _convert_sqlalchemy_error(e) from e

    return wrapper


class DatabaseOperation:
    """
    Context manager combining error conversion and operation logging.

    SQLAlchemy errors raised inside the block are re-raised as
    DatabaseError; any other exception propagates unchanged. Every failure
    is logged through ``log_error``; success is logged as
    ``<name>_completed`` with the elapsed time.

    Example:
        with DatabaseOperation(self.logger, "create_item"):
            self.session.add(item)
            self.session.flush()
    """

    def __init__(
        self,
        logger: Optional[ChronicleLogger],
        operation_name: str,
        log_start: bool = False,
    ) -> None:
        self.logger = safe_logger(logger)
        self.operation_name = operation_name
        self.log_start = log_start
        self._started = 0.0

    def __enter__(self) -> "DatabaseOperation":
        self._started = time.perf_counter()
        if self.log_start:
            self.logger.log_debug(f"Starting {self.operation_name}")
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        duration = time.perf_counter() - self._started

        if exc is None:
            self.logger.log_operation(
                f"{self.operation_name}_completed",
                {"success": True, "duration_seconds": float(duration)},
            )
            return False

        if not isinstance(exc, Exception):
            return False

        self.logger.log_error(
            exc,
            {"operation": self.operation_name, "duration_seconds": float(duration)},
        )
        if isinstance(exc, SQLAlchemyError):
            raise _convert_sqlalchemy_error(exc) from exc
        return False
