#!/usr/bin/env python3
"""
Chronicle Database Package
--------------------------
Database layer of the Chronicle canvas system.

Modules:
- manager: ChronicleDB, engine/session/migration management and facade
- models: SQLAlchemy ORM models
- managers: Per-entity managers used inside a session scope
- snapshot / archive_codec / id_remapper: Canvas archives
- export_manager / import_manager: Archive export and atomic import
- cursor_codec / feed_manager: Keyset-paginated Timeline and Gallery
"""

from .manager import ChronicleDB
from chronicle.core.exceptions import (
    ChronicleError,
    DatabaseError,
    ExportError,
    ImportFailed,
    InvalidCursor,
    LastCanvasError,
    MalformedArchive,
    NotFound,
    RemapError,
    ValidationError,
)
from .export_manager import ExportManager
from .import_manager import ImportManager, ImportResult
from .feed_manager import FeedEntry, FeedManager, FeedPage
from .decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)

__all__ = [
    # Main manager
    "ChronicleDB",
    # Exceptions
    "ChronicleError",
    "DatabaseError",
    "ExportError",
    "ImportFailed",
    "InvalidCursor",
    "LastCanvasError",
    "MalformedArchive",
    "NotFound",
    "RemapError",
    "ValidationError",
    # Services
    "ExportManager",
    "ImportManager",
    "ImportResult",
    "FeedManager",
    "FeedPage",
    "FeedEntry",
    # Decorators
    "DatabaseOperation",
    "handle_db_errors",
    "log_database_operation",
]
