#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Chronicle project.

This module defines a hierarchy of exceptions used throughout the project
to handle specific error conditions in different subsystems. Every
exception carries a stable ``code`` so callers at a boundary (CLI, HTTP
adapter) can report it without parsing messages.

Exception Hierarchy:
    Exception (built-in)
    └── ChronicleError - Base for every project error
        ├── DatabaseError - Base for all database-related errors
        │   ├── ExportError - Snapshot/export failures
        │   ├── RemapError - Foreign key could not be remapped during import
        │   └── ImportFailed - Transactional import commit failed (rolled back)
        ├── NotFound - Referenced canvas, item, note, tag, photo or share absent
        ├── MalformedArchive - Structurally invalid archive input
        ├── InvalidCursor - Malformed or mismatched pagination cursor
        ├── ValidationError - Data validation failures
        ├── LastCanvasError - Attempt to delete a user's only canvas
        └── AttachmentError - Attachment store read/write failures

Usage:
    from chronicle.core.exceptions import NotFound, MalformedArchive

    try:
        db.import_canvas(data, user_id)
    except MalformedArchive as e:
        logger.error(f"Invalid archive: {e}")
    except ImportFailed as e:
        logger.error(f"Import rolled back: {e}")
"""


class ChronicleError(Exception):
    """
    Base exception for all Chronicle errors.

    Attributes:
        code: Stable machine-readable error code
    """

    code = "CHRONICLE_ERROR"


class DatabaseError(ChronicleError):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other database problems.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Integrity constraint violation: duplicate link")
    """

    code = "DATABASE_ERROR"


class ExportError(DatabaseError):
    """
    Exception for canvas export failures.

    Raised when a snapshot read from the store is not referentially
    complete, or when it cannot be serialized.

    Examples:
        >>> raise ExportError("Note n1 references item i9 outside the snapshot")
    """

    code = "EXPORT_ERROR"


class RemapError(DatabaseError):
    """
    Exception for ID remapping failures.

    A required foreign key in an archive had no mapping entry and no
    defined fallback. This indicates a corrupted archive; it is surfaced
    and never retried.

    Examples:
        >>> raise RemapError("Note n1 references unknown item i9")
    """

    code = "REMAP_ERROR"


class ImportFailed(DatabaseError):
    """
    Exception for transactional import failures.

    The import transaction was rolled back and any attachment written
    during it removed. Retrying the whole import is safe.

    Examples:
        >>> raise ImportFailed("Constraint violation while inserting photos")
    """

    code = "IMPORT_FAILED"


class NotFound(ChronicleError):
    """
    Exception for missing entities.

    Examples:
        >>> raise NotFound("Canvas not found: c1")
    """

    code = "NOT_FOUND"


class MalformedArchive(ChronicleError):
    """
    Exception for structurally invalid archives.

    Raised when the container is unreadable, the manifest is missing or
    unparseable, the format version is unsupported, a record is missing
    fields, or a referenced attachment is absent.

    Examples:
        >>> raise MalformedArchive("Missing manifest.json")
        >>> raise MalformedArchive("Unsupported format version: 7")
    """

    code = "MALFORMED_ARCHIVE"


class InvalidCursor(ChronicleError):
    """
    Exception for malformed or mismatched pagination cursors.

    Callers should restart pagination from the first page.

    Examples:
        >>> raise InvalidCursor("Cursor was issued for sort 'updatedAt'")
    """

    code = "INVALID_CURSOR"


class ValidationError(ChronicleError):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Missing required fields
    - Unknown item types
    - Self-links
    - Out-of-range values

    Examples:
        >>> raise ValidationError("Required field 'title' missing or empty")
        >>> raise ValidationError("An item cannot be linked to itself")
    """

    code = "VALIDATION_ERROR"


class LastCanvasError(ChronicleError):
    """
    Exception raised when deleting a user's only remaining canvas.

    Examples:
        >>> raise LastCanvasError("Cannot delete the last canvas")
    """

    code = "LAST_CANVAS"


class AttachmentError(ChronicleError):
    """
    Exception for attachment store failures.

    Examples:
        >>> raise AttachmentError("Cannot write photo: disk full")
    """

    code = "ATTACHMENT_ERROR"
