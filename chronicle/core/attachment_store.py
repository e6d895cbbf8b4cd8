#!/usr/bin/env python3
"""
attachment_store.py
--------------------
Byte storage for photo attachments, keyed by filename.

The database only holds photo metadata; the bytes live in an attachment
store. FileAttachmentStore keeps them as flat files in an uploads
directory. Writes go through a temporary file in the same directory and
are moved into place atomically, so a reader never sees a partial file.

Usage:
    from chronicle.core.attachment_store import FileAttachmentStore

    store = FileAttachmentStore(UPLOADS_DIR)
    store.write("3f2a.jpg", data)
    data = store.read("3f2a.jpg")
    store.delete("3f2a.jpg")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
import tempfile
from pathlib import Path, PurePath
from typing import Optional

# --- Local imports ---
from .exceptions import AttachmentError
from .logging_manager import ChronicleLogger, safe_logger


def is_safe_filename(filename: str) -> bool:
    """Return True if filename is a plain name that cannot escape a directory."""
    if not filename or filename in (".", ".."):
        return False
    return "/" not in filename and "\\" not in filename and "\x00" not in filename


class FileAttachmentStore:
    """
    Filesystem-backed attachment store.

    Attributes:
        root: Directory holding the attachment files
    """

    def __init__(
        self, root: Path, logger: Optional[ChronicleLogger] = None
    ) -> None:
        self.root = Path(root)
        self.logger = logger

    def _path(self, filename: str) -> Path:
        if not is_safe_filename(filename):
            raise AttachmentError(f"Invalid attachment filename: {filename!r}")
        return self.root / filename

    def exists(self, filename: str) -> bool:
        return self._path(filename).is_file()

    def read(self, filename: str) -> bytes:
        """
        Read an attachment.

        Raises:
            AttachmentError: If the file is missing or unreadable
        """
        path = self._path(filename)
        try:
            return path.read_bytes()
        except OSError as e:
            raise AttachmentError(f"Cannot read attachment {filename}: {e}")

    def write(self, filename: str, data: bytes) -> None:
        """
        Atomically write an attachment, replacing any existing file.

        Raises:
            AttachmentError: If the file cannot be written
        """
        path = self._path(filename)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".upload_")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise AttachmentError(f"Cannot write attachment {filename}: {e}")

        safe_logger(self.logger).log_debug(
            "attachment_written", {"filename": filename, "bytes": len(data)}
        )

    def delete(self, filename: str) -> bool:
        """
        Remove an attachment.

        Returns:
            True if a file was removed, False if it did not exist
        """
        path = self._path(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise AttachmentError(f"Cannot delete attachment {filename}: {e}")
        return True


def attachment_key(owner_id: str, original_name: str) -> str:
    """Attachment filename for a photo: its id plus the original extension."""
    return f"{owner_id}{PurePath(original_name or '').suffix}"
