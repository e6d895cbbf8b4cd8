#!/usr/bin/env python3
"""
export_manager.py
-----------------
Whole-canvas export to portable archives.

Pipeline:
    canvas id -> SnapshotBuilder (one session) -> photo bytes -> encode_archive

The snapshot is read inside the caller's session so it reflects a single
transaction. Photo bytes are then read from the attachment store. A photo
whose bytes are gone from the store is left out of the archive, with a
warning in the log, so the archive stays importable.

Usage:
    from chronicle.database.export_manager import ExportManager

    exporter = ExportManager(store, logger=db.logger)
    with db.session_scope() as session:
        data = exporter.export_canvas(session, canvas_id)
"""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, Union

from sqlalchemy.orm import Session

from chronicle.core.attachment_store import FileAttachmentStore
from chronicle.core.exceptions import AttachmentError
from chronicle.core.logging_manager import ChronicleLogger, safe_logger

from .archive_codec import encode_archive
from .decorators import handle_db_errors, log_database_operation
from .snapshot import CanvasSnapshot, SnapshotBuilder


class ExportManager:
    """
    Handles archive export for canvases.

    Attributes:
        store: Attachment store holding photo bytes
        logger: Optional logger for export operations
    """

    def __init__(
        self, store: FileAttachmentStore, logger: Optional[ChronicleLogger] = None
    ) -> None:
        self.store = store
        self.logger = logger
        self.builder = SnapshotBuilder(logger)

    @handle_db_errors
    @log_database_operation("export_canvas")
    def export_canvas(self, session: Session, canvas_id: str) -> bytes:
        """
        Export a canvas as archive bytes.

        Raises:
            NotFound: If the canvas does not exist
            ExportError: If the canvas graph is not referentially complete
        """
        snapshot = self.builder.build(session, canvas_id)
        snapshot, attachments = self._collect_attachments(snapshot)
        data = encode_archive(snapshot, attachments)

        safe_logger(self.logger).log_operation(
            "canvas_exported",
            {"canvas_id": canvas_id, "bytes": len(data), **snapshot.counts()},
        )
        return data

    def export_to_file(
        self, session: Session, canvas_id: str, output: Union[str, Path]
    ) -> Path:
        """Export a canvas and write the archive to ``output``."""
        output = Path(output)
        data = self.export_canvas(session, canvas_id)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(data)
        return output

    def _collect_attachments(self, snapshot: CanvasSnapshot):
        attachments: Dict[str, bytes] = {}
        kept = []
        for photo in snapshot.photos:
            try:
                attachments[photo.filename] = self.store.read(photo.filename)
            except AttachmentError as e:
                safe_logger(self.logger).log_warning(
                    "Photo left out of export: attachment unavailable",
                    {"photo_id": photo.id, "filename": photo.filename, "error": str(e)},
                )
                continue
            kept.append(photo)

        if len(kept) == len(snapshot.photos):
            return snapshot, attachments
        return replace(snapshot, photos=kept), attachments
