#!/usr/bin/env python3
"""
import_manager.py
-----------------
Atomic import of canvas archives.

Pipeline:
    archive bytes -> decode_archive -> remap_snapshot -> commit

The commit applies a remapped snapshot in one SERIALIZABLE transaction on
a session of its own:

    1. canvas (fresh timestamps) and the importing user's membership
    2. items, inserted without parents, then parents bound in a second step
    3. notes, each with one initial history row
    4. tags, tag assignments, links
    5. photo metadata, with the bytes written to the attachment store

Either everything becomes visible or nothing does. On any failure the
transaction rolls back, attachment files written so far are removed, and
ImportFailed is raised with the original error chained.

Usage:
    importer = ImportManager(session_factory, store, logger)
    result = importer.import_archive(data, user_id="u1")
    result.id, result.name
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

from sqlalchemy import insert, update
from sqlalchemy.orm import Session

from chronicle.core.attachment_store import FileAttachmentStore
from chronicle.core.exceptions import AttachmentError, ImportFailed, ValidationError
from chronicle.core.logging_manager import ChronicleLogger, safe_logger
from chronicle.core.validators import DataValidator

from .archive_codec import decode_archive
from .decorators import log_database_operation
from .id_remapper import IdFactory, RemapResult, remap_snapshot
from .models import (
    Canvas,
    CanvasItem,
    CanvasItemLink,
    CanvasUser,
    ItemType,
    Note,
    NoteHistory,
    Photo,
    Tag,
    canvas_item_tags,
    utcnow,
)

IMPORT_ISOLATION_LEVEL = "SERIALIZABLE"


@dataclass(frozen=True)
class ImportResult:
    """Identity of the canvas created by an import."""

    id: str
    name: str


class ImportManager:
    """
    Applies archives to the database as single atomic units.

    Attributes:
        session_factory: Callable returning a new Session
        store: Attachment store receiving photo bytes
        logger: Optional logger
        id_factory: Source of fresh ids (defaults to UUID4 strings)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        store: FileAttachmentStore,
        logger: Optional[ChronicleLogger] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.session_factory = session_factory
        self.store = store
        self.logger = logger
        self.id_factory = id_factory

    @log_database_operation("import_archive")
    def import_archive(self, data: bytes, user_id: str) -> ImportResult:
        """
        Decode, remap and commit an archive for a user.

        Raises:
            ValidationError: If user_id is empty
            MalformedArchive: If the archive is structurally invalid
            RemapError: If a required reference cannot be resolved
            ImportFailed: If the commit failed (nothing was persisted)
        """
        self._check_user(user_id)
        decoded = decode_archive(data)
        remapped = remap_snapshot(decoded.snapshot, self.id_factory)
        return self.commit(remapped, decoded.attachments, user_id)

    def commit(
        self,
        remapped: RemapResult,
        attachments: Mapping[str, bytes],
        user_id: str,
    ) -> ImportResult:
        """
        Persist a remapped snapshot in one transaction.

        Args:
            remapped: Output of remap_snapshot()
            attachments: Photo bytes keyed by their original filename
            user_id: User becoming a member of the new canvas

        Raises:
            ImportFailed: On any constraint, database or attachment failure
        """
        self._check_user(user_id)
        snapshot = remapped.snapshot
        written: List[str] = []
        session = self.session_factory()

        try:
            session.connection(execution_options={"isolation_level": IMPORT_ISOLATION_LEVEL})
            self._insert_canvas(session, remapped, user_id)
            self._insert_items(session, remapped)
            self._insert_notes(session, remapped)
            self._insert_tags(session, remapped)
            self._insert_links(session, remapped)
            self._insert_photos(session, remapped)
            session.flush()

            for photo in snapshot.photos:
                original = remapped.attachment_keys[photo.filename]
                if original not in attachments:
                    raise AttachmentError(f"No bytes for attachment {original}")
                self.store.write(photo.filename, attachments[original])
                written.append(photo.filename)

            session.commit()
        except Exception as e:
            session.rollback()
            self._discard(written)
            safe_logger(self.logger).log_error(
                e,
                {
                    "operation": "import_commit",
                    "canvas_id": snapshot.canvas.id,
                    "attachments_removed": len(written),
                },
            )
            raise ImportFailed(f"Import rolled back: {e}") from e
        finally:
            session.close()

        safe_logger(self.logger).log_operation(
            "canvas_imported",
            {"canvas_id": snapshot.canvas.id, "user_id": user_id, **snapshot.counts()},
        )
        return ImportResult(id=snapshot.canvas.id, name=snapshot.canvas.name)

    # -------------------------------------------------------------------------
    # Insert steps
    # -------------------------------------------------------------------------

    @staticmethod
    def _insert_canvas(session: Session, remapped: RemapResult, user_id: str) -> None:
        record = remapped.snapshot.canvas
        now = utcnow()
        session.add(Canvas(id=record.id, name=record.name, created_at=now, updated_at=now))
        session.flush()
        session.add(CanvasUser(canvas_id=record.id, user_id=user_id))

    @staticmethod
    def _insert_items(session: Session, remapped: RemapResult) -> None:
        grouped = []
        for record in remapped.snapshot.items:
            session.add(
                CanvasItem(
                    id=record.id,
                    canvas_id=record.canvas_id,
                    type=ItemType(record.type),
                    title=record.title,
                    summary=record.summary,
                    canvas_x=record.canvas_x,
                    canvas_y=record.canvas_y,
                    session_date=record.session_date,
                    important=record.important,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
            if record.parent_item_id:
                grouped.append(record)
        session.flush()

        # updated_at is passed explicitly so the column's onupdate does not fire
        items = CanvasItem.__table__
        for record in grouped:
            session.execute(
                update(items)
                .where(items.c.id == record.id)
                .values(parent_item_id=record.parent_item_id, updated_at=record.updated_at)
            )

    @staticmethod
    def _insert_notes(session: Session, remapped: RemapResult) -> None:
        snapshot_at = utcnow()
        for record in remapped.snapshot.notes:
            session.add(
                Note(
                    id=record.id,
                    item_id=record.item_id,
                    content=record.content,
                    important=record.important,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
        session.flush()
        for record in remapped.snapshot.notes:
            session.add(
                NoteHistory(note_id=record.id, content=record.content, snapshot_at=snapshot_at)
            )

    @staticmethod
    def _insert_tags(session: Session, remapped: RemapResult) -> None:
        snapshot = remapped.snapshot
        for record in snapshot.tags:
            session.add(
                Tag(
                    id=record.id,
                    canvas_id=record.canvas_id,
                    name=record.name,
                    icon=record.icon,
                    color=record.color,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
            )
        session.flush()
        if snapshot.tag_assignments:
            session.execute(
                insert(canvas_item_tags),
                [
                    {"item_id": record.item_id, "tag_id": record.tag_id}
                    for record in snapshot.tag_assignments
                ],
            )

    @staticmethod
    def _insert_links(session: Session, remapped: RemapResult) -> None:
        for record in remapped.snapshot.links:
            session.add(
                CanvasItemLink(
                    source_item_id=record.source_item_id,
                    target_item_id=record.target_item_id,
                    snippet=record.snippet,
                    created_at=record.created_at,
                )
            )

    @staticmethod
    def _insert_photos(session: Session, remapped: RemapResult) -> None:
        for record in remapped.snapshot.photos:
            session.add(
                Photo(
                    id=record.id,
                    item_id=record.item_id,
                    filename=record.filename,
                    original_name=record.original_name,
                    mime_type=record.mime_type,
                    selected=record.selected,
                    important=record.important,
                    caption=record.caption,
                    aspect_ratio=record.aspect_ratio,
                    blurhash=record.blurhash,
                    created_at=record.created_at,
                )
            )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_user(user_id: str) -> None:
        if not DataValidator.normalize_string(user_id):
            raise ValidationError("Required field 'user_id' missing or empty")

    def _discard(self, filenames: List[str]) -> None:
        for filename in filenames:
            try:
                self.store.delete(filename)
            except AttachmentError as e:
                safe_logger(self.logger).log_warning(
                    f"Could not remove attachment {filename} after rollback",
                    {"error": str(e)},
                )
