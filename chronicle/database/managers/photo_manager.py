#!/usr/bin/env python3
"""
photo_manager.py
--------------------
Manages Photo metadata and the matching attachment bytes.

The database keeps metadata only; bytes go to an attachment store under
``<photo id><extension>``. At most one photo per item is selected: selecting
a photo unselects its siblings first.

Usage:
    photo_mgr = PhotoManager(session, logger, store=FileAttachmentStore(UPLOADS_DIR))

    photo = photo_mgr.upload(item.id, "map.png", "image/png", data)
    photo_mgr.select_photo(photo.id)
    photo_mgr.update(photo.id, {"caption": "The old map", "important": True})
    photo_mgr.delete(photo.id)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from chronicle.core.attachment_store import FileAttachmentStore, attachment_key
from chronicle.core.exceptions import AttachmentError, ValidationError
from chronicle.core.logging_manager import ChronicleLogger
from chronicle.core.validators import DataValidator
from chronicle.database.decorators import DatabaseOperation
from chronicle.database.models import CanvasItem, Photo, new_id
from .base_manager import BaseManager


class PhotoManager(BaseManager):
    """Manages Photo table operations and attachment bytes."""

    _FIELDS = [
        ("caption", DataValidator.normalize_string, True),
        ("important", DataValidator.normalize_bool),
        ("aspect_ratio", DataValidator.normalize_float, True),
        ("blurhash", DataValidator.normalize_string, True),
    ]

    def __init__(
        self,
        session: Session,
        logger: Optional[ChronicleLogger] = None,
        store: Optional[FileAttachmentStore] = None,
    ):
        super().__init__(session, logger)
        self.store = store

    def _require_store(self) -> FileAttachmentStore:
        if self.store is None:
            raise AttachmentError("No attachment store configured")
        return self.store

    def get(self, photo_id: str) -> Photo:
        return self._require(Photo, photo_id)

    def get_for_item(self, item_id: str) -> List[Photo]:
        stmt = (
            select(Photo)
            .where(Photo.item_id == item_id)
            .order_by(Photo.created_at, Photo.id)
        )
        return list(self.session.scalars(stmt))

    def upload(
        self,
        item_id: str,
        original_name: str,
        mime_type: str,
        data: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Photo:
        """
        Store photo bytes and insert the metadata row.

        The bytes are written after the row is flushed; if writing fails
        the error propagates and the caller's transaction rolls back.

        Raises:
            NotFound: If the item does not exist
            ValidationError: If name or mime type are missing
            AttachmentError: If the bytes cannot be stored
        """
        DataValidator.validate_required_fields(
            {"original_name": original_name, "mime_type": mime_type},
            ["original_name", "mime_type"],
        )
        store = self._require_store()

        with DatabaseOperation(self.logger, "upload_photo"):
            self._require(CanvasItem, item_id)
            photo_id = new_id()
            photo = Photo(
                id=photo_id,
                item_id=item_id,
                filename=attachment_key(photo_id, original_name),
                original_name=original_name,
                mime_type=mime_type,
            )
            self._update_scalar_fields(photo, metadata or {}, self._FIELDS)
            self.session.add(photo)
            self.session.flush()
            store.write(photo.filename, data)
            return photo

    def read(self, photo_id: str) -> bytes:
        photo = self._require(Photo, photo_id)
        return self._require_store().read(photo.filename)

    def select_photo(self, photo_id: str) -> Photo:
        """
        Make a photo the representative image of its item.

        Raises:
            NotFound: If the photo does not exist
        """
        with DatabaseOperation(self.logger, "select_photo"):
            photo = self._require(Photo, photo_id)
            self.session.execute(
                update(Photo)
                .where(Photo.item_id == photo.item_id)
                .where(Photo.id != photo.id)
                .values(selected=False)
                .execution_options(synchronize_session="fetch")
            )
            self.session.flush()
            photo.selected = True
            self.session.flush()
            return photo

    def update(self, photo_id: str, metadata: Dict[str, Any]) -> Photo:
        """Update caption, important flag, aspect ratio or blurhash."""
        if "selected" in metadata:
            raise ValidationError("Use select_photo() to change the selected photo")
        with DatabaseOperation(self.logger, "update_photo"):
            photo = self._require(Photo, photo_id)
            self._update_scalar_fields(photo, metadata, self._FIELDS)
            self.session.flush()
            return photo

    def delete(self, photo_id: str) -> str:
        """
        Delete a photo's metadata row.

        Returns:
            The attachment filename, for removal once the transaction commits
        """
        with DatabaseOperation(self.logger, "delete_photo"):
            photo = self._require(Photo, photo_id)
            filename = photo.filename
            self.session.delete(photo)
            self.session.flush()
            return filename
