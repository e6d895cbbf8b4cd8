#!/usr/bin/env python3
"""
item_manager.py
--------------------
Manages CanvasItem entities.

Deleting an item removes its notes (with history), photos, tag
assignments and every link touching it, in either direction. Children
grouped under a deleted item lose their parent reference.

Usage:
    item_mgr = ItemManager(session, logger)

    item = item_mgr.create(canvas_id, {"type": "person", "title": "Ireena"})
    item_mgr.update(item.id, {"canvas_x": 120.0, "important": True})
    hits = item_mgr.search(canvas_id, "ire")
    filenames = item_mgr.delete(item.id)
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, select

from chronicle.core.exceptions import ValidationError
from chronicle.core.validators import DataValidator
from chronicle.database.decorators import DatabaseOperation, handle_db_errors
from chronicle.database.models import (
    Canvas,
    CanvasItem,
    CanvasItemLink,
    ItemType,
    Photo,
)
from .base_manager import BaseManager


class ItemManager(BaseManager):
    """
    Manages CanvasItem table operations.

    Items are typed nodes on a canvas. Position, summary, session date,
    grouping parent and the important flag are all optional at creation.
    """

    _SCALAR_FIELDS = [
        ("title", DataValidator.normalize_string),
        ("summary", DataValidator.normalize_string, True),
        ("canvas_x", DataValidator.normalize_float),
        ("canvas_y", DataValidator.normalize_float),
        ("session_date", DataValidator.normalize_date, True),
        ("important", DataValidator.normalize_bool),
    ]

    def get(self, item_id: str) -> CanvasItem:
        """
        Retrieve an item by id.

        Raises:
            NotFound: If the item does not exist
        """
        return self._require(CanvasItem, item_id)

    @handle_db_errors
    def get_all(
        self, canvas_id: str, item_type: Optional[str] = None
    ) -> List[CanvasItem]:
        """List a canvas's items, oldest first, optionally filtered by type."""
        self._require(Canvas, canvas_id)
        stmt = select(CanvasItem).where(CanvasItem.canvas_id == canvas_id)
        if item_type is not None:
            stmt = stmt.where(CanvasItem.type == self._parse_type(item_type))
        stmt = stmt.order_by(CanvasItem.created_at, CanvasItem.id)
        return list(self.session.scalars(stmt))

    @handle_db_errors
    def search(self, canvas_id: str, query: str, limit: int = 20) -> List[CanvasItem]:
        """Case-insensitive title search within a canvas."""
        needle = DataValidator.normalize_string(query)
        if not needle:
            return []
        stmt = (
            select(CanvasItem)
            .where(CanvasItem.canvas_id == canvas_id)
            .where(CanvasItem.title.ilike(f"%{needle}%"))
            .order_by(CanvasItem.title, CanvasItem.id)
            .limit(DataValidator.clamp_limit(limit, default=20))
        )
        return list(self.session.scalars(stmt))

    def create(self, canvas_id: str, metadata: Dict[str, Any]) -> CanvasItem:
        """
        Create an item on a canvas.

        Args:
            canvas_id: Owning canvas
            metadata: Dictionary with required keys:
                - type: One of ItemType.choices()
                - title: Item title
                Optional keys: summary, canvas_x, canvas_y, session_date,
                parent_item_id, important

        Raises:
            NotFound: If the canvas (or the parent item) does not exist
            ValidationError: If required fields are missing or invalid
        """
        DataValidator.validate_required_fields(metadata, ["type", "title"])

        with DatabaseOperation(self.logger, "create_item"):
            self._require(Canvas, canvas_id)
            item = CanvasItem(
                canvas_id=canvas_id,
                type=self._parse_type(metadata["type"]),
            )
            self._update_scalar_fields(item, metadata, self._SCALAR_FIELDS)
            if "parent_item_id" in metadata:
                item.parent_item_id = self._check_parent(
                    canvas_id, None, metadata["parent_item_id"]
                )
            self.session.add(item)
            self.session.flush()
            return item

    def update(self, item_id: str, metadata: Dict[str, Any]) -> CanvasItem:
        """
        Update an item's scalar fields and grouping parent.

        Raises:
            NotFound: If the item does not exist
            ValidationError: If a value is invalid
        """
        with DatabaseOperation(self.logger, "update_item"):
            item = self._require(CanvasItem, item_id)
            if "title" in metadata and not DataValidator.normalize_string(
                metadata["title"]
            ):
                raise ValidationError("Item title cannot be empty")
            if "type" in metadata:
                item.type = self._parse_type(metadata["type"])
            self._update_scalar_fields(item, metadata, self._SCALAR_FIELDS)
            if "parent_item_id" in metadata:
                item.parent_item_id = self._check_parent(
                    item.canvas_id, item.id, metadata["parent_item_id"]
                )
            item.touch()
            self.session.flush()
            return item

    def delete(self, item_id: str) -> List[str]:
        """
        Delete an item and everything attached to it.

        Returns:
            Attachment filenames of the removed photos, so the caller can
            drop the bytes once the transaction commits

        Raises:
            NotFound: If the item does not exist
        """
        with DatabaseOperation(self.logger, "delete_item"):
            item = self._require(CanvasItem, item_id)
            filenames = list(
                self.session.scalars(
                    select(Photo.filename).where(Photo.item_id == item_id)
                )
            )
            self.session.execute(
                delete(CanvasItemLink).where(
                    or_(
                        CanvasItemLink.source_item_id == item_id,
                        CanvasItemLink.target_item_id == item_id,
                    )
                )
            )
            self.session.delete(item)
            self.session.flush()
            return filenames

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_type(value: Any) -> ItemType:
        if isinstance(value, ItemType):
            return value
        DataValidator.validate_choice(value, ItemType.choices(), "item type")
        return ItemType(value)

    def _check_parent(
        self, canvas_id: str, item_id: Optional[str], parent_id: Optional[str]
    ) -> Optional[str]:
        if not parent_id:
            return None
        if parent_id == item_id:
            raise ValidationError("An item cannot be its own parent")
        parent = self._require(CanvasItem, parent_id)
        if parent.canvas_id != canvas_id:
            raise ValidationError("Parent item belongs to another canvas")
        return parent.id
