#!/usr/bin/env python3
"""
tag_manager.py
--------------------
Manages Tag entities and their assignment to canvas items.

Tags belong to one canvas and can only be assigned to items of that
canvas. Assigning is idempotent; removing reports whether an assignment
existed.

Usage:
    tag_mgr = TagManager(session, logger)

    tag = tag_mgr.create(canvas_id, {"name": "NPC", "icon": "user", "color": "#f00"})
    tag_mgr.assign(item.id, tag.id)
    tags = tag_mgr.get_for_item(item.id)
    tag_mgr.remove(item.id, tag.id)
"""
from typing import Any, Dict, List

from sqlalchemy import select

from chronicle.core.exceptions import ValidationError
from chronicle.core.validators import DataValidator
from chronicle.database.decorators import handle_db_errors, log_database_operation
from chronicle.database.models import Canvas, CanvasItem, Tag, canvas_item_tags
from .base_manager import BaseManager


class TagManager(BaseManager):
    """
    Manages Tag table operations and relationships.

    Tags are canvas-scoped labels with an optional icon and color.
    """

    _FIELDS = [
        ("name", DataValidator.normalize_string),
        ("icon", DataValidator.normalize_string, True),
        ("color", DataValidator.normalize_string, True),
    ]

    # -------------------------------------------------------------------------
    # Core CRUD Operations
    # -------------------------------------------------------------------------

    def get(self, tag_id: str) -> Tag:
        return self._require(Tag, tag_id)

    @handle_db_errors
    @log_database_operation("get_all_tags")
    def get_all(self, canvas_id: str) -> List[Tag]:
        """Retrieve every tag of a canvas, ordered by name."""
        return self._get_all(Tag, order_by="name", canvas_id=canvas_id)

    @handle_db_errors
    @log_database_operation("create_tag")
    def create(self, canvas_id: str, metadata: Dict[str, Any]) -> Tag:
        """
        Create a new tag.

        Args:
            canvas_id: Owning canvas
            metadata: Dictionary with required key:
                - name: The tag name
                Optional keys: icon, color

        Raises:
            ValidationError: If the name is missing or empty
            NotFound: If the canvas does not exist
        """
        DataValidator.validate_required_fields(metadata, ["name"])
        self._require(Canvas, canvas_id)

        tag = Tag(canvas_id=canvas_id)
        self._update_scalar_fields(tag, metadata, self._FIELDS)
        self.session.add(tag)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Created tag: {tag.name}", {"tag_id": tag.id})

        return tag

    @handle_db_errors
    @log_database_operation("update_tag")
    def update(self, tag_id: str, metadata: Dict[str, Any]) -> Tag:
        tag = self._require(Tag, tag_id)
        if "name" in metadata and not DataValidator.normalize_string(metadata["name"]):
            raise ValidationError("Tag name cannot be empty")
        self._update_scalar_fields(tag, metadata, self._FIELDS)
        tag.touch()
        self.session.flush()
        return tag

    @handle_db_errors
    @log_database_operation("delete_tag")
    def delete(self, tag_id: str) -> None:
        """Delete a tag; its assignments go with it."""
        tag = self._require(Tag, tag_id)
        self.session.delete(tag)
        self.session.flush()

    # -------------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get_for_item(self, item_id: str) -> List[Tag]:
        stmt = (
            select(Tag)
            .join(canvas_item_tags, canvas_item_tags.c.tag_id == Tag.id)
            .where(canvas_item_tags.c.item_id == item_id)
            .order_by(Tag.name, Tag.id)
        )
        return list(self.session.scalars(stmt))

    @handle_db_errors
    @log_database_operation("assign_tag")
    def assign(self, item_id: str, tag_id: str) -> None:
        """
        Assign a tag to an item. No-op if already assigned.

        Raises:
            NotFound: If the item or tag does not exist
            ValidationError: If they belong to different canvases
        """
        item = self._require(CanvasItem, item_id)
        tag = self._require(Tag, tag_id)
        if item.canvas_id != tag.canvas_id:
            raise ValidationError("Tag belongs to another canvas")
        if tag not in item.tags:
            item.tags.append(tag)
            self.session.flush()

    @handle_db_errors
    @log_database_operation("remove_tag")
    def remove(self, item_id: str, tag_id: str) -> bool:
        """
        Remove a tag from an item.

        Returns:
            True if the assignment existed
        """
        item = self._require(CanvasItem, item_id)
        tag = self._get_by_id(Tag, tag_id)
        if tag is None or tag not in item.tags:
            return False
        item.tags.remove(tag)
        self.session.flush()
        return True
