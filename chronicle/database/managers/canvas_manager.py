#!/usr/bin/env python3
"""
canvas_manager.py
--------------------
Manages Canvas entities and user membership.

A user must always keep at least one canvas: deleting the only canvas a
user belongs to raises LastCanvasError.

Usage:
    canvas_mgr = CanvasManager(session, logger)

    canvas = canvas_mgr.create({"name": "Curse of Strahd"}, user_id="u1")
    canvases = canvas_mgr.list_for_user("u1")
    canvas_mgr.rename(canvas.id, "Barovia")
    filenames = canvas_mgr.delete(canvas.id, user_id="u1")
"""
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import func, select

from chronicle.core.exceptions import LastCanvasError, NotFound, ValidationError
from chronicle.core.validators import DataValidator
from chronicle.database.decorators import handle_db_errors, log_database_operation
from chronicle.database.models import Canvas, CanvasItem, CanvasUser, Photo
from .base_manager import BaseManager


class CanvasManager(BaseManager):
    """Manages Canvas table operations and canvas membership."""

    @handle_db_errors
    @log_database_operation("get_canvas")
    def get(self, canvas_id: str) -> Canvas:
        """
        Retrieve a canvas by id.

        Raises:
            NotFound: If the canvas does not exist
        """
        return self._require(Canvas, canvas_id)

    def exists(self, canvas_id: str) -> bool:
        return self._get_by_id(Canvas, canvas_id) is not None

    @handle_db_errors
    @log_database_operation("list_canvases")
    def list_for_user(self, user_id: str) -> List[Canvas]:
        """Return the canvases a user belongs to, oldest first."""
        stmt = (
            select(Canvas)
            .join(CanvasUser, CanvasUser.canvas_id == Canvas.id)
            .where(CanvasUser.user_id == user_id)
            .order_by(Canvas.created_at, Canvas.id)
        )
        return list(self.session.scalars(stmt))

    def is_member(self, canvas_id: str, user_id: str) -> bool:
        return self.session.get(CanvasUser, (canvas_id, user_id)) is not None

    @handle_db_errors
    @log_database_operation("create_canvas")
    def create(self, metadata: Dict[str, Any], user_id: str) -> Canvas:
        """
        Create a canvas owned by ``user_id``.

        Args:
            metadata: Dictionary with required key:
                - name: Canvas name
            user_id: Owning user

        Raises:
            ValidationError: If the name is missing or empty
        """
        DataValidator.validate_required_fields(metadata, ["name"])
        if not DataValidator.normalize_string(user_id):
            raise ValidationError("Required field 'user_id' missing or empty")

        canvas = Canvas(name=DataValidator.normalize_string(metadata["name"]))
        canvas.members.append(CanvasUser(user_id=user_id))
        self.session.add(canvas)
        self.session.flush()

        if self.logger:
            self.logger.log_debug(f"Created canvas: {canvas.name}", {"canvas_id": canvas.id})

        return canvas

    @handle_db_errors
    @log_database_operation("rename_canvas")
    def rename(self, canvas_id: str, name: str) -> Canvas:
        canvas = self._require(Canvas, canvas_id)
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            raise ValidationError("Canvas name cannot be empty")
        canvas.name = normalized
        self.session.flush()
        return canvas

    @handle_db_errors
    @log_database_operation("add_canvas_member")
    def add_member(self, canvas_id: str, user_id: str) -> CanvasUser:
        """Bind a user to a canvas; no-op if already a member."""
        self._require(Canvas, canvas_id)
        membership = self.session.get(CanvasUser, (canvas_id, user_id))
        if membership is None:
            membership = CanvasUser(canvas_id=canvas_id, user_id=user_id)
            self.session.add(membership)
            self.session.flush()
        return membership

    def count_for_user(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(CanvasUser).where(
            CanvasUser.user_id == user_id
        )
        return int(self.session.scalar(stmt) or 0)

    @handle_db_errors
    @log_database_operation("delete_canvas")
    def delete(self, canvas_id: str, user_id: str) -> List[str]:
        """
        Delete a canvas and everything it owns.

        Returns:
            Attachment filenames of the canvas's photos, for removal
            once the transaction commits

        Raises:
            NotFound: If the canvas does not exist or the user is not a member
            LastCanvasError: If this is the user's only canvas
        """
        canvas = self._require(Canvas, canvas_id)
        if not self.is_member(canvas_id, user_id):
            raise NotFound(f"Canvas not found: {canvas_id}")
        if self.count_for_user(user_id) <= 1:
            raise LastCanvasError("Cannot delete your only canvas")

        filenames = list(
            self.session.scalars(
                select(Photo.filename)
                .join(CanvasItem, Photo.item_id == CanvasItem.id)
                .where(CanvasItem.canvas_id == canvas_id)
            )
        )
        self.session.delete(canvas)
        self.session.flush()
        return filenames
