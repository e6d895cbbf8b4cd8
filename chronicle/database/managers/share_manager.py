#!/usr/bin/env python3
"""
share_manager.py
--------------------
Manages Share capability tokens.

A share grants read and copy access to a whole canvas (no item) or to one
item subtree. Sharing the same (canvas, item) pair again returns the
existing share and token.

Usage:
    share_mgr = ShareManager(session, logger)

    share = share_mgr.create(canvas_id, None, user_id="u1")
    same = share_mgr.get_by_token(share.token)
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select

from chronicle.core.exceptions import NotFound, ValidationError
from chronicle.database.decorators import handle_db_errors, log_database_operation
from chronicle.database.models import Canvas, CanvasItem, Share
from .base_manager import BaseManager


class ShareManager(BaseManager):
    """Manages Share table operations."""

    @handle_db_errors
    @log_database_operation("create_share")
    def create(self, canvas_id: str, item_id: Optional[str], user_id: str) -> Share:
        """
        Share a canvas, or one item of it.

        Raises:
            NotFound: If the canvas or item does not exist
            ValidationError: If the item belongs to another canvas
        """
        self._require(Canvas, canvas_id)
        if item_id is not None:
            item = self._require(CanvasItem, item_id)
            if item.canvas_id != canvas_id:
                raise ValidationError("Shared item belongs to another canvas")

        stmt = select(Share).where(Share.canvas_id == canvas_id)
        stmt = stmt.where(
            Share.item_id.is_(None) if item_id is None else Share.item_id == item_id
        )
        existing = self.session.scalars(stmt).first()
        if existing is not None:
            return existing

        share = Share(canvas_id=canvas_id, item_id=item_id, created_by=user_id)
        self.session.add(share)
        self.session.flush()
        return share

    @handle_db_errors
    def get_for_canvas(self, canvas_id: str) -> List[Share]:
        return self._get_all(Share, order_by="created_at", canvas_id=canvas_id)

    @handle_db_errors
    def get_by_token(self, token: str) -> Share:
        """
        Resolve a share token.

        Raises:
            NotFound: If no share carries this token
        """
        share = self.session.scalars(select(Share).where(Share.token == token)).first()
        if share is None:
            raise NotFound("Share not found")
        return share

    @handle_db_errors
    @log_database_operation("delete_share")
    def delete(self, share_id: str) -> None:
        share = self._require(Share, share_id)
        self.session.delete(share)
        self.session.flush()
