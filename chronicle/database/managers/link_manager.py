#!/usr/bin/env python3
"""
link_manager.py
--------------------
Manages undirected CanvasItemLink edges.

Every lookup, insert and delete goes through CanvasItemLink.normalize(),
so (A, B) and (B, A) address the same row: creating the reverse of an
existing link returns the existing one, and deleting either direction
removes it.

Usage:
    link_mgr = LinkManager(session, logger)

    link = link_mgr.create(item_a.id, item_b.id, snippet="rivals")
    neighbours = link_mgr.get_for_item(item_a.id)
    link_mgr.delete(item_b.id, item_a.id)
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_, select

from chronicle.core.exceptions import NotFound, ValidationError
from chronicle.core.validators import DataValidator
from chronicle.database.decorators import handle_db_errors, log_database_operation
from chronicle.database.mentions import extract_snippet, parse_mentions
from chronicle.database.models import CanvasItem, CanvasItemLink
from .base_manager import BaseManager


class LinkManager(BaseManager):
    """Manages CanvasItemLink table operations."""

    def get(self, item_a: str, item_b: str) -> Optional[CanvasItemLink]:
        """Return the link between two items in either direction, if any."""
        return self.session.get(CanvasItemLink, CanvasItemLink.normalize(item_a, item_b))

    def exists(self, item_a: str, item_b: str) -> bool:
        return self.get(item_a, item_b) is not None

    @handle_db_errors
    def get_for_item(self, item_id: str) -> List[CanvasItemLink]:
        """Return every link touching an item, whichever end it is stored on."""
        stmt = (
            select(CanvasItemLink)
            .where(
                or_(
                    CanvasItemLink.source_item_id == item_id,
                    CanvasItemLink.target_item_id == item_id,
                )
            )
            .order_by(CanvasItemLink.created_at)
        )
        return list(self.session.scalars(stmt))

    @handle_db_errors
    def get_for_canvas(self, canvas_id: str) -> List[CanvasItemLink]:
        stmt = (
            select(CanvasItemLink)
            .join(CanvasItem, CanvasItem.id == CanvasItemLink.source_item_id)
            .where(CanvasItem.canvas_id == canvas_id)
            .order_by(CanvasItemLink.source_item_id, CanvasItemLink.target_item_id)
        )
        return list(self.session.scalars(stmt))

    @handle_db_errors
    @log_database_operation("create_link")
    def create(
        self, item_a: str, item_b: str, snippet: Optional[str] = None
    ) -> CanvasItemLink:
        """
        Link two items of the same canvas.

        Idempotent: linking an already linked pair (in either direction)
        returns the stored link, filling in the snippet if it had none.

        Raises:
            ValidationError: On a self-link or a cross-canvas pair
            NotFound: If either item does not exist
        """
        if item_a == item_b:
            raise ValidationError("An item cannot be linked to itself")

        first = self._require(CanvasItem, item_a)
        second = self._require(CanvasItem, item_b)
        if first.canvas_id != second.canvas_id:
            raise ValidationError("Linked items must belong to the same canvas")

        snippet = DataValidator.normalize_string(snippet)
        existing = self.get(item_a, item_b)
        if existing is not None:
            if snippet and not existing.snippet:
                existing.snippet = snippet
                self.session.flush()
            return existing

        source, target = CanvasItemLink.normalize(item_a, item_b)
        link = CanvasItemLink(source_item_id=source, target_item_id=target, snippet=snippet)
        self.session.add(link)
        self.session.flush()
        return link

    @handle_db_errors
    @log_database_operation("delete_link")
    def delete(self, item_a: str, item_b: str) -> None:
        """
        Remove the link between two items, given in either direction.

        Raises:
            NotFound: If the items are not linked
        """
        link = self.get(item_a, item_b)
        if link is None:
            raise NotFound(f"No link between {item_a} and {item_b}")
        self.session.delete(link)
        self.session.flush()

    @handle_db_errors
    @log_database_operation("link_mentions")
    def link_mentions(self, item_id: str, content: str) -> List[CanvasItemLink]:
        """
        Link an item to every item its note content mentions.

        Mentions of unknown items, of items on other canvases, and of the
        item itself are skipped. Each new link carries the text around the
        first mention as its snippet.

        Returns:
            The links (new or existing) for the resolved mentions
        """
        source = self._require(CanvasItem, item_id)
        links: List[CanvasItemLink] = []
        seen = set()
        for mention in parse_mentions(content):
            target_id = mention.item_id
            if target_id in seen or target_id == item_id:
                continue
            seen.add(target_id)
            target = self._get_by_id(CanvasItem, target_id)
            if target is None or target.canvas_id != source.canvas_id:
                continue
            snippet = extract_snippet(content, mention.start, mention.end)
            links.append(self.create(item_id, target_id, snippet=snippet))
        return links
