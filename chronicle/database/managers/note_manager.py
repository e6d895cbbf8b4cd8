#!/usr/bin/env python3
"""
note_manager.py
--------------------
Manages Note entities and their append-only history.

Every time a note's content is written (on creation, or by an update that
changes it) a NoteHistory row snapshots the written content. History rows
are never updated; they disappear only with their note.

Mentions in written content are turned into item links through the
LinkManager.

Usage:
    note_mgr = NoteManager(session, logger)

    note = note_mgr.create(item.id, {"content": "Met @{abc} at the inn"})
    note_mgr.update(note.id, {"content": "...", "important": True})
    history = note_mgr.get_history(note.id)
"""
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import select

from chronicle.core.validators import DataValidator
from chronicle.database.decorators import DatabaseOperation, handle_db_errors
from chronicle.database.models import CanvasItem, Note, NoteHistory
from .base_manager import BaseManager
from .link_manager import LinkManager


class NoteManager(BaseManager):
    """Manages Note and NoteHistory table operations."""

    def get(self, note_id: str) -> Note:
        return self._require(Note, note_id)

    @handle_db_errors
    def get_for_item(self, item_id: str) -> List[Note]:
        """Notes of an item: important ones first, then oldest first."""
        stmt = (
            select(Note)
            .where(Note.item_id == item_id)
            .order_by(Note.important.desc(), Note.created_at, Note.id)
        )
        return list(self.session.scalars(stmt))

    @handle_db_errors
    def get_history(self, note_id: str) -> List[NoteHistory]:
        """History snapshots of a note, newest first."""
        self._require(Note, note_id)
        stmt = (
            select(NoteHistory)
            .where(NoteHistory.note_id == note_id)
            .order_by(NoteHistory.snapshot_at.desc(), NoteHistory.id.desc())
        )
        return list(self.session.scalars(stmt))

    def create(self, item_id: str, metadata: Dict[str, Any]) -> Note:
        """
        Create a note on an item and snapshot its content.

        Args:
            item_id: Owning item
            metadata: Optional keys: content, important

        Raises:
            NotFound: If the item does not exist
        """
        with DatabaseOperation(self.logger, "create_note"):
            self._require(CanvasItem, item_id)
            note = Note(
                item_id=item_id,
                content=metadata.get("content") or "",
                important=bool(DataValidator.normalize_bool(metadata.get("important"))),
            )
            self.session.add(note)
            self.session.flush()
            self._snapshot(note)
            if note.content:
                LinkManager(self.session, self.logger).link_mentions(item_id, note.content)
            return note

    def update(self, note_id: str, metadata: Dict[str, Any]) -> Note:
        """
        Update a note's content and/or important flag.

        A history row is written only when the content actually changes.

        Raises:
            NotFound: If the note does not exist
        """
        with DatabaseOperation(self.logger, "update_note"):
            note = self._require(Note, note_id)
            content_changed = False

            if "content" in metadata:
                content = metadata["content"] or ""
                content_changed = content != note.content
                note.content = content
            if "important" in metadata:
                note.important = bool(DataValidator.normalize_bool(metadata["important"]))

            note.touch()
            self.session.flush()

            if content_changed:
                self._snapshot(note)
                LinkManager(self.session, self.logger).link_mentions(
                    note.item_id, note.content
                )
            return note

    def delete(self, note_id: str) -> None:
        with DatabaseOperation(self.logger, "delete_note"):
            note = self._require(Note, note_id)
            self.session.delete(note)
            self.session.flush()

    def _snapshot(self, note: Note) -> NoteHistory:
        entry = NoteHistory(note_id=note.id, content=note.content)
        self.session.add(entry)
        self.session.flush()
        return entry
