#!/usr/bin/env python3
"""
feed_manager.py
--------------------
Keyset-paginated Timeline and Gallery feeds.

Timeline:
    Notes and photos of every item on a canvas, as one stream. Entries
    are ordered by the chosen timestamp (createdAt or updatedAt)
    descending, ties broken by entry id descending, so the order is total
    and a page boundary between equal timestamps never skips or repeats an
    entry. A photo's updatedAt is its createdAt.

Gallery:
    Photos of a canvas ordered by (createdAt, id) descending, optionally
    restricted to important photos.

Both feeds accept a parent-item scope: only entries whose owning item is
that item, or is grouped under it. All filters and the cursor condition
are part of the one SQL query, applied before LIMIT, so every page is
full until the feed runs out.

Pagination contract:
    A page holds up to ``limit`` entries strictly after the cursor.
    ``next_cursor`` is set exactly when the page is full; a short page
    (including an empty one) ends the feed.

Usage:
    feeds = FeedManager(session, logger)
    page = feeds.list_timeline(canvas_id, sort="updatedAt", limit=20)
    more = feeds.list_timeline(canvas_id, sort="updatedAt", cursor=page.next_cursor)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Date,
    Float,
    String,
    Text,
    and_,
    cast,
    func,
    literal,
    null,
    or_,
    select,
    union_all,
)

from chronicle.core.exceptions import ValidationError
from chronicle.core.validators import DataValidator

from .cursor_codec import FeedCursor, decode_for, encode_cursor
from .decorators import handle_db_errors, log_database_operation
from .managers.base_manager import BaseManager
from .models import Canvas, CanvasItem, EntryKind, Note, Photo

TIMELINE_SORTS = {"createdAt": "created_at", "updatedAt": "updated_at"}
DEFAULT_LIMIT = 30
MAX_LIMIT = 100


@dataclass(frozen=True)
class FeedEntry:
    """
    One feed entry. Note entries carry ``content``; photo entries carry
    the photo fields.
    """

    kind: str
    id: str
    created_at: datetime
    updated_at: datetime
    important: bool
    parent_item_id: str
    parent_item_type: str
    parent_item_title: str
    content: Optional[str] = None
    filename: Optional[str] = None
    original_name: Optional[str] = None
    caption: Optional[str] = None
    aspect_ratio: Optional[float] = None
    blurhash: Optional[str] = None
    selected: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kind": self.kind,
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "important": self.important,
            "parentItemId": self.parent_item_id,
            "parentItemType": self.parent_item_type,
            "parentItemTitle": self.parent_item_title,
        }
        if self.kind == EntryKind.NOTE.value:
            data["content"] = self.content
        else:
            data.update(
                {
                    "filename": self.filename,
                    "originalName": self.original_name,
                    "caption": self.caption,
                    "aspectRatio": self.aspect_ratio,
                    "blurhash": self.blurhash,
                    "selected": self.selected,
                }
            )
        return data


@dataclass
class FeedPage:
    entries: List[FeedEntry] = field(default_factory=list)
    next_cursor: Optional[str] = None


class FeedManager(BaseManager):
    """Builds feed pages with one bounded query each."""

    # -------------------------------------------------------------------------
    # Query pieces
    # -------------------------------------------------------------------------

    @staticmethod
    def _parent_columns():
        return (
            CanvasItem.id.label("parent_item_id"),
            CanvasItem.type.label("parent_item_type"),
            CanvasItem.title.label("parent_item_title"),
        )

    @staticmethod
    def _scope(stmt, canvas_id: str, parent_item_id: Optional[str]):
        stmt = stmt.where(CanvasItem.canvas_id == canvas_id)
        if parent_item_id:
            stmt = stmt.where(
                or_(
                    CanvasItem.id == parent_item_id,
                    CanvasItem.parent_item_id == parent_item_id,
                )
            )
        return stmt

    def _note_rows(self, canvas_id: str, parent_item_id: Optional[str]):
        stmt = select(
            literal(EntryKind.NOTE.value, String).label("kind"),
            Note.id.label("id"),
            Note.created_at.label("created_at"),
            Note.updated_at.label("updated_at"),
            Note.important.label("important"),
            *self._parent_columns(),
            Note.content.label("content"),
            cast(null(), String).label("filename"),
            cast(null(), String).label("original_name"),
            cast(null(), Text).label("caption"),
            cast(null(), Float).label("aspect_ratio"),
            cast(null(), String).label("blurhash"),
            cast(null(), Photo.selected.type).label("selected"),
        ).join(CanvasItem, CanvasItem.id == Note.item_id)
        return self._scope(stmt, canvas_id, parent_item_id)

    def _photo_rows(self, canvas_id: str, parent_item_id: Optional[str]):
        stmt = select(
            literal(EntryKind.PHOTO.value, String).label("kind"),
            Photo.id.label("id"),
            Photo.created_at.label("created_at"),
            Photo.created_at.label("updated_at"),
            Photo.important.label("important"),
            *self._parent_columns(),
            cast(null(), Text).label("content"),
            Photo.filename.label("filename"),
            Photo.original_name.label("original_name"),
            Photo.caption.label("caption"),
            Photo.aspect_ratio.label("aspect_ratio"),
            Photo.blurhash.label("blurhash"),
            Photo.selected.label("selected"),
        ).join(CanvasItem, CanvasItem.id == Photo.item_id)
        return self._scope(stmt, canvas_id, parent_item_id)

    @staticmethod
    def _after(sort_column, id_column, cursor: Optional[FeedCursor]):
        if cursor is None:
            return None
        return or_(
            sort_column < cursor.value,
            and_(sort_column == cursor.value, id_column < cursor.entity_id),
        )

    @staticmethod
    def _to_entry(row) -> FeedEntry:
        item_type = row.parent_item_type
        return FeedEntry(
            kind=row.kind,
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            important=bool(row.important),
            parent_item_id=row.parent_item_id,
            parent_item_type=getattr(item_type, "value", item_type),
            parent_item_title=row.parent_item_title,
            content=row.content,
            filename=row.filename,
            original_name=row.original_name,
            caption=row.caption,
            aspect_ratio=row.aspect_ratio,
            blurhash=row.blurhash,
            selected=None if row.selected is None else bool(row.selected),
        )

    @staticmethod
    def _page(
        entries: List[FeedEntry], limit: int, feed: str, sort: str, attribute: str
    ) -> FeedPage:
        next_cursor = None
        if len(entries) == limit:
            last = entries[-1]
            next_cursor = encode_cursor(
                FeedCursor(feed, sort, getattr(last, attribute), last.id)
            )
        return FeedPage(entries=entries, next_cursor=next_cursor)

    # -------------------------------------------------------------------------
    # Feeds
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("list_timeline")
    def list_timeline(
        self,
        canvas_id: str,
        sort: str = "createdAt",
        cursor: Optional[str] = None,
        limit: Any = DEFAULT_LIMIT,
        parent_item_id: Optional[str] = None,
    ) -> FeedPage:
        """
        Return one Timeline page.

        Args:
            canvas_id: Canvas to read
            sort: "createdAt" or "updatedAt"
            cursor: next_cursor of the previous page, or None for page one
            limit: Page size (capped at 100; invalid values fall back to 30)
            parent_item_id: Optional item scope

        Raises:
            NotFound: If the canvas does not exist
            ValidationError: If the sort field is unknown
            InvalidCursor: If the cursor is malformed or was issued for
                another feed or sort field
        """
        DataValidator.validate_choice(sort, list(TIMELINE_SORTS), "sort")
        self._require(Canvas, canvas_id)
        limit = DataValidator.clamp_limit(limit, DEFAULT_LIMIT, MAX_LIMIT)
        resume = decode_for(cursor, "timeline", sort) if cursor else None

        entries = union_all(
            self._note_rows(canvas_id, parent_item_id),
            self._photo_rows(canvas_id, parent_item_id),
        ).subquery("entries")
        sort_column = entries.c[TIMELINE_SORTS[sort]]

        stmt = select(entries)
        condition = self._after(sort_column, entries.c.id, resume)
        if condition is not None:
            stmt = stmt.where(condition)
        stmt = stmt.order_by(sort_column.desc(), entries.c.id.desc()).limit(limit)

        rows = [self._to_entry(row) for row in self.session.execute(stmt)]
        return self._page(rows, limit, "timeline", sort, TIMELINE_SORTS[sort])

    @handle_db_errors
    @log_database_operation("list_gallery")
    def list_gallery(
        self,
        canvas_id: str,
        cursor: Optional[str] = None,
        limit: Any = DEFAULT_LIMIT,
        important_only: bool = False,
        parent_item_id: Optional[str] = None,
    ) -> FeedPage:
        """
        Return one Gallery page of photos, newest first.

        Raises:
            NotFound: If the canvas does not exist
            InvalidCursor: If the cursor is malformed or foreign
        """
        self._require(Canvas, canvas_id)
        limit = DataValidator.clamp_limit(limit, DEFAULT_LIMIT, MAX_LIMIT)
        resume = decode_for(cursor, "gallery", "createdAt") if cursor else None

        photos = self._photo_rows(canvas_id, parent_item_id)
        if important_only:
            photos = photos.where(Photo.important.is_(True))
        condition = self._after(Photo.created_at, Photo.id, resume)
        if condition is not None:
            photos = photos.where(condition)
        photos = photos.order_by(Photo.created_at.desc(), Photo.id.desc()).limit(limit)

        rows = [self._to_entry(row) for row in self.session.execute(photos)]
        return self._page(rows, limit, "gallery", "createdAt", "created_at")

    @handle_db_errors
    @log_database_operation("timeline_day_counts")
    def timeline_day_counts(
        self,
        canvas_id: str,
        start: Any,
        end: Any,
        parent_item_id: Optional[str] = None,
    ) -> Dict[date, int]:
        """
        Count Timeline entries per day (by creation time) between two
        dates, inclusive. Days without entries are omitted.

        Raises:
            NotFound: If the canvas does not exist
            ValidationError: If a date is invalid or start is after end
        """
        self._require(Canvas, canvas_id)
        start_day = DataValidator.normalize_date(start)
        end_day = DataValidator.normalize_date(end)
        if start_day is None or end_day is None:
            raise ValidationError("Both start and end dates are required")
        if start_day > end_day:
            raise ValidationError("Start date is after end date")

        entries = union_all(
            self._note_rows(canvas_id, parent_item_id),
            self._photo_rows(canvas_id, parent_item_id),
        ).subquery("entries")
        day = func.date(entries.c.created_at, type_=Date).label("day")

        stmt = (
            select(day, func.count().label("total"))
            .where(day.between(start_day, end_day))
            .group_by(day)
            .order_by(day)
        )
        return {
            DataValidator.normalize_date(row.day): int(row.total)
            for row in self.session.execute(stmt)
        }
