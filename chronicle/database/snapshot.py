#!/usr/bin/env python3
"""
snapshot.py
--------------------
In-memory, id-addressed copy of one canvas's entity graph.

A CanvasSnapshot is made of plain frozen dataclass records, one list per
table, each in a deterministic (created_at, id) order. It is the common
currency of export and import: the SnapshotBuilder reads it from the
store, the archive codec serializes it, the remapper rewrites it and the
import manager writes it back.

Referential completeness:
    Every required foreign key (item -> canvas, note -> item, photo ->
    item, link endpoints, tag -> canvas, assignment endpoints) must resolve
    to a record inside the same snapshot. ``missing_references()`` lists
    the violations; the builder refuses to hand out an incomplete snapshot.
    Soft references (item.parent_item_id, mention tokens in notes) may
    point outside and are left for the remapper to resolve.

Usage:
    builder = SnapshotBuilder(logger)
    with db.session_scope() as session:
        snapshot = builder.build(session, canvas_id)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from chronicle.core.exceptions import ExportError, NotFound
from chronicle.core.logging_manager import ChronicleLogger, safe_logger

from .decorators import handle_db_errors, log_database_operation
from .models import (
    Canvas,
    CanvasItem,
    CanvasItemLink,
    Note,
    Photo,
    Tag,
    as_utc,
    canvas_item_tags,
)


# --- Records ---
@dataclass(frozen=True)
class CanvasRecord:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ItemRecord:
    id: str
    canvas_id: str
    type: str
    title: str
    summary: Optional[str]
    canvas_x: float
    canvas_y: float
    session_date: Optional[date]
    parent_item_id: Optional[str]
    important: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class LinkRecord:
    source_item_id: str
    target_item_id: str
    snippet: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class NoteRecord:
    id: str
    item_id: str
    content: str
    important: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TagRecord:
    id: str
    canvas_id: str
    name: str
    icon: Optional[str]
    color: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TagAssignmentRecord:
    item_id: str
    tag_id: str


@dataclass(frozen=True)
class PhotoRecord:
    id: str
    item_id: str
    filename: str
    original_name: str
    mime_type: str
    selected: bool
    important: bool
    caption: Optional[str]
    aspect_ratio: Optional[float]
    blurhash: Optional[str]
    created_at: datetime


@dataclass
class CanvasSnapshot:
    """
    One canvas and everything it owns, addressed by id.

    Attributes:
        canvas: The canvas record
        items, links, notes, tags, tag_assignments, photos: Table records
    """

    canvas: CanvasRecord
    items: List[ItemRecord] = field(default_factory=list)
    links: List[LinkRecord] = field(default_factory=list)
    notes: List[NoteRecord] = field(default_factory=list)
    tags: List[TagRecord] = field(default_factory=list)
    tag_assignments: List[TagAssignmentRecord] = field(default_factory=list)
    photos: List[PhotoRecord] = field(default_factory=list)

    def counts(self) -> dict:
        return {
            "items": len(self.items),
            "links": len(self.links),
            "notes": len(self.notes),
            "tags": len(self.tags),
            "tag_assignments": len(self.tag_assignments),
            "photos": len(self.photos),
        }

    def attachment_filenames(self) -> List[str]:
        return [photo.filename for photo in self.photos]

    def missing_references(self) -> List[str]:
        """
        List every required foreign key that does not resolve inside the
        snapshot, as human-readable strings. Empty when complete.
        """
        item_ids = {item.id for item in self.items}
        tag_ids = {tag.id for tag in self.tags}
        canvas_id = self.canvas.id
        problems: List[str] = []

        for item in self.items:
            if item.canvas_id != canvas_id:
                problems.append(f"item {item.id} -> canvas {item.canvas_id}")
        for tag in self.tags:
            if tag.canvas_id != canvas_id:
                problems.append(f"tag {tag.id} -> canvas {tag.canvas_id}")
        for note in self.notes:
            if note.item_id not in item_ids:
                problems.append(f"note {note.id} -> item {note.item_id}")
        for photo in self.photos:
            if photo.item_id not in item_ids:
                problems.append(f"photo {photo.id} -> item {photo.item_id}")
        for link in self.links:
            for endpoint in (link.source_item_id, link.target_item_id):
                if endpoint not in item_ids:
                    problems.append(
                        f"link {link.source_item_id}<->{link.target_item_id} -> item {endpoint}"
                    )
        for assignment in self.tag_assignments:
            if assignment.item_id not in item_ids:
                problems.append(f"tag assignment -> item {assignment.item_id}")
            if assignment.tag_id not in tag_ids:
                problems.append(f"tag assignment -> tag {assignment.tag_id}")
        return problems


def _created_order(record) -> Tuple:
    return (record.created_at, record.id)


class SnapshotBuilder:
    """
    Reads one canvas's full entity graph into a CanvasSnapshot.

    All reads go through the caller's session, so the snapshot reflects a
    single transaction.
    """

    def __init__(self, logger: Optional[ChronicleLogger] = None) -> None:
        self.logger = logger

    @handle_db_errors
    @log_database_operation("build_snapshot")
    def build(self, session: Session, canvas_id: str) -> CanvasSnapshot:
        """
        Build the snapshot of a canvas.

        Raises:
            NotFound: If the canvas does not exist
            ExportError: If the graph read from the store is not
                referentially complete
        """
        canvas = session.get(Canvas, canvas_id)
        if canvas is None:
            raise NotFound(f"Canvas not found: {canvas_id}")

        item_rows = session.scalars(
            select(CanvasItem).where(CanvasItem.canvas_id == canvas_id)
        ).all()
        item_ids = [row.id for row in item_rows]

        snapshot = CanvasSnapshot(
            canvas=CanvasRecord(
                id=canvas.id,
                name=canvas.name,
                created_at=as_utc(canvas.created_at),
                updated_at=as_utc(canvas.updated_at),
            )
        )
        snapshot.items = sorted(
            (self._item_record(row) for row in item_rows), key=_created_order
        )
        snapshot.tags = sorted(
            (
                TagRecord(
                    id=row.id,
                    canvas_id=row.canvas_id,
                    name=row.name,
                    icon=row.icon,
                    color=row.color,
                    created_at=as_utc(row.created_at),
                    updated_at=as_utc(row.updated_at),
                )
                for row in session.scalars(select(Tag).where(Tag.canvas_id == canvas_id))
            ),
            key=_created_order,
        )

        if item_ids:
            snapshot.notes = sorted(
                (
                    NoteRecord(
                        id=row.id,
                        item_id=row.item_id,
                        content=row.content,
                        important=row.important,
                        created_at=as_utc(row.created_at),
                        updated_at=as_utc(row.updated_at),
                    )
                    for row in session.scalars(
                        select(Note).where(Note.item_id.in_(item_ids))
                    )
                ),
                key=_created_order,
            )
            snapshot.photos = sorted(
                (
                    PhotoRecord(
                        id=row.id,
                        item_id=row.item_id,
                        filename=row.filename,
                        original_name=row.original_name,
                        mime_type=row.mime_type,
                        selected=row.selected,
                        important=row.important,
                        caption=row.caption,
                        aspect_ratio=row.aspect_ratio,
                        blurhash=row.blurhash,
                        created_at=as_utc(row.created_at),
                    )
                    for row in session.scalars(
                        select(Photo).where(Photo.item_id.in_(item_ids))
                    )
                ),
                key=_created_order,
            )
            snapshot.links = sorted(
                (
                    LinkRecord(
                        source_item_id=row.source_item_id,
                        target_item_id=row.target_item_id,
                        snippet=row.snippet,
                        created_at=as_utc(row.created_at),
                    )
                    for row in session.scalars(
                        select(CanvasItemLink).where(
                            or_(
                                CanvasItemLink.source_item_id.in_(item_ids),
                                CanvasItemLink.target_item_id.in_(item_ids),
                            )
                        )
                    )
                ),
                key=lambda r: (r.created_at, r.source_item_id, r.target_item_id),
            )
            snapshot.tag_assignments = sorted(
                (
                    TagAssignmentRecord(item_id=row.item_id, tag_id=row.tag_id)
                    for row in session.execute(
                        select(canvas_item_tags.c.item_id, canvas_item_tags.c.tag_id)
                        .where(canvas_item_tags.c.item_id.in_(item_ids))
                    )
                ),
                key=lambda r: (r.item_id, r.tag_id),
            )

        problems = snapshot.missing_references()
        if problems:
            safe_logger(self.logger).log_warning(
                "Snapshot is not referentially complete",
                {"canvas_id": canvas_id, "problems": problems[:20]},
            )
            raise ExportError(
                f"Canvas {canvas_id} has {len(problems)} unresolved reference(s): "
                f"{problems[0]}"
            )

        safe_logger(self.logger).log_debug(
            "Snapshot built", {"canvas_id": canvas_id, **snapshot.counts()}
        )
        return snapshot

    @staticmethod
    def _item_record(row: CanvasItem) -> ItemRecord:
        return ItemRecord(
            id=row.id,
            canvas_id=row.canvas_id,
            type=row.type.value,
            title=row.title,
            summary=row.summary,
            canvas_x=row.canvas_x,
            canvas_y=row.canvas_y,
            session_date=row.session_date,
            parent_item_id=row.parent_item_id,
            important=row.important,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
