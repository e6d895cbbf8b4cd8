"""
Content Models
---------------

Notes, note history and photos attached to canvas items.

Models:
    - Note: Rich-text note with ``@{itemId}`` mention tokens
    - NoteHistory: Append-only content snapshots of a note
    - Photo: Photo metadata; bytes live in the attachment store

A partial unique index keeps at most one selected photo per item.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, ID_LENGTH, TimestampMixin, new_id, utcnow

if TYPE_CHECKING:
    from .items import CanvasItem


class Note(TimestampMixin, Base):
    """
    A rich-text note attached to an item.

    Attributes:
        id: Opaque identifier
        item_id: Owning item
        content: Rich text, possibly containing ``@{itemId}`` mentions
        important: Highlight flag

    Relationships:
        item: Owning CanvasItem
        history: NoteHistory rows, oldest first
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    item_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    item: Mapped["CanvasItem"] = relationship("CanvasItem", back_populates="notes")
    history: Mapped[List["NoteHistory"]] = relationship(
        "NoteHistory",
        back_populates="note",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="NoteHistory.snapshot_at",
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, item_id={self.item_id})>"


class NoteHistory(Base):
    """Snapshot of a note's content at the moment it was written."""

    __tablename__ = "note_history"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    note_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    snapshot_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    note: Mapped["Note"] = relationship("Note", back_populates="history")

    def __repr__(self) -> str:
        return f"<NoteHistory(note_id={self.note_id}, snapshot_at={self.snapshot_at})>"


class Photo(Base):
    """
    Metadata of a photo attached to an item.

    Attributes:
        id: Opaque identifier
        item_id: Owning item
        filename: Key of the bytes in the attachment store
        original_name: Name of the uploaded file
        mime_type: Content type of the bytes
        selected: Representative photo of the item (at most one per item)
        important: Highlight flag, used by the gallery filter
        caption: Optional caption
        aspect_ratio: Width / height, when known
        blurhash: Optional placeholder hash
    """

    __tablename__ = "photos"
    __table_args__ = (
        Index(
            "uq_photos_selected_per_item",
            "item_id",
            unique=True,
            sqlite_where=text("selected = 1"),
            postgresql_where=text("selected"),
        ),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    item_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    caption: Mapped[Optional[str]] = mapped_column(Text)
    aspect_ratio: Mapped[Optional[float]] = mapped_column(Float)
    blurhash: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    item: Mapped["CanvasItem"] = relationship("CanvasItem", back_populates="photos")

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, filename={self.filename})>"
