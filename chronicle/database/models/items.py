"""
Item Models
------------

Canvas items and the undirected links between them.

Models:
    - CanvasItem: A typed node on a canvas (person, place, thing, event, session)
    - CanvasItemLink: Undirected edge between two items of the same canvas

Links are stored as a normalized pair (smaller id first). Together with the
primary key on the pair and the CHECK constraint, this makes (A, B) and
(B, A) the same row and rules out self-links at the schema level.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional, Tuple

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .associations import canvas_item_tags
from .base import Base, ID_LENGTH, TimestampMixin, new_id, utcnow
from .enums import ItemType

if TYPE_CHECKING:
    from .canvas import Canvas
    from .content import Note, Photo
    from .entities import Tag


class CanvasItem(TimestampMixin, Base):
    """
    A node on a canvas.

    Attributes:
        id: Opaque identifier
        canvas_id: Owning canvas
        type: ItemType of the node
        title: Display title (non-empty)
        summary: Optional short description
        canvas_x, canvas_y: Position on the board
        session_date: Date of play, for session items
        parent_item_id: Optional grouping parent (nulled when the parent goes)
        important: Highlight flag

    Relationships:
        canvas: Owning Canvas
        parent: Grouping parent item
        notes: Notes attached to this item (cascade delete)
        photos: Photos attached to this item (cascade delete)
        tags: Many-to-many with Tag
    """

    __tablename__ = "canvas_items"
    __table_args__ = (CheckConstraint("title != ''", name="ck_item_title_not_empty"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    canvas_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[ItemType] = mapped_column(
        SAEnum(
            ItemType,
            name="itemtype",
            create_constraint=True,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text)
    canvas_x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    canvas_y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    session_date: Mapped[Optional[date]] = mapped_column(Date)
    parent_item_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- Relationships ---
    canvas: Mapped["Canvas"] = relationship("Canvas", back_populates="items")
    parent: Mapped[Optional["CanvasItem"]] = relationship(
        "CanvasItem", remote_side="CanvasItem.id", foreign_keys=[parent_item_id]
    )
    notes: Mapped[List["Note"]] = relationship(
        "Note",
        back_populates="item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Note.created_at",
    )
    photos: Mapped[List["Photo"]] = relationship(
        "Photo",
        back_populates="item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Photo.created_at",
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag", secondary=canvas_item_tags, back_populates="items"
    )

    # --- Computed properties ---
    @property
    def selected_photo(self) -> Optional["Photo"]:
        """The representative photo of this item, if any."""
        for photo in self.photos or []:
            if photo.selected:
                return photo
        return None

    @property
    def is_session(self) -> bool:
        return self.type == ItemType.SESSION

    def __repr__(self) -> str:
        return f"<CanvasItem(id={self.id}, type={self.type}, title={self.title})>"

    def __str__(self) -> str:
        return self.title


class CanvasItemLink(Base):
    """
    Undirected edge between two items.

    The pair is always stored normalized: ``source_item_id`` is the smaller
    id. Use ``normalize()`` before building or looking up a link.

    Attributes:
        source_item_id: Smaller endpoint id
        target_item_id: Larger endpoint id
        snippet: Optional text describing the relationship
    """

    __tablename__ = "canvas_item_links"
    __table_args__ = (
        CheckConstraint(
            "source_item_id < target_item_id", name="ck_link_normalized_pair"
        ),
    )

    source_item_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    target_item_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    snippet: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @staticmethod
    def normalize(item_a: str, item_b: str) -> Tuple[str, str]:
        """Return the pair ordered as stored (smaller id first)."""
        return (item_a, item_b) if item_a < item_b else (item_b, item_a)

    def other_end(self, item_id: str) -> str:
        """Return the endpoint opposite to ``item_id``."""
        return self.target_item_id if item_id == self.source_item_id else self.source_item_id

    def __repr__(self) -> str:
        return f"<CanvasItemLink({self.source_item_id} <-> {self.target_item_id})>"
