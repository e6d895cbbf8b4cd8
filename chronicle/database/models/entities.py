"""
Entity Models
--------------

Canvas-scoped labels.

Models:
    - Tag: Named, iconed, colored label assignable to many items
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .associations import canvas_item_tags
from .base import Base, ID_LENGTH, TimestampMixin, new_id

if TYPE_CHECKING:
    from .canvas import Canvas
    from .items import CanvasItem


class Tag(TimestampMixin, Base):
    """
    A label defined on a canvas.

    Attributes:
        id: Opaque identifier
        canvas_id: Owning canvas
        name: Tag name
        icon: Optional icon key
        color: Optional color string

    Relationships:
        items: Many-to-many with CanvasItem
    """

    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    canvas_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(50))
    color: Mapped[Optional[str]] = mapped_column(String(20))

    canvas: Mapped["Canvas"] = relationship("Canvas", back_populates="tags")
    items: Mapped[List["CanvasItem"]] = relationship(
        "CanvasItem", secondary=canvas_item_tags, back_populates="tags"
    )

    @property
    def usage_count(self) -> int:
        """Number of items carrying this tag."""
        return len(self.items) if self.items else 0

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name})>"

    def __str__(self) -> str:
        return self.name
