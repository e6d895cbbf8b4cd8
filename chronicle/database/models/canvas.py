"""
Canvas Models
--------------

Ownership roots of the Chronicle database.

Models:
    - Canvas: A board holding items, tags and their content
    - CanvasUser: Membership of a user in a canvas
    - Share: Capability token granting read/copy access to a canvas or item

Every other entity is transitively owned by exactly one Canvas; deleting a
canvas cascades through its items, tags and shares.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, ID_LENGTH, TimestampMixin, new_id, utcnow

if TYPE_CHECKING:
    from .entities import Tag
    from .items import CanvasItem


class Canvas(TimestampMixin, Base):
    """
    A canvas: the root of ownership for items, tags and shares.

    Attributes:
        id: Opaque identifier
        name: Display name (non-empty)

    Relationships:
        members: CanvasUser rows binding users to this canvas
        items: Items placed on this canvas
        tags: Tags defined for this canvas
        shares: Share tokens pointing at this canvas
    """

    __tablename__ = "canvases"
    __table_args__ = (CheckConstraint("name != ''", name="ck_canvas_name_not_empty"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # --- Relationships ---
    members: Mapped[List["CanvasUser"]] = relationship(
        "CanvasUser", back_populates="canvas", cascade="all, delete-orphan"
    )
    items: Mapped[List["CanvasItem"]] = relationship(
        "CanvasItem",
        back_populates="canvas",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        back_populates="canvas",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    shares: Mapped[List["Share"]] = relationship(
        "Share",
        back_populates="canvas",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def item_count(self) -> int:
        """Number of items on this canvas."""
        return len(self.items) if self.items else 0

    def __repr__(self) -> str:
        return f"<Canvas(id={self.id}, name={self.name})>"

    def __str__(self) -> str:
        return self.name


class CanvasUser(Base):
    """
    Membership row binding a user to a canvas.

    Users live outside this database; ``user_id`` is an opaque string
    handed over by the authentication layer.
    """

    __tablename__ = "canvas_users"

    canvas_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvases.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    canvas: Mapped["Canvas"] = relationship("Canvas", back_populates="members")

    def __repr__(self) -> str:
        return f"<CanvasUser(canvas_id={self.canvas_id}, user_id={self.user_id})>"


class Share(Base):
    """
    Read/copy capability for a canvas or a single item subtree.

    Anyone holding ``token`` may view the referenced content and clone the
    canvas through copy. A null ``item_id`` shares the whole canvas.
    At most one share exists per (canvas, item) pair.
    """

    __tablename__ = "shares"
    __table_args__ = (
        UniqueConstraint("canvas_id", "item_id", name="uq_share_canvas_item"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    canvas_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id: Mapped[Optional[str]] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="CASCADE"),
        nullable=True,
    )
    token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=new_id
    )
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    canvas: Mapped["Canvas"] = relationship("Canvas", back_populates="shares")

    @property
    def is_canvas_share(self) -> bool:
        """True when the share covers the whole canvas."""
        return self.item_id is None

    def __repr__(self) -> str:
        return f"<Share(canvas_id={self.canvas_id}, item_id={self.item_id})>"
