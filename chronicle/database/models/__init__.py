"""
Database Models Package
------------------------

SQLAlchemy ORM models for the Chronicle database.

This package provides a modular organization of database models:
- base: Base class, timestamp mixin, id factory
- associations: Many-to-many relationship tables
- enums: Enumeration types
- canvas: Canvas, CanvasUser, Share
- items: CanvasItem, CanvasItemLink
- content: Note, NoteHistory, Photo
- entities: Tag

Usage:
    from chronicle.database.models import Canvas, CanvasItem, Note
"""
# Base classes
from .base import Base, TimestampMixin, as_utc, new_id, utcnow

# Enumerations
from .enums import EntryKind, ItemType

# Association tables
from .associations import canvas_item_tags

# Ownership roots
from .canvas import Canvas, CanvasUser, Share

# Items
from .items import CanvasItem, CanvasItemLink

# Content
from .content import Note, NoteHistory, Photo

# Entities
from .entities import Tag

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "new_id",
    "utcnow",
    "as_utc",
    # Enums
    "EntryKind",
    "ItemType",
    # Association tables
    "canvas_item_tags",
    # Canvas
    "Canvas",
    "CanvasUser",
    "Share",
    # Items
    "CanvasItem",
    "CanvasItemLink",
    # Content
    "Note",
    "NoteHistory",
    "Photo",
    # Entities
    "Tag",
]
