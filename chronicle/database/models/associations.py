"""
Association Tables
-------------------

Many-to-many relationship tables for the Chronicle database.

- canvas_item_tags: tag assignments (item ↔ tag)

Pure association tables with no additional metadata. Both sides cascade
on delete so removing an item or a tag removes its assignments.
"""
# --- Third party imports ---
from sqlalchemy import Column, ForeignKey, String, Table

# --- Local imports ---
from .base import Base, ID_LENGTH

canvas_item_tags = Table(
    "canvas_item_tags",
    Base.metadata,
    Column(
        "item_id",
        String(ID_LENGTH),
        ForeignKey("canvas_items.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        String(ID_LENGTH),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)
