"""initial schema

Revision ID: 3c1f7a9e2b40
Revises:
Create Date: 2026-03-01 12:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f7a9e2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ITEM_TYPES = ("person", "place", "thing", "event", "session")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _timestamp_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])
    op.create_index(f"ix_{table}_updated_at", table, ["updated_at"])


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "canvases",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("name != ''", name="ck_canvas_name_not_empty"),
        sa.PrimaryKeyConstraint("id"),
    )
    _timestamp_indexes("canvases")

    op.create_table(
        "canvas_users",
        sa.Column("canvas_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["canvas_id"], ["canvases.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("canvas_id", "user_id"),
    )
    op.create_index("ix_canvas_users_user_id", "canvas_users", ["user_id"])

    op.create_table(
        "canvas_items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("canvas_id", sa.String(36), nullable=False),
        sa.Column(
            "type",
            sa.Enum(*ITEM_TYPES, name="itemtype", create_constraint=True),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("canvas_x", sa.Float(), nullable=False),
        sa.Column("canvas_y", sa.Float(), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=True),
        sa.Column("parent_item_id", sa.String(36), nullable=True),
        sa.Column("important", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("title != ''", name="ck_item_title_not_empty"),
        sa.ForeignKeyConstraint(["canvas_id"], ["canvases.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["parent_item_id"], ["canvas_items.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_canvas_items_canvas_id", "canvas_items", ["canvas_id"])
    op.create_index("ix_canvas_items_type", "canvas_items", ["type"])
    op.create_index("ix_canvas_items_parent_item_id", "canvas_items", ["parent_item_id"])
    _timestamp_indexes("canvas_items")

    op.create_table(
        "canvas_item_links",
        sa.Column("source_item_id", sa.String(36), nullable=False),
        sa.Column("target_item_id", sa.String(36), nullable=False),
        sa.Column("snippet", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "source_item_id < target_item_id", name="ck_link_normalized_pair"
        ),
        sa.ForeignKeyConstraint(
            ["source_item_id"], ["canvas_items.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["target_item_id"], ["canvas_items.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("source_item_id", "target_item_id"),
    )
    op.create_index(
        "ix_canvas_item_links_target_item_id", "canvas_item_links", ["target_item_id"]
    )

    op.create_table(
        "notes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("important", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["canvas_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notes_item_id", "notes", ["item_id"])
    _timestamp_indexes("notes")

    op.create_table(
        "note_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("note_id", sa.String(36), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("snapshot_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_note_history_note_id", "note_history", ["note_id"])

    op.create_table(
        "tags",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("canvas_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["canvas_id"], ["canvases.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tags_canvas_id", "tags", ["canvas_id"])
    _timestamp_indexes("tags")

    op.create_table(
        "canvas_item_tags",
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("tag_id", sa.String(36), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["canvas_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("item_id", "tag_id"),
    )
    op.create_index("ix_canvas_item_tags_tag_id", "canvas_item_tags", ["tag_id"])

    op.create_table(
        "photos",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("selected", sa.Boolean(), nullable=False),
        sa.Column("important", sa.Boolean(), nullable=False),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("aspect_ratio", sa.Float(), nullable=True),
        sa.Column("blurhash", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["canvas_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("filename"),
    )
    op.create_index("ix_photos_item_id", "photos", ["item_id"])
    op.create_index("ix_photos_created_at", "photos", ["created_at"])
    # at most one selected photo per item
    op.create_index(
        "uq_photos_selected_per_item",
        "photos",
        ["item_id"],
        unique=True,
        sqlite_where=sa.text("selected = 1"),
        postgresql_where=sa.text("selected"),
    )

    op.create_table(
        "shares",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("canvas_id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=True),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["canvas_id"], ["canvases.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_id"], ["canvas_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("canvas_id", "item_id", name="uq_share_canvas_item"),
        sa.UniqueConstraint("token"),
    )
    op.create_index("ix_shares_canvas_id", "shares", ["canvas_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("shares")
    op.drop_table("photos")
    op.drop_table("canvas_item_tags")
    op.drop_table("tags")
    op.drop_table("note_history")
    op.drop_table("notes")
    op.drop_table("canvas_item_links")
    op.drop_table("canvas_items")
    op.drop_table("canvas_users")
    op.drop_table("canvases")
    sa.Enum(name="itemtype").drop(op.get_bind(), checkfirst=True)
