"""
conftest.py
-----------
Shared pytest fixtures for Chronicle tests.

Provides fixtures for:
- In-memory database setup and teardown
- Entity managers bound to a test session
- A temporary attachment store
- A file-backed ChronicleDB for facade, import and CLI tests
- A hand-built canvas snapshot with original ids
"""
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from chronicle.core.attachment_store import FileAttachmentStore
from chronicle.core.logging_manager import ChronicleLogger
from chronicle.database.manager import ChronicleDB, enable_sqlite_foreign_keys
from chronicle.database.models import Base
from chronicle.database.snapshot import (
    CanvasRecord,
    CanvasSnapshot,
    ItemRecord,
    LinkRecord,
    NoteRecord,
    PhotoRecord,
    TagAssignmentRecord,
    TagRecord,
)

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """UTC timestamp ``minutes`` after T0."""
    return T0 + timedelta(minutes=minutes)


# ----- Logging -----

@pytest.fixture
def mock_logger():
    """Logger double for asserting log calls."""
    return MagicMock(spec=ChronicleLogger)


# ----- Database -----

@pytest.fixture
def engine():
    """In-memory SQLite engine with foreign keys on and the full schema."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Session on the in-memory database; rolled back after the test."""
    session = Session(engine)
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def store(tmp_path):
    """Attachment store in a temporary directory."""
    return FileAttachmentStore(tmp_path / "uploads")


# ----- Managers -----

@pytest.fixture
def canvas_manager(db_session):
    from chronicle.database.managers import CanvasManager
    return CanvasManager(db_session)


@pytest.fixture
def item_manager(db_session):
    from chronicle.database.managers import ItemManager
    return ItemManager(db_session)


@pytest.fixture
def link_manager(db_session):
    from chronicle.database.managers import LinkManager
    return LinkManager(db_session)


@pytest.fixture
def note_manager(db_session):
    from chronicle.database.managers import NoteManager
    return NoteManager(db_session)


@pytest.fixture
def tag_manager(db_session):
    from chronicle.database.managers import TagManager
    return TagManager(db_session)


@pytest.fixture
def photo_manager(db_session, store):
    from chronicle.database.managers import PhotoManager
    return PhotoManager(db_session, store=store)


@pytest.fixture
def share_manager(db_session):
    from chronicle.database.managers import ShareManager
    return ShareManager(db_session)


@pytest.fixture
def feed_manager(db_session):
    from chronicle.database.feed_manager import FeedManager
    return FeedManager(db_session)


@pytest.fixture
def canvas(canvas_manager):
    """A canvas owned by user u1."""
    return canvas_manager.create({"name": "Barovia"}, "u1")


@pytest.fixture
def make_item(item_manager, canvas):
    """Factory creating items on the default canvas."""

    def _make(title, item_type="person", canvas_id=None, **extra):
        metadata = {"type": item_type, "title": title, **extra}
        return item_manager.create(canvas_id or canvas.id, metadata)

    return _make


# ----- File-backed facade -----

@pytest.fixture
def chronicle_db(tmp_path):
    """ChronicleDB on a fresh SQLite file, schema created and stamped."""
    db = ChronicleDB(
        db_path=tmp_path / "chronicle.db",
        log_dir=tmp_path / "logs",
        uploads_dir=tmp_path / "uploads",
    )
    yield db
    db.close()


# ----- Snapshots -----

@pytest.fixture
def sample_snapshot():
    """
    Snapshot with original ids:

    - items i1 (person), i2 (place, grouped under i1), i3 (thing, grouped
      under an item outside the canvas)
    - links i1-i2, i2-i3
    - note n1 on i1 mentioning i2 and an outside item zz
    - tag t1 assigned to i1
    - photos p1, p2 on i1, both flagged selected
    """
    canvas = CanvasRecord(id="c1", name="Barovia", created_at=T0, updated_at=T0)
    items = [
        ItemRecord(
            id="i1", canvas_id="c1", type="person", title="Strahd",
            summary="Lord of Barovia", canvas_x=10.0, canvas_y=20.0,
            session_date=None, parent_item_id=None, important=True,
            created_at=at(1), updated_at=at(1),
        ),
        ItemRecord(
            id="i2", canvas_id="c1", type="place", title="Castle Ravenloft",
            summary=None, canvas_x=0.0, canvas_y=0.0,
            session_date=None, parent_item_id="i1", important=False,
            created_at=at(2), updated_at=at(2),
        ),
        ItemRecord(
            id="i3", canvas_id="c1", type="session", title="Session 1",
            summary=None, canvas_x=5.5, canvas_y=-3.0,
            session_date=date(2024, 1, 6), parent_item_id="outside", important=False,
            created_at=at(3), updated_at=at(3),
        ),
    ]
    links = [
        LinkRecord(source_item_id="i1", target_item_id="i2", snippet="lives in", created_at=at(4)),
        LinkRecord(source_item_id="i2", target_item_id="i3", snippet=None, created_at=at(5)),
    ]
    notes = [
        NoteRecord(
            id="n1", item_id="i1", content="Seen at @{i2} with @{zz}.",
            important=False, created_at=at(6), updated_at=at(7),
        ),
    ]
    tags = [
        TagRecord(
            id="t1", canvas_id="c1", name="villain", icon="skull", color="#900",
            created_at=at(0), updated_at=at(0),
        ),
    ]
    assignments = [TagAssignmentRecord(item_id="i1", tag_id="t1")]
    photos = [
        PhotoRecord(
            id="p1", item_id="i1", filename="p1.jpg", original_name="strahd.jpg",
            mime_type="image/jpeg", selected=True, important=True, caption="Portrait",
            aspect_ratio=1.5, blurhash=None, created_at=at(8),
        ),
        PhotoRecord(
            id="p2", item_id="i1", filename="p2.png", original_name="map.png",
            mime_type="image/png", selected=True, important=False, caption=None,
            aspect_ratio=None, blurhash="LEHV6n", created_at=at(9),
        ),
    ]
    return CanvasSnapshot(
        canvas=canvas,
        items=items,
        links=links,
        notes=notes,
        tags=tags,
        tag_assignments=assignments,
        photos=photos,
    )


@pytest.fixture
def sample_attachments():
    """Photo bytes for sample_snapshot, keyed by filename."""
    return {"p1.jpg": b"\xff\xd8jpeg-bytes", "p2.png": b"\x89PNG-bytes"}
