"""Tests for reading a canvas's entity graph into a snapshot."""
from datetime import timezone

import pytest

from chronicle.core.exceptions import ExportError, NotFound
from chronicle.database.models import CanvasItemLink
from chronicle.database.snapshot import CanvasSnapshot, SnapshotBuilder


@pytest.fixture
def populated(
    db_session, canvas, make_item, link_manager, note_manager, tag_manager, photo_manager
):
    """A small canvas: two items, a link, a note, a tag and a photo."""
    strahd = make_item("Strahd", important=True)
    castle = make_item("Castle Ravenloft", item_type="place", parent_item_id=strahd.id)
    link_manager.create(strahd.id, castle.id, snippet="rules from")
    note = note_manager.create(strahd.id, {"content": "Lord of Barovia"})
    tag = tag_manager.create(canvas.id, {"name": "villain"})
    tag_manager.assign(strahd.id, tag.id)
    photo = photo_manager.upload(strahd.id, "portrait.jpg", "image/jpeg", b"jpeg")
    return {"strahd": strahd, "castle": castle, "note": note, "tag": tag, "photo": photo}


class TestSnapshotBuilder:
    """Tests for SnapshotBuilder.build()."""

    def test_reads_every_table(self, db_session, canvas, populated):
        snapshot = SnapshotBuilder().build(db_session, canvas.id)

        assert snapshot.canvas.name == "Barovia"
        assert snapshot.counts() == {
            "items": 2,
            "links": 1,
            "notes": 1,
            "tags": 1,
            "tag_assignments": 1,
            "photos": 1,
        }
        assert snapshot.missing_references() == []

    def test_item_records(self, db_session, canvas, populated):
        snapshot = SnapshotBuilder().build(db_session, canvas.id)
        by_title = {item.title: item for item in snapshot.items}

        assert by_title["Strahd"].type == "person"
        assert by_title["Strahd"].important is True
        assert by_title["Castle Ravenloft"].parent_item_id == populated["strahd"].id

    def test_timestamps_are_utc(self, db_session, canvas, populated):
        snapshot = SnapshotBuilder().build(db_session, canvas.id)

        assert snapshot.canvas.created_at.tzinfo == timezone.utc
        assert all(item.created_at.tzinfo == timezone.utc for item in snapshot.items)
        assert snapshot.photos[0].created_at.tzinfo == timezone.utc

    def test_other_canvases_are_left_out(
        self, db_session, canvas, canvas_manager, item_manager, populated
    ):
        other = canvas_manager.create({"name": "Elsewhere"}, "u1")
        item_manager.create(other.id, {"type": "thing", "title": "Sunsword"})

        snapshot = SnapshotBuilder().build(db_session, canvas.id)
        assert "Sunsword" not in {item.title for item in snapshot.items}

    def test_missing_canvas(self, db_session):
        with pytest.raises(NotFound):
            SnapshotBuilder().build(db_session, "nope")

    def test_cross_canvas_link_is_an_export_error(
        self, db_session, canvas, canvas_manager, make_item, populated, mock_logger
    ):
        other = canvas_manager.create({"name": "Elsewhere"}, "u1")
        stranger = make_item("Stranger", canvas_id=other.id)
        source, target = CanvasItemLink.normalize(populated["strahd"].id, stranger.id)
        db_session.add(CanvasItemLink(source_item_id=source, target_item_id=target))
        db_session.flush()

        with pytest.raises(ExportError, match="unresolved reference"):
            SnapshotBuilder(mock_logger).build(db_session, canvas.id)
        mock_logger.log_warning.assert_called_once()


class TestMissingReferences:
    def test_sample_snapshot_is_complete(self, sample_snapshot):
        assert sample_snapshot.missing_references() == []

    def test_reports_dangling_keys(self, sample_snapshot):
        snapshot = CanvasSnapshot(
            canvas=sample_snapshot.canvas,
            notes=sample_snapshot.notes,
            tag_assignments=sample_snapshot.tag_assignments,
        )
        problems = snapshot.missing_references()

        assert "note n1 -> item i1" in problems
        assert "tag assignment -> tag t1" in problems
