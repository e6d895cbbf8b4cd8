"""Tests for the ChronicleDB facade: schema setup, sessions, archives and feeds."""
import pytest

from chronicle.core.exceptions import DatabaseError, LastCanvasError, NotFound
from chronicle.database.manager import ChronicleDB

HEAD_REVISION = "3c1f7a9e2b40"


@pytest.fixture
def populated_db(chronicle_db):
    """chronicle_db with one canvas for u1: two items, a mention note and a photo."""
    with chronicle_db.session_scope():
        canvas = chronicle_db.canvases.create({"name": "Barovia"}, "u1")
        strahd = chronicle_db.items.create(canvas.id, {"type": "person", "title": "Strahd"})
        ireena = chronicle_db.items.create(canvas.id, {"type": "person", "title": "Ireena"})
        chronicle_db.notes.create(strahd.id, {"content": f"Obsessed with @{{{ireena.id}}}"})
        photo = chronicle_db.photos.upload(strahd.id, "portrait.jpg", "image/jpeg", b"jpeg")
    return {"canvas": canvas, "strahd": strahd, "ireena": ireena, "photo": photo}


class TestSchemaSetup:
    """Tests for creating and migrating the schema."""

    def test_fresh_database_is_stamped(self, chronicle_db):
        status = chronicle_db.get_migration_status()
        assert status == {"current_revision": HEAD_REVISION, "status": "up_to_date"}

    def test_reopening_runs_upgrade(self, chronicle_db, tmp_path):
        again = ChronicleDB(
            db_path=tmp_path / "chronicle.db", uploads_dir=tmp_path / "uploads"
        )
        try:
            assert again.get_migration_status()["current_revision"] == HEAD_REVISION
        finally:
            again.close()

    def test_in_memory_database(self, tmp_path):
        db = ChronicleDB(db_url="sqlite://", uploads_dir=tmp_path / "uploads")
        try:
            with db.session_scope():
                canvas = db.canvases.create({"name": "Scratch"}, "u1")
            with db.session_scope():
                assert db.canvases.get(canvas.id).name == "Scratch"
        finally:
            db.close()

    def test_path_or_url_required(self):
        with pytest.raises(DatabaseError):
            ChronicleDB()

    def test_log_files_are_written(self, chronicle_db, tmp_path):
        assert (tmp_path / "logs" / "database.log").exists()


class TestSessionScope:
    """Tests for session-bound managers."""

    def test_managers_unavailable_outside_scope(self, chronicle_db):
        with pytest.raises(DatabaseError, match="session_scope"):
            chronicle_db.canvases

    def test_rollback_on_error(self, chronicle_db):
        with pytest.raises(RuntimeError):
            with chronicle_db.session_scope():
                chronicle_db.canvases.create({"name": "Doomed"}, "u1")
                raise RuntimeError("boom")

        with chronicle_db.session_scope():
            assert chronicle_db.canvases.list_for_user("u1") == []


class TestArchives:
    """Tests for export, import and copy through the facade."""

    def test_export_import_round_trip(self, populated_db, chronicle_db, tmp_path):
        path = chronicle_db.export_to_file(populated_db["canvas"].id, tmp_path / "c.zip")

        result = chronicle_db.import_from_file(path, "u2")

        assert result.id != populated_db["canvas"].id
        with chronicle_db.session_scope():
            items = {i.title: i for i in chronicle_db.items.get_all(result.id)}
            assert set(items) == {"Strahd", "Ireena"}
            assert items["Strahd"].id != populated_db["strahd"].id
            note = chronicle_db.notes.get_for_item(items["Strahd"].id)[0]
            assert note.content == f"Obsessed with @{{{items['Ireena'].id}}}"
            assert chronicle_db.links.exists(items["Strahd"].id, items["Ireena"].id)
            photo = chronicle_db.photos.get_for_item(items["Strahd"].id)[0]
        assert chronicle_db.store.read(photo.filename) == b"jpeg"

    def test_copy_shared_canvas(self, populated_db, chronicle_db):
        with chronicle_db.session_scope():
            token = chronicle_db.shares.create(populated_db["canvas"].id, None, "u1").token

        copy = chronicle_db.copy_shared_canvas(token, "u2")

        assert copy.name == "Barovia"
        with chronicle_db.session_scope():
            assert [c.id for c in chronicle_db.canvases.list_for_user("u2")] == [copy.id]
            assert len(chronicle_db.items.get_all(copy.id)) == 2

    def test_copy_from_item_share_copies_whole_canvas(self, populated_db, chronicle_db):
        with chronicle_db.session_scope():
            share = chronicle_db.shares.create(
                populated_db["canvas"].id, populated_db["ireena"].id, "u1"
            )
            token = share.token

        copy = chronicle_db.copy_shared_canvas(token, "u2")
        with chronicle_db.session_scope():
            assert len(chronicle_db.items.get_all(copy.id)) == 2

    def test_copy_with_unknown_token(self, chronicle_db):
        with pytest.raises(NotFound):
            chronicle_db.copy_shared_canvas("bogus", "u2")


class TestDeletes:
    """Tests for deletes that also drop attachment bytes."""

    def test_delete_item_drops_bytes(self, populated_db, chronicle_db):
        filename = populated_db["photo"].filename

        chronicle_db.delete_item(populated_db["strahd"].id)

        assert not chronicle_db.store.exists(filename)
        with chronicle_db.session_scope():
            assert [i.title for i in chronicle_db.items.get_all(populated_db["canvas"].id)] == [
                "Ireena"
            ]

    def test_delete_photo_drops_bytes(self, populated_db, chronicle_db):
        filename = populated_db["photo"].filename

        chronicle_db.delete_photo(populated_db["photo"].id)

        assert not chronicle_db.store.exists(filename)

    def test_failed_delete_keeps_bytes(self, populated_db, chronicle_db):
        with pytest.raises(NotFound):
            chronicle_db.delete_item("nope")
        assert chronicle_db.store.exists(populated_db["photo"].filename)

    def test_delete_canvas_drops_bytes(self, populated_db, chronicle_db):
        filename = populated_db["photo"].filename
        with chronicle_db.session_scope():
            keep = chronicle_db.canvases.create({"name": "Spare"}, "u1")
            keep_id = keep.id

        chronicle_db.delete_canvas(populated_db["canvas"].id, "u1")

        assert not chronicle_db.store.exists(filename)
        with chronicle_db.session_scope():
            assert [c.id for c in chronicle_db.canvases.list_for_user("u1")] == [keep_id]

    def test_refused_canvas_delete_keeps_bytes(self, populated_db, chronicle_db):
        with pytest.raises(LastCanvasError):
            chronicle_db.delete_canvas(populated_db["canvas"].id, "u1")
        assert chronicle_db.store.exists(populated_db["photo"].filename)


class TestFeeds:
    def test_timeline_and_gallery(self, populated_db, chronicle_db):
        canvas_id = populated_db["canvas"].id

        timeline = chronicle_db.list_timeline(canvas_id, limit=10)
        gallery = chronicle_db.list_gallery(canvas_id)

        assert sorted(e.kind for e in timeline.entries) == ["note", "photo"]
        assert timeline.next_cursor is None
        assert [e.id for e in gallery.entries] == [populated_db["photo"].id]

    def test_day_counts(self, populated_db, chronicle_db):
        created = populated_db["photo"].created_at.date()
        counts = chronicle_db.timeline_day_counts(
            populated_db["canvas"].id, created, created
        )
        assert counts == {created: 2}
