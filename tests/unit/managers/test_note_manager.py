"""Tests for NoteManager: notes, append-only history and mention links."""
import pytest

from chronicle.core.exceptions import NotFound


class TestNoteCreate:
    """Tests for creating notes."""

    def test_create_writes_history(self, note_manager, make_item):
        item = make_item("Strahd")

        note = note_manager.create(item.id, {"content": "Lord of Barovia"})

        history = note_manager.get_history(note.id)
        assert [h.content for h in history] == ["Lord of Barovia"]
        assert note.important is False

    def test_create_empty_note(self, note_manager, make_item):
        note = note_manager.create(make_item("Strahd").id, {})
        assert note.content == ""

    def test_create_on_missing_item(self, note_manager):
        with pytest.raises(NotFound):
            note_manager.create("nope", {"content": "x"})

    def test_mentions_become_links(self, note_manager, link_manager, make_item):
        strahd, ireena = make_item("Strahd"), make_item("Ireena")

        note_manager.create(strahd.id, {"content": f"Obsessed with @{{{ireena.id}}}."})

        link = link_manager.get(strahd.id, ireena.id)
        assert link is not None
        assert "Obsessed with" in link.snippet


class TestNoteUpdate:
    """Tests for updating notes."""

    def test_content_change_appends_history(self, note_manager, make_item):
        note = note_manager.create(make_item("Strahd").id, {"content": "v1"})

        note_manager.update(note.id, {"content": "v2"})

        contents = sorted(h.content for h in note_manager.get_history(note.id))
        assert contents == ["v1", "v2"]
        assert note_manager.get(note.id).content == "v2"

    def test_same_content_no_history(self, note_manager, make_item):
        note = note_manager.create(make_item("Strahd").id, {"content": "v1"})

        note_manager.update(note.id, {"content": "v1"})
        note_manager.update(note.id, {"important": True})

        assert len(note_manager.get_history(note.id)) == 1
        assert note_manager.get(note.id).important is True

    def test_update_adds_mention_links(self, note_manager, link_manager, make_item):
        strahd, ireena = make_item("Strahd"), make_item("Ireena")
        note = note_manager.create(strahd.id, {"content": "Alone."})

        note_manager.update(note.id, {"content": f"With @{{{ireena.id}}}."})

        assert link_manager.exists(strahd.id, ireena.id)


class TestNoteQueries:
    def test_important_first(self, note_manager, make_item):
        item = make_item("Strahd")
        plain = note_manager.create(item.id, {"content": "plain"})
        pinned = note_manager.create(item.id, {"content": "pinned", "important": True})

        assert [n.id for n in note_manager.get_for_item(item.id)] == [pinned.id, plain.id]

    def test_delete_removes_history(self, note_manager, make_item, db_session):
        from chronicle.database.models import NoteHistory

        note = note_manager.create(make_item("Strahd").id, {"content": "v1"})
        note_manager.delete(note.id)

        db_session.expire_all()
        assert db_session.query(NoteHistory).count() == 0
        with pytest.raises(NotFound):
            note_manager.get(note.id)
