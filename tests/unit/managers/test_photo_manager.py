"""Tests for PhotoManager: uploads, selection and deletes."""
import pytest

from chronicle.core.exceptions import AttachmentError, NotFound, ValidationError
from chronicle.database.managers import PhotoManager


class TestPhotoUpload:
    """Tests for uploading photos."""

    def test_upload_writes_bytes(self, photo_manager, make_item, store):
        item = make_item("Strahd")

        photo = photo_manager.upload(
            item.id, "portrait.jpg", "image/jpeg", b"jpeg", {"caption": "Portrait"}
        )

        assert photo.filename == f"{photo.id}.jpg"
        assert photo.caption == "Portrait"
        assert photo.selected is False
        assert store.read(photo.filename) == b"jpeg"
        assert photo_manager.read(photo.id) == b"jpeg"

    def test_upload_requires_mime_type(self, photo_manager, make_item):
        with pytest.raises(ValidationError):
            photo_manager.upload(make_item("Strahd").id, "a.jpg", "", b"x")

    def test_upload_on_missing_item(self, photo_manager):
        with pytest.raises(NotFound):
            photo_manager.upload("nope", "a.jpg", "image/jpeg", b"x")

    def test_upload_without_store(self, db_session, make_item):
        manager = PhotoManager(db_session)
        with pytest.raises(AttachmentError):
            manager.upload(make_item("Strahd").id, "a.jpg", "image/jpeg", b"x")


class TestPhotoSelection:
    """Tests for the one-selected-photo-per-item rule."""

    def test_select_unselects_siblings(self, photo_manager, make_item, db_session):
        item = make_item("Strahd")
        first = photo_manager.upload(item.id, "a.jpg", "image/jpeg", b"a")
        second = photo_manager.upload(item.id, "b.jpg", "image/jpeg", b"b")

        photo_manager.select_photo(first.id)
        photo_manager.select_photo(second.id)
        db_session.expire_all()

        assert photo_manager.get(first.id).selected is False
        assert photo_manager.get(second.id).selected is True
        assert item.selected_photo.id == second.id

    def test_update_rejects_selected(self, photo_manager, make_item):
        photo = photo_manager.upload(make_item("Strahd").id, "a.jpg", "image/jpeg", b"a")
        with pytest.raises(ValidationError, match="select_photo"):
            photo_manager.update(photo.id, {"selected": True})

    def test_update_metadata(self, photo_manager, make_item):
        photo = photo_manager.upload(make_item("Strahd").id, "a.jpg", "image/jpeg", b"a")
        updated = photo_manager.update(photo.id, {"aspect_ratio": "1.5", "important": True})
        assert updated.aspect_ratio == 1.5
        assert updated.important is True


class TestPhotoDelete:
    def test_delete_returns_filename_and_keeps_bytes(self, photo_manager, make_item, store):
        photo = photo_manager.upload(make_item("Strahd").id, "a.jpg", "image/jpeg", b"a")

        filename = photo_manager.delete(photo.id)

        assert filename == photo.filename
        assert store.exists(filename)
        with pytest.raises(NotFound):
            photo_manager.get(photo.id)
