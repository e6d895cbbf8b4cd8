"""Tests for rewriting snapshots onto fresh ids."""
from dataclasses import replace
from itertools import count

import pytest

from chronicle.core.exceptions import RemapError
from chronicle.database.id_remapper import remap_snapshot
from chronicle.database.snapshot import LinkRecord, TagAssignmentRecord


def sequential_ids(prefix="new"):
    counter = count(1)
    return lambda: f"{prefix}-{next(counter)}"


class TestAllocation:
    """Tests for the id allocation pass."""

    def test_allocation_order(self, sample_snapshot):
        result = remap_snapshot(sample_snapshot, sequential_ids())
        mapping = result.mapping

        assert mapping.canvases == {"c1": "new-1"}
        assert mapping.items == {"i1": "new-2", "i2": "new-3", "i3": "new-4"}
        assert mapping.notes == {"n1": "new-5"}
        assert mapping.tags == {"t1": "new-6"}
        assert mapping.photos == {"p1": "new-7", "p2": "new-8"}

    def test_same_factory_sequence_gives_same_result(self, sample_snapshot):
        first = remap_snapshot(sample_snapshot, sequential_ids())
        second = remap_snapshot(sample_snapshot, sequential_ids())
        assert first.snapshot == second.snapshot

    def test_no_original_id_survives(self, sample_snapshot):
        result = remap_snapshot(sample_snapshot)
        new_ids = {result.snapshot.canvas.id}
        new_ids |= {r.id for r in result.snapshot.items}
        new_ids |= {r.id for r in result.snapshot.notes}
        assert new_ids.isdisjoint({"c1", "i1", "i2", "i3", "n1"})

    def test_duplicate_id_is_rejected(self, sample_snapshot):
        sample_snapshot.items.append(sample_snapshot.items[0])
        with pytest.raises(RemapError, match="Duplicate item id"):
            remap_snapshot(sample_snapshot)


class TestRewrite:
    """Tests for the reference rewrite pass."""

    def test_parent_references(self, sample_snapshot):
        snapshot = remap_snapshot(sample_snapshot, sequential_ids()).snapshot
        by_title = {item.title: item for item in snapshot.items}

        assert by_title["Castle Ravenloft"].parent_item_id == "new-2"
        # parent outside the snapshot
        assert by_title["Session 1"].parent_item_id is None
        assert all(item.canvas_id == "new-1" for item in snapshot.items)

    def test_mentions_rewritten_and_dangling_stripped(self, sample_snapshot):
        snapshot = remap_snapshot(sample_snapshot, sequential_ids()).snapshot
        assert snapshot.notes[0].content == "Seen at @{new-3} with ."
        assert snapshot.notes[0].item_id == "new-2"

    def test_links_are_normalized(self, sample_snapshot):
        ids = iter(["c", "z", "y", "x", "n", "t", "p", "q"])
        snapshot = remap_snapshot(sample_snapshot, lambda: next(ids)).snapshot

        pairs = [(l.source_item_id, l.target_item_id) for l in snapshot.links]
        # i1->z, i2->y, i3->x
        assert pairs == [("y", "z"), ("x", "y")]
        assert snapshot.links[0].snippet == "lives in"

    def test_duplicate_links_collapse(self, sample_snapshot):
        reversed_link = LinkRecord(
            source_item_id="i2", target_item_id="i1",
            snippet="again", created_at=sample_snapshot.links[0].created_at,
        )
        sample_snapshot.links.append(reversed_link)

        snapshot = remap_snapshot(sample_snapshot).snapshot
        assert len(snapshot.links) == 2

    def test_self_link_is_rejected(self, sample_snapshot):
        sample_snapshot.links.append(
            replace(sample_snapshot.links[0], target_item_id="i1")
        )
        with pytest.raises(RemapError, match="Self-link"):
            remap_snapshot(sample_snapshot)

    def test_unresolved_required_reference(self, sample_snapshot):
        sample_snapshot.notes[0] = replace(sample_snapshot.notes[0], item_id="ghost")
        with pytest.raises(RemapError, match="ghost"):
            remap_snapshot(sample_snapshot)

    def test_duplicate_tag_assignments_collapse(self, sample_snapshot):
        sample_snapshot.tag_assignments.append(TagAssignmentRecord("i1", "t1"))
        snapshot = remap_snapshot(sample_snapshot, sequential_ids()).snapshot
        assert [(a.item_id, a.tag_id) for a in snapshot.tag_assignments] == [
            ("new-2", "new-6")
        ]


class TestPhotos:
    """Tests for photo rewriting and attachment keys."""

    def test_attachment_keys_map_new_to_old(self, sample_snapshot):
        result = remap_snapshot(sample_snapshot, sequential_ids())

        assert [p.filename for p in result.snapshot.photos] == ["new-7.jpg", "new-8.png"]
        assert result.attachment_keys == {"new-7.jpg": "p1.jpg", "new-8.png": "p2.png"}

    def test_only_first_selected_photo_per_item(self, sample_snapshot):
        photos = remap_snapshot(sample_snapshot, sequential_ids()).snapshot.photos
        assert [p.selected for p in photos] == [True, False]

    def test_input_snapshot_is_not_modified(self, sample_snapshot):
        remap_snapshot(sample_snapshot)
        assert sample_snapshot.canvas.id == "c1"
        assert sample_snapshot.photos[1].selected is True
