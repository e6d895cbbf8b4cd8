#!/usr/bin/env python3
"""
id_remapper.py
--------------------
Rewrites a canvas snapshot onto fresh identifiers.

Two passes, so no record is ever rewritten against an id that has not
been allocated yet, whatever cycles the item and link graph contains:

1. Allocation: one fresh id per canvas, item, note, tag and photo, drawn
   from ``id_factory`` in a fixed order (canvas, items, notes, tags,
   photos; each in snapshot order). Mappings are kept per entity kind.
   Links and tag assignments have no identity and get no id.

2. Rewrite: every foreign key is replaced through its kind's mapping.
   Mention tokens in note content are rewritten; tokens pointing at items
   outside the snapshot are stripped. A parent_item_id outside the
   snapshot becomes None. Link pairs are re-normalized under the new ids
   and duplicate pairs collapse. Photo attachment keys become
   ``<new photo id><extension>``.

A required foreign key with no mapping entry is archive corruption and
raises RemapError. The result depends only on the snapshot and the
sequence of ids ``id_factory`` returns.

Usage:
    result = remap_snapshot(decoded.snapshot)
    result.snapshot          # rewritten records
    result.mapping.items     # old item id -> new item id
    result.attachment_keys   # new filename -> old filename
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from chronicle.core.attachment_store import attachment_key
from chronicle.core.exceptions import RemapError

from .mentions import rewrite_mentions
from .models.base import new_id
from .models.items import CanvasItemLink
from .snapshot import (
    CanvasSnapshot,
    ItemRecord,
    LinkRecord,
    NoteRecord,
    PhotoRecord,
    TagAssignmentRecord,
    TagRecord,
)

IdFactory = Callable[[], str]


@dataclass
class IdMapping:
    """Old id -> new id tables, one per entity kind."""

    canvases: Dict[str, str] = field(default_factory=dict)
    items: Dict[str, str] = field(default_factory=dict)
    notes: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    photos: Dict[str, str] = field(default_factory=dict)


@dataclass
class RemapResult:
    snapshot: CanvasSnapshot
    mapping: IdMapping
    attachment_keys: Dict[str, str]


def _allocate(
    kind: str, old_ids: Iterable[str], id_factory: IdFactory
) -> Dict[str, str]:
    table: Dict[str, str] = {}
    for old_id in old_ids:
        if old_id in table:
            raise RemapError(f"Duplicate {kind} id in archive: {old_id}")
        table[old_id] = id_factory()
    return table


def _lookup(table: Dict[str, str], old_id: str, what: str) -> str:
    try:
        return table[old_id]
    except KeyError:
        raise RemapError(f"Unresolved reference: {what} -> {old_id}")


def allocate_ids(snapshot: CanvasSnapshot, id_factory: IdFactory = new_id) -> IdMapping:
    """First pass: allocate every new id."""
    return IdMapping(
        canvases=_allocate("canvas", [snapshot.canvas.id], id_factory),
        items=_allocate("item", (r.id for r in snapshot.items), id_factory),
        notes=_allocate("note", (r.id for r in snapshot.notes), id_factory),
        tags=_allocate("tag", (r.id for r in snapshot.tags), id_factory),
        photos=_allocate("photo", (r.id for r in snapshot.photos), id_factory),
    )


def _rewrite_items(snapshot: CanvasSnapshot, mapping: IdMapping) -> List[ItemRecord]:
    items = []
    for item in snapshot.items:
        items.append(
            replace(
                item,
                id=mapping.items[item.id],
                canvas_id=_lookup(mapping.canvases, item.canvas_id, f"item {item.id} canvas"),
                parent_item_id=mapping.items.get(item.parent_item_id)
                if item.parent_item_id
                else None,
            )
        )
    return items


def _rewrite_links(snapshot: CanvasSnapshot, mapping: IdMapping) -> List[LinkRecord]:
    links: List[LinkRecord] = []
    seen: Set[Tuple[str, str]] = set()
    for link in snapshot.links:
        what = f"link {link.source_item_id}<->{link.target_item_id}"
        source = _lookup(mapping.items, link.source_item_id, what)
        target = _lookup(mapping.items, link.target_item_id, what)
        if source == target:
            raise RemapError(f"Self-link in archive: {what}")
        pair = CanvasItemLink.normalize(source, target)
        if pair in seen:
            continue
        seen.add(pair)
        links.append(replace(link, source_item_id=pair[0], target_item_id=pair[1]))
    return links


def _rewrite_notes(snapshot: CanvasSnapshot, mapping: IdMapping) -> List[NoteRecord]:
    return [
        replace(
            note,
            id=mapping.notes[note.id],
            item_id=_lookup(mapping.items, note.item_id, f"note {note.id} item"),
            content=rewrite_mentions(note.content, mapping.items.get),
        )
        for note in snapshot.notes
    ]


def _rewrite_tags(snapshot: CanvasSnapshot, mapping: IdMapping) -> List[TagRecord]:
    return [
        replace(
            tag,
            id=mapping.tags[tag.id],
            canvas_id=_lookup(mapping.canvases, tag.canvas_id, f"tag {tag.id} canvas"),
        )
        for tag in snapshot.tags
    ]


def _rewrite_assignments(
    snapshot: CanvasSnapshot, mapping: IdMapping
) -> List[TagAssignmentRecord]:
    assignments: List[TagAssignmentRecord] = []
    seen: Set[Tuple[str, str]] = set()
    for assignment in snapshot.tag_assignments:
        what = f"tag assignment {assignment.item_id}/{assignment.tag_id}"
        record = TagAssignmentRecord(
            item_id=_lookup(mapping.items, assignment.item_id, what),
            tag_id=_lookup(mapping.tags, assignment.tag_id, what),
        )
        key = (record.item_id, record.tag_id)
        if key not in seen:
            seen.add(key)
            assignments.append(record)
    return assignments


def _rewrite_photos(
    snapshot: CanvasSnapshot, mapping: IdMapping
) -> Tuple[List[PhotoRecord], Dict[str, str]]:
    photos: List[PhotoRecord] = []
    keys: Dict[str, str] = {}
    selected_items: Set[str] = set()
    for photo in snapshot.photos:
        new_photo_id = mapping.photos[photo.id]
        new_item_id = _lookup(mapping.items, photo.item_id, f"photo {photo.id} item")
        filename = attachment_key(new_photo_id, photo.filename)
        # at most one selected photo per item
        selected = photo.selected and new_item_id not in selected_items
        if selected:
            selected_items.add(new_item_id)
        photos.append(
            replace(
                photo,
                id=new_photo_id,
                item_id=new_item_id,
                filename=filename,
                selected=selected,
            )
        )
        keys[filename] = photo.filename
    return photos, keys


def remap_snapshot(
    snapshot: CanvasSnapshot, id_factory: Optional[IdFactory] = None
) -> RemapResult:
    """
    Rewrite a snapshot onto fresh ids.

    Args:
        snapshot: Snapshot carrying the original ids
        id_factory: Source of fresh ids (defaults to UUID4 strings)

    Returns:
        RemapResult with the rewritten snapshot, the per-kind mapping and
        the new -> old attachment filename table

    Raises:
        RemapError: If a required reference cannot be resolved or an id
            is duplicated within its kind
    """
    mapping = allocate_ids(snapshot, id_factory or new_id)

    canvas = replace(
        snapshot.canvas, id=mapping.canvases[snapshot.canvas.id]
    )
    photos, attachment_keys = _rewrite_photos(snapshot, mapping)
    rewritten = CanvasSnapshot(
        canvas=canvas,
        items=_rewrite_items(snapshot, mapping),
        links=_rewrite_links(snapshot, mapping),
        notes=_rewrite_notes(snapshot, mapping),
        tags=_rewrite_tags(snapshot, mapping),
        tag_assignments=_rewrite_assignments(snapshot, mapping),
        photos=photos,
    )
    return RemapResult(snapshot=rewritten, mapping=mapping, attachment_keys=attachment_keys)
