#!/usr/bin/env python3
"""
archive_codec.py
--------------------
Portable archive format for canvas snapshots.

An archive is a ZIP container holding:

    manifest.json               format version, export time, canvas name and
                                one record array per table, with original ids
    attachments/<filename>      photo bytes, addressed by Photo.filename

Manifest layout::

    {
      "format_version": 1,
      "exported_at": "2026-01-01T12:00:00+00:00",
      "canvas_name": "Barovia",
      "tables": {
        "canvas": {"id": ..., "name": ..., "created_at": ..., "updated_at": ...},
        "canvas_items": [...],
        "canvas_item_links": [...],
        "notes": [...],
        "tags": [...],
        "canvas_item_tags": [...],
        "photos": [...]
      }
    }

Timestamps and dates are ISO-8601 strings. Decoding is purely structural:
it checks the container, the version, field presence and types, and the
presence of every referenced attachment, but not cross-entity references.
Archives written by older format versions remain decodable; only versions
newer than CURRENT_FORMAT_VERSION are rejected.

Both directions are pure functions with no database or filesystem access.

Usage:
    data = encode_archive(snapshot, attachments)
    decoded = decode_archive(data)
    decoded.snapshot, decoded.attachments
"""
from __future__ import annotations

import io
import json
import zipfile
from dataclasses import dataclass, fields
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from chronicle.core.attachment_store import is_safe_filename
from chronicle.core.exceptions import ExportError, MalformedArchive

from .models.base import as_utc
from .models.enums import ItemType
from .snapshot import (
    CanvasRecord,
    CanvasSnapshot,
    ItemRecord,
    LinkRecord,
    NoteRecord,
    PhotoRecord,
    TagAssignmentRecord,
    TagRecord,
)

CURRENT_FORMAT_VERSION = 1
MANIFEST_NAME = "manifest.json"
ATTACHMENT_PREFIX = "attachments/"

# Table name -> (snapshot attribute, record class)
TABLES = {
    "canvas_items": ("items", ItemRecord),
    "canvas_item_links": ("links", LinkRecord),
    "notes": ("notes", NoteRecord),
    "tags": ("tags", TagRecord),
    "canvas_item_tags": ("tag_assignments", TagAssignmentRecord),
    "photos": ("photos", PhotoRecord),
}


@dataclass
class DecodedArchive:
    """Result of decoding: the snapshot with original ids, plus photo bytes."""

    format_version: int
    exported_at: Optional[datetime]
    snapshot: CanvasSnapshot
    attachments: Dict[str, bytes]


# -------------------------------------------------------------------------
# Value conversion
# -------------------------------------------------------------------------


def _to_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _record_to_dict(record: Any) -> Dict[str, Any]:
    return {f.name: _to_json(getattr(record, f.name)) for f in fields(record)}


def _parse_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


def _parse_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError("expected a boolean")
    return value


def _parse_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError("expected a number")
    return float(value)


def _parse_datetime(value: Any) -> datetime:
    text = _parse_str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def _parse_date(value: Any) -> date:
    return date.fromisoformat(_parse_str(value))


_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "str": _parse_str,
    "bool": _parse_bool,
    "float": _parse_float,
    "datetime": _parse_datetime,
    "date": _parse_date,
}


def _record_from_dict(record_class: Type, raw: Any, where: str) -> Any:
    """
    Build a record from a manifest dict, driven by the dataclass fields.

    Optional fields may be absent or null; required fields must be present
    with the right type.
    """
    if not isinstance(raw, dict):
        raise MalformedArchive(f"{where}: expected an object")

    values: Dict[str, Any] = {}
    for f in fields(record_class):
        annotation = str(f.type)
        optional = annotation.startswith("Optional[")
        kind = annotation[len("Optional[") : -1] if optional else annotation
        value = raw.get(f.name)

        if value is None:
            if optional:
                values[f.name] = None
                continue
            raise MalformedArchive(f"{where}: missing required field '{f.name}'")

        try:
            values[f.name] = _PARSERS[kind](value)
        except (TypeError, ValueError) as e:
            raise MalformedArchive(f"{where}: invalid field '{f.name}': {e}")

    return record_class(**values)


# -------------------------------------------------------------------------
# Encoding
# -------------------------------------------------------------------------


def encode_archive(
    snapshot: CanvasSnapshot,
    attachments: Mapping[str, bytes],
    exported_at: Optional[datetime] = None,
) -> bytes:
    """
    Serialize a snapshot and its photo bytes into archive bytes.

    Args:
        snapshot: Snapshot to serialize
        attachments: Photo bytes keyed by Photo.filename
        exported_at: Export timestamp (defaults to now, UTC)

    Raises:
        ExportError: If a photo's bytes are not in ``attachments`` or its
            filename is not a plain name
    """
    for photo in snapshot.photos:
        if not is_safe_filename(photo.filename):
            raise ExportError(f"Unsafe attachment filename: {photo.filename!r}")
        if photo.filename not in attachments:
            raise ExportError(f"Missing attachment bytes for {photo.filename}")

    tables: Dict[str, Any] = {"canvas": _record_to_dict(snapshot.canvas)}
    for table_name, (attribute, _) in TABLES.items():
        tables[table_name] = [_record_to_dict(r) for r in getattr(snapshot, attribute)]

    manifest = {
        "format_version": CURRENT_FORMAT_VERSION,
        "exported_at": (exported_at or datetime.now(timezone.utc)).isoformat(),
        "canvas_name": snapshot.canvas.name,
        "tables": tables,
    }

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2, ensure_ascii=False))
        for photo in snapshot.photos:
            archive.writestr(ATTACHMENT_PREFIX + photo.filename, attachments[photo.filename])
    return buffer.getvalue()


# -------------------------------------------------------------------------
# Decoding
# -------------------------------------------------------------------------


def _read_manifest(archive: zipfile.ZipFile) -> Dict[str, Any]:
    try:
        raw = archive.read(MANIFEST_NAME)
    except KeyError:
        raise MalformedArchive(f"Archive has no {MANIFEST_NAME}")

    try:
        manifest = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedArchive(f"Manifest is not valid JSON: {e}")

    if not isinstance(manifest, dict):
        raise MalformedArchive("Manifest must be a JSON object")
    return manifest


def _check_version(manifest: Dict[str, Any]) -> int:
    version = manifest.get("format_version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise MalformedArchive("Manifest format_version is missing or not an integer")
    if version < 1:
        raise MalformedArchive(f"Unsupported archive format version {version}")
    if version > CURRENT_FORMAT_VERSION:
        raise MalformedArchive(
            f"Archive format version {version} is newer than supported "
            f"version {CURRENT_FORMAT_VERSION}"
        )
    return version


def _decode_tables(tables: Any) -> CanvasSnapshot:
    if not isinstance(tables, dict):
        raise MalformedArchive("Manifest 'tables' must be an object")

    snapshot = CanvasSnapshot(
        canvas=_record_from_dict(CanvasRecord, tables.get("canvas"), "canvas")
    )
    for table_name, (attribute, record_class) in TABLES.items():
        rows = tables.get(table_name, [])
        if not isinstance(rows, list):
            raise MalformedArchive(f"Table '{table_name}' must be an array")
        records: List[Any] = [
            _record_from_dict(record_class, raw, f"{table_name}[{index}]")
            for index, raw in enumerate(rows)
        ]
        setattr(snapshot, attribute, records)

    valid_types = ItemType.choices()
    for index, item in enumerate(snapshot.items):
        if item.type not in valid_types:
            raise MalformedArchive(f"canvas_items[{index}]: unknown type '{item.type}'")
    return snapshot


def decode_archive(data: bytes) -> DecodedArchive:
    """
    Parse archive bytes.

    Raises:
        MalformedArchive: If the container, manifest, version, records or
            attachments are structurally invalid
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, TypeError, ValueError) as e:
        raise MalformedArchive(f"Not a valid archive: {e}")

    with archive:
        manifest = _read_manifest(archive)
        version = _check_version(manifest)
        snapshot = _decode_tables(manifest.get("tables"))

        exported_at = None
        if manifest.get("exported_at") is not None:
            try:
                exported_at = _parse_datetime(manifest["exported_at"])
            except (TypeError, ValueError):
                raise MalformedArchive("Manifest exported_at is not an ISO timestamp")

        names = set(archive.namelist())
        attachments: Dict[str, bytes] = {}
        for photo in snapshot.photos:
            if not is_safe_filename(photo.filename):
                raise MalformedArchive(f"Unsafe attachment filename: {photo.filename!r}")
            entry = ATTACHMENT_PREFIX + photo.filename
            if entry not in names:
                raise MalformedArchive(f"Missing attachment: {photo.filename}")
            try:
                attachments[photo.filename] = archive.read(entry)
            except (zipfile.BadZipFile, OSError) as e:
                raise MalformedArchive(f"Corrupt attachment {photo.filename}: {e}")

    return DecodedArchive(
        format_version=version,
        exported_at=exported_at,
        snapshot=snapshot,
        attachments=attachments,
    )
