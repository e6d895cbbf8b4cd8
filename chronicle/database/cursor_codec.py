#!/usr/bin/env python3
"""
cursor_codec.py
--------------------
Opaque keyset-pagination cursors for the Timeline and Gallery feeds.

A FeedCursor is a tagged resume point: which feed and sort field it was
minted for, plus the composite key (sort value, entity id) of the last
entry served. On the wire it is URL-safe base64 of a compact JSON object.
Callers treat the string as opaque.

Because the feed and sort field travel inside the cursor, a cursor minted
for one sort order cannot be replayed against another: decode_for()
rejects it with InvalidCursor instead of silently resuming at a wrong
position.

Usage:
    token = encode_cursor(FeedCursor("timeline", "createdAt", ts, entry_id))
    cursor = decode_for(token, "timeline", "createdAt")
"""
from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Union

from chronicle.core.exceptions import InvalidCursor

FEEDS = ("timeline", "gallery")
SORT_FIELDS = ("createdAt", "updatedAt", "day")

SortValue = Union[datetime, date]


@dataclass(frozen=True)
class FeedCursor:
    """
    Resume point of a feed.

    Attributes:
        feed: "timeline" or "gallery"
        sort_field: "createdAt", "updatedAt" or "day"
        value: Sort value of the last served entry (a date for "day")
        entity_id: Id of the last served entry (tie-break key)
    """

    feed: str
    sort_field: str
    value: SortValue
    entity_id: str


def encode_cursor(cursor: FeedCursor) -> str:
    """Serialize a cursor to an opaque URL-safe string."""
    if cursor.feed not in FEEDS:
        raise ValueError(f"Unknown feed: {cursor.feed}")
    if cursor.sort_field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {cursor.sort_field}")

    payload = {
        "f": cursor.feed,
        "s": cursor.sort_field,
        "v": cursor.value.isoformat(),
        "id": cursor.entity_id,
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _parse_value(sort_field: str, text: Any) -> SortValue:
    if not isinstance(text, str):
        raise ValueError("sort value must be a string")
    if sort_field == "day":
        return date.fromisoformat(text)
    return datetime.fromisoformat(text)


def decode_cursor(token: str) -> FeedCursor:
    """
    Parse an opaque cursor string.

    Raises:
        InvalidCursor: On bad base64, bad JSON, missing keys, an unknown
            feed or sort field, or an unparseable sort value
    """
    if not isinstance(token, str) or not token:
        raise InvalidCursor("Cursor is empty")

    try:
        padded = token + "=" * (-len(token) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        payload: Dict[str, Any] = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        raise InvalidCursor("Cursor is not a valid token")

    if not isinstance(payload, dict):
        raise InvalidCursor("Cursor is not a valid token")

    feed = payload.get("f")
    sort_field = payload.get("s")
    entity_id = payload.get("id")
    if feed not in FEEDS or sort_field not in SORT_FIELDS:
        raise InvalidCursor("Cursor names an unknown feed or sort field")
    if not isinstance(entity_id, str) or not entity_id:
        raise InvalidCursor("Cursor has no entity id")

    try:
        value = _parse_value(sort_field, payload.get("v"))
    except ValueError:
        raise InvalidCursor("Cursor sort value is not a valid timestamp")

    return FeedCursor(feed=feed, sort_field=sort_field, value=value, entity_id=entity_id)


def decode_for(token: str, feed: str, sort_field: str) -> FeedCursor:
    """
    Decode a cursor and check it was minted for this feed and sort field.

    Raises:
        InvalidCursor: If the token is malformed or belongs to another
            feed or sort order
    """
    cursor = decode_cursor(token)
    if cursor.feed != feed:
        raise InvalidCursor(f"Cursor was issued for the {cursor.feed} feed, not {feed}")
    if cursor.sort_field != sort_field:
        raise InvalidCursor(
            f"Cursor was issued for sort '{cursor.sort_field}', not '{sort_field}'"
        )
    return cursor
