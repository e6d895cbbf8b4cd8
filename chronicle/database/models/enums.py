"""
Enumeration Types
------------------

Enum classes for the Chronicle database models.

Enums:
    - ItemType: Kind of canvas item (person, place, thing, event, session)
    - EntryKind: Kind of feed entry (note, photo)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import List


class ItemType(str, Enum):
    """
    Enumeration of canvas item types.
    - PERSON: A character or real person
    - PLACE: A location
    - THING: An object or artifact
    - EVENT: Something that happened
    - SESSION: A play session, usually carrying a session date
    """

    PERSON = "person"
    PLACE = "place"
    THING = "thing"
    EVENT = "event"
    SESSION = "session"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available item type choices."""
        return [item_type.value for item_type in cls]

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        return self.value.title()


class EntryKind(str, Enum):
    """Kinds of entries appearing in the timeline feed."""

    NOTE = "note"
    PHOTO = "photo"
