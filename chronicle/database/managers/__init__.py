#!/usr/bin/env python3
"""
managers package
--------------------
Modular entity managers for the Chronicle database.

Each manager handles CRUD operations for a specific entity type and
inherits from BaseManager.

Available Managers:
    BaseManager: Abstract base class with common utilities
    CanvasManager: Canvas and membership, with the last-canvas guard
    ItemManager: CanvasItem, with cascading delete
    LinkManager: Undirected CanvasItemLink edges
    NoteManager: Note with append-only NoteHistory
    TagManager: Tag and tag assignments
    PhotoManager: Photo metadata and attachment bytes
    ShareManager: Share tokens

Usage:
    from chronicle.database.managers import ItemManager, LinkManager

    item_mgr = ItemManager(session, logger)
    link_mgr = LinkManager(session, logger)
"""
from .base_manager import BaseManager
from .canvas_manager import CanvasManager
from .item_manager import ItemManager
from .link_manager import LinkManager
from .note_manager import NoteManager
from .tag_manager import TagManager
from .photo_manager import PhotoManager
from .share_manager import ShareManager

__all__ = [
    "BaseManager",
    "CanvasManager",
    "ItemManager",
    "LinkManager",
    "NoteManager",
    "TagManager",
    "PhotoManager",
    "ShareManager",
]
