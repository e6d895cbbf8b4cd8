"""
Chronicle Package
=================

Canvas data core for a tabletop-campaign notebook.

A canvas is a board of items (people, places, things, events, sessions)
carrying notes, photos and tags, with undirected links between items.
This package stores canvases in a relational database, moves whole
canvases between databases as portable archives, and serves the
Timeline and Gallery feeds with keyset pagination.

Main Components:
    - database: SQLAlchemy ORM, entity managers, archives, feeds
    - core: Logging, validation, paths, exceptions, attachment store

Primary Interfaces:
    - chronicle.database.cli: Database management CLI (chronicledb)
    - chronicle.database.manager.ChronicleDB: Main database interface

Example Usage:
    >>> from chronicle import ChronicleDB
    >>> from chronicle.core.paths import DB_PATH, LOG_DIR
    >>> db = ChronicleDB(db_path=DB_PATH, log_dir=LOG_DIR)
    >>> data = db.export_canvas(canvas_id)
    >>> copy = db.import_canvas(data, user_id="u2")
"""

__version__ = "1.0.0"

from chronicle.database.manager import ChronicleDB
from chronicle.core.paths import DATA_DIR, DB_PATH, LOG_DIR, UPLOADS_DIR

__all__ = [
    "ChronicleDB",
    "DATA_DIR",
    "DB_PATH",
    "LOG_DIR",
    "UPLOADS_DIR",
]
