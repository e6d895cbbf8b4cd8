#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the Chronicle project.

All paths are Path objects relative to the project root:

    ROOT/
    ├── chronicle/     # Package code (and Alembic migrations)
    ├── data/          # Database and uploaded photos
    └── logs/          # Application logs

The database location, log directory and uploads directory are defaults;
every entry point (ChronicleDB, the chronicledb CLI) accepts overrides.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine the project root directory.

    Assumes this file lives at ROOT/chronicle/core/paths.py.

    Returns:
        Path object for the project root
    """
    return Path(__file__).resolve().parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "chronicle"
DATA_DIR = ROOT / "data"

# --- Database ---
ALEMBIC_DIR = PACKAGE_DIR / "migrations"
ALEMBIC_INI = ROOT / "alembic.ini"
DB_DIR = DATA_DIR / "db"
DB_PATH = DB_DIR / "chronicle.db"

# --- Attachments ---
UPLOADS_DIR = DATA_DIR / "uploads"

# --- Logs ---
LOG_DIR = ROOT / "logs"
