#!/usr/bin/env python3
"""
Chronicle Database Management CLI
----------------------------------

Command-line interface for the Chronicle database.

This module provides the main CLI group and shared context setup
for all database commands.

Command Structure:
    - Setup & Initialization (init, status)
    - Canvases (canvas create/list/rename/delete/share)
    - Archives (export, import, copy)
    - Feeds (timeline, gallery, days)

Usage:
    # Get general help
    chronicledb --help

    # Create a canvas and export it
    chronicledb canvas create "Campaign" --user u1
    chronicledb export <canvas-id> campaign.zip

    # Page through the timeline
    chronicledb timeline <canvas-id> --limit 20
    chronicledb timeline <canvas-id> --limit 20 --cursor <next-cursor>
"""
import logging
from pathlib import Path

import click

from chronicle.core.logging_manager import setup_logger
from chronicle.core.paths import ALEMBIC_DIR, DB_PATH, LOG_DIR, UPLOADS_DIR
from chronicle.database import ChronicleDB


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=str(DB_PATH),
    help="Path to database file",
)
@click.option(
    "--alembic-dir",
    type=click.Path(),
    default=str(ALEMBIC_DIR),
    help="Path to Alembic directory",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Path to log directory",
)
@click.option(
    "--uploads-dir",
    type=click.Path(),
    default=str(UPLOADS_DIR),
    help="Path to the photo attachment directory",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, alembic_dir, log_dir, uploads_dir, verbose):
    """Chronicle Database Management CLI"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path)
    ctx.obj["alembic_dir"] = Path(alembic_dir)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["uploads_dir"] = Path(uploads_dir)
    ctx.obj["verbose"] = verbose
    ctx.obj["logger"] = setup_logger(Path(log_dir), "cli")


def get_db(ctx) -> ChronicleDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        ctx.obj["db"] = ChronicleDB(
            db_path=ctx.obj["db_path"],
            alembic_dir=ctx.obj["alembic_dir"],
            log_dir=ctx.obj["log_dir"],
            uploads_dir=ctx.obj["uploads_dir"],
        )
    return ctx.obj["db"]


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init, status  # noqa: E402
from .canvas import canvas  # noqa: E402
from .archive import export, import_archive, copy  # noqa: E402
from .feeds import timeline, gallery, days  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(status)
cli.add_command(export)
cli.add_command(import_archive)
cli.add_command(copy)
cli.add_command(timeline)
cli.add_command(gallery)
cli.add_command(days)

# Register command groups
cli.add_command(canvas)
