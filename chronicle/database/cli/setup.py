"""
Setup & Initialization Commands
--------------------------------

Database schema commands.

Commands:
    - init: Create a fresh schema or upgrade an existing one
    - status: Show the current Alembic revision
"""
import click

from chronicle.core.logging_manager import handle_cli_error
from chronicle.core.exceptions import DatabaseError
from . import get_db


@click.command()
@click.pass_context
def init(ctx):
    """Create or upgrade the database schema."""
    try:
        click.echo("🗄️  Initializing database schema...")
        db = get_db(ctx)
        click.echo(f"✅ Database ready: {db.db_url}")
    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")


@click.command()
@click.pass_context
def status(ctx):
    """Show the schema revision of the database."""
    try:
        db = get_db(ctx)
        info = db.get_migration_status()
        click.echo(f"Revision: {info['current_revision'] or '(none)'}")
        click.echo(f"Status:   {info['status']}")
    except DatabaseError as e:
        handle_cli_error(ctx, e, "status")
