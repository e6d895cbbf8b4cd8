"""
Archive Commands
----------------

Move whole canvases between databases.

Commands:
    - export: Write a canvas archive to a file
    - import: Import an archive as a new canvas
    - copy: Copy a shared canvas into a new canvas
"""
import click

from chronicle.core.logging_manager import handle_cli_error
from chronicle.core.exceptions import ChronicleError
from . import get_db


@click.command()
@click.argument("canvas_id")
@click.argument("output", type=click.Path(dir_okay=False))
@click.pass_context
def export(ctx, canvas_id, output):
    """Export a canvas to an archive file."""
    try:
        db = get_db(ctx)
        click.echo(f"📤 Exporting canvas {canvas_id}")
        path = db.export_to_file(canvas_id, output)
        click.echo(f"✅ Export complete: {path}")
    except ChronicleError as e:
        handle_cli_error(
            ctx, e, "export_canvas", {"canvas_id": canvas_id, "output": output}
        )


@click.command("import")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.option("--user", "user_id", required=True, help="Importing user id")
@click.pass_context
def import_archive(ctx, archive, user_id):
    """Import an archive file as a new canvas."""
    try:
        db = get_db(ctx)
        click.echo(f"📥 Importing {archive}")
        result = db.import_from_file(archive, user_id)
        click.echo(f"✅ Imported canvas {result.name}")
        click.echo(result.id)
    except ChronicleError as e:
        handle_cli_error(
            ctx, e, "import_canvas", {"archive": archive, "user_id": user_id}
        )


@click.command()
@click.argument("token")
@click.option("--user", "user_id", required=True, help="Receiving user id")
@click.pass_context
def copy(ctx, token, user_id):
    """Copy the canvas behind a share token."""
    try:
        db = get_db(ctx)
        result = db.copy_shared_canvas(token, user_id)
        click.echo(f"✅ Copied canvas {result.name}")
        click.echo(result.id)
    except ChronicleError as e:
        handle_cli_error(ctx, e, "copy_shared_canvas", {"user_id": user_id})
