"""
Canvas Commands
---------------

Canvas and share management.

Commands:
    - canvas create: Create a canvas for a user
    - canvas list: List the canvases a user belongs to
    - canvas rename: Rename a canvas
    - canvas delete: Delete a canvas (a user's only canvas is kept)
    - canvas share: Create (or fetch) a share token
"""
import click

from chronicle.core.logging_manager import handle_cli_error
from chronicle.core.exceptions import ChronicleError
from . import get_db


@click.group()
@click.pass_context
def canvas(ctx: click.Context) -> None:
    """Create, list and delete canvases."""
    pass


@canvas.command("create")
@click.argument("name")
@click.option("--user", "user_id", required=True, help="Owning user id")
@click.pass_context
def create_canvas(ctx, name, user_id):
    """Create a canvas."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            created = db.canvases.create({"name": name}, user_id)
            canvas_id, canvas_name = created.id, created.name
        click.echo(f"✅ Created canvas {canvas_name}")
        click.echo(canvas_id)
    except ChronicleError as e:
        handle_cli_error(ctx, e, "create_canvas", {"name": name, "user_id": user_id})


@canvas.command("list")
@click.option("--user", "user_id", required=True, help="User id")
@click.pass_context
def list_canvases(ctx, user_id):
    """List the canvases of a user."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            rows = [(c.id, c.name) for c in db.canvases.list_for_user(user_id)]

        if not rows:
            click.echo("No canvases.")
            return
        for canvas_id, name in rows:
            click.echo(f"{canvas_id}  {name}")
    except ChronicleError as e:
        handle_cli_error(ctx, e, "list_canvases", {"user_id": user_id})


@canvas.command("rename")
@click.argument("canvas_id")
@click.argument("name")
@click.pass_context
def rename_canvas(ctx, canvas_id, name):
    """Rename a canvas."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            db.canvases.rename(canvas_id, name)
        click.echo(f"✅ Renamed canvas to {name}")
    except ChronicleError as e:
        handle_cli_error(ctx, e, "rename_canvas", {"canvas_id": canvas_id})


@canvas.command("delete")
@click.argument("canvas_id")
@click.option("--user", "user_id", required=True, help="Member user id")
@click.pass_context
def delete_canvas(ctx, canvas_id, user_id):
    """Delete a canvas and everything on it."""
    try:
        db = get_db(ctx)
        db.delete_canvas(canvas_id, user_id)
        click.echo(f"🗑️  Deleted canvas {canvas_id}")
    except ChronicleError as e:
        handle_cli_error(
            ctx, e, "delete_canvas", {"canvas_id": canvas_id, "user_id": user_id}
        )


@canvas.command("share")
@click.argument("canvas_id")
@click.option("--user", "user_id", required=True, help="Sharing user id")
@click.option("--item", "item_id", default=None, help="Share one item instead")
@click.pass_context
def share_canvas(ctx, canvas_id, user_id, item_id):
    """Print a share token for a canvas or one of its items."""
    try:
        db = get_db(ctx)
        with db.session_scope():
            token = db.shares.create(canvas_id, item_id, user_id).token
        click.echo(token)
    except ChronicleError as e:
        handle_cli_error(ctx, e, "share_canvas", {"canvas_id": canvas_id})
