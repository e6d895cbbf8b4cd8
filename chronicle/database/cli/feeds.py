"""
Feed Commands
-------------

Print Timeline and Gallery pages.

Commands:
    - timeline: One page of notes and photos
    - gallery: One page of photos
    - days: Timeline entries per day

Each page ends with the cursor for the next page, or a marker when the
feed is exhausted.
"""
import json

import click

from chronicle.core.logging_manager import handle_cli_error
from chronicle.core.exceptions import ChronicleError
from chronicle.database.feed_manager import FeedPage
from . import get_db


def _echo_page(page: FeedPage, as_json: bool) -> None:
    if as_json:
        click.echo(
            json.dumps(
                {
                    "entries": [entry.to_dict() for entry in page.entries],
                    "nextCursor": page.next_cursor,
                },
                indent=2,
            )
        )
        return

    for entry in page.entries:
        star = "★ " if entry.important else ""
        text = entry.content if entry.kind == "note" else entry.original_name
        text = (text or "").replace("\n", " ")
        if len(text) > 60:
            text = text[:57] + "..."
        click.echo(
            f"{entry.created_at.isoformat()}  [{entry.kind}] {star}"
            f"{entry.parent_item_title} ({entry.parent_item_type}): {text}"
        )
    click.echo(f"next cursor: {page.next_cursor}" if page.next_cursor else "(end of feed)")


@click.command()
@click.argument("canvas_id")
@click.option(
    "--sort",
    type=click.Choice(["createdAt", "updatedAt"]),
    default="createdAt",
    help="Timestamp to order by",
)
@click.option("--cursor", default=None, help="Cursor from the previous page")
@click.option("--limit", type=int, default=30, help="Page size (max 100)")
@click.option("--parent", "parent_item_id", default=None, help="Scope to an item")
@click.option("--json", "as_json", is_flag=True, help="Print the page as JSON")
@click.pass_context
def timeline(ctx, canvas_id, sort, cursor, limit, parent_item_id, as_json):
    """Print one Timeline page."""
    try:
        db = get_db(ctx)
        page = db.list_timeline(
            canvas_id,
            sort=sort,
            cursor=cursor,
            limit=limit,
            parent_item_id=parent_item_id,
        )
        _echo_page(page, as_json)
    except ChronicleError as e:
        handle_cli_error(ctx, e, "list_timeline", {"canvas_id": canvas_id})


@click.command()
@click.argument("canvas_id")
@click.option("--cursor", default=None, help="Cursor from the previous page")
@click.option("--limit", type=int, default=30, help="Page size (max 100)")
@click.option("--important-only", is_flag=True, help="Only important photos")
@click.option("--parent", "parent_item_id", default=None, help="Scope to an item")
@click.option("--json", "as_json", is_flag=True, help="Print the page as JSON")
@click.pass_context
def gallery(ctx, canvas_id, cursor, limit, important_only, parent_item_id, as_json):
    """Print one Gallery page."""
    try:
        db = get_db(ctx)
        page = db.list_gallery(
            canvas_id,
            cursor=cursor,
            limit=limit,
            important_only=important_only,
            parent_item_id=parent_item_id,
        )
        _echo_page(page, as_json)
    except ChronicleError as e:
        handle_cli_error(ctx, e, "list_gallery", {"canvas_id": canvas_id})


@click.command()
@click.argument("canvas_id")
@click.argument("start")
@click.argument("end")
@click.option("--parent", "parent_item_id", default=None, help="Scope to an item")
@click.pass_context
def days(ctx, canvas_id, start, end, parent_item_id):
    """Count Timeline entries per day between START and END (YYYY-MM-DD)."""
    try:
        db = get_db(ctx)
        counts = db.timeline_day_counts(
            canvas_id, start, end, parent_item_id=parent_item_id
        )
        if not counts:
            click.echo("No entries.")
        for day, total in counts.items():
            click.echo(f"{day.isoformat()}  {total}")
    except ChronicleError as e:
        handle_cli_error(ctx, e, "timeline_day_counts", {"canvas_id": canvas_id})
