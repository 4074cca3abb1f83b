"""Entity commands -- CRUD on entity records.

Examples::

    base44 entities list Task --sort=-created_date --limit 10
    base44 entities filter Task --query '{"status": "open"}' --fields id,title
    base44 entities get Task 64f1c0a2
    base44 entities create Task --data '{"title": "Write docs"}'
    base44 entities update Task 64f1c0a2 --data @patch.json
    base44 entities delete Task 64f1c0a2
    base44 entities delete-many Task --query '{"status": "done"}'
    base44 entities bulk-create Task --data @tasks.json
    base44 entities import Task tasks.csv
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from base44.commands import parse_json_option, require_object, run_with_client
from base44.output import get_output, success

entities_app = typer.Typer(no_args_is_help=True)

_SORT_HELP = "Comma-separated sort fields; prefix with '-' for descending."
_FIELDS_HELP = "Comma-separated fields to return."


def _show(data: Any, title: Optional[str] = None) -> None:
    get_output().format_response(data, title=title)


@entities_app.command("list")
def entities_list(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name, e.g. Task."),
    sort: Optional[str] = typer.Option(None, "--sort", help=_SORT_HELP),
    limit: Optional[int] = typer.Option(None, "--limit", min=0, help="Maximum number of records."),
    skip: Optional[int] = typer.Option(None, "--skip", min=0, help="Number of records to skip."),
    fields: Optional[str] = typer.Option(None, "--fields", help=_FIELDS_HELP),
) -> None:
    """List records of an entity."""
    records = run_with_client(
        ctx,
        lambda c: c.entities.handle(entity).list(sort=sort, limit=limit, skip=skip, fields=fields),
    )
    _show(records, title=entity)


@entities_app.command("filter")
def entities_filter(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name, e.g. Task."),
    query: str = typer.Option(..., "--query", help="Filter as a JSON object, or @file.json."),
    sort: Optional[str] = typer.Option(None, "--sort", help=_SORT_HELP),
    limit: Optional[int] = typer.Option(None, "--limit", min=0, help="Maximum number of records."),
    skip: Optional[int] = typer.Option(None, "--skip", min=0, help="Number of records to skip."),
    fields: Optional[str] = typer.Option(None, "--fields", help=_FIELDS_HELP),
) -> None:
    """List records matching a filter."""
    criteria = require_object(parse_json_option(query, "--query"), "--query")
    records = run_with_client(
        ctx,
        lambda c: c.entities.handle(entity).filter(
            criteria, sort=sort, limit=limit, skip=skip, fields=fields
        ),
    )
    _show(records, title=entity)


@entities_app.command("get")
def entities_get(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    entity_id: str = typer.Argument(help="Record id."),
) -> None:
    """Show one record."""
    _show(run_with_client(ctx, lambda c: c.entities.handle(entity).get(entity_id)))


@entities_app.command("create")
def entities_create(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    data: str = typer.Option(..., "--data", "-d", help="Record as a JSON object, or @file.json."),
) -> None:
    """Create a record and print it."""
    payload = require_object(parse_json_option(data))
    _show(run_with_client(ctx, lambda c: c.entities.handle(entity).create(payload)))


@entities_app.command("update")
def entities_update(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    entity_id: str = typer.Argument(help="Record id."),
    data: str = typer.Option(..., "--data", "-d", help="Fields to change, as JSON or @file.json."),
) -> None:
    """Update fields of a record and print the result."""
    payload = require_object(parse_json_option(data))
    _show(run_with_client(ctx, lambda c: c.entities.handle(entity).update(entity_id, payload)))


@entities_app.command("delete")
def entities_delete(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    entity_id: str = typer.Argument(help="Record id."),
) -> None:
    """Delete one record."""
    run_with_client(ctx, lambda c: c.entities.handle(entity).delete(entity_id))
    success(f"Deleted {entity} {entity_id}.")


@entities_app.command("delete-many")
def entities_delete_many(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    query: str = typer.Option(..., "--query", help="Filter as a JSON object, or @file.json."),
) -> None:
    """Delete every record matching a filter."""
    criteria = require_object(parse_json_option(query, "--query"), "--query")
    run_with_client(ctx, lambda c: c.entities.handle(entity).delete_many(criteria))
    success(f"Deleted matching {entity} records.")


@entities_app.command("bulk-create")
def entities_bulk_create(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    data: str = typer.Option(..., "--data", "-d", help="JSON array of records, or @file.json."),
) -> None:
    """Create several records in one request."""
    records = parse_json_option(data)
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise typer.BadParameter("expected a JSON array of objects", param_hint="--data")
    _show(run_with_client(ctx, lambda c: c.entities.handle(entity).bulk_create(records)), title=entity)


@entities_app.command("import")
def entities_import(
    ctx: typer.Context,
    entity: str = typer.Argument(help="Entity name."),
    file: Path = typer.Argument(
        help="File of records to import (CSV, JSON, ...).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Import records from a file."""
    _show(run_with_client(ctx, lambda c: c.entities.handle(entity).import_entities(file)))
