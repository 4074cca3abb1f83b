"""Integration commands -- call an endpoint from the terminal.

Examples::

    base44 integrations call Core SendEmail --data '{"to": "a@b.c", "subject": "Hi"}'
    base44 integrations call Core UploadFile --file file=report.pdf
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from base44.commands import parse_json_option, require_object, run_with_client
from base44.output import get_output

integrations_app = typer.Typer(no_args_is_help=True)


def _parse_files(values: list[str]) -> dict[str, Path]:
    files: dict[str, Path] = {}
    for value in values:
        name, sep, raw_path = value.partition("=")
        if not sep or not name or not raw_path:
            raise typer.BadParameter(f"expected FIELD=PATH, got {value!r}", param_hint="--file")
        path = Path(raw_path).expanduser()
        if not path.is_file():
            raise typer.BadParameter(f"file not found: {path}", param_hint="--file")
        files[name] = path
    return files


@integrations_app.command("call")
def integrations_call(
    ctx: typer.Context,
    package: str = typer.Argument(help="Integration package, e.g. Core."),
    endpoint: str = typer.Argument(help="Endpoint name, e.g. SendEmail."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Payload as a JSON object, or @file.json."
    ),
    file: list[str] = typer.Option(
        [], "--file", "-f", help="Upload a file as FIELD=PATH (repeatable)."
    ),
) -> None:
    """Call an integration endpoint and print its result."""
    payload: dict[str, Any] = {}
    if data is not None:
        payload = require_object(parse_json_option(data))
    payload.update(_parse_files(file))

    result = run_with_client(ctx, lambda c: c.integrations.endpoint(package, endpoint)(payload))
    get_output().format_response(result)
