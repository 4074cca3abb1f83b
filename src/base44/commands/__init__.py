"""CLI sub-command groups for ``base44``.

* :mod:`~base44.commands.auth` -- login, logout, whoami, status.
* :mod:`~base44.commands.entities` -- entity record CRUD.
* :mod:`~base44.commands.integrations` -- integration endpoint calls.

Each module exports a :class:`typer.Typer` sub-application registered on the
root app in :mod:`base44.app`. The helpers below are shared by all of them:
:func:`open_client` builds a client from the root options, :func:`run`
drives a coroutine and turns :class:`~base44.exceptions.Base44Error` into a
clean exit, and :func:`parse_json_option` reads ``JSON`` / ``@file``
arguments.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import typer

from base44.config import resolve_client_config
from base44.environment import DesktopEnvironment, Environment
from base44.exceptions import Base44Error
from base44.factory import Base44Client, create_client
from base44.output import error, get_output

T = TypeVar("T")


def open_client(ctx: typer.Context, environment: Optional[Environment] = None) -> Base44Client:
    """Create a client from the root options, environment variables and ``base44.json``.

    The CLI always uses a :class:`~base44.environment.DesktopEnvironment`
    unless one is given, so tokens persist across invocations.
    """
    obj = ctx.obj or {}
    config = resolve_client_config(
        cli_app_id=obj.get("app_id"),
        cli_server_url=obj.get("server_url"),
        cli_env=obj.get("env"),
        cli_token=obj.get("token"),
    )
    return create_client(config, environment=environment or DesktopEnvironment())


def run(coro: Awaitable[T]) -> T:
    """Run *coro* to completion, exiting with the error's exit code on failure."""

    async def _await() -> T:
        return await coro

    try:
        return asyncio.run(_await())
    except Base44Error as exc:
        error(str(exc))
        if exc.status is not None:
            get_output().debug(f"status={exc.status} code={exc.code} kind={exc.kind.value}")
        raise typer.Exit(code=exc.exit_code) from None


def run_with_client(
    ctx: typer.Context,
    operation: Callable[[Base44Client], Awaitable[T]],
    environment: Optional[Environment] = None,
) -> T:
    """Open a client, await ``operation(client)`` and close the client."""

    async def _run() -> T:
        async with open_client(ctx, environment) as client:
            return await operation(client)

    return run(_run())


def parse_json_option(value: Optional[str], option: str = "--data") -> Any:
    """Parse an inline JSON string or ``@path`` to a JSON file.

    Returns ``None`` when *value* is ``None``.

    Raises:
        typer.BadParameter: If the file is missing or the JSON is invalid.
    """
    if value is None:
        return None
    text = value
    if value.startswith("@"):
        path = Path(value[1:]).expanduser()
        if not path.is_file():
            raise typer.BadParameter(f"file not found: {path}", param_hint=option)
        text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"invalid JSON: {exc.msg}", param_hint=option) from None


def require_object(value: Any, option: str = "--data") -> dict[str, Any]:
    """Ensure a parsed option is a JSON object."""
    if not isinstance(value, dict):
        raise typer.BadParameter("expected a JSON object", param_hint=option)
    return value
