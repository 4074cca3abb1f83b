"""Typer application and CLI entry point for ``base44``.

The root callback collects connection options (``--app-id``,
``--server-url``, ``--env``, ``--token``) into ``ctx.obj`` and installs the
global :class:`~base44.output.OutputManager`. Sub-command groups live in
:mod:`base44.commands`:

* ``base44 auth`` -- login, logout, whoami, status;
* ``base44 entities`` -- CRUD on entity records;
* ``base44 integrations`` -- call integration endpoints.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Errors raised by the client exit with
:attr:`Base44Error.exit_code <base44.exceptions.Base44Error.exit_code>`;
anything else writes a crash log under the data directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from base44 import __version__
from base44.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="base44",
    help="Work with a base44 application from the terminal.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from base44.commands.auth import auth_app  # noqa: E402
from base44.commands.entities import entities_app  # noqa: E402
from base44.commands.integrations import integrations_app  # noqa: E402

app.add_typer(auth_app, name="auth", help="Log in, log out and inspect the current user.")
app.add_typer(entities_app, name="entities", help="Create, read, update and delete entity records.")
app.add_typer(integrations_app, name="integrations", help="Call integration endpoints.")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"base44 {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    app_id: Optional[str] = typer.Option(
        None, "--app-id", help="Application id (overrides BASE44_APP_ID and base44.json)."
    ),
    server_url: Optional[str] = typer.Option(
        None, "--server-url", help="Backend base URL (default https://base44.app)."
    ),
    env: Optional[str] = typer.Option(None, "--env", help="Application environment: prod or dev."),
    token: Optional[str] = typer.Option(
        None, "--token", help="Access token for this invocation only (not saved)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging on stderr."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the output manager, turns on DEBUG logging for ``--verbose``
    and stores the connection options in ``ctx.obj`` for
    :func:`~base44.commands.open_client`.
    """
    from base44.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=_LOG_FORMAT)

    ctx.ensure_object(dict)
    ctx.obj["app_id"] = app_id
    ctx.obj["server_url"] = server_url
    ctx.obj["env"] = env
    ctx.obj["token"] = token
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to ``<data_dir>/logs`` and return the file path."""
    from base44.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """Console-script entry point.

    Raises:
        SystemExit: Always (from Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from base44.exceptions import Base44Error
        from base44.output import error

        if isinstance(exc, Base44Error):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
