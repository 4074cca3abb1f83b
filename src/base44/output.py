"""Terminal output for the ``base44`` CLI.

Records and other command results go to **stdout**; status messages,
warnings and errors go to **stderr**, so ``base44 entities list Task --json``
can be piped into other tools.

Three formats are supported:

* ``json`` -- indented JSON, always parseable;
* ``plain`` -- tab-separated lines, one record per line;
* ``rich`` -- tables for record lists, highlighted JSON for everything else.

``auto`` picks ``rich`` on an interactive, colour-capable terminal and
``plain`` otherwise. ``NO_COLOR`` and ``TERM=dumb`` disable colour.

:class:`OutputManager` is installed once by the CLI callback via
:func:`set_output`; commands reach it through :func:`get_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

# Columns shown first when rendering records as a table.
_LEADING_COLUMNS = ("id", "created_date", "updated_date")
_MAX_CELL_WIDTH = 60


class OutputFormat(str, Enum):
    """Output formats selectable with ``--json`` / ``--plain``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes CLI output to stdout (data) or stderr (diagnostics).

    Args:
        format: Desired output format; ``AUTO`` is resolved from the terminal.
        no_color: Disable colour and Rich markup.
        quiet: Suppress informational and success messages.
        verbose: Show debug messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any, title: Optional[str] = None) -> None:
        """Print a command result in the active format.

        A list of records (dicts) renders as a table in Rich mode; any other
        value renders as highlighted JSON or text. ``None`` prints nothing.

        Args:
            data: Decoded response body.
            title: Table title in Rich mode (usually the entity name).
        """
        if data is None:
            return
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        elif _is_record_list(data) and data:
            self._print_record_table(data, title)
        elif isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, None)

    def success(self, message: str) -> None:
        """Print a success message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, "[green]{}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning. Shown even with ``--quiet``."""
        if self._no_color:
            self._emit(f"Warning: {message}", None)
        else:
            self._emit(message, "[yellow]Warning:[/yellow] {}")

    def error(self, message: str) -> None:
        """Print an error. Never suppressed."""
        if self._no_color:
            self._emit(f"Error: {message}", None)
        else:
            self._emit(message, "[bold red]Error:[/bold red] {}")

    def suggest(self, message: str) -> None:
        """Print a next-step hint, prefixed with an arrow. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(f"→ {message}", "[dim]{}[/dim]")

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", "[dim]{}[/dim]")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _emit(self, message: str, markup: Optional[str]) -> None:
        if self._no_color or markup is None:
            print(message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup.format(message), markup=True, highlight=False)

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                self.print_data(f"{key}\t{_cell(value)}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(_cell(v) for v in item.values()))
                else:
                    self.print_data(_cell(item))
        else:
            self.print_data(str(data))

    def _print_record_table(self, records: list[dict[str, Any]], title: Optional[str]) -> None:
        columns = record_columns(records)
        table = Table(title=title, show_header=True, header_style="bold cyan")
        for column in columns:
            table.add_column(column, overflow="ellipsis", max_width=_MAX_CELL_WIDTH)
        for record in records:
            table.add_row(*(_cell(record.get(column)) for column in columns))
        self._stdout.print(table)


def record_columns(records: list[dict[str, Any]]) -> list[str]:
    """Return table columns: ``id`` and timestamps first, then keys in first-seen order."""
    seen: list[str] = []
    for record in records:
        for key in record:
            if key not in seen:
                seen.append(key)
    leading = [key for key in _LEADING_COLUMNS if key in seen]
    return leading + [key for key in seen if key not in leading]


def _is_record_list(data: Any) -> bool:
    return isinstance(data, list) and all(isinstance(item, dict) for item in data)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one if needed."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager (used between tests)."""
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def format_response(data: Any, title: Optional[str] = None) -> None:
    """Render *data* to stdout via the global :class:`OutputManager`."""
    get_output().format_response(data, title)


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def success(message: str) -> None:
    """Print success message to stderr via the global OutputManager."""
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    """Print next-step suggestion to stderr via the global OutputManager."""
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
