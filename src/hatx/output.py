"""Output formatting for the ``hatx`` command line.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- records only (JSON, tab-separated rows or a Rich table).
* **stderr** -- diagnostics: errors, warnings and, with ``--verbose``, the
  library's debug log (cache hits, misses, evictions, HTTP requests).
* **TTY detection** -- Rich tables when stdout is an interactive terminal,
  plain text when piped.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb`` and
  ``--no-color``.

:class:`OutputManager` holds the format preferences and consoles; the
module-level :func:`get_output`/:func:`set_output` pair shares one instance
across commands.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional, Sequence

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats.

    ``AUTO`` resolves to ``RICH`` for an interactive, colour-capable stdout
    and to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes command output to stdout and diagnostics to stderr.

    Args:
        format: Desired output format.  ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Show debug messages and the library's debug log on stderr.
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
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_records(self, records: Sequence[Any], title: Optional[str] = None) -> None:
        """Print a list of records in the active format.

        Pydantic models are dumped with their Python field names.  Columns
        are taken from the first record.

        * **JSON mode** -- a JSON array.
        * **Plain mode** -- a tab-separated header line, then one row per record.
        * **Rich mode** -- a :class:`~rich.table.Table`.
        """
        rows = [_as_dict(record) for record in records]
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(rows, indent=2, ensure_ascii=False, default=str))
            return
        if not rows:
            self.info("No records found.")
            return

        headers = list(rows[0])
        if self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(_cell(row.get(h)) for h in headers))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*(_cell(row.get(h)) for h in headers))
            self._stdout.print(table)

    def print_mapping(self, data: Any) -> None:
        """Print a single mapping (or model) as key/value pairs."""
        mapping = _as_dict(data)
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(mapping, indent=2, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN:
            for key, value in mapping.items():
                self.print_data(f"{key}\t{_cell(value)}")
        else:
            table = Table(show_header=False)
            table.add_column(style="bold")
            table.add_column()
            for key, value in mapping.items():
                table.add_row(str(key), _cell(value))
            self._stdout.print(table)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(message)

    def error(self, message: str) -> None:
        """Print an error to stderr. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown with ``--verbose``."""
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[dim]\\[debug] {escape(message)}[/dim]")

    def configure_logging(self) -> None:
        """Send the ``hatx`` logger to stderr, at DEBUG when verbose."""
        logger = logging.getLogger("hatx")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        handler = RichHandler(console=self._stderr, show_path=False, markup=False)
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self._verbose else logging.WARNING)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _as_dict(data: Any) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, dict):
        return data
    return {"value": data}


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None
