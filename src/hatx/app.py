"""Typer application and CLI entry point for hatx.

This module wires together the root Typer application: the global options
handled by :func:`main_callback`, the ``/system`` commands and one
sub-command group per data category.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  Library errors are turned into exit codes by
:func:`~hatx.commands.runner.run_with_service`; anything else is reported
as an unexpected error.

See Also:
    :mod:`hatx.config`: Resolution of the base URL and cache settings.
    :mod:`hatx.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer

from hatx import __version__
from hatx.commands.records import ard_app, bead_app, serological_app, serotype_app
from hatx.commands.system import changelog_command, health_command, info_command
from hatx.exit_codes import EXIT_GENERIC_FAILURE
from hatx.output import OutputFormat, OutputManager, set_output

app = typer.Typer(
    name="hatx",
    help="Query HLA beads, serological equivalences, serotypes and ARD reductions.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("health")(health_command)
app.command("info")(info_command)
app.command("changelog")(changelog_command)
app.add_typer(bead_app, name="bead", help="Single-antigen bead assignments.")
app.add_typer(serological_app, name="serological", help="Serological equivalences.")
app.add_typer(serotype_app, name="serotype", help="Serotype assignments.")
app.add_typer(ard_app, name="ard", help="Antigen-recognition-domain reductions.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"hatx {__version__}")
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
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-u", help="API root URL (default: $HATX_BASE_URL)."
    ),
    api_version: Optional[str] = typer.Option(
        None, "--api-version", help="API version segment (default: v1)."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Disable the in-memory response cache."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output, including cache activity."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~hatx.output.OutputManager`, routes the
    library's log to stderr and stores the connection options in
    ``ctx.obj`` for :func:`~hatx.commands.runner.run_with_service`.
    Existing ``ctx.obj`` entries (such as an injected transport) are kept.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    output.configure_logging()

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["api_version"] = api_version
    ctx.obj["cache"] = False if no_cache else None


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``hatx`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from hatx.output import get_output

        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
