"""System commands -- health, API metadata and changelog.

These map one-to-one onto the ``/system`` endpoints and take no arguments::

    hatx health
    hatx info --json
    hatx changelog
"""

from __future__ import annotations

import typer

from hatx.commands.runner import run_with_service
from hatx.output import get_output


def health_command(ctx: typer.Context) -> None:
    """Show the health of each API component."""
    result = run_with_service(ctx, lambda service: service.get_system_health())
    get_output().print_mapping(result)


def info_command(ctx: typer.Context) -> None:
    """Show the API title, description and version."""
    result = run_with_service(ctx, lambda service: service.get_system_info())
    get_output().print_mapping(result)


def changelog_command(ctx: typer.Context) -> None:
    """Print the API changelog."""
    text = run_with_service(ctx, lambda service: service.get_system_changelog())
    get_output().print_data(text)
