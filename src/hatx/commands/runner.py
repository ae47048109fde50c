"""Bridge between synchronous Typer commands and the async client.

:func:`run_with_service` resolves the configuration from the root
callback's options, runs one coroutine against a fresh
:class:`~hatx.client.HatxService` and converts
:class:`~hatx.exceptions.HatxError` into a clean exit with the error's code.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer

from hatx.client import HatxService
from hatx.config import resolve_config
from hatx.exceptions import HatxError
from hatx.output import get_output

T = TypeVar("T")


def run_with_service(ctx: typer.Context, operation: Callable[[HatxService], Awaitable[T]]) -> T:
    """Run *operation* with a service built from the invocation's options.

    ``ctx.obj`` is populated by :func:`hatx.app.main_callback`.  A
    ``"transport"`` entry, when present, replaces the HTTP transport; tests
    pass one through ``CliRunner.invoke(..., obj=...)``.

    Raises:
        typer.Exit: With the error's exit code when the lookup fails.
    """
    obj: dict[str, Any] = ctx.find_root().obj or {}
    output = get_output()

    async def _run() -> T:
        config = resolve_config(
            cli_base_url=obj.get("base_url"),
            cli_version=obj.get("api_version"),
            cli_cache=obj.get("cache"),
        )
        output.debug(f"Using {config.base_url.rstrip('/')}/{config.version.strip('/')}")
        async with HatxService(config=config, transport=obj.get("transport")) as service:
            return await operation(service)

    try:
        return asyncio.run(_run())
    except HatxError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
