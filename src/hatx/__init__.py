"""hatx -- cached asynchronous client for an HLA reference data API.

The API serves single-antigen bead assignments, serological equivalences,
serotype assignments and antigen-recognition-domain reductions under a
versioned ``/v1`` root.  :class:`~hatx.client.HatxService` wraps every
endpoint in a coroutine and keeps responses in per-client in-memory pools,
so repeated and concurrent identical lookups cost one network call.

Typical use::

    from hatx import HatxService

    async with HatxService("https://hatx.example.org/api") as hatx:
        beads = await hatx.get_bead_by_allele("A*01:01")

Modules:
    app: Typer command line over the client.
    cache: Key derivation, deduplicating TTL pools and category routing.
    client: The service facade and its HTTP transport.
    config: Construction-time and environment configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    models: Pydantic models for configuration and wire payloads.
    output: stdout/stderr formatting for the command line.
"""

__version__ = "0.3.0"

from hatx.client import HatxService  # noqa: E402
from hatx.models import RequestOptions  # noqa: E402

__all__ = ["HatxService", "RequestOptions", "__version__"]
