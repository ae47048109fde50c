"""HTTP client module for hatx.

Classes:
    :class:`HatxService` -- the cached asynchronous API client.
    :class:`HttpTransport` -- default transport backed by :class:`httpx.AsyncClient`.
    :class:`Transport` -- protocol for custom transports.

Example::

    from hatx.client import HatxService

    async with HatxService("https://hatx.example.org/api") as hatx:
        info = await hatx.get_system_info()
"""

from hatx.client.service import HatxService
from hatx.client.transport import HttpTransport, Transport

__all__ = ["HatxService", "HttpTransport", "Transport"]
