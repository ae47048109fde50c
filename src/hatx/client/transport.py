"""HTTP transport used by :class:`~hatx.client.service.HatxService`.

The service only depends on the :class:`Transport` protocol: "perform this
request and give me the decoded body, or raise a
:class:`~hatx.exceptions.TransportError`".  :class:`HttpTransport` is the
default implementation on top of :class:`httpx.AsyncClient`; tests and
embedding applications can supply any object with the same ``request``
coroutine.

There is no retry here.  A failed request surfaces immediately so the cache
can drop its pending entry and the caller can decide what to do.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Optional, Protocol

import httpx

from hatx.exceptions import (
    ClientError,
    ConnectionError_,
    NotFoundError,
    ResponseFormatError,
    ServerError,
)

logger = logging.getLogger(__name__)

ResponseFormat = Literal["json", "text"]


class Transport(Protocol):
    """Capability the service needs from a transport."""

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        response_format: ResponseFormat = "json",
    ) -> Any:
        """Send one request and return the decoded response body."""
        ...

    async def aclose(self) -> None:
        """Release any connections held by the transport."""
        ...


class HttpTransport:
    """Asynchronous HTTP transport backed by :class:`httpx.AsyncClient`.

    Args:
        base_url: Versioned API root, e.g. ``https://host/api/v1``.  Paths
            passed to :meth:`request` are appended to it verbatim.
        timeout: Request timeout in seconds.
        verify_ssl: Verify server certificates.
        headers: Headers sent with every request.
        client: Pre-built :class:`httpx.AsyncClient` to use instead of
            creating one.  The caller keeps ownership of an injected client
            and must close it.

    Example::

        async with HttpTransport("https://hatx.example.org/api/v1") as transport:
            health = await transport.request("GET", "/system/health")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        verify_ssl: bool = True,
        headers: Optional[dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            verify=verify_ssl,
            headers=headers,
            follow_redirects=True,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        response_format: ResponseFormat = "json",
    ) -> Any:
        """Send a request and return the decoded body.

        Args:
            method: HTTP method (GET, POST).
            path: Path below the versioned base URL, e.g. ``/bead/filter``.
            params: Query parameters.  ``None`` values are dropped.
            headers: Extra request headers.
            json_body: JSON-serialisable request body.
            response_format: ``"json"`` to decode the body as JSON, ``"text"``
                to return it as a string.

        Returns:
            The decoded JSON value or the body text.

        Raises:
            NotFoundError: On 404.
            ClientError: On any other 4xx.
            ServerError: On 5xx.
            ConnectionError_: On network errors and timeouts.
            ResponseFormatError: When a JSON body cannot be decoded.
        """
        url = f"{self._base_url}{path}"
        kwargs: dict[str, Any] = {"method": method, "url": url}
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if headers:
            kwargs["headers"] = headers
        if json_body is not None:
            kwargs["json"] = json_body

        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(**kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(f"{method} {url} failed: {exc}") from exc

        self._map_response_error(response)
        return self._decode(response, response_format)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("detail") or detail.get("message") or detail.get("error") or ""
                if not isinstance(msg, str):
                    msg = json.dumps(msg)
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status == 404:
            raise NotFoundError(full_msg, status_code=status)
        if status >= 500:
            raise ServerError(full_msg, status_code=status)
        raise ClientError(full_msg, status_code=status)

    @staticmethod
    def _decode(response: httpx.Response, response_format: ResponseFormat) -> Any:
        if response_format == "text":
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseFormatError(
                f"Expected a JSON body from {response.request.url}: {exc}",
                status_code=response.status_code,
            ) from exc
