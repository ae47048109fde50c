"""Public asynchronous client for the HLA reference data API.

:class:`HatxService` exposes one coroutine per API operation.  Each call

1. validates its required inputs and fails fast with
   :class:`~hatx.exceptions.ValidationError`;
2. builds the wire request (query parameters or a snake_case body);
3. derives a cache key with :func:`~hatx.cache.keys.make_cache_key`;
4. runs the request through :class:`~hatx.cache.router.CacheRouter`, which
   shares in-flight calls and keeps results for the pool's TTL;
5. parses the response into the models from :mod:`hatx.models`.

Serological equivalences are cached in the short-lived volatile pool; every
other operation uses the general pool.

Example::

    async with HatxService("https://hatx.example.org/api") as hatx:
        beads = await hatx.get_bead_by_allele("A*01:01")
        fresh = await hatx.get_serological_by_allele(
            "A*01:01", options=RequestOptions(refresh_data=True)
        )
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional, TypeVar, Union

import httpx
import pydantic
from pydantic import TypeAdapter

from hatx.cache import CacheCategory, CacheRouter, make_cache_key
from hatx.client.transport import HttpTransport, ResponseFormat, Transport
from hatx.config import build_service_config
from hatx.exceptions import ResponseFormatError, ValidationError
from hatx.models import (
    ArdGroup,
    ArdReduceQuery,
    ArdReduction,
    Bead,
    BeadFilterQuery,
    BeadQuery,
    CacheConfig,
    RequestOptions,
    SerologicalEquivalent,
    SerologicalQuery,
    Serotype,
    SerotypeFilterQuery,
    SerotypeQuery,
    ServiceConfig,
    SystemInfo,
    WireModel,
)

REFRESH_DATA_HEADER = "Refresh-Data"

M = TypeVar("M", bound=WireModel)
T = TypeVar("T")

_BEADS = TypeAdapter(list[Bead])
_SEROLOGICAL = TypeAdapter(list[SerologicalEquivalent])
_SEROTYPES = TypeAdapter(list[Serotype])
_ARD = TypeAdapter(list[ArdReduction])
_HEALTH = TypeAdapter(dict[str, str])
_INFO = TypeAdapter(SystemInfo)


class HatxService:
    """Cached asynchronous client for the ``/v1`` reference data API.

    Args:
        base_url: Root URL of the API without the version segment.  Required
            unless *config* is given.
        version: API version segment, ``"v1"`` by default.
        cache: ``True`` for the default pools, ``False`` to disable caching,
            or a :class:`~hatx.models.CacheConfig` (or mapping) with explicit
            capacity and TTLs.
        config: Complete :class:`~hatx.models.ServiceConfig`; the other
            connection arguments override its fields when given.
        transport: Object implementing :class:`~hatx.client.transport.Transport`.
            Defaults to an :class:`~hatx.client.transport.HttpTransport`.
        http_client: Pre-built :class:`httpx.AsyncClient` for the default
            transport.  Ignored when *transport* is given.
        timer: Monotonic clock used for cache expiry.

    List and mapping results are shallow copies of the cached value; the
    record models inside them are shared between callers and should be
    treated as read-only.

    Raises:
        ConfigurationError: If no base URL is configured.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        version: Optional[str] = None,
        cache: Union[bool, CacheConfig, Mapping[str, Any], None] = None,
        *,
        config: Optional[ServiceConfig] = None,
        transport: Optional[Transport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = build_service_config(
            base_url=base_url, version=version, cache=cache, config=config
        )
        self._base_path = (
            f"{self._config.base_url.rstrip('/')}/{self._config.version.strip('/')}"
        )
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpTransport(
            self._base_path,
            timeout=self._config.timeout,
            verify_ssl=self._config.verify_ssl,
            headers=self._config.headers,
            client=http_client,
        )
        self._router = CacheRouter(self._config.cache, timer=timer)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def base_path(self) -> str:
        """Versioned API root every request path is appended to."""
        return self._base_path

    async def __aenter__(self) -> HatxService:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this service created it."""
        if self._owns_transport:
            await self._transport.aclose()

    # ------------------------------------------------------------------ #
    # System
    # ------------------------------------------------------------------ #

    async def get_system_health(self) -> dict[str, str]:
        """Return the component health map from ``GET /system/health``."""
        return await self._call(
            make_cache_key("system:health"),
            "GET",
            "/system/health",
            parse=lambda data: _parse(_HEALTH, data, "/system/health"),
        )

    async def get_system_info(self) -> SystemInfo:
        """Return the API title, description and version."""
        return await self._call(
            make_cache_key("system:info"),
            "GET",
            "/system/info",
            parse=lambda data: _parse(_INFO, data, "/system/info"),
        )

    async def get_system_changelog(self) -> str:
        """Return the changelog as plain text."""
        return await self._call(
            make_cache_key("system:changelog"),
            "GET",
            "/system/changelog",
            response_format="text",
        )

    # ------------------------------------------------------------------ #
    # Beads
    # ------------------------------------------------------------------ #

    async def get_bead_by_allele(
        self, allele: str, options: Optional[RequestOptions] = None
    ) -> list[Bead]:
        """Return the single-antigen beads carrying *allele*.

        Raises:
            ValidationError: If *allele* is empty or whitespace.
        """
        _require_identifier(allele, "allele")
        return await self._call(
            make_cache_key("bead:get", allele),
            "GET",
            "/bead",
            params={"allele": allele},
            options=options,
            parse=lambda data: _parse(_BEADS, data, "/bead"),
        )

    async def query_beads(
        self,
        query: Union[BeadQuery, Mapping[str, Any]],
        options: Optional[RequestOptions] = None,
    ) -> list[Bead]:
        """Return the beads for several alleles at once.

        Raises:
            ValidationError: If ``alleles`` is missing or empty.
        """
        body = _coerce(BeadQuery, query).to_wire()
        _require_identifiers(body.get("alleles"), "alleles")
        return await self._call(
            make_cache_key("bead:query", payload=body),
            "POST",
            "/bead",
            body=body,
            options=options,
            parse=lambda data: _parse(_BEADS, data, "/bead"),
        )

    async def filter_beads(
        self,
        query: Union[BeadFilterQuery, Mapping[str, Any], None] = None,
        options: Optional[RequestOptions] = None,
    ) -> list[Bead]:
        """Return the beads matching every criterion set in *query*.

        An empty filter is valid and matches broadly.
        """
        body = _coerce(BeadFilterQuery, query).to_wire()
        return await self._call(
            make_cache_key("bead:filter", payload=body),
            "POST",
            "/bead/filter",
            body=body,
            options=options,
            parse=lambda data: _parse(_BEADS, data, "/bead/filter"),
        )

    # ------------------------------------------------------------------ #
    # Serological equivalences (volatile pool)
    # ------------------------------------------------------------------ #

    async def get_serological_by_allele(
        self, allele: str, options: Optional[RequestOptions] = None
    ) -> list[SerologicalEquivalent]:
        """Return the serological equivalents of *allele*.

        Raises:
            ValidationError: If *allele* is empty or whitespace.
        """
        _require_identifier(allele, "allele")
        return await self._call(
            make_cache_key("serological:get", allele),
            "GET",
            "/serological",
            params={"allele": allele},
            category=CacheCategory.VOLATILE,
            options=options,
            parse=lambda data: _parse(_SEROLOGICAL, data, "/serological"),
        )

    async def query_serological(
        self,
        query: Union[SerologicalQuery, Mapping[str, Any]],
        options: Optional[RequestOptions] = None,
    ) -> list[SerologicalEquivalent]:
        """Return the serological equivalents of several alleles.

        Raises:
            ValidationError: If ``alleles`` is missing or empty.
        """
        body = _coerce(SerologicalQuery, query).to_wire()
        _require_identifiers(body.get("alleles"), "alleles")
        return await self._call(
            make_cache_key("serological:query", payload=body),
            "POST",
            "/serological",
            body=body,
            category=CacheCategory.VOLATILE,
            options=options,
            parse=lambda data: _parse(_SEROLOGICAL, data, "/serological"),
        )

    # ------------------------------------------------------------------ #
    # Serotypes
    # ------------------------------------------------------------------ #

    async def get_serotype_by_allele(
        self,
        allele: str,
        version: Optional[int] = None,
        options: Optional[RequestOptions] = None,
    ) -> list[Serotype]:
        """Return the serotype assignments of *allele*.

        Args:
            allele: Allele name, e.g. ``"A*01:01"``.
            version: Assignment table version; the latest when omitted.
            options: Per-call cache overrides.

        Raises:
            ValidationError: If *allele* is empty or whitespace.
        """
        _require_identifier(allele, "allele")
        return await self._call(
            make_cache_key("serotype:get", allele, "latest" if version is None else version),
            "GET",
            "/serotype",
            params={"allele": allele, "version": version},
            options=options,
            parse=lambda data: _parse(_SEROTYPES, data, "/serotype"),
        )

    async def query_serotypes(
        self,
        query: Union[SerotypeQuery, Mapping[str, Any]],
        options: Optional[RequestOptions] = None,
    ) -> list[Serotype]:
        """Return the serotype assignments of several alleles.

        Raises:
            ValidationError: If ``alleles`` is missing or empty.
        """
        body = _coerce(SerotypeQuery, query).to_wire()
        _require_identifiers(body.get("alleles"), "alleles")
        return await self._call(
            make_cache_key("serotype:query", payload=body),
            "POST",
            "/serotype",
            body=body,
            options=options,
            parse=lambda data: _parse(_SEROTYPES, data, "/serotype"),
        )

    async def filter_serotypes(
        self,
        query: Union[SerotypeFilterQuery, Mapping[str, Any], None] = None,
        options: Optional[RequestOptions] = None,
    ) -> list[Serotype]:
        """Return the serotype assignments matching every criterion set in *query*."""
        body = _coerce(SerotypeFilterQuery, query).to_wire()
        return await self._call(
            make_cache_key("serotype:filter", payload=body),
            "POST",
            "/serotype/filter",
            body=body,
            options=options,
            parse=lambda data: _parse(_SEROTYPES, data, "/serotype/filter"),
        )

    # ------------------------------------------------------------------ #
    # Antigen-recognition-domain reduction
    # ------------------------------------------------------------------ #

    async def get_ard_reduction(
        self,
        allele: str,
        group: Optional[ArdGroup] = None,
        options: Optional[RequestOptions] = None,
    ) -> list[ArdReduction]:
        """Reduce *allele* to its ARD group; the server picks the group when omitted.

        Raises:
            ValidationError: If *allele* is empty or whitespace.
        """
        _require_identifier(allele, "allele")
        group_value = _ard_group(group)
        return await self._call(
            make_cache_key("ard:get", allele, group_value or "default"),
            "GET",
            "/ard/reduce",
            params={"allele": allele, "group": group_value},
            options=options,
            parse=lambda data: _parse(_ARD, data, "/ard/reduce"),
        )

    async def reduce_alleles(
        self,
        query: Union[ArdReduceQuery, Mapping[str, Any]],
        options: Optional[RequestOptions] = None,
    ) -> list[ArdReduction]:
        """Reduce several alleles at once.

        Raises:
            ValidationError: If ``alleles`` is missing or empty.
        """
        body = _coerce(ArdReduceQuery, query).to_wire()
        _require_identifiers(body.get("alleles"), "alleles")
        return await self._call(
            make_cache_key("ard:query", payload=body),
            "POST",
            "/ard/reduce",
            body=body,
            options=options,
            parse=lambda data: _parse(_ARD, data, "/ard/reduce"),
        )

    # ------------------------------------------------------------------ #
    # Cache management
    # ------------------------------------------------------------------ #

    def clear_cache(self) -> None:
        """Drop every cached entry from both pools."""
        self._router.clear()

    def cache_stats(self) -> dict[str, Any]:
        """Return statistics for both pools, see :meth:`CacheRouter.stats`."""
        return self._router.stats()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _call(
        self,
        key: str,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        body: Optional[Any] = None,
        category: CacheCategory = CacheCategory.GENERAL,
        options: Optional[RequestOptions] = None,
        response_format: ResponseFormat = "json",
        parse: Optional[Callable[[Any], T]] = None,
    ) -> Any:
        """Route one request through the cache and parse its response."""
        headers: dict[str, str] = {}
        if options is not None and options.refresh_data:
            headers[REFRESH_DATA_HEADER] = "true"

        async def factory() -> Any:
            data = await self._transport.request(
                method,
                path,
                params=params,
                headers=headers or None,
                json_body=body,
                response_format=response_format,
            )
            return parse(data) if parse is not None else data

        result = await self._router.resolve(key, factory, category, options)
        # Cached containers are shared; hand each caller its own.
        if isinstance(result, list):
            return list(result)
        if isinstance(result, dict):
            return dict(result)
        return result


def _require_identifier(value: Any, field: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Expected a non-empty value for {field}.")


def _require_identifiers(values: Any, field: str) -> None:
    if isinstance(values, str) or not isinstance(values, Sequence) or len(values) == 0:
        raise ValidationError(f"Expected {field} to be a non-empty list.")


def _ard_group(group: Union[ArdGroup, str, None]) -> Optional[str]:
    if group is None:
        return None
    try:
        return ArdGroup(group).value
    except ValueError as exc:
        raise ValidationError(f"Unknown ARD group: {group!r}") from exc


def _coerce(model: type[M], value: Union[M, Mapping[str, Any], None]) -> M:
    """Accept either a model instance or a plain mapping of its fields."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value or {})
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {model.__name__}: {exc}") from exc


def _parse(adapter: TypeAdapter, data: Any, path: str) -> Any:
    try:
        return adapter.validate_python(data)
    except pydantic.ValidationError as exc:
        raise ResponseFormatError(f"Unexpected response shape from {path}: {exc}") from exc
