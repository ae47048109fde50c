"""Canonical Pydantic models shared across all hatx modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- supplied when a client is constructed:
    :class:`CacheConfig` and :class:`ServiceConfig`.

**Per-call options** -- :class:`RequestOptions`, which can bypass the local
cache or ask the remote service to recompute its data.

**Wire models** -- requests sent to and records returned by the ``/v1`` API:
    :class:`SystemInfo`, :class:`Bead`, :class:`BeadQuery`,
    :class:`BeadFilterQuery`, :class:`SerologicalEquivalent`,
    :class:`SerologicalQuery`, :class:`Serotype`, :class:`SerotypeQuery`,
    :class:`SerotypeFilterQuery`, :class:`ArdReduction` and
    :class:`ArdReduceQuery`.

Field translation between the Python names and the API's snake_case names is
declared once here through aliases. Request models are turned into request
bodies with :meth:`WireModel.to_wire`; responses are parsed with
``model_validate``.  Neither direction involves the cache.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_VERSION = "v1"
DEFAULT_CACHE_MAX_ENTRIES = 1000
DEFAULT_CACHE_TTL_SECONDS = 60 * 60
DEFAULT_VOLATILE_TTL_SECONDS = 15 * 60


# --- Configuration ---


class CacheConfig(BaseModel):
    """Response cache settings for one :class:`~hatx.client.HatxService`.

    Two pools are built from this config: a general pool using
    ``ttl_seconds`` and a volatile pool (serological equivalences) using
    :attr:`effective_volatile_ttl`.  Both share ``max_entries``.
    """

    enabled: bool = Field(default=True, description="Enable response caching")
    max_entries: int = Field(
        default=DEFAULT_CACHE_MAX_ENTRIES,
        gt=0,
        description="Maximum number of entries per pool",
    )
    ttl_seconds: float = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        gt=0,
        description="TTL of the general pool in seconds",
    )
    volatile_ttl_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="TTL of the volatile pool in seconds",
    )

    @property
    def effective_volatile_ttl(self) -> float:
        """TTL of the volatile pool.

        An explicit ``volatile_ttl_seconds`` wins.  Otherwise an explicitly
        set ``ttl_seconds`` applies to both pools, and only when neither was
        given does the volatile pool fall back to its own 15 minute default.
        """
        if self.volatile_ttl_seconds is not None:
            return self.volatile_ttl_seconds
        if "ttl_seconds" in self.model_fields_set:
            return self.ttl_seconds
        return DEFAULT_VOLATILE_TTL_SECONDS


class ServiceConfig(BaseModel):
    """Connection settings for :class:`~hatx.client.HatxService`.

    ``base_url`` is the server root *without* the version segment; the
    client appends ``/<version>`` itself.

    Example::

        ServiceConfig(
            base_url="https://hatx.example.org/api",
            cache=CacheConfig(volatile_ttl_seconds=300),
        )
    """

    base_url: str = Field(description="Root URL of the API, without the version segment")
    version: str = Field(default=DEFAULT_VERSION, description="API version path segment")
    timeout: float = Field(default=30, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)


class RequestOptions(BaseModel):
    """Per-call overrides accepted by every record lookup.

    Both flags skip the local cache for the call: nothing is read from it
    and nothing is written to it.  ``refresh_data`` additionally sends the
    ``Refresh-Data: true`` header so the server recomputes before answering.
    """

    model_config = ConfigDict(frozen=True)

    refresh: bool = False
    refresh_data: bool = False

    @property
    def bypass_cache(self) -> bool:
        return self.refresh or self.refresh_data


# --- Enumerations ---


class Manufacturer(str, enum.Enum):
    """Single-antigen bead kit vendors."""

    ONE_LAMBDA = "ONE_LAMBDA"
    IMMUCOR = "IMMUCOR"


class Kit(str, enum.Enum):
    STANDARD = "STANDARD"
    EXPLEX = "EXPLEX"


class ArdGroup(str, enum.Enum):
    """Antigen-recognition-domain reduction groups."""

    P_GROUP = "p_group"
    G_GROUP = "g_group"
    COMMON_GROUP = "common_group"


# --- Wire models ---


class WireModel(BaseModel):
    """Base class for every model that crosses the wire.

    Accepts both Python field names and wire aliases on input, and
    serialises by alias so request bodies match what the API expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Return the request body for this model.

        Fields left as ``None`` are omitted rather than sent as ``null``.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SystemInfo(WireModel):
    title: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None


class Bead(WireModel):
    allele: str
    manufacturer: Manufacturer
    kit: Kit


class BeadQuery(WireModel):
    alleles: list[str]


class BeadFilterQuery(WireModel):
    """Filter for ``POST /bead/filter``.  Every criterion is optional."""

    allele: Optional[str] = None
    antigen: Optional[str] = None
    serotype: Optional[str] = None
    serotype_from_allele: Optional[str] = None
    comment: Optional[str] = None
    manufacturer: Optional[Manufacturer] = None
    version: Optional[int] = None


class SerologicalEquivalent(WireModel):
    allele: str
    abhi: Optional[str] = None
    imgt: Optional[str] = None


class SerologicalQuery(WireModel):
    alleles: list[str]


class Serotype(WireModel):
    """Serotype assignment for one allele.

    The API names two columns after their nomenclature release
    (``ciwd_3_0``, ``cwd_2_0``); they are exposed as :attr:`ciwd30` and
    :attr:`cwd20`.
    """

    allele: str
    comment: str
    serotype: str
    inputted_antigen: str
    broad: str
    ciwd30: str = Field(alias="ciwd_3_0")
    cwd20: str = Field(alias="cwd_2_0")
    eurcwd: str
    bw: str
    version: int


class SerotypeQuery(WireModel):
    alleles: list[str]
    version: Optional[int] = None


class SerotypeFilterQuery(WireModel):
    """Filter for ``POST /serotype/filter``.  Every criterion is optional."""

    allele: Optional[str] = None
    antigen: Optional[str] = None
    serotype: Optional[str] = None
    serotype_from_allele: Optional[str] = None
    comment: Optional[str] = None
    manufacturer: Optional[Manufacturer] = None
    n_field: Optional[int] = None
    version: Optional[int] = None


class ArdReduction(WireModel):
    allele: str
    group: ArdGroup
    value: str


class ArdReduceQuery(WireModel):
    alleles: list[str]
    group: Optional[ArdGroup] = None
