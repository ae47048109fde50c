"""Configuration resolution for hatx clients.

The library itself is configured only through constructor arguments;
:func:`build_service_config` turns those arguments into a validated
:class:`~hatx.models.ServiceConfig`.  The ``hatx`` command line adds one
more layer: :func:`resolve_config` reads environment variables so a base URL
does not have to be repeated on every invocation.

Precedence (high to low):
    1. CLI flags / constructor arguments
    2. Environment variables (``HATX_BASE_URL``, ``HATX_API_VERSION``,
       ``HATX_CACHE``, ``HATX_TIMEOUT``)
    3. Defaults from :mod:`hatx.models`
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Optional, Union

import pydantic

from hatx.exceptions import ConfigurationError
from hatx.models import CacheConfig, ServiceConfig

ENV_BASE_URL = "HATX_BASE_URL"
ENV_API_VERSION = "HATX_API_VERSION"
ENV_CACHE = "HATX_CACHE"
ENV_TIMEOUT = "HATX_TIMEOUT"

_FALSE_VALUES = {"0", "false", "no", "off"}
_TRUE_VALUES = {"1", "true", "yes", "on"}

CacheOption = Union[bool, CacheConfig, Mapping[str, Any], None]


def resolve_cache_config(cache: CacheOption) -> CacheConfig:
    """Normalise the ``cache`` constructor argument.

    Args:
        cache: ``None`` or ``True`` for defaults, ``False`` to disable
            caching, a :class:`~hatx.models.CacheConfig`, or a mapping of its
            fields.

    Returns:
        The validated cache configuration.

    Raises:
        ConfigurationError: If a mapping fails validation.
    """
    if cache is None or cache is True:
        return CacheConfig()
    if cache is False:
        return CacheConfig(enabled=False)
    if isinstance(cache, CacheConfig):
        return cache
    try:
        return CacheConfig.model_validate(dict(cache))
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid cache configuration: {exc}") from exc


def build_service_config(
    base_url: Optional[str] = None,
    version: Optional[str] = None,
    cache: CacheOption = None,
    config: Optional[ServiceConfig] = None,
) -> ServiceConfig:
    """Merge explicit arguments over an optional base :class:`ServiceConfig`.

    Raises:
        ConfigurationError: If the resulting base URL is missing or blank.
    """
    updates: dict[str, Any] = {}
    if base_url is not None:
        updates["base_url"] = base_url
    if version is not None:
        updates["version"] = version
    if cache is not None:
        updates["cache"] = resolve_cache_config(cache)

    if config is not None:
        merged = config.model_copy(update=updates)
    else:
        if not updates.get("base_url"):
            raise ConfigurationError("HatxService requires a base URL.")
        try:
            merged = ServiceConfig(**updates)
        except pydantic.ValidationError as exc:
            raise ConfigurationError(f"Invalid service configuration: {exc}") from exc

    if not merged.base_url or not merged.base_url.strip():
        raise ConfigurationError("HatxService requires a base URL.")
    if not merged.version.strip("/ "):
        raise ConfigurationError("API version segment must not be empty.")
    return merged


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_version: Optional[str] = None,
    cli_cache: Optional[bool] = None,
) -> ServiceConfig:
    """Resolve the command line's :class:`ServiceConfig` from flags and environment.

    Args:
        cli_base_url: ``--base-url`` flag value.
        cli_version: ``--api-version`` flag value.
        cli_cache: ``False`` when ``--no-cache`` was passed.

    Returns:
        The effective configuration.

    Raises:
        ConfigurationError: If no base URL is available or an environment
            variable holds an unparseable value.
    """
    base_url = cli_base_url or os.environ.get(ENV_BASE_URL) or None
    version = cli_version or os.environ.get(ENV_API_VERSION) or None

    cache: CacheOption = cli_cache
    if cache is None and os.environ.get(ENV_CACHE):
        cache = _parse_bool(ENV_CACHE, os.environ[ENV_CACHE])

    config = build_service_config(base_url=base_url, version=version, cache=cache)

    timeout = os.environ.get(ENV_TIMEOUT)
    if timeout:
        try:
            config = config.model_copy(update={"timeout": float(timeout)})
        except ValueError as exc:
            raise ConfigurationError(
                f"{ENV_TIMEOUT} must be a number of seconds, got {timeout!r}"
            ) from exc
    return config


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")
