"""In-memory response caching for hatx.

This package provides the caching layer that sits between
:class:`~hatx.client.HatxService` and the HTTP transport:

* :func:`make_cache_key` -- deterministic keys from an operation name and
  its request payload.
* :class:`CachePool` -- TTL + LRU storage of pending lookups, so concurrent
  identical requests share one network call and failures are never kept.
* :class:`CacheRouter` -- the general and volatile pools owned by one client,
  plus per-call bypass through :class:`~hatx.models.RequestOptions`.

Nothing here is persisted; every client instance owns its own pools.
"""

from hatx.cache.keys import make_cache_key
from hatx.cache.pool import CachePool
from hatx.cache.router import CacheCategory, CacheRouter

__all__ = ["CacheCategory", "CachePool", "CacheRouter", "make_cache_key"]
