"""Routes facade calls to the general or the volatile cache pool.

Serological equivalences change more often than the other reference data,
so they are kept in a separate pool with a shorter TTL.  The two pools are
independent: the same key string can live in both without interference.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from hatx.cache.pool import CachePool
from hatx.models import CacheConfig, RequestOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheCategory(str, enum.Enum):
    """Retention class of an operation's results."""

    GENERAL = "general"
    VOLATILE = "volatile"


class CacheRouter:
    """Owns one facade's pools and decides, per call, whether and where to cache.

    When *config* disables caching no pools are created and every call goes
    straight to its factory.

    Args:
        config: Capacity and TTLs for both pools.
        timer: Clock shared by both pools; injected by tests.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        config = config or CacheConfig()
        self._general: Optional[CachePool] = None
        self._volatile: Optional[CachePool] = None
        if config.enabled:
            self._general = CachePool(
                CacheCategory.GENERAL.value,
                max_entries=config.max_entries,
                ttl_seconds=config.ttl_seconds,
                timer=timer,
            )
            self._volatile = CachePool(
                CacheCategory.VOLATILE.value,
                max_entries=config.max_entries,
                ttl_seconds=config.effective_volatile_ttl,
                timer=timer,
            )

    @property
    def enabled(self) -> bool:
        return self._general is not None

    def pool_for(self, category: CacheCategory) -> Optional[CachePool]:
        """Return the pool that stores *category*, or ``None`` when caching is off."""
        if category is CacheCategory.VOLATILE:
            return self._volatile
        return self._general

    async def resolve(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        category: CacheCategory = CacheCategory.GENERAL,
        options: Optional[RequestOptions] = None,
    ) -> T:
        """Run *factory* through the pool for *category* unless the call bypasses caching.

        A bypassed call neither reads an existing entry nor leaves a new one
        behind, so entries cached by normal calls are unaffected by it.
        """
        pool = self.pool_for(category)
        if pool is None:
            return await factory()
        if options is not None and options.bypass_cache:
            logger.debug("Bypassing %s pool for %s", pool.name, key)
            return await factory()
        return await pool.resolve(key, factory)

    def clear(self) -> None:
        """Empty both pools."""
        for pool in (self._general, self._volatile):
            if pool is not None:
                pool.clear()

    def stats(self) -> dict[str, Any]:
        """Return per-pool statistics keyed by category name."""
        if not self.enabled:
            return {"enabled": False}
        return {
            "enabled": True,
            CacheCategory.GENERAL.value: self._general.stats(),
            CacheCategory.VOLATILE.value: self._volatile.stats(),
        }
