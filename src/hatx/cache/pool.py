"""In-memory response pool with TTL expiry, LRU eviction and in-flight sharing.

A :class:`CachePool` maps a cache key to the :class:`asyncio.Task` that
produces the response, not to the response itself.  Registering the task
before the first ``await`` is what collapses a burst of identical concurrent
requests into a single transport call: every later caller finds the pending
task and awaits the same outcome.

Storage is a :class:`cachetools.TLRUCache`, which gives both policies the pool
needs:

* a pending entry never expires; once its call has finished the entry is
  absent from ``timer() >= finished_at + ttl``, whether or not it has been
  evicted yet;
* inserting into a full pool evicts the least-recently-used entry.

Failed or cancelled tasks are dropped from the pool as soon as they settle,
so a failure is observed by the callers that shared it and by nobody else.
A caller that is cancelled stops waiting; the shared call keeps running for
the others.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from cachetools import TLRUCache

from hatx.models import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _EntryCache(TLRUCache):
    """TLRUCache of tasks that logs capacity evictions for its owning pool."""

    def __init__(self, name: str, maxsize: int, ttl: float, timer: Callable[[], float]) -> None:
        super().__init__(maxsize=maxsize, ttu=self._expires_at, timer=timer)
        self._name = name
        self._ttl = ttl

    def _expires_at(self, key: str, task: asyncio.Future, now: float) -> float:
        # Pending calls stay authoritative until they settle.
        if not task.done():
            return math.inf
        return now + self._ttl

    def popitem(self) -> tuple[str, Any]:
        key, task = super().popitem()
        logger.debug("Evicted least recently used entry from %s pool: %s", self._name, key)
        return key, task


class CachePool:
    """Deduplicating TTL cache for asynchronous lookups.

    Args:
        name: Label used in log messages and :meth:`stats`.
        max_entries: Capacity before least-recently-used entries are evicted.
        ttl_seconds: Lifetime of a finished entry.  The clock starts when the
            call completes, so retention covers the call plus the TTL.
        enabled: When ``False`` the pool stores nothing and :meth:`resolve`
            simply awaits the factory.
        timer: Monotonic clock used for expiry.  Tests inject a fake one.

    Example::

        pool = CachePool("general", max_entries=100, ttl_seconds=60)
        beads = await pool.resolve("bead:get|A*01:01|~", lambda: fetch("A*01:01"))
    """

    def __init__(
        self,
        name: str = "general",
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        enabled: bool = True,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._entries: Optional[_EntryCache] = None
        if enabled:
            self._entries = _EntryCache(name, max_entries, ttl_seconds, timer)

    @property
    def name(self) -> str:
        return self._name

    @property
    def enabled(self) -> bool:
        return self._entries is not None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    async def resolve(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the result for *key*, invoking *factory* only on a miss.

        All bookkeeping happens before the first ``await``, so under a
        single event loop no two callers can both miss on the same key.
        Cancelling one caller does not cancel the shared call.

        Args:
            key: Cache key, see :func:`~hatx.cache.keys.make_cache_key`.
            factory: Zero-argument callable returning an awaitable result.

        Returns:
            The shared result of the (possibly still pending) computation.

        Raises:
            Exception: Whatever the factory raises, unchanged.  The entry is
                removed before any later caller can observe it.
        """
        if self._entries is None:
            return await factory()

        task = self._lookup(key)
        if task is None:
            logger.debug("Cache miss in %s pool: %s", self._name, key)
            task = asyncio.ensure_future(factory())
            self._entries[key] = task
            task.add_done_callback(functools.partial(self._settle, key))
        else:
            logger.debug("Cache hit in %s pool: %s", self._name, key)
        return await asyncio.shield(task)

    def invalidate(self, key: str) -> None:
        """Remove *key* from the pool.  A pending call keeps running for its callers."""
        if self._entries is not None:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries from the pool."""
        if self._entries is not None:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """Return pool statistics.

        Returns:
            A ``dict`` with ``name`` and ``enabled``, and when enabled:
            ``size`` (live entries), ``max_entries`` and ``ttl_seconds``.
        """
        if self._entries is None:
            return {"name": self._name, "enabled": False}
        return {
            "name": self._name,
            "enabled": True,
            "size": len(self._entries),
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl,
        }

    def __contains__(self, key: object) -> bool:
        return self._entries is not None and key in self._entries

    def __len__(self) -> int:
        return 0 if self._entries is None else len(self._entries)

    def _lookup(self, key: str) -> Optional[asyncio.Future]:
        """Return the live task for *key*, dropping one that already failed."""
        if self._entries is None:
            return None
        task = self._entries.get(key)
        if task is None:
            return None
        if task.done() and _failed(task):
            # Settled between completion and its done-callback running.
            self._entries.pop(key, None)
            return None
        return task

    def _settle(self, key: str, task: asyncio.Future) -> None:
        """Done-callback: drop failed tasks, start the TTL of successful ones."""
        if self._entries is None or self._entries.get(key) is not task:
            if _failed(task):
                logger.debug("Lookup failed for %s (entry already gone)", key)
            return
        if _failed(task):
            self._entries.pop(key, None)
            logger.debug("Dropped failed entry from %s pool: %s", self._name, key)
        else:
            self._entries[key] = task


def _failed(task: asyncio.Future) -> bool:
    # Reading exception() also marks it retrieved for asyncio's warnings.
    return task.cancelled() or task.exception() is not None
