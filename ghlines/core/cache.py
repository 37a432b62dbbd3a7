"""Single-flight TTL cache for fetched files.

Concurrent requests for the same key share one in-flight task instead of
issuing duplicate network calls. Successful results are kept for a short
TTL; failures are never cached.

Usage:
    cache = SingleFlightCache(ttl_seconds=300)
    content = await cache.get_or_load(key, lambda: fetch(key))
"""

import asyncio
import logging
import time
from collections import OrderedDict
from functools import partial
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger("ghlines.cache")


class SingleFlightCache:
    """TTL cache with insert-if-absent of in-flight loads.

    Everything runs on one event loop and the lookup/insert pair has no
    await in between, so check-and-insert is atomic.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl_seconds
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()
        self._inflight: dict[Hashable, asyncio.Task] = {}
        self.hits = 0
        self.misses = 0
        self.coalesced = 0

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for key, loading it at most once.

        Args:
            key: Cache key
            loader: Zero-argument coroutine factory producing the value

        Returns:
            The cached or freshly loaded value

        Raises:
            Whatever the loader raised (the failure is not cached)
        """
        entry = self._entries.get(key)
        if entry is not None:
            expires_at, value = entry
            if expires_at > self._clock():
                self.hits += 1
                logger.debug(f"Cache hit: {key}")
                return value
            del self._entries[key]

        task = self._inflight.get(key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(loader())
            self._inflight[key] = task
            task.add_done_callback(partial(self._on_done, key))
        else:
            self.coalesced += 1
            logger.debug(f"Joining in-flight fetch: {key}")

        # A cancelled waiter must not cancel the load other waiters share.
        return await asyncio.shield(task)

    def _on_done(self, key: Hashable, task: asyncio.Task):
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled() or task.exception() is not None:
            return

        self._entries[key] = (self._clock() + self.ttl, task.result())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self):
        """Drop all cached values (in-flight loads are left alone)."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
