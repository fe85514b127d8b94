"""
Cache service.

Generic TTL cache with request deduplication and wallet-scoped keys.

Guarantees:
- at most one in-flight fetch per key; concurrent callers share its result
- failed fetches are never cached and always retried on the next call
- switching scope purges everything cached under the previous scope
"""

import asyncio
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from loguru import logger

from wallet_monitor.config.constants import (
    CACHE_EVICTION_RATIO,
    CACHE_GLOBAL_SCOPE,
    CACHE_MAX_SIZE,
    CACHE_SWEEP_INTERVAL_SECONDS,
    CACHE_TTL_SECONDS,
)
from wallet_monitor.services.base_service import BaseService


T = TypeVar("T")


class CacheCategory(StrEnum):
    """Cache categories with their own TTL."""

    BALANCE = "balance"
    PRICE = "price"
    TOKEN_LIST = "token_list"
    ALLOWANCE = "allowance"
    QUOTE = "quote"
    DEFAULT = "default"


@dataclass
class CacheEntry(Generic[T]):
    """Cached value with metadata. Owned by its cache map."""

    value: T
    stored_at: float
    access_count: int = 1
    category: CacheCategory = CacheCategory.DEFAULT

    def is_expired(self, now: float, ttl: float) -> bool:
        """Entry is stale at or after ttl seconds."""
        return now - self.stored_at >= ttl


class CacheService(BaseService):
    """
    Generic key/value cache.

    Keys are stored as "<scope>:<key>" where scope defaults to the current
    wallet address, or "global" when no wallet is set.
    """

    def __init__(
        self,
        max_size: int = CACHE_MAX_SIZE,
        ttls: dict[str, float] | None = None,
        sweep_interval: float = CACHE_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries before eviction
            ttls: Per-category TTL overrides in seconds
            sweep_interval: Seconds between expired entry sweeps
            clock: Monotonic time source in seconds
        """
        super().__init__()
        self.max_size = max_size
        self.ttls = {**CACHE_TTL_SECONDS, **(ttls or {})}
        self.sweep_interval = sweep_interval
        self._clock = clock

        self._entries: dict[str, CacheEntry[Any]] = {}
        self._pending: dict[str, asyncio.Task[Any]] = {}
        self._scope: str | None = None
        # Bumped on scope switch and clear; fetches started under an older
        # generation do not store their results
        self._generation = 0
        self._sweeper: asyncio.Task[None] | None = None

    @property
    def scope(self) -> str | None:
        """Current scope id (wallet address)."""
        return self._scope

    def ttl_for(self, category: CacheCategory | str) -> float:
        """Get TTL in seconds for a category."""
        return self.ttls.get(str(category), self.ttls[CacheCategory.DEFAULT])

    def full_key(self, key: str, scope_id: str | None = None) -> str:
        """Build scoped cache key."""
        scope = scope_id or self._scope or CACHE_GLOBAL_SCOPE
        return f"{scope}:{key}"

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        category: CacheCategory | str = CacheCategory.DEFAULT,
        scope_id: str | None = None,
    ) -> T:
        """
        Return cached value or fetch it once.

        Args:
            key: Cache key within the scope
            fetcher: Zero-argument coroutine function producing the value
            category: TTL category
            scope_id: Scope override (defaults to current wallet)

        Returns:
            Cached or freshly fetched value

        Raises:
            Exception: Whatever the fetcher raised (never cached)
        """
        category = CacheCategory(category)
        full_key = self.full_key(key, scope_id)

        entry = self._entries.get(full_key)
        if entry is not None and not entry.is_expired(self._clock(), self.ttl_for(entry.category)):
            entry.access_count += 1
            return entry.value

        pending = self._pending.get(full_key)
        if pending is None:
            pending = asyncio.ensure_future(
                self._fetch_and_store(full_key, fetcher, category, self._generation)
            )
            self._pending[full_key] = pending

        # Shield so a cancelled caller does not cancel the shared fetch
        return await asyncio.shield(pending)

    async def _fetch_and_store(
        self,
        full_key: str,
        fetcher: Callable[[], Awaitable[T]],
        category: CacheCategory,
        generation: int,
    ) -> T:
        try:
            value = await fetcher()
            # Invalidation detaches the pending marker; detached results are not stored
            current = self._pending.get(full_key) is asyncio.current_task()
            if current and generation == self._generation:
                self._ensure_capacity()
                self._entries[full_key] = CacheEntry(
                    value=value,
                    stored_at=self._clock(),
                    access_count=1,
                    category=category,
                )
            else:
                logger.debug(f"Cache entry invalidated during fetch, not storing {full_key}")
            return value
        finally:
            if self._pending.get(full_key) is asyncio.current_task():
                del self._pending[full_key]

    def _ensure_capacity(self) -> None:
        """Evict the least accessed entries when the cache is full."""
        if len(self._entries) < self.max_size:
            return

        evict_count = max(1, math.floor(self.max_size * CACHE_EVICTION_RATIO))
        # sorted() is stable: equal counts evict oldest insertions first
        victims = sorted(self._entries.items(), key=lambda item: item[1].access_count)
        for key, _ in victims[:evict_count]:
            del self._entries[key]

        logger.debug(f"Cache full, evicted {evict_count} least accessed entries")

    def set_scope(self, scope_id: str | None) -> None:
        """
        Switch current scope (wallet).

        Entries cached under the previous scope are purged.

        Args:
            scope_id: New scope id, None for global
        """
        if scope_id == self._scope:
            return

        previous = self._scope
        if previous is not None:
            prefix = f"{previous}:"
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

        self._scope = scope_id
        self._generation += 1
        logger.debug("Cache scope switched, purged entries for previous scope")

    def invalidate(self, key: str, scope_id: str | None = None) -> bool:
        """
        Drop one entry.

        A fetch in flight for the key is detached: it still answers its
        callers but its result is not stored.

        Returns:
            True if an entry was removed
        """
        full_key = self.full_key(key, scope_id)
        self._pending.pop(full_key, None)
        return self._entries.pop(full_key, None) is not None

    def clear(self, pattern: str | None = None) -> int:
        """
        Remove all entries, or only those whose key contains pattern.

        Args:
            pattern: Substring to match

        Returns:
            Number of removed entries
        """
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
            self._pending.clear()
            self._generation += 1
            return removed

        for key in [k for k in self._pending if pattern in k]:
            del self._pending[key]

        keys = [k for k in self._entries if pattern in k]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def purge_expired(self) -> int:
        """
        Remove entries older than their category TTL.

        Returns:
            Number of removed entries
        """
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.is_expired(now, self.ttl_for(entry.category))
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info(f"CacheService: cleaned up {len(expired)} expired entries")
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.purge_expired()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}")

    def start_sweeper(self) -> None:
        """Start periodic expired-entry sweep on the running loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        """Stop periodic sweep."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "pending": len(self._pending),
            "scope": self._scope,
        }

    def __len__(self) -> int:
        return len(self._entries)
