"""
Price cache service.

Caches token prices keyed by lowercased token address so callers only
fetch prices for addresses that are missing or stale.
"""

import time
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from loguru import logger

from wallet_monitor.config.constants import (
    PRICE_CACHE_MAX_BATCH_SIZE,
    PRICE_CACHE_TTL_SECONDS,
)
from wallet_monitor.services.base_service import BaseService


@dataclass
class CachedPrice:
    """Cached token price."""

    price: Decimal
    timestamp: float
    symbol: str


class PriceCacheService(BaseService):
    """
    Token price cache.

    Prices live for PRICE_CACHE_TTL_SECONDS. Misses are fetched in small
    batches to stay under provider rate limits.
    """

    def __init__(
        self,
        ttl: float = PRICE_CACHE_TTL_SECONDS,
        max_batch_size: int = PRICE_CACHE_MAX_BATCH_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self.ttl = ttl
        self.max_batch_size = max_batch_size
        self._clock = clock
        self._cache: dict[str, CachedPrice] = {}

    def _is_expired(self, cached: CachedPrice, now: float) -> bool:
        return now - cached.timestamp >= self.ttl

    def get_cached_price(self, address: str) -> Decimal | None:
        """
        Get cached price.

        Expired entries are dropped on read.

        Args:
            address: Token address (any case)

        Returns:
            Price or None if missing or expired
        """
        key = address.lower()
        cached = self._cache.get(key)
        if cached is None:
            return None

        if self._is_expired(cached, self._clock()):
            del self._cache[key]
            return None

        return cached.price

    def set_cached_price(self, address: str, price: Decimal | float | str, symbol: str) -> None:
        """
        Store price for a token.

        Args:
            address: Token address (any case)
            price: Token price
            symbol: Token symbol
        """
        self._cache[address.lower()] = CachedPrice(
            price=Decimal(str(price)),
            timestamp=self._clock(),
            symbol=symbol,
        )

    def get_cached_prices(self, addresses: list[str]) -> dict[str, Decimal]:
        """Get all live cached prices, keyed by lowercased address."""
        result: dict[str, Decimal] = {}
        for address in addresses:
            price = self.get_cached_price(address)
            if price is not None:
                result[address.lower()] = price
        return result

    def set_cached_prices(self, price_data: list[dict[str, Any]]) -> None:
        """
        Store several prices.

        Args:
            price_data: Items with "address", "price" and "symbol"
        """
        for item in price_data:
            self.set_cached_price(item["address"], item["price"], item.get("symbol", ""))

    def filter_uncached_addresses(self, addresses: list[str]) -> list[str]:
        """Return addresses without a live cached price."""
        return [a for a in addresses if self.get_cached_price(a) is None]

    def batches(self, addresses: list[str]) -> Iterator[list[str]]:
        """Split addresses into groups of at most max_batch_size."""
        for i in range(0, len(addresses), self.max_batch_size):
            yield addresses[i:i + self.max_batch_size]

    async def get_or_fetch_prices(
        self,
        addresses: list[str],
        fetch_batch: Callable[[list[str]], Awaitable[list[dict[str, Any]]]],
    ) -> dict[str, Decimal]:
        """
        Serve cached prices and fetch only the misses.

        A batch whose fetch fails is logged and skipped; its addresses stay
        uncached and are retried on the next call.

        Args:
            addresses: Token addresses
            fetch_batch: Coroutine returning price items for a batch

        Returns:
            Prices keyed by lowercased address
        """
        result = self.get_cached_prices(addresses)
        missing = self.filter_uncached_addresses(addresses)

        for batch in self.batches(missing):
            try:
                fetched = await fetch_batch(batch)
            except Exception as e:
                self.logger.warning(f"Price batch of {len(batch)} failed: {e}")
                continue

            self.set_cached_prices(fetched)
            for item in fetched:
                result[item["address"].lower()] = Decimal(str(item["price"]))

        return result

    def clear_expired(self) -> int:
        """
        Remove expired prices.

        Returns:
            Number of removed entries
        """
        now = self._clock()
        expired = [k for k, v in self._cache.items() if self._is_expired(v, now)]
        for key in expired:
            del self._cache[key]

        if expired:
            logger.debug(f"PriceCacheService: removed {len(expired)} expired prices")
        return len(expired)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics (entry ages in seconds)."""
        now = self._clock()
        return {
            "size": len(self._cache),
            "entries": [
                {
                    "address": address,
                    "symbol": cached.symbol,
                    "age": int(now - cached.timestamp),
                }
                for address, cached in self._cache.items()
            ],
        }

    def clear(self) -> None:
        """Remove all cached prices."""
        self._cache.clear()
