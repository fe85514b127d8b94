"""
Tests for the price cache.

Covers:
- 10 minute TTL boundary
- Case-insensitive keys
- Miss filtering and batching
- Batch fetch with failing batches
"""

from decimal import Decimal

import pytest

from wallet_monitor.services.cache.price_cache_service import PriceCacheService


BNB = "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c"
USDT = "0x55d398326f99059fF775485246999027B3197955"


class TestPriceTtl:
    """Test price expiry."""

    def test_served_before_ttl(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB, "1.23", "BNB")

        clock.now = 599.999

        assert cache.get_cached_price(BNB) == Decimal("1.23")

    def test_expired_after_ttl(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB, "1.23", "BNB")

        clock.now = 600.001

        assert cache.get_cached_price(BNB) is None
        assert cache.stats()["size"] == 0

    def test_keys_are_case_insensitive(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB.upper().replace("0X", "0x"), 300, "BNB")

        assert cache.get_cached_price(BNB.lower()) == Decimal("300")


class TestBatchHelpers:
    """Test miss filtering and batching."""

    def test_filter_uncached_addresses(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_prices([{"address": BNB, "price": 300, "symbol": "BNB"}])

        assert cache.filter_uncached_addresses([BNB, USDT]) == [USDT]

    def test_get_cached_prices_returns_only_hits(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(USDT, "1", "USDT")

        assert cache.get_cached_prices([BNB, USDT]) == {USDT.lower(): Decimal("1")}

    def test_batches_of_five(self):
        cache = PriceCacheService()
        addresses = [f"0x{i:040x}" for i in range(12)]

        batches = list(cache.batches(addresses))

        assert [len(b) for b in batches] == [5, 5, 2]

    @pytest.mark.asyncio
    async def test_get_or_fetch_prices_fetches_only_misses(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB, "300", "BNB")
        requested = []

        async def fetch_batch(batch):
            requested.append(batch)
            return [{"address": a, "price": "1", "symbol": "USDT"} for a in batch]

        prices = await cache.get_or_fetch_prices([BNB, USDT], fetch_batch)

        assert requested == [[USDT]]
        assert prices == {BNB.lower(): Decimal("300"), USDT.lower(): Decimal("1")}
        assert cache.get_cached_price(USDT) == Decimal("1")

    @pytest.mark.asyncio
    async def test_failing_batch_is_skipped(self, clock):
        cache = PriceCacheService(max_batch_size=1, clock=clock)

        async def fetch_batch(batch):
            if batch == [BNB]:
                raise ConnectionError("rate limited")
            return [{"address": a, "price": "1", "symbol": "USDT"} for a in batch]

        prices = await cache.get_or_fetch_prices([BNB, USDT], fetch_batch)

        assert prices == {USDT.lower(): Decimal("1")}
        assert cache.get_cached_price(BNB) is None


class TestMaintenance:
    """Test clear_expired, stats and clear."""

    def test_clear_expired(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB, "300", "BNB")
        clock.advance(300)
        cache.set_cached_price(USDT, "1", "USDT")
        clock.advance(301)

        assert cache.clear_expired() == 1
        assert cache.get_cached_price(USDT) == Decimal("1")

    def test_stats_reports_age(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB, "300", "BNB")
        clock.advance(42.5)

        stats = cache.stats()

        assert stats["size"] == 1
        assert stats["entries"] == [{"address": BNB.lower(), "symbol": "BNB", "age": 42}]

    def test_clear(self, clock):
        cache = PriceCacheService(clock=clock)
        cache.set_cached_price(BNB, "300", "BNB")

        cache.clear()

        assert cache.get_cached_price(BNB) is None
