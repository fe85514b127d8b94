"""
Tests for the transaction cache.

Covers:
- List pages keyed by wallet and cursor, 2 minute TTL
- Details keyed by hash, 10 minute TTL
- Per-wallet invalidation
"""

from wallet_monitor.services.cache.transaction_cache_service import (
    TransactionCacheService,
)


WALLET = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"
OTHER_WALLET = "0x0000000000000000000000000000000000000001"
TX_HASH = "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"


class TestTransactionLists:
    """Test list page cache."""

    def test_first_page_and_cursor_pages_are_separate(self, clock):
        cache = TransactionCacheService(clock=clock)
        cache.set_cached_transaction_list(WALLET, [{"hash": "a"}], next_cursor="c1")
        cache.set_cached_transaction_list(WALLET, [{"hash": "b"}], next_cursor=None, request_cursor="c1")

        first = cache.get_cached_transaction_list(WALLET)
        second = cache.get_cached_transaction_list(WALLET, "c1")

        assert first.data == [{"hash": "a"}]
        assert first.next_cursor == "c1"
        assert second.data == [{"hash": "b"}]
        assert second.next_cursor is None

    def test_list_expires_after_two_minutes(self, clock):
        cache = TransactionCacheService(clock=clock)
        cache.set_cached_transaction_list(WALLET, [], next_cursor=None)

        clock.advance(119)
        assert cache.get_cached_transaction_list(WALLET) is not None

        clock.advance(1)
        assert cache.get_cached_transaction_list(WALLET) is None

    def test_clear_wallet_cache_only_touches_that_wallet(self, clock):
        cache = TransactionCacheService(clock=clock)
        cache.set_cached_transaction_list(WALLET, [], next_cursor="c1")
        cache.set_cached_transaction_list(WALLET, [], next_cursor=None, request_cursor="c1")
        cache.set_cached_transaction_list(OTHER_WALLET, [], next_cursor=None)

        assert cache.clear_wallet_cache(WALLET) == 2
        assert cache.get_cached_transaction_list(OTHER_WALLET) is not None


class TestTransactionDetails:
    """Test detail cache."""

    def test_detail_lives_ten_minutes(self, clock):
        cache = TransactionCacheService(clock=clock)
        cache.set_cached_transaction_detail(TX_HASH, {"status": 1})

        clock.advance(599)
        assert cache.get_cached_transaction_detail(TX_HASH) == {"status": 1}

        clock.advance(1)
        assert cache.get_cached_transaction_detail(TX_HASH) is None

    def test_detail_outlives_list(self, clock):
        cache = TransactionCacheService(clock=clock)
        cache.set_cached_transaction_list(WALLET, [], next_cursor=None)
        cache.set_cached_transaction_detail(TX_HASH, {"status": 1})

        clock.advance(300)

        assert cache.clear_expired() == 1
        assert cache.stats()["detail_cache_size"] == 1
        assert cache.stats()["list_cache_size"] == 0

    def test_clear_all(self, clock):
        cache = TransactionCacheService(clock=clock)
        cache.set_cached_transaction_list(WALLET, [], next_cursor=None)
        cache.set_cached_transaction_detail(TX_HASH, {})

        cache.clear_all()

        stats = cache.stats()
        assert stats["list_cache_size"] == 0
        assert stats["detail_cache_size"] == 0
