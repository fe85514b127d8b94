"""
Transaction cache service.

Two independent caches:
- transaction lists per (wallet, cursor), short TTL
- transaction details per hash, long TTL (mined transactions rarely change)
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from wallet_monitor.config.constants import (
    TRANSACTION_DETAIL_CACHE_TTL_SECONDS,
    TRANSACTION_FIRST_PAGE_CURSOR,
    TRANSACTION_LIST_CACHE_TTL_SECONDS,
)
from wallet_monitor.services.base_service import BaseService


@dataclass
class CachedTransactionList:
    """One page of wallet transactions."""

    data: list[Any]
    next_cursor: str | None
    timestamp: float
    wallet_address: str


@dataclass
class CachedTransactionDetail:
    """Single transaction payload."""

    data: Any
    timestamp: float


class TransactionCacheService(BaseService):
    """Transaction list and detail cache."""

    def __init__(
        self,
        list_ttl: float = TRANSACTION_LIST_CACHE_TTL_SECONDS,
        detail_ttl: float = TRANSACTION_DETAIL_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self.list_ttl = list_ttl
        self.detail_ttl = detail_ttl
        self._clock = clock
        self._lists: dict[str, CachedTransactionList] = {}
        self._details: dict[str, CachedTransactionDetail] = {}

    @staticmethod
    def _list_key(wallet_address: str, cursor: str | None) -> str:
        return f"{wallet_address.lower()}_{cursor or TRANSACTION_FIRST_PAGE_CURSOR}"

    def get_cached_transaction_list(
        self,
        wallet_address: str,
        cursor: str | None = None,
    ) -> CachedTransactionList | None:
        """
        Get cached transaction page.

        Args:
            wallet_address: Wallet address
            cursor: Page cursor (None for the first page)

        Returns:
            Cached page or None if missing or expired
        """
        key = self._list_key(wallet_address, cursor)
        cached = self._lists.get(key)
        if cached is None:
            return None

        if self._clock() - cached.timestamp >= self.list_ttl:
            del self._lists[key]
            return None

        return cached

    def set_cached_transaction_list(
        self,
        wallet_address: str,
        data: list[Any],
        next_cursor: str | None,
        request_cursor: str | None = None,
    ) -> None:
        """
        Store transaction page.

        Args:
            wallet_address: Wallet address
            data: Transactions in the page
            next_cursor: Cursor of the following page returned upstream
            request_cursor: Cursor the page was requested with
        """
        self._lists[self._list_key(wallet_address, request_cursor)] = CachedTransactionList(
            data=data,
            next_cursor=next_cursor,
            timestamp=self._clock(),
            wallet_address=wallet_address.lower(),
        )

    def get_cached_transaction_detail(self, tx_hash: str) -> Any | None:
        """Get cached transaction by hash, None if missing or expired."""
        key = tx_hash.lower()
        cached = self._details.get(key)
        if cached is None:
            return None

        if self._clock() - cached.timestamp >= self.detail_ttl:
            del self._details[key]
            return None

        return cached.data

    def set_cached_transaction_detail(self, tx_hash: str, data: Any) -> None:
        """Store transaction by hash."""
        self._details[tx_hash.lower()] = CachedTransactionDetail(
            data=data,
            timestamp=self._clock(),
        )

    def clear_wallet_cache(self, wallet_address: str) -> int:
        """
        Drop all cached pages of one wallet.

        Returns:
            Number of removed pages
        """
        wallet = wallet_address.lower()
        keys = [k for k, v in self._lists.items() if v.wallet_address == wallet]
        for key in keys:
            del self._lists[key]
        return len(keys)

    def clear_expired(self) -> int:
        """
        Remove expired pages and details.

        Returns:
            Number of removed entries
        """
        now = self._clock()
        expired_lists = [
            k for k, v in self._lists.items() if now - v.timestamp >= self.list_ttl
        ]
        expired_details = [
            k for k, v in self._details.items() if now - v.timestamp >= self.detail_ttl
        ]
        for key in expired_lists:
            del self._lists[key]
        for key in expired_details:
            del self._details[key]

        removed = len(expired_lists) + len(expired_details)
        if removed:
            logger.debug(f"TransactionCacheService: removed {removed} expired entries")
        return removed

    def stats(self) -> dict[str, Any]:
        """Get cache statistics (entry ages in seconds)."""
        now = self._clock()
        return {
            "list_cache_size": len(self._lists),
            "detail_cache_size": len(self._details),
            "list_entries": [
                {"key": key, "age": int(now - cached.timestamp)}
                for key, cached in self._lists.items()
            ],
            "detail_entries": [
                {"hash": key, "age": int(now - cached.timestamp)}
                for key, cached in self._details.items()
            ],
        }

    def clear_all(self) -> None:
        """Remove everything."""
        self._lists.clear()
        self._details.clear()
