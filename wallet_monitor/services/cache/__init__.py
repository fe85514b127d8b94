"""In-memory caches."""

from wallet_monitor.services.cache.cache_service import (
    CacheCategory,
    CacheEntry,
    CacheService,
)
from wallet_monitor.services.cache.price_cache_service import (
    CachedPrice,
    PriceCacheService,
)
from wallet_monitor.services.cache.transaction_cache_service import (
    CachedTransactionList,
    TransactionCacheService,
)


__all__ = [
    "CacheCategory",
    "CacheEntry",
    "CacheService",
    "CachedPrice",
    "CachedTransactionList",
    "PriceCacheService",
    "TransactionCacheService",
]
