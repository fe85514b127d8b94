"""
Base key-value storage.

Persistent string storage shared by all repositories. Values are JSON
documents stored under well-known keys.
"""

import json
from typing import Any, Protocol

import redis.asyncio as redis


class KeyValueStore(Protocol):
    """Async key-value storage used by repositories."""

    async def get(self, key: str) -> str | None: ...

    async def get_many(self, keys: list[str]) -> list[str | None]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def set_many(self, values: dict[str, str]) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisKeyValueStore:
    """
    Redis-backed key-value store.

    Keys are prefixed with a namespace so several installations can share
    one Redis database. Multi-key writes use MSET, which Redis applies
    atomically.
    """

    def __init__(self, client: redis.Redis, namespace: str = "wallet_monitor") -> None:
        """
        Initialize store.

        Args:
            client: Redis client (decode_responses=True)
            namespace: Key prefix
        """
        self.client = client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> str | None:
        return await self.client.get(self._key(key))

    async def get_many(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        return await self.client.mget([self._key(k) for k in keys])

    async def set(self, key: str, value: str) -> None:
        await self.client.set(self._key(key), value)

    async def set_many(self, values: dict[str, str]) -> None:
        if not values:
            return
        await self.client.mset({self._key(k): v for k, v in values.items()})

    async def delete(self, key: str) -> None:
        await self.client.delete(self._key(key))


class BaseRepository:
    """
    Base repository with JSON helpers.

    Example:
        class WalletRepository(BaseRepository):
            async def get_wallet(self):
                return await self.load_json(ACTIVE_WALLET_KEY)
    """

    def __init__(self, store: KeyValueStore) -> None:
        """
        Initialize repository.

        Args:
            store: Key-value store
        """
        self.store = store

    async def load_json(self, key: str, default: Any = None) -> Any:
        """
        Load and decode JSON value.

        Args:
            key: Storage key
            default: Value returned when key is missing

        Returns:
            Decoded value or default

        Raises:
            ValueError: If stored value is not valid JSON
        """
        raw = await self.store.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    async def save_json(self, key: str, value: Any) -> None:
        """
        Encode and store JSON value.

        Args:
            key: Storage key
            value: JSON-serializable value
        """
        await self.store.set(key, json.dumps(value))
