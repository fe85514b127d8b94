"""
Tests for key-value repositories.

Covers:
- Redis store key namespacing and multi-key calls
- Token state: atomic replace, versioning, snapshot upserts
- Notification settings: defaults, merge, corrupt values
- Wallet lookup precedence
"""

import asyncio
import json

import pytest

from wallet_monitor.config.constants import (
    BALANCE_SNAPSHOTS_KEY,
    DISCOVERED_TOKENS_KEY,
    NOTIFICATION_SETTINGS_KEY,
)
from wallet_monitor.models.notification_settings import (
    NotificationSettings,
    NotificationType,
)
from wallet_monitor.models.token import BalanceSnapshot
from wallet_monitor.repositories import (
    NotificationSettingsRepository,
    RedisKeyValueStore,
    TokenStateRepository,
    WalletRepository,
)


class TestRedisKeyValueStore:
    """Test Redis store adapter."""

    @pytest.mark.asyncio
    async def test_keys_are_namespaced(self, mock_redis_client):
        store = RedisKeyValueStore(mock_redis_client, namespace="wm")

        await store.set("k", "v")

        mock_redis_client.set.assert_awaited_once_with("wm:k", "v")

    @pytest.mark.asyncio
    async def test_set_many_uses_single_mset(self, mock_redis_client):
        store = RedisKeyValueStore(mock_redis_client, namespace="wm")

        await store.set_many({"a": "1", "b": "2"})

        mock_redis_client.mset.assert_awaited_once_with({"wm:a": "1", "wm:b": "2"})

    @pytest.mark.asyncio
    async def test_get_many_uses_mget(self, mock_redis_client):
        mock_redis_client.mget.return_value = ["1", None]
        store = RedisKeyValueStore(mock_redis_client, namespace="wm")

        values = await store.get_many(["a", "b"])

        assert values == ["1", None]
        mock_redis_client.mget.assert_awaited_once_with(["wm:a", "wm:b"])


class TestTokenStateRepository:
    """Test token list and snapshot storage."""

    @pytest.mark.asyncio
    async def test_empty_state(self, kv_store):
        repo = TokenStateRepository(kv_store)

        state = await repo.load_state()

        assert state.tokens == []
        assert state.snapshots == []
        assert state.version == 0

    @pytest.mark.asyncio
    async def test_replace_all_bumps_version(self, kv_store, make_token):
        repo = TokenStateRepository(kv_store)
        token = make_token()

        v1 = await repo.replace_all([token], [BalanceSnapshot(token.address, "5")])
        v2 = await repo.replace_all([], [])

        assert (v1, v2) == (1, 2)
        state = await repo.load_state()
        assert state.tokens == []
        assert state.version == 2

    @pytest.mark.asyncio
    async def test_replace_all_round_trips_tokens(self, kv_store, make_token):
        repo = TokenStateRepository(kv_store)
        native = make_token("BNB", address=None)
        usdt = make_token()

        await repo.replace_all([native, usdt], [BalanceSnapshot(None, "1.5")])

        assert await repo.get_discovered_tokens() == [native, usdt]
        snapshots = await repo.get_balance_snapshots()
        assert snapshots[0].token_address is None
        assert snapshots[0].balance == "1.5"

    @pytest.mark.asyncio
    async def test_upsert_updates_matching_address_case_insensitive(self, kv_store):
        repo = TokenStateRepository(kv_store)
        await repo.replace_all([], [BalanceSnapshot("0xABC", "1")])

        await repo.upsert_snapshot("0xabc", "2")

        snapshots = await repo.get_balance_snapshots()
        assert len(snapshots) == 1
        assert snapshots[0].balance == "2"

    @pytest.mark.asyncio
    async def test_upsert_inserts_native(self, kv_store):
        repo = TokenStateRepository(kv_store)
        await repo.replace_all([], [BalanceSnapshot("0xabc", "1")])

        await repo.upsert_snapshot(None, "3")

        snapshots = await repo.get_balance_snapshots()
        assert [s.token_address for s in snapshots] == ["0xabc", None]

    @pytest.mark.asyncio
    async def test_upsert_dropped_on_version_mismatch(self, kv_store):
        repo = TokenStateRepository(kv_store)
        version = await repo.replace_all([], [BalanceSnapshot("0xabc", "1")])
        await repo.replace_all([], [BalanceSnapshot("0xabc", "10")])

        written = await repo.upsert_snapshot("0xabc", "2", expected_version=version)

        assert written is False
        assert (await repo.get_balance_snapshots())[0].balance == "10"

    @pytest.mark.asyncio
    async def test_concurrent_upserts_do_not_lose_updates(self, kv_store):
        repo = TokenStateRepository(kv_store)
        await repo.replace_all([], [])

        await asyncio.gather(*[repo.upsert_snapshot(f"0x{i}", str(i)) for i in range(5)])

        assert len(await repo.get_balance_snapshots()) == 5

    @pytest.mark.asyncio
    async def test_corrupt_list_treated_as_empty(self, kv_store):
        kv_store.data[DISCOVERED_TOKENS_KEY] = "{not json"
        kv_store.data[BALANCE_SNAPSHOTS_KEY] = json.dumps({"not": "a list"})
        repo = TokenStateRepository(kv_store)

        state = await repo.load_state()

        assert state.tokens == []
        assert state.snapshots == []

    @pytest.mark.asyncio
    async def test_non_object_entries_skipped(self, kv_store, make_token):
        token = make_token("USDT")
        kv_store.data[DISCOVERED_TOKENS_KEY] = json.dumps([token.to_dict(), "USDT", 42])
        kv_store.data[BALANCE_SNAPSHOTS_KEY] = json.dumps([[1, 2], None])
        repo = TokenStateRepository(kv_store)

        state = await repo.load_state()

        assert state.tokens == [token]
        assert state.snapshots == []


class TestNotificationSettingsRepository:
    """Test settings persistence."""

    @pytest.mark.asyncio
    async def test_defaults_when_missing(self, kv_store):
        repo = NotificationSettingsRepository(kv_store)

        result = await repo.get()

        assert result == NotificationSettings()
        assert result.frequency == 30000
        assert result.types == {NotificationType.ALL}

    @pytest.mark.asyncio
    async def test_partial_stored_value_merged_over_defaults(self, kv_store):
        kv_store.data[NOTIFICATION_SETTINGS_KEY] = json.dumps({"types": ["increase"]})
        repo = NotificationSettingsRepository(kv_store)

        result = await repo.get()

        assert result.enabled is True
        assert result.types == {NotificationType.INCREASE}

    @pytest.mark.asyncio
    async def test_save_and_load(self, kv_store):
        repo = NotificationSettingsRepository(kv_store)
        stored = NotificationSettings(enabled=False, frequency=60000)

        await repo.save(stored)

        assert await repo.get() == stored

    @pytest.mark.asyncio
    async def test_corrupt_json_falls_back_to_defaults(self, kv_store):
        kv_store.data[NOTIFICATION_SETTINGS_KEY] = "{broken"
        repo = NotificationSettingsRepository(kv_store)

        assert await repo.get() == NotificationSettings()

    @pytest.mark.asyncio
    async def test_invalid_values_fall_back_to_defaults(self, kv_store):
        kv_store.data[NOTIFICATION_SETTINGS_KEY] = json.dumps({"frequency": -5})
        repo = NotificationSettingsRepository(kv_store)

        assert await repo.get() == NotificationSettings()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored", ['"abc"', "[1, 2]", "42", "true"])
    async def test_non_object_json_falls_back_to_defaults(self, kv_store, stored):
        kv_store.data[NOTIFICATION_SETTINGS_KEY] = stored
        repo = NotificationSettingsRepository(kv_store)

        assert await repo.get() == NotificationSettings()


class TestWalletRepository:
    """Test wallet lookup."""

    @pytest.mark.asyncio
    async def test_none_without_stored_or_default(self, kv_store):
        repo = WalletRepository(kv_store)

        assert await repo.get_wallet() is None

    @pytest.mark.asyncio
    async def test_default_address_used(self, kv_store, sample_wallet_address):
        repo = WalletRepository(kv_store, default_address=sample_wallet_address)

        wallet = await repo.get_wallet()

        assert wallet.address == sample_wallet_address

    @pytest.mark.asyncio
    async def test_stored_wallet_wins(self, kv_store, sample_wallet_address):
        repo = WalletRepository(kv_store, default_address=sample_wallet_address)
        other = "0x0000000000000000000000000000000000000001"

        await repo.set_wallet(other)

        assert (await repo.get_wallet()).address == other
