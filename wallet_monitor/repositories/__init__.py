"""Repositories backed by the key-value store."""

from wallet_monitor.repositories.base import KeyValueStore, RedisKeyValueStore
from wallet_monitor.repositories.notification_settings_repository import (
    NotificationSettingsRepository,
)
from wallet_monitor.repositories.token_state_repository import (
    TokenState,
    TokenStateRepository,
)
from wallet_monitor.repositories.wallet_repository import Wallet, WalletRepository


__all__ = [
    "KeyValueStore",
    "NotificationSettingsRepository",
    "RedisKeyValueStore",
    "TokenState",
    "TokenStateRepository",
    "Wallet",
    "WalletRepository",
]
