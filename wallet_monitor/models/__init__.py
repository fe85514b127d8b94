"""Data models for the balance monitoring core."""

from wallet_monitor.models.notification_settings import (
    NotificationSettings,
    NotificationType,
    QuietHours,
)
from wallet_monitor.models.token import (
    BalanceChange,
    BalanceSnapshot,
    ChangeType,
    NativeBalance,
    TokenBalance,
    TokenInfo,
    WalletBalance,
)


__all__ = [
    "BalanceChange",
    "BalanceSnapshot",
    "ChangeType",
    "NativeBalance",
    "NotificationSettings",
    "NotificationType",
    "QuietHours",
    "TokenBalance",
    "TokenInfo",
    "WalletBalance",
]
