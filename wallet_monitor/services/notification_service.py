"""
Notification service.

Turns balance changes into user notifications, one per monitoring cycle:
- one change: detailed message (direction, amount, symbol, chain)
- several changes: a single grouped message
"""

from enum import StrEnum
from typing import Any, Protocol

from wallet_monitor.config.constants import DEFAULT_CHAIN_NAME
from wallet_monitor.models.token import BalanceChange, now_ms
from wallet_monitor.services.base_service import BaseService
from wallet_monitor.utils.formatters import format_crypto


class NotificationSink(Protocol):
    """Delivery channel for notifications."""

    async def is_supported(self) -> bool: ...

    async def request_permission(self) -> bool: ...

    async def schedule_local_notification(
        self, title: str, body: str, data: dict[str, Any]
    ) -> None: ...


class PermissionStatus(StrEnum):
    """Notification permission state."""

    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


def _chain_suffix(change: BalanceChange, default_chain_name: str) -> str:
    chain_name = change.token.chain_name
    return f" ({chain_name})" if chain_name != default_chain_name else ""


def build_change_message(
    change: BalanceChange,
    brand: str,
    default_chain_name: str = DEFAULT_CHAIN_NAME,
) -> tuple[str, str]:
    """
    Build title and body for a single change.

    Returns:
        (title, body), e.g. ("📈 Wallet Monitor", "You received +0.5 BNB")
    """
    amount = format_crypto(abs(change.difference))
    chain = _chain_suffix(change, default_chain_name)
    if change.is_increase:
        return f"📈 {brand}", f"You received +{amount} {change.token.symbol}{chain}"
    return f"📉 {brand}", f"You sent {amount} {change.token.symbol}{chain}"


def build_grouped_message(
    changes: list[BalanceChange],
    brand: str,
    default_chain_name: str = DEFAULT_CHAIN_NAME,
) -> tuple[str, str]:
    """Build title and body summarizing several changes."""
    increases = [c for c in changes if c.is_increase]
    decreases = [c for c in changes if not c.is_increase]

    if increases and decreases:
        return (
            f"🔄 {brand}",
            f"{len(increases)} incoming, {len(decreases)} outgoing transactions",
        )

    if increases:
        if len(increases) == 1:
            return build_change_message(increases[0], brand, default_chain_name)
        return f"📈 {brand}", f"You received {len(increases)} transactions"

    if len(decreases) == 1:
        return build_change_message(decreases[0], brand, default_chain_name)
    return f"📉 {brand}", f"You sent {len(decreases)} transactions"


class NotificationService(BaseService):
    """
    Balance change notifications.

    Fails closed: until initialize() succeeds nothing is delivered.
    """

    def __init__(
        self,
        sink: NotificationSink,
        brand: str = "Wallet Monitor",
        default_chain_name: str = DEFAULT_CHAIN_NAME,
    ) -> None:
        """
        Initialize notification service.

        Args:
            sink: Delivery channel
            brand: Name shown in notification titles
            default_chain_name: Chain that gets no qualifier in messages
        """
        super().__init__()
        self.sink = sink
        self.brand = brand
        self.default_chain_name = default_chain_name
        self.initialized = False

    async def initialize(self) -> bool:
        """
        Check channel support and delivery permission.

        Returns:
            True if notifications can be delivered
        """
        try:
            if not await self.sink.is_supported():
                self.logger.warning("Notification channel is not supported here")
                return False

            if not await self.sink.request_permission():
                self.logger.warning("Notification permission not granted")
                return False
        except Exception as e:
            self.logger.error(f"Notification initialization error: {e}")
            return False

        self.initialized = True
        self.logger.info("NotificationService initialized successfully")
        return True

    async def _deliver(self, title: str, body: str, data: dict[str, Any]) -> bool:
        if not self.initialized:
            self.logger.warning(f"Notifications not initialized, dropped: {body}")
            return False

        try:
            await self.sink.schedule_local_notification(title, body, data)
        except Exception as e:
            self.logger.error(f"Error delivering notification: {e}")
            return False

        self.logger.info(f"Notification sent: {title} - {body}")
        return True

    async def show_balance_change_notification(self, change: BalanceChange) -> bool:
        """
        Notify about one balance change.

        Returns:
            True if delivered
        """
        title, body = build_change_message(change, self.brand, self.default_chain_name)
        return await self._deliver(
            title,
            body,
            {
                "type": "balance_change",
                "token_symbol": change.token.symbol,
                "token_address": change.token.address,
                "amount": change.difference,
                "timestamp": change.timestamp,
                "change_type": str(change.type),
            },
        )

    async def show_grouped_balance_change_notifications(
        self, changes: list[BalanceChange]
    ) -> bool:
        """
        Notify about all changes of one cycle with at most one message.

        Returns:
            True if a notification was delivered
        """
        if not changes:
            return False

        if len(changes) == 1:
            return await self.show_balance_change_notification(changes[0])

        title, body = build_grouped_message(changes, self.brand, self.default_chain_name)
        return await self._deliver(
            title,
            body,
            {
                "type": "grouped_balance_changes",
                "changes_count": len(changes),
                "timestamp": now_ms(),
            },
        )

    async def show_test_notification(self) -> bool:
        """Send a test notification."""
        return await self._deliver(
            f"🧪 {self.brand} Test",
            "Test notification: monitoring is working",
            {"type": "test", "timestamp": now_ms()},
        )

    async def get_permission_status(self) -> PermissionStatus:
        """Query current permission state without side effects on initialization."""
        try:
            if not await self.sink.is_supported():
                return PermissionStatus.UNSUPPORTED
            if await self.sink.request_permission():
                return PermissionStatus.GRANTED
            return PermissionStatus.DENIED
        except Exception as e:
            self.logger.error(f"Error getting permission status: {e}")
            return PermissionStatus.UNKNOWN
