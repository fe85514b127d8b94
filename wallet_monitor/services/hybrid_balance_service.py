"""
Hybrid balance service.

Orchestrates the balance notification pipeline:
token discovery (balance source) -> balance monitoring (RPC) -> notifications.

Lifecycle: UNINITIALIZED -> INITIALIZED -> MONITORING, back to INITIALIZED
on stop.
"""

from enum import StrEnum
from typing import Any

from jobs.scheduler import BackgroundFetchResult, BackgroundTaskScheduler
from wallet_monitor.config.constants import (
    BALANCE_MONITOR_TASK,
    MIN_MONITOR_INTERVAL_MS,
    REDISCOVERY_INTERVAL_HOURS,
    TOKEN_REDISCOVERY_JOB,
)
from wallet_monitor.models.notification_settings import NotificationSettings
from wallet_monitor.models.token import BalanceChange
from wallet_monitor.repositories.notification_settings_repository import (
    NotificationSettingsRepository,
)
from wallet_monitor.repositories.wallet_repository import WalletRepository
from wallet_monitor.services.balance_monitoring_service import BalanceMonitoringService
from wallet_monitor.services.base_service import BaseService
from wallet_monitor.services.notification_service import NotificationService
from wallet_monitor.services.token_discovery_service import TokenDiscoveryService
from wallet_monitor.utils.exceptions import BackgroundSchedulingUnavailableError
from wallet_monitor.utils.security import mask_address


class MonitoringState(StrEnum):
    """Orchestrator lifecycle state."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    MONITORING = "monitoring"


def filter_changes_by_settings(
    changes: list[BalanceChange],
    notification_settings: NotificationSettings,
) -> list[BalanceChange]:
    """Keep only the change types the user subscribed to."""
    if notification_settings.accepts_all():
        return list(changes)
    return [c for c in changes if c.type.value in notification_settings.types]


class HybridBalanceService(BaseService):
    """
    Balance notification orchestrator.

    One instance per process, built at startup and passed to its callers.
    """

    def __init__(
        self,
        wallet_repository: WalletRepository,
        settings_repository: NotificationSettingsRepository,
        discovery: TokenDiscoveryService,
        monitor: BalanceMonitoringService,
        notifications: NotificationService,
        scheduler: BackgroundTaskScheduler,
        min_interval_ms: int = MIN_MONITOR_INTERVAL_MS,
        rediscovery_interval_hours: float = REDISCOVERY_INTERVAL_HOURS,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            wallet_repository: Wallet lookup
            settings_repository: Notification settings storage
            discovery: Token discovery service
            monitor: Balance monitoring service
            notifications: Notification service
            scheduler: Background task scheduler
            min_interval_ms: Floor for the background check interval
            rediscovery_interval_hours: Hours between token rediscovery runs
        """
        super().__init__()
        self.wallet_repository = wallet_repository
        self.settings_repository = settings_repository
        self.discovery = discovery
        self.monitor = monitor
        self.notifications = notifications
        self.scheduler = scheduler
        self.min_interval_ms = min_interval_ms
        self.rediscovery_interval_hours = rediscovery_interval_hours
        self.state = MonitoringState.UNINITIALIZED

    @property
    def is_initialized(self) -> bool:
        return self.state != MonitoringState.UNINITIALIZED

    @property
    def is_monitoring(self) -> bool:
        return self.state == MonitoringState.MONITORING

    async def initialize(self) -> bool:
        """
        Initialize the whole pipeline.

        Order: notifications -> wallet -> token discovery -> background task
        definition -> rediscovery schedule.

        Returns:
            True if initialized
        """
        if self.is_initialized:
            return True

        try:
            if not await self.notifications.initialize():
                self.logger.warning("Notification service failed to initialize")
                return False

            wallet = await self.wallet_repository.get_wallet()
            if wallet is None:
                self.logger.warning("No wallet found, cannot initialize balance monitoring")
                return False

            await self.discovery.discover_user_tokens(wallet.address)

            self.scheduler.define_task(BALANCE_MONITOR_TASK, self.run_background_tick)
            self._schedule_rediscovery()
        except Exception as e:
            self.logger.error(f"Initialization error: {e}")
            return False

        self.state = MonitoringState.INITIALIZED
        self.logger.info(f"HybridBalanceService initialized for {mask_address(wallet.address)}")
        return True

    def _schedule_rediscovery(self) -> None:
        try:
            self.scheduler.schedule_interval(
                TOKEN_REDISCOVERY_JOB,
                self.rediscovery_interval_hours * 3600,
                self._rediscovery_job,
            )
        except BackgroundSchedulingUnavailableError:
            self.logger.warning("Background scheduling unavailable, token rediscovery is manual only")

    async def _rediscovery_job(self) -> None:
        if not await self.rediscover_tokens():
            self.logger.warning("Scheduled token rediscovery skipped")

    async def start_monitoring(self) -> bool:
        """
        Register the periodic balance check.

        Initializes first when needed. Refuses to start when notifications
        are disabled in settings.

        Returns:
            True if monitoring started
        """
        if not self.is_initialized:
            self.logger.warning("Service not initialized, initializing now...")
            if not await self.initialize():
                return False

        try:
            notification_settings = await self.settings_repository.get()
            if not notification_settings.enabled:
                self.logger.info("Balance notifications disabled, monitoring not started")
                return False

            interval_ms = max(notification_settings.frequency, self.min_interval_ms)
            self.scheduler.register_periodic_task(BALANCE_MONITOR_TASK, interval_ms)
            if not self.scheduler.is_registered(TOKEN_REDISCOVERY_JOB):
                self._schedule_rediscovery()
        except BackgroundSchedulingUnavailableError as e:
            self.logger.warning(f"Background monitoring not available here: {e}")
            return False
        except Exception as e:
            self.logger.error(f"Error starting balance monitoring: {e}")
            return False

        self.state = MonitoringState.MONITORING
        self.logger.info(f"Balance monitoring started, interval {interval_ms}ms")
        return True

    async def stop_monitoring(self) -> None:
        """Unregister the periodic check and the rediscovery schedule."""
        self.scheduler.unregister_task(BALANCE_MONITOR_TASK)
        self.scheduler.cancel(TOKEN_REDISCOVERY_JOB)
        if self.is_initialized:
            self.state = MonitoringState.INITIALIZED
        self.logger.info("Balance monitoring stopped")

    async def run_background_tick(self) -> BackgroundFetchResult:
        """
        One background balance check.

        Returns:
            NEW_DATA if a notification was dispatched, NO_DATA if nothing to
            report, FAILED on error
        """
        try:
            notification_settings = await self.settings_repository.get()
            if not notification_settings.enabled:
                return BackgroundFetchResult.NO_DATA

            # Quiet hours are stored but not applied: notifications go out 24/7

            wallet = await self.wallet_repository.get_wallet()
            if wallet is None:
                self.logger.warning("No wallet found in background task")
                return BackgroundFetchResult.FAILED

            changes = await self.monitor.monitor_balance_changes(wallet.address)

            if not self.is_monitoring:
                self.logger.debug("Monitoring stopped during check, results discarded")
                return BackgroundFetchResult.NO_DATA

            filtered = filter_changes_by_settings(changes, notification_settings)
            if not filtered:
                return BackgroundFetchResult.NO_DATA

            await self.notifications.show_grouped_balance_change_notifications(filtered)
            return BackgroundFetchResult.NEW_DATA

        except Exception as e:
            self.logger.exception(f"Background task error: {e}")
            return BackgroundFetchResult.FAILED

    async def rediscover_tokens(self) -> bool:
        """
        Rediscover tokens of the current wallet.

        Returns:
            False if no wallet is configured or discovery crashed
        """
        try:
            wallet = await self.wallet_repository.get_wallet()
            if wallet is None:
                return False
            await self.discovery.discover_user_tokens(wallet.address)
            return True
        except Exception as e:
            self.logger.error(f"Error in token rediscovery: {e}")
            return False

    async def force_refresh_balances(self) -> None:
        """Overwrite every snapshot with a fresh measurement."""
        try:
            wallet = await self.wallet_repository.get_wallet()
            if wallet is None:
                return
            await self.monitor.refresh_all_balance_snapshots(wallet.address)
        except Exception as e:
            self.logger.error(f"Error refreshing balances: {e}")

    async def get_settings(self) -> NotificationSettings:
        """Get notification settings."""
        return await self.settings_repository.get()

    async def update_settings(self, partial: dict[str, Any]) -> NotificationSettings:
        """
        Merge and persist settings.

        A changed frequency while monitoring restarts the periodic check.

        Args:
            partial: Fields to update

        Returns:
            Updated settings

        Raises:
            ValueError: If the merged settings are invalid
        """
        current = await self.settings_repository.get()
        updated = current.merged(partial)
        await self.settings_repository.save(updated)

        if "frequency" in partial and updated.frequency != current.frequency and self.is_monitoring:
            self.logger.info(f"Frequency changed to {updated.frequency}ms, restarting monitoring")
            await self.stop_monitoring()
            await self.start_monitoring()

        return updated

    def get_status(self) -> dict[str, Any]:
        """Get lifecycle status."""
        return {
            "initialized": self.is_initialized,
            "monitoring": self.is_monitoring,
            "state": str(self.state),
        }

    async def test_notification(self) -> bool:
        """Send a test notification."""
        return await self.notifications.show_test_notification()

    async def get_notification_settings(self) -> dict[str, bool]:
        """Simplified settings view: enabled flag only."""
        try:
            notification_settings = await self.settings_repository.get()
            return {"enabled": notification_settings.enabled}
        except Exception as e:
            self.logger.error(f"Error getting notification settings: {e}")
            return {"enabled": False}

    async def enable_notifications(self) -> bool:
        """
        Enable notifications and start monitoring if idle.

        Returns:
            True if monitoring is running afterwards
        """
        await self.update_settings({"enabled": True})
        if not self.is_monitoring:
            return await self.start_monitoring()
        return True

    async def disable_notifications(self) -> None:
        """Disable notifications and stop monitoring."""
        await self.update_settings({"enabled": False})
        if self.is_monitoring:
            await self.stop_monitoring()

    async def shutdown(self) -> None:
        """Stop monitoring and drop back to uninitialized."""
        if self.is_initialized:
            await self.stop_monitoring()
        self.state = MonitoringState.UNINITIALIZED
        self.logger.info("HybridBalanceService shut down")
