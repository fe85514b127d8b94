"""
Initialization - Services Module.

Builds the process-wide service instances once and wires them together.
"""

from dataclasses import dataclass

from aiogram import Bot
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger
from redis.asyncio import Redis

from jobs.scheduler import BackgroundTaskScheduler
from wallet_monitor.config.settings import Settings
from wallet_monitor.repositories import (
    NotificationSettingsRepository,
    RedisKeyValueStore,
    TokenStateRepository,
    WalletRepository,
)
from wallet_monitor.services.balance_monitoring_service import BalanceMonitoringService
from wallet_monitor.services.blockchain import MoralisBalanceSource, RpcBalanceReader
from wallet_monitor.services.cache import CacheService
from wallet_monitor.services.hybrid_balance_service import HybridBalanceService
from wallet_monitor.services.notification_service import NotificationService
from wallet_monitor.services.telegram_sink import TelegramNotificationSink
from wallet_monitor.services.token_discovery_service import TokenDiscoveryService


@dataclass
class ServiceContainer:
    """Long-lived services of one process."""

    redis_client: Redis
    cache: CacheService
    balance_source: MoralisBalanceSource
    sink: TelegramNotificationSink
    scheduler: BackgroundTaskScheduler
    orchestrator: HybridBalanceService


def build_services(app_settings: Settings, redis_client: Redis) -> ServiceContainer:
    """
    Build all services from settings.

    Args:
        app_settings: Application settings
        redis_client: Connected Redis client

    Returns:
        ServiceContainer
    """
    store = RedisKeyValueStore(redis_client, namespace=app_settings.storage_namespace)
    token_state = TokenStateRepository(store)

    cache = CacheService(
        max_size=app_settings.cache_max_size,
        sweep_interval=app_settings.cache_sweep_interval_seconds,
    )
    balance_source = MoralisBalanceSource(
        api_key=app_settings.moralis_api_key,
        cache=cache,
        base_url=app_settings.moralis_base_url,
        chain=app_settings.moralis_chain,
        chain_id=app_settings.default_chain_id,
        chain_name=app_settings.default_chain_name,
        timeout=app_settings.moralis_timeout_seconds,
    )
    reader = RpcBalanceReader(
        rpc_urls=app_settings.rpc_urls,
        timeout=app_settings.rpc_timeout_seconds,
    )

    bot = Bot(token=app_settings.telegram_bot_token) if app_settings.telegram_bot_token else None
    sink = TelegramNotificationSink(bot, app_settings.notification_chat_id)
    notifications = NotificationService(
        sink,
        brand=app_settings.notification_brand,
        default_chain_name=app_settings.default_chain_name,
    )

    scheduler = BackgroundTaskScheduler(AsyncIOScheduler())

    orchestrator = HybridBalanceService(
        wallet_repository=WalletRepository(store, app_settings.wallet_address),
        settings_repository=NotificationSettingsRepository(store),
        discovery=TokenDiscoveryService(
            balance_source,
            token_state,
            default_chain_id=app_settings.default_chain_id,
            default_chain_name=app_settings.default_chain_name,
        ),
        monitor=BalanceMonitoringService(reader, token_state),
        notifications=notifications,
        scheduler=scheduler,
        min_interval_ms=app_settings.min_monitor_interval_ms,
        rediscovery_interval_hours=app_settings.rediscovery_interval_hours,
    )

    logger.info("Services initialized")
    return ServiceContainer(
        redis_client=redis_client,
        cache=cache,
        balance_source=balance_source,
        sink=sink,
        scheduler=scheduler,
        orchestrator=orchestrator,
    )
