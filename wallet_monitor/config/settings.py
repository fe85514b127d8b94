"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

import re

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wallet_monitor.config.constants import (
    CACHE_MAX_SIZE,
    CACHE_SWEEP_INTERVAL_SECONDS,
    DEFAULT_CHAIN_ID,
    DEFAULT_CHAIN_NAME,
    MIN_MONITOR_INTERVAL_MS,
    REDISCOVERY_INTERVAL_HOURS,
)


ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram notification channel
    telegram_bot_token: str | None = None
    notification_chat_id: int | None = None
    notification_brand: str = "Wallet Monitor"

    # Wallet used when no active wallet has been stored yet
    wallet_address: str | None = None

    # Balance source (Moralis REST API)
    moralis_api_key: str | None = None
    moralis_base_url: str = "https://deep-index.moralis.io/api/v2.2"
    moralis_chain: str = "bsc"
    moralis_timeout_seconds: float = Field(default=30.0, gt=0)

    # RPC providers
    bsc_rpc_url: str = "https://bsc-dataseed1.binance.org/"
    eth_rpc_url: str = "https://cloudflare-eth.com"
    rpc_timeout_seconds: float = Field(default=20.0, gt=0)
    default_chain_id: int = DEFAULT_CHAIN_ID
    default_chain_name: str = DEFAULT_CHAIN_NAME

    # Redis (persistent key-value store)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0
    storage_namespace: str = "wallet_monitor"

    # Cache
    cache_max_size: int = Field(default=CACHE_MAX_SIZE, gt=0)
    cache_sweep_interval_seconds: int = Field(
        default=CACHE_SWEEP_INTERVAL_SECONDS,
        gt=0,
        description="Interval between expired cache entry sweeps",
    )

    # Monitoring
    rediscovery_interval_hours: int = Field(
        default=REDISCOVERY_INTERVAL_HOURS,
        gt=0,
        description="Hours between automatic token rediscovery runs",
    )
    min_monitor_interval_ms: int = Field(
        default=MIN_MONITOR_INTERVAL_MS,
        gt=0,
        description="Floor for the background balance check interval",
    )

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str = "logs/wallet_monitor.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("wallet_address")
    @classmethod
    def validate_wallet_address(cls, v: str | None) -> str | None:
        """Validate wallet address format."""
        if v is None or v == "":
            return None
        if not ADDRESS_PATTERN.match(v):
            raise ValueError(
                "Invalid wallet address format. "
                "Expected 0x followed by 40 hex characters"
            )
        return v

    @field_validator("telegram_bot_token")
    @classmethod
    def validate_bot_token(cls, v: str | None) -> str | None:
        """Validate Telegram bot token format."""
        if v is None or v == "":
            return None
        pattern = r"^\d+:[A-Za-z0-9_-]{35}$"
        if not re.match(pattern, v):
            raise ValueError(
                "Invalid Telegram bot token format. "
                "Expected format: 123456789:ABCdefGHIjklMNOpqrsTUVwxyz"
            )
        return v

    @model_validator(mode="after")
    def warn_missing_production_values(self) -> "Settings":
        """Warn about settings that disable parts of the pipeline."""
        if self.environment == "production":
            if not self.telegram_bot_token or self.notification_chat_id is None:
                logger.warning(
                    "TELEGRAM_BOT_TOKEN or NOTIFICATION_CHAT_ID is not set. "
                    "Balance notifications will not initialize."
                )
            if not self.moralis_api_key:
                logger.warning(
                    "MORALIS_API_KEY is not set. Token discovery will return no tokens."
                )
        return self

    @property
    def rpc_urls(self) -> dict[int, str]:
        """RPC endpoint per chain id."""
        return {
            56: self.bsc_rpc_url,
            1: self.eth_rpc_url,
        }


settings = Settings()
