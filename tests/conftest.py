"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings validation
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456789:ABCdefGHIjklMNOpqrsTUVwxyz123456789")
os.environ.setdefault("NOTIFICATION_CHAT_ID", "123456789")
os.environ.setdefault("WALLET_ADDRESS", "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0")
os.environ.setdefault("BSC_RPC_URL", "https://bsc-dataseed.binance.org/")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from wallet_monitor.models.token import TokenInfo  # noqa: E402


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore for repository-level tests."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def get_many(self, keys: list[str]) -> list[str | None]:
        return [self.data.get(k) for k in keys]

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def set_many(self, values: dict[str, str]) -> None:
        self.data.update(values)

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FakeClock:
    """Manually advanced monotonic clock in seconds."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def kv_store():
    """Empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    """Fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def sample_wallet_address():
    """Sample valid BSC wallet address for testing."""
    return "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"


@pytest.fixture
def make_token():
    """Factory for TokenInfo with BSC defaults."""

    def _make(
        symbol: str = "USDT",
        address: str | None = "0x55d398326f99059fF775485246999027B3197955",
        decimals: int = 18,
        chain_id: int = 56,
        chain_name: str = "BSC",
    ) -> TokenInfo:
        return TokenInfo(
            address=address,
            symbol=symbol,
            name=symbol,
            decimals=decimals,
            chain_id=chain_id,
            chain_name=chain_name,
        )

    return _make


@pytest.fixture
def mock_bot():
    """Mock Telegram Bot."""
    bot = AsyncMock()
    bot.get_me = AsyncMock(return_value=MagicMock(username="wallet_monitor_bot"))
    bot.get_chat = AsyncMock(return_value=MagicMock(id=123456789))
    bot.send_message = AsyncMock()
    bot.session = AsyncMock()
    bot.session.close = AsyncMock()
    return bot


@pytest.fixture
def mock_sink():
    """Notification sink that supports delivery and has permission."""
    sink = AsyncMock()
    sink.is_supported = AsyncMock(return_value=True)
    sink.request_permission = AsyncMock(return_value=True)
    sink.schedule_local_notification = AsyncMock()
    return sink


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for store tests."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.mget = AsyncMock(return_value=[])
    client.set = AsyncMock()
    client.mset = AsyncMock()
    client.delete = AsyncMock()
    return client
