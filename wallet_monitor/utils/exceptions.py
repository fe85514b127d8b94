"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

from aiohttp import ClientError
from redis.exceptions import RedisError
from web3.exceptions import Web3Exception


class WalletMonitorError(Exception):
    """Base error for the balance monitoring core."""


class UpstreamUnavailableError(WalletMonitorError):
    """Raised when a balance, price or RPC source cannot be reached."""


class NotificationPermissionError(WalletMonitorError):
    """Raised when the notification sink refuses delivery."""


class BackgroundSchedulingUnavailableError(WalletMonitorError):
    """Raised when background scheduling is not available in this environment."""


# Exception categories based on handling strategy

# Must log but can continue - absorbed at the smallest scope
MUST_LOG = (
    UpstreamUnavailableError,
    ClientError,  # HTTP balance source errors
    Web3Exception,  # Blockchain RPC errors
    RedisError,  # Storage errors
    TimeoutError,
    ConnectionError,
)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged and absorbed.

    Args:
        exc: Exception to check

    Returns:
        True if exception belongs to the absorbed category
    """
    return isinstance(exc, MUST_LOG)

