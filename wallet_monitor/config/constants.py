"""
Application constants.

Centralized constants for caching, monitoring and storage.
"""

from decimal import Decimal

# ========================================================================
# CACHE CONSTANTS
# ========================================================================

# Per-category time-to-live (in seconds)
CACHE_TTL_SECONDS = {
    "balance": 30.0,  # Balances change frequently
    "price": 60.0,
    "token_list": 300.0,  # Token list is relatively stable
    "allowance": 60.0,
    "quote": 10.0,  # Quotes go stale very quickly
    "default": 60.0,
}

CACHE_MAX_SIZE = 1000  # Maximum number of cached entries
CACHE_EVICTION_RATIO = 0.2  # Share of entries dropped when the cache is full
CACHE_SWEEP_INTERVAL_SECONDS = 300  # Expired entry sweep every 5 minutes
CACHE_GLOBAL_SCOPE = "global"

PRICE_CACHE_TTL_SECONDS = 10 * 60.0
PRICE_CACHE_MAX_BATCH_SIZE = 5  # Small batches to stay under provider rate limits

TRANSACTION_LIST_CACHE_TTL_SECONDS = 2 * 60.0
TRANSACTION_DETAIL_CACHE_TTL_SECONDS = 10 * 60.0  # Mined transactions rarely change
TRANSACTION_FIRST_PAGE_CURSOR = "first"

# ========================================================================
# MONITORING CONSTANTS
# ========================================================================

# Minimum balance delta treated as a real change (normalized token units)
BALANCE_NOISE_THRESHOLD = Decimal("0.0001")

DEFAULT_MONITOR_FREQUENCY_MS = 30_000
MIN_MONITOR_INTERVAL_MS = 15_000
REDISCOVERY_INTERVAL_HOURS = 24

BALANCE_MONITOR_TASK = "balance_monitor_task"
TOKEN_REDISCOVERY_JOB = "token_rediscovery"
CACHE_SWEEP_JOB = "cache_sweep"

# Scheduler backoff after consecutive failed ticks
SCHEDULER_MAX_BACKOFF_MULTIPLIER = 16

# ========================================================================
# STORAGE KEYS
# ========================================================================

DISCOVERED_TOKENS_KEY = "discovered_tokens"
BALANCE_SNAPSHOTS_KEY = "balance_snapshots"
TOKEN_STATE_VERSION_KEY = "token_state_version"
NOTIFICATION_SETTINGS_KEY = "balance_notification_settings"
ACTIVE_WALLET_KEY = "active_wallet"

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

DEFAULT_CHAIN_ID = 56  # BSC
DEFAULT_CHAIN_NAME = "BSC"
ETHEREUM_CHAIN_ID = 1

NATIVE_DECIMALS = 18
DEFAULT_TOKEN_DECIMALS = 18

# ERC-20 subset used for balance reads
ERC20_BALANCE_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
]

# ========================================================================
# TELEGRAM CONSTANTS
# ========================================================================

TELEGRAM_TIMEOUT = 10.0  # Telegram API operations timeout (seconds)
