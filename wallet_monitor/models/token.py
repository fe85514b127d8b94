"""
Token and balance models.

Plain data containers shared by discovery, monitoring and notifications.
Balances are kept as decimal strings so they survive JSON round trips
without float rounding.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from wallet_monitor.config.constants import DEFAULT_CHAIN_ID, DEFAULT_CHAIN_NAME


class ChangeType(StrEnum):
    """Direction of a balance change."""

    INCREASE = "increase"
    DECREASE = "decrease"


def now_ms() -> int:
    """Current wall clock time in milliseconds."""
    return int(time.time() * 1000)


def to_decimal(balance: str | Decimal | int | float | None) -> Decimal:
    """
    Parse a balance into Decimal.

    Unparseable values are treated as zero, matching how providers
    report empty balances.
    """
    if balance is None or balance == "":
        return Decimal("0")
    try:
        return Decimal(str(balance))
    except InvalidOperation:
        return Decimal("0")


def same_token_address(left: str | None, right: str | None) -> bool:
    """Compare token addresses; None denotes the native asset."""
    if left is None or right is None:
        return left is None and right is None
    return left.lower() == right.lower()


@dataclass(frozen=True)
class TokenInfo:
    """
    Token held by the wallet.

    Identity is (address, chain_id); address None is the chain's native coin.
    """

    address: str | None
    symbol: str
    name: str
    decimals: int
    chain_id: int = DEFAULT_CHAIN_ID
    chain_name: str = DEFAULT_CHAIN_NAME

    @property
    def is_native(self) -> bool:
        """True for the chain's native coin."""
        return self.address is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for storage."""
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "chain_id": self.chain_id,
            "chain_name": self.chain_name,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TokenInfo":
        """Create from stored dict."""
        return cls(
            address=d.get("address"),
            symbol=d.get("symbol", ""),
            name=d.get("name", ""),
            decimals=int(d.get("decimals") or 0),
            chain_id=int(d.get("chain_id") or DEFAULT_CHAIN_ID),
            chain_name=d.get("chain_name") or DEFAULT_CHAIN_NAME,
        )


@dataclass
class BalanceSnapshot:
    """Last recorded balance for a token, used as comparison baseline."""

    token_address: str | None
    balance: str
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for storage."""
        return {
            "token_address": self.token_address,
            "balance": self.balance,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "BalanceSnapshot":
        """Create from stored dict."""
        return cls(
            token_address=d.get("token_address"),
            balance=str(d.get("balance", "0")),
            timestamp=int(d.get("timestamp") or 0),
        )


@dataclass(frozen=True)
class BalanceChange:
    """Balance change detected in one monitoring cycle. Never persisted."""

    token: TokenInfo
    old_balance: str
    new_balance: str
    difference: float
    type: ChangeType
    timestamp: int = field(default_factory=now_ms)

    @property
    def is_increase(self) -> bool:
        return self.type == ChangeType.INCREASE


@dataclass
class NativeBalance:
    """Native coin holding reported by the balance source."""

    symbol: str
    name: str
    decimals: int
    balance: str


@dataclass
class TokenBalance:
    """Token holding reported by the balance source."""

    address: str
    symbol: str
    name: str
    decimals: int
    balance: str
    chain_id: int = DEFAULT_CHAIN_ID
    chain_name: str = DEFAULT_CHAIN_NAME


@dataclass
class WalletBalance:
    """Full wallet balance: native coin plus token holdings."""

    native_token: NativeBalance | None
    tokens: list[TokenBalance] = field(default_factory=list)


def to_balance_str(value: Decimal) -> str:
    """Render a Decimal balance as a plain (non-scientific) string."""
    return format(value, "f")
