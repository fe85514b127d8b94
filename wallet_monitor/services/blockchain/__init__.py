"""Blockchain balance adapters."""

from wallet_monitor.services.blockchain.rpc_balance_reader import RpcBalanceReader
from wallet_monitor.services.blockchain.wallet_balance_source import (
    MoralisBalanceSource,
)


__all__ = [
    "MoralisBalanceSource",
    "RpcBalanceReader",
]
