"""
Wallet repository.

Resolves the wallet whose balances are monitored.
"""

from dataclasses import dataclass

from wallet_monitor.config.constants import ACTIVE_WALLET_KEY
from wallet_monitor.repositories.base import BaseRepository, KeyValueStore


@dataclass(frozen=True)
class Wallet:
    """Monitored wallet."""

    address: str


class WalletRepository(BaseRepository):
    """
    Wallet lookup.

    The stored active wallet wins; the configured default address is used
    until a wallet has been stored.
    """

    def __init__(self, store: KeyValueStore, default_address: str | None = None) -> None:
        """
        Initialize repository.

        Args:
            store: Key-value store
            default_address: Fallback wallet address from settings
        """
        super().__init__(store)
        self.default_address = default_address

    async def get_wallet(self) -> Wallet | None:
        """
        Get the active wallet.

        Returns:
            Wallet or None if no wallet is configured
        """
        stored = await self.load_json(ACTIVE_WALLET_KEY)
        if stored and stored.get("address"):
            return Wallet(address=stored["address"])
        if self.default_address:
            return Wallet(address=self.default_address)
        return None

    async def set_wallet(self, address: str) -> Wallet:
        """
        Store the active wallet.

        Args:
            address: Wallet address

        Returns:
            Stored wallet
        """
        await self.save_json(ACTIVE_WALLET_KEY, {"address": address})
        return Wallet(address=address)
