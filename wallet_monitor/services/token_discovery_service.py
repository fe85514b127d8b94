"""
Token discovery service.

Finds the tokens a wallet currently holds and stores them together with a
baseline balance snapshot for the balance monitor.
"""

from typing import Protocol

from wallet_monitor.config.constants import DEFAULT_TOKEN_DECIMALS
from wallet_monitor.models.token import (
    BalanceSnapshot,
    TokenInfo,
    WalletBalance,
    now_ms,
    to_decimal,
)
from wallet_monitor.repositories.token_state_repository import TokenStateRepository
from wallet_monitor.services.base_service import BaseService, log_operation
from wallet_monitor.utils.security import mask_address


class WalletBalanceSource(Protocol):
    """Source of full wallet balances."""

    async def get_wallet_balance(
        self, wallet_address: str, force_refresh: bool = False
    ) -> WalletBalance: ...


class TokenDiscoveryService(BaseService):
    """
    Token discovery.

    Rediscovery replaces the token list and baseline wholesale; nothing is
    merged with the previous list.
    """

    def __init__(
        self,
        balance_source: WalletBalanceSource,
        repository: TokenStateRepository,
        default_chain_id: int,
        default_chain_name: str,
    ) -> None:
        """
        Initialize discovery service.

        Args:
            balance_source: Full wallet balance provider
            repository: Token state storage
            default_chain_id: Chain id of the native coin
            default_chain_name: Chain name of the native coin
        """
        super().__init__()
        self.balance_source = balance_source
        self.repository = repository
        self.default_chain_id = default_chain_id
        self.default_chain_name = default_chain_name

    def _collect(self, wallet_balance: WalletBalance) -> tuple[list[TokenInfo], list[BalanceSnapshot]]:
        tokens: list[TokenInfo] = []
        snapshots: list[BalanceSnapshot] = []
        timestamp = now_ms()

        native = wallet_balance.native_token
        if native is not None and to_decimal(native.balance) > 0:
            tokens.append(
                TokenInfo(
                    address=None,
                    symbol=native.symbol,
                    name=native.name,
                    decimals=native.decimals,
                    chain_id=self.default_chain_id,
                    chain_name=self.default_chain_name,
                )
            )
            snapshots.append(BalanceSnapshot(None, native.balance, timestamp))

        for token in wallet_balance.tokens:
            if to_decimal(token.balance) <= 0:
                continue
            tokens.append(
                TokenInfo(
                    address=token.address,
                    symbol=token.symbol,
                    name=token.name,
                    decimals=token.decimals or DEFAULT_TOKEN_DECIMALS,
                    chain_id=token.chain_id or self.default_chain_id,
                    chain_name=token.chain_name or self.default_chain_name,
                )
            )
            snapshots.append(BalanceSnapshot(token.address, token.balance, timestamp))

        return tokens, snapshots

    @log_operation
    async def discover_user_tokens(self, wallet_address: str) -> list[TokenInfo]:
        """
        Discover tokens with a non-zero balance.

        Always reads a fresh balance. On upstream failure the previously
        stored list and snapshots are left untouched.

        Args:
            wallet_address: Wallet address

        Returns:
            Discovered tokens, empty list on failure
        """
        try:
            wallet_balance = await self.balance_source.get_wallet_balance(
                wallet_address, force_refresh=True
            )
        except Exception as e:
            self.logger.error(
                f"Token discovery failed for {mask_address(wallet_address)}: {e}"
            )
            return []

        if wallet_balance is None:
            self.logger.warning(f"No wallet balance for {mask_address(wallet_address)}")
            return []

        tokens, snapshots = self._collect(wallet_balance)
        version = await self.repository.replace_all(tokens, snapshots)

        self.logger.info(
            f"Discovered {len(tokens)} tokens for {mask_address(wallet_address)} "
            f"(state version {version}): "
            + ", ".join(f"{t.symbol} ({t.chain_name})" for t in tokens)
        )
        return tokens

    async def get_discovered_tokens(self) -> list[TokenInfo]:
        """Get persisted token list."""
        return await self.repository.get_discovered_tokens()

    async def get_balance_snapshots(self) -> list[BalanceSnapshot]:
        """Get persisted balance snapshots."""
        return await self.repository.get_balance_snapshots()

    async def update_balance_snapshot(self, token_address: str | None, new_balance: str) -> None:
        """
        Upsert one snapshot.

        Args:
            token_address: Token address (None = native)
            new_balance: Balance as decimal string
        """
        await self.repository.upsert_snapshot(token_address, new_balance)
