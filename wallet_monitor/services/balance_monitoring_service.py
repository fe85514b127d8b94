"""
Balance monitoring service.

Polls live balances of discovered tokens over RPC and compares them with
the stored snapshots to detect balance changes.
"""

from decimal import Decimal
from typing import Protocol

from wallet_monitor.config.constants import BALANCE_NOISE_THRESHOLD
from wallet_monitor.models.token import (
    BalanceChange,
    ChangeType,
    TokenInfo,
    to_decimal,
)
from wallet_monitor.repositories.token_state_repository import TokenStateRepository
from wallet_monitor.services.base_service import BaseService
from wallet_monitor.utils.exceptions import must_log
from wallet_monitor.utils.security import mask_address


class BalanceReader(Protocol):
    """Live per-token balance reader."""

    async def get_balance(self, wallet_address: str, token: TokenInfo) -> str: ...


class BalanceMonitoringService(BaseService):
    """
    Balance change detection.

    Snapshot policy:
    - first observation of a token stores a baseline, no change
    - delta above the noise threshold emits a change and moves the snapshot
    - delta within the threshold keeps the snapshot at the last meaningful value
    """

    def __init__(
        self,
        reader: BalanceReader,
        repository: TokenStateRepository,
        noise_threshold: Decimal = BALANCE_NOISE_THRESHOLD,
    ) -> None:
        """
        Initialize monitoring service.

        Args:
            reader: Live balance reader
            repository: Token state storage
            noise_threshold: Minimum delta treated as a real change
        """
        super().__init__()
        self.reader = reader
        self.repository = repository
        self.noise_threshold = noise_threshold

    async def get_token_balance(self, wallet_address: str, token: TokenInfo) -> str:
        """
        Read live balance of one token.

        Raises:
            UpstreamUnavailableError: If the RPC read fails
        """
        return await self.reader.get_balance(wallet_address, token)

    async def monitor_balance_changes(self, wallet_address: str) -> list[BalanceChange]:
        """
        Detect balance changes for all discovered tokens.

        Each token is checked independently; a failing read is logged and
        the remaining tokens are still checked.

        Args:
            wallet_address: Wallet address

        Returns:
            Detected changes (empty when nothing was discovered yet)
        """
        state = await self.repository.load_state()
        if not state.tokens:
            self.logger.debug("No discovered tokens to monitor")
            return []

        changes: list[BalanceChange] = []

        for token in state.tokens:
            try:
                new_balance = await self.get_token_balance(wallet_address, token)
                snapshot = state.find_snapshot(token.address)

                if snapshot is None:
                    await self.repository.upsert_snapshot(
                        token.address, new_balance, expected_version=state.version
                    )
                    self.logger.info(f"Saved initial snapshot for {token.symbol}: {new_balance}")
                    continue

                difference = to_decimal(new_balance) - to_decimal(snapshot.balance)
                if abs(difference) <= self.noise_threshold:
                    continue

                change = BalanceChange(
                    token=token,
                    old_balance=snapshot.balance,
                    new_balance=new_balance,
                    difference=float(difference),
                    type=ChangeType.INCREASE if difference > 0 else ChangeType.DECREASE,
                )
                changes.append(change)
                self.logger.info(
                    f"Balance change detected: {token.symbol} "
                    f"{'+' if difference > 0 else ''}{difference}"
                )

                written = await self.repository.upsert_snapshot(
                    token.address, new_balance, expected_version=state.version
                )
                if not written:
                    self.logger.debug(
                        f"Token state replaced during scan, snapshot for {token.symbol} not moved"
                    )

            except Exception as e:
                if must_log(e):
                    self.logger.warning(f"Failed to check {token.symbol} balance: {e}")
                else:
                    self.logger.exception(f"Unexpected error checking {token.symbol}: {e}")

        if changes:
            self.logger.info(
                f"Detected {len(changes)} balance changes for {mask_address(wallet_address)}"
            )
        return changes

    async def refresh_all_balance_snapshots(self, wallet_address: str) -> int:
        """
        Re-measure every discovered token and overwrite its snapshot.

        Ignores the noise threshold.

        Args:
            wallet_address: Wallet address

        Returns:
            Number of refreshed snapshots
        """
        tokens = await self.repository.get_discovered_tokens()
        refreshed = 0

        for token in tokens:
            try:
                balance = await self.get_token_balance(wallet_address, token)
                await self.repository.upsert_snapshot(token.address, balance)
                refreshed += 1
            except Exception as e:
                if must_log(e):
                    self.logger.warning(f"Failed to refresh {token.symbol}: {e}")
                else:
                    self.logger.exception(f"Unexpected error refreshing {token.symbol}: {e}")

        self.logger.info(f"Refreshed {refreshed}/{len(tokens)} balance snapshots")
        return refreshed
