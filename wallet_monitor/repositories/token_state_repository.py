"""
Token state repository.

Stores the discovered token list and balance snapshots. Both are shared
between token discovery (replaces everything) and the balance monitor
(updates single snapshots), so:
- replace_all() writes list, snapshots and a new version in one MSET
- load_state() reads all three in one MGET
- snapshot upserts are serialized with an asyncio.Lock and can be tied to
  the version they were computed against
"""

import asyncio
import json
from dataclasses import dataclass, field

from loguru import logger

from wallet_monitor.config.constants import (
    BALANCE_SNAPSHOTS_KEY,
    DISCOVERED_TOKENS_KEY,
    TOKEN_STATE_VERSION_KEY,
)
from wallet_monitor.models.token import (
    BalanceSnapshot,
    TokenInfo,
    now_ms,
    same_token_address,
)
from wallet_monitor.repositories.base import BaseRepository, KeyValueStore


@dataclass
class TokenState:
    """Consistent view of discovered tokens and their snapshots."""

    tokens: list[TokenInfo] = field(default_factory=list)
    snapshots: list[BalanceSnapshot] = field(default_factory=list)
    version: int = 0

    def find_snapshot(self, token_address: str | None) -> BalanceSnapshot | None:
        """Find snapshot by token address (None = native)."""
        for snapshot in self.snapshots:
            if same_token_address(snapshot.token_address, token_address):
                return snapshot
        return None


class TokenStateRepository(BaseRepository):
    """Repository for discovered tokens and balance snapshots."""

    def __init__(self, store: KeyValueStore) -> None:
        """
        Initialize repository.

        Args:
            store: Key-value store
        """
        super().__init__(store)
        self._lock = asyncio.Lock()

    @staticmethod
    def _decode_list(raw: str | None, key: str) -> list[dict]:
        if raw is None:
            return []
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.error(f"Corrupt {key} in storage, ignoring: {e}")
            return []
        if not isinstance(value, list):
            logger.error(f"Unexpected {key} in storage (not a list), ignoring")
            return []
        items = [item for item in value if isinstance(item, dict)]
        if len(items) != len(value):
            logger.error(f"Skipped {len(value) - len(items)} malformed {key} entries")
        return items

    async def load_state(self) -> TokenState:
        """
        Load tokens, snapshots and version in one read.

        Returns:
            TokenState (empty when nothing was discovered yet)
        """
        raw_tokens, raw_snapshots, raw_version = await self.store.get_many(
            [DISCOVERED_TOKENS_KEY, BALANCE_SNAPSHOTS_KEY, TOKEN_STATE_VERSION_KEY]
        )
        return TokenState(
            tokens=[
                TokenInfo.from_dict(d)
                for d in self._decode_list(raw_tokens, DISCOVERED_TOKENS_KEY)
            ],
            snapshots=[
                BalanceSnapshot.from_dict(d)
                for d in self._decode_list(raw_snapshots, BALANCE_SNAPSHOTS_KEY)
            ],
            version=int(raw_version or 0),
        )

    async def get_discovered_tokens(self) -> list[TokenInfo]:
        """Get persisted token list."""
        return (await self.load_state()).tokens

    async def get_balance_snapshots(self) -> list[BalanceSnapshot]:
        """Get persisted balance snapshots."""
        return (await self.load_state()).snapshots

    async def replace_all(
        self,
        tokens: list[TokenInfo],
        snapshots: list[BalanceSnapshot],
    ) -> int:
        """
        Replace token list and snapshots wholesale.

        Args:
            tokens: New token list
            snapshots: New baseline snapshots

        Returns:
            New state version
        """
        async with self._lock:
            raw_version = await self.store.get(TOKEN_STATE_VERSION_KEY)
            version = int(raw_version or 0) + 1
            await self.store.set_many({
                DISCOVERED_TOKENS_KEY: json.dumps([t.to_dict() for t in tokens]),
                BALANCE_SNAPSHOTS_KEY: json.dumps([s.to_dict() for s in snapshots]),
                TOKEN_STATE_VERSION_KEY: str(version),
            })
        return version

    async def upsert_snapshot(
        self,
        token_address: str | None,
        balance: str,
        expected_version: int | None = None,
    ) -> bool:
        """
        Insert or update the snapshot for one token.

        Args:
            token_address: Token address (None = native)
            balance: New balance as decimal string
            expected_version: Drop the write if state was replaced since

        Returns:
            True if written, False if dropped due to a version change
        """
        async with self._lock:
            state = await self.load_state()
            if expected_version is not None and state.version != expected_version:
                logger.debug(
                    f"Snapshot write dropped: state version {state.version} "
                    f"!= expected {expected_version}"
                )
                return False

            snapshot = state.find_snapshot(token_address)
            if snapshot is None:
                state.snapshots.append(
                    BalanceSnapshot(token_address=token_address, balance=balance)
                )
            else:
                snapshot.balance = balance
                snapshot.timestamp = now_ms()

            await self.store.set(
                BALANCE_SNAPSHOTS_KEY,
                json.dumps([s.to_dict() for s in state.snapshots]),
            )
        return True
