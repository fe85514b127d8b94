"""
Wallet balance source.

Fetches the full wallet balance (native coin plus ERC-20 holdings) from the
Moralis REST API. Results are cached per wallet in the balance category.
"""

from decimal import Decimal
from typing import Any

import aiohttp

from wallet_monitor.config.constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_CHAIN_NAME,
    NATIVE_DECIMALS,
)
from wallet_monitor.models.token import (
    NativeBalance,
    TokenBalance,
    WalletBalance,
    to_balance_str,
)
from wallet_monitor.services.base_service import BaseService
from wallet_monitor.services.cache.cache_service import CacheCategory, CacheService
from wallet_monitor.utils.exceptions import UpstreamUnavailableError
from wallet_monitor.utils.security import mask_address


WALLET_BALANCE_CACHE_KEY = "wallet_balance"

NATIVE_SYMBOLS = {
    56: ("BNB", "BNB"),
    1: ("ETH", "Ether"),
}


class MoralisBalanceSource(BaseService):
    """
    Moralis-backed balance source.

    Endpoints used:
    - GET /{address}/balance?chain=...  native balance in wei
    - GET /{address}/erc20?chain=...    token holdings in raw units
    """

    def __init__(
        self,
        api_key: str | None,
        cache: CacheService,
        base_url: str = "https://deep-index.moralis.io/api/v2.2",
        chain: str = "bsc",
        chain_id: int = DEFAULT_CHAIN_ID,
        chain_name: str = DEFAULT_CHAIN_NAME,
        timeout: float = 30.0,
    ) -> None:
        super().__init__()
        self.api_key = api_key
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.chain = chain
        self.chain_id = chain_id
        self.chain_name = chain_name
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-API-Key": self.api_key or "", "Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, path: str) -> Any:
        session = await self._get_session()
        url = f"{self.base_url}/{path}"
        try:
            async with session.get(url, params={"chain": self.chain}) as response:
                if response.status != 200:
                    text = await response.text()
                    raise UpstreamUnavailableError(
                        f"Moralis returned {response.status} for {path.split('/')[-1]}: {text[:200]}"
                    )
                return await response.json()
        except (aiohttp.ClientError, TimeoutError) as e:
            raise UpstreamUnavailableError(f"Moralis request failed: {e}") from e

    def _parse_tokens(self, payload: Any) -> list[TokenBalance]:
        # v2.2 returns a bare list; wrapped responses carry it under "result"
        items = payload.get("result", []) if isinstance(payload, dict) else payload
        tokens: list[TokenBalance] = []
        for item in items or []:
            if item.get("possible_spam"):
                continue
            decimals = int(item.get("decimals") or 0)
            raw = Decimal(str(item.get("balance") or "0"))
            tokens.append(
                TokenBalance(
                    address=item["token_address"],
                    symbol=item.get("symbol") or "",
                    name=item.get("name") or "",
                    decimals=decimals,
                    balance=to_balance_str(raw / Decimal(10**decimals)),
                    chain_id=self.chain_id,
                    chain_name=self.chain_name,
                )
            )
        return tokens

    async def _fetch_wallet_balance(self, wallet_address: str) -> WalletBalance:
        if not self.api_key:
            raise UpstreamUnavailableError("Moralis API key is not configured")

        native_payload = await self._get_json(f"{wallet_address}/balance")
        tokens_payload = await self._get_json(f"{wallet_address}/erc20")

        symbol, name = NATIVE_SYMBOLS.get(self.chain_id, ("ETH", "Ether"))
        raw_native = Decimal(str(native_payload.get("balance") or "0"))
        native = NativeBalance(
            symbol=symbol,
            name=name,
            decimals=NATIVE_DECIMALS,
            balance=to_balance_str(raw_native / Decimal(10**NATIVE_DECIMALS)),
        )
        tokens = self._parse_tokens(tokens_payload)

        self.logger.debug(
            f"Fetched balance for {mask_address(wallet_address)}: "
            f"native={native.balance} {symbol}, {len(tokens)} tokens"
        )
        return WalletBalance(native_token=native, tokens=tokens)

    async def get_wallet_balance(
        self,
        wallet_address: str,
        force_refresh: bool = False,
    ) -> WalletBalance:
        """
        Get full wallet balance.

        Args:
            wallet_address: Wallet address
            force_refresh: Skip the cached value

        Returns:
            WalletBalance with decimal-string balances

        Raises:
            UpstreamUnavailableError: If Moralis cannot be reached
        """
        self.cache.set_scope(wallet_address.lower())
        if force_refresh:
            self.cache.invalidate(WALLET_BALANCE_CACHE_KEY)

        return await self.cache.get_or_fetch(
            WALLET_BALANCE_CACHE_KEY,
            lambda: self._fetch_wallet_balance(wallet_address),
            CacheCategory.BALANCE,
        )
