"""
RPC balance reader.

Reads live per-token balances straight from chain RPC nodes:
- native coin via eth_getBalance
- ERC-20 tokens via balanceOf, normalized with the token decimals
"""

import asyncio
from decimal import Decimal

from eth_utils import to_checksum_address
from loguru import logger
from web3 import AsyncWeb3

from wallet_monitor.config.constants import (
    DEFAULT_TOKEN_DECIMALS,
    ERC20_BALANCE_ABI,
    ETHEREUM_CHAIN_ID,
    NATIVE_DECIMALS,
)
from wallet_monitor.models.token import TokenInfo, to_balance_str
from wallet_monitor.utils.exceptions import UpstreamUnavailableError
from wallet_monitor.utils.security import mask_address


class RpcBalanceReader:
    """
    Chain-routed balance reader.

    One AsyncWeb3 instance per chain id. Tokens on a chain without a
    configured provider are read through the Ethereum provider.
    """

    def __init__(
        self,
        rpc_urls: dict[int, str] | None = None,
        timeout: float = 20.0,
        providers: dict[int, AsyncWeb3] | None = None,
    ) -> None:
        """
        Initialize reader.

        Args:
            rpc_urls: RPC endpoint per chain id
            timeout: Per-call timeout in seconds
            providers: Prebuilt AsyncWeb3 instances per chain id
        """
        self.timeout = timeout
        self._providers: dict[int, AsyncWeb3] = dict(providers or {})
        for chain_id, url in (rpc_urls or {}).items():
            if chain_id not in self._providers:
                self._providers[chain_id] = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(url))

    def _web3_for(self, chain_id: int) -> AsyncWeb3:
        w3 = self._providers.get(chain_id) or self._providers.get(ETHEREUM_CHAIN_ID)
        if w3 is None:
            raise UpstreamUnavailableError(f"No RPC provider for chain {chain_id}")
        return w3

    async def _token_decimals(self, contract, token: TokenInfo) -> int:
        if token.decimals:
            return token.decimals
        try:
            return int(
                await asyncio.wait_for(contract.functions.decimals().call(), timeout=self.timeout)
            )
        except Exception as e:
            logger.warning(
                f"decimals() unavailable for {token.symbol}, "
                f"using {DEFAULT_TOKEN_DECIMALS}: {e}"
            )
            return DEFAULT_TOKEN_DECIMALS

    async def get_balance(self, wallet_address: str, token: TokenInfo) -> str:
        """
        Read live balance of one token.

        Args:
            wallet_address: Wallet address
            token: Token to read (address None = native coin)

        Returns:
            Balance in token units as decimal string

        Raises:
            UpstreamUnavailableError: On RPC failure or timeout
        """
        w3 = self._web3_for(token.chain_id)
        owner = to_checksum_address(wallet_address)

        try:
            if token.is_native:
                raw = await asyncio.wait_for(w3.eth.get_balance(owner), timeout=self.timeout)
                decimals = token.decimals or NATIVE_DECIMALS
            else:
                contract = w3.eth.contract(
                    address=to_checksum_address(token.address),
                    abi=ERC20_BALANCE_ABI,
                )
                raw = await asyncio.wait_for(
                    contract.functions.balanceOf(owner).call(),
                    timeout=self.timeout,
                )
                decimals = await self._token_decimals(contract, token)
        except TimeoutError as e:
            raise UpstreamUnavailableError(
                f"Timeout reading {token.symbol} balance for {mask_address(wallet_address)}"
            ) from e
        except Exception as e:
            raise UpstreamUnavailableError(
                f"RPC error reading {token.symbol} balance: {e}"
            ) from e

        return to_balance_str(Decimal(raw) / Decimal(10**decimals))
