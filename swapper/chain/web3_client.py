"""ChainClient backed by a JSON-RPC node through web3.py.

web3 calls are blocking; each one runs in the default executor so the event
loop keeps serving other quote requests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from swapper.constants import UNISWAP_V2_FACTORY, ZERO_ADDRESS
from swapper.models.types import normalize_address, short_address

logger = structlog.get_logger()

_T = TypeVar("_T")

# Minimal ABIs, just the functions we need
UNISWAP_V2_FACTORY_ABI = [
    {
        "name": "getPair",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "tokenA", "type": "address"},
            {"name": "tokenB", "type": "address"},
        ],
        "outputs": [{"name": "pair", "type": "address"}],
    },
]

UNISWAP_V2_PAIR_ABI = [
    {
        "name": "getReserves",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
    },
]

ERC20_ABI = [
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


class Web3ChainClient:
    """Read-only UniswapV2 queries over JSON-RPC.

    Query failures propagate; the pool registry turns them into
    PoolUnavailable.
    """

    def __init__(self, web3_provider: str, factory_address: str = UNISWAP_V2_FACTORY):
        """Initialize client with web3 provider.

        Args:
            web3_provider: HTTP RPC URL (e.g., "https://eth.llamarpc.com")
            factory_address: UniswapV2 factory contract address
        """
        try:
            from web3 import Web3
        except ImportError as e:
            raise ImportError(
                "web3 package required for Web3ChainClient. Install with: pip install web3"
            ) from e

        self._to_checksum: Callable[[str], Any] = Web3.to_checksum_address
        self.w3 = Web3(Web3.HTTPProvider(web3_provider))
        self.factory = self.w3.eth.contract(
            address=self._to_checksum(factory_address),
            abi=UNISWAP_V2_FACTORY_ABI,
        )

    async def _run(self, fn: Callable[[], _T]) -> _T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def get_pair(self, token_a: str, token_b: str) -> str | None:
        pair = await self._run(
            self.factory.functions.getPair(
                self._to_checksum(token_a), self._to_checksum(token_b)
            ).call
        )
        address = normalize_address(str(pair))
        if address == ZERO_ADDRESS:
            return None
        return address

    async def get_reserves(self, pool_address: str) -> tuple[int, int]:
        pair = self.w3.eth.contract(address=self._to_checksum(pool_address), abi=UNISWAP_V2_PAIR_ABI)
        reserve0, reserve1, _ = await self._run(pair.functions.getReserves().call)
        logger.debug(
            "reserves_fetched",
            pool=short_address(pool_address),
            reserve0=int(reserve0),
            reserve1=int(reserve1),
        )
        return int(reserve0), int(reserve1)

    async def get_allowance(self, owner: str, spender: str, asset: str) -> int:
        token = self.w3.eth.contract(address=self._to_checksum(asset), abi=ERC20_ABI)
        allowance = await self._run(
            token.functions.allowance(self._to_checksum(owner), self._to_checksum(spender)).call
        )
        return int(allowance)


__all__ = [
    "Web3ChainClient",
    "UNISWAP_V2_FACTORY_ABI",
    "UNISWAP_V2_PAIR_ABI",
    "ERC20_ABI",
]
