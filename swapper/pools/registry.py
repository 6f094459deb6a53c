"""Pool registry backed by live chain queries.

Every lookup goes to the chain client; nothing is cached between calls, so
each caller sees the reserves as of its own query.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar

import structlog

from swapper.amm.uniswap_v2 import UniswapV2Pool
from swapper.constants import ZERO_ADDRESS
from swapper.errors import PoolUnavailable
from swapper.models.asset import Asset
from swapper.models.types import normalize_address, short_address

if TYPE_CHECKING:
    from swapper.execution.interfaces import ChainClient

logger = structlog.get_logger()

DEFAULT_QUERY_TIMEOUT = 10.0

_T = TypeVar("_T")


class PoolRegistry:
    """Resolves the pool for an asset pair and reads its current reserves.

    The native coin is looked up through the wrapped-native token: pools are
    never keyed on the native sentinel.

    Args:
        chain: Chain query collaborator
        wrapped_native: Address of the wrapped native token
        query_timeout: Seconds allowed per chain query (None for no limit)
    """

    def __init__(
        self,
        chain: ChainClient,
        wrapped_native: str,
        query_timeout: float | None = DEFAULT_QUERY_TIMEOUT,
    ) -> None:
        self._chain = chain
        self.wrapped_native = normalize_address(wrapped_native)
        self._query_timeout = query_timeout

    def routing_address(self, asset: Asset | str) -> str:
        """Address used on-chain for an asset (native mapped to wrapped)."""
        if isinstance(asset, Asset):
            return asset.routing_address(self.wrapped_native)
        address = normalize_address(asset)
        if address == "ETH":
            return self.wrapped_native
        return address

    async def resolve_pool(self, asset_x: Asset | str, asset_y: Asset | str) -> UniswapV2Pool | None:
        """Get the pool for a pair with freshly queried reserves.

        Args:
            asset_x: First asset (Asset, address or native sentinel)
            asset_y: Second asset

        Returns:
            UniswapV2Pool snapshot, or None if the pair has no pool

        Raises:
            PoolUnavailable: If a chain query fails or times out
        """
        token_x = self.routing_address(asset_x)
        token_y = self.routing_address(asset_y)
        if token_x == token_y:
            return None

        pair = await self._query(
            "get_pair", self._chain.get_pair(token_x, token_y), token_x=token_x, token_y=token_y
        )
        if pair is None or normalize_address(pair) == ZERO_ADDRESS:
            logger.debug("pool_not_found", token_x=short_address(token_x), token_y=short_address(token_y))
            return None

        reserve0, reserve1 = await self._query(
            "get_reserves", self._chain.get_reserves(pair), pool=pair
        )

        # Pair contracts order tokens by address bytes
        token0, token1 = sorted([token_x, token_y], key=lambda t: bytes.fromhex(t[2:]))
        return UniswapV2Pool(
            address=normalize_address(pair),
            token0=token0,
            token1=token1,
            reserve0=int(reserve0),
            reserve1=int(reserve1),
        )

    async def _query(self, name: str, call: Awaitable[_T], **context: object) -> _T:
        try:
            if self._query_timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self._query_timeout)
        except TimeoutError as err:
            logger.warning("pool_query_timeout", query=name, timeout=self._query_timeout, **context)
            raise PoolUnavailable(f"{name} timed out after {self._query_timeout}s") from err
        except Exception as err:
            logger.warning("pool_query_failed", query=name, error=str(err), **context)
            raise PoolUnavailable(f"{name} failed: {err}") from err


__all__ = ["PoolRegistry", "DEFAULT_QUERY_TIMEOUT"]
