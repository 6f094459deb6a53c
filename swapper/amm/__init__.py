"""AMM (Automated Market Maker) pricing."""

from swapper.amm.uniswap_v2 import UniswapV2, UniswapV2Pool, uniswap_v2

__all__ = [
    "UniswapV2",
    "UniswapV2Pool",
    "uniswap_v2",
]
