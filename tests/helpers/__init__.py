"""Test helpers module for shared test utilities.

- constants: Token addresses, assets, router and account addresses
- factories: Pool and asset list factory functions
"""

from tests.helpers.constants import (
    ACCOUNT,
    DAI,
    DAI_ASSET,
    ETH_ASSET,
    LINK,
    LINK_ASSET,
    NOW,
    RECIPIENT,
    ROUTER,
    UNI,
    UNI_ASSET,
    USDC,
    USDC_ASSET,
    USDT,
    USDT_ASSET,
    WETH,
    WETH_ASSET,
)
from tests.helpers.factories import make_asset_list, make_pool

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "LINK",
    "UNI",
    "ETH_ASSET",
    "WETH_ASSET",
    "USDC_ASSET",
    "DAI_ASSET",
    "USDT_ASSET",
    "LINK_ASSET",
    "UNI_ASSET",
    "ROUTER",
    "ACCOUNT",
    "RECIPIENT",
    "NOW",
    # Factories
    "make_pool",
    "make_asset_list",
]
