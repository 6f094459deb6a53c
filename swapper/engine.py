"""Wiring of the quoting engine from its collaborators."""

from __future__ import annotations

import os
from functools import lru_cache

import structlog

from swapper.asset_list import AssetList, default_asset_list, load_asset_list
from swapper.config import DEFAULT_SWAP_CONFIG, SwapConfig
from swapper.execution.interfaces import ChainClient
from swapper.pools.registry import PoolRegistry
from swapper.routing.router import Quoter, RouteFinder

logger = structlog.get_logger()


def build_quoter(
    chain: ChainClient,
    asset_list: AssetList | None = None,
    config: SwapConfig = DEFAULT_SWAP_CONFIG,
) -> Quoter:
    """Assemble registry, route finder and quoter around a chain client."""
    assets = asset_list if asset_list is not None else default_asset_list()
    registry = PoolRegistry(chain, assets.wrapped_native, query_timeout=config.query_timeout)
    return Quoter(RouteFinder(registry, assets))


@lru_cache(maxsize=1)
def get_default_config() -> SwapConfig:
    """SwapConfig from SWAPPER_* environment variables, read once."""
    return SwapConfig.from_env()


@lru_cache(maxsize=1)
def get_default_quoter() -> Quoter | None:
    """Quoter backed by SWAPPER_RPC_URL, or None when no node is configured.

    Configuration via environment variables:
    - SWAPPER_RPC_URL: JSON-RPC endpoint (required for live quotes)
    - SWAPPER_FACTORY: UniswapV2 factory address (default: mainnet)
    - SWAPPER_ASSET_LIST: Path to an asset list JSON (default: built-in list)
    """
    rpc_url = os.environ.get("SWAPPER_RPC_URL")
    if not rpc_url:
        logger.info("quoter_disabled", reason="SWAPPER_RPC_URL not set")
        return None

    from swapper.chain.web3_client import Web3ChainClient

    factory = os.environ.get("SWAPPER_FACTORY")
    chain = Web3ChainClient(rpc_url, factory) if factory else Web3ChainClient(rpc_url)

    asset_list_path = os.environ.get("SWAPPER_ASSET_LIST")
    asset_list = load_asset_list(asset_list_path) if asset_list_path else default_asset_list()

    logger.info(
        "quoter_enabled",
        rpc_url=rpc_url[:50] + "...",
        tokens=len(asset_list.tokens),
        bridges=len(asset_list.bridges),
    )
    return build_quoter(chain, asset_list, get_default_config())


__all__ = ["build_quoter", "get_default_config", "get_default_quoter"]
