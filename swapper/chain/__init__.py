"""Chain client implementations."""

from swapper.chain.web3_client import ERC20_ABI, UNISWAP_V2_FACTORY_ABI, UNISWAP_V2_PAIR_ABI, Web3ChainClient

__all__ = ["Web3ChainClient", "UNISWAP_V2_FACTORY_ABI", "UNISWAP_V2_PAIR_ABI", "ERC20_ABI"]
