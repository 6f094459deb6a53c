"""Core data types: assets, addresses and swap lifecycle models.

swapper.models.swap is imported directly by its users; it depends on the
routing types and is kept out of this package namespace.
"""

from swapper.models.asset import Asset
from swapper.models.types import (
    NATIVE_SENTINEL,
    Address,
    AssetAddress,
    Uint256,
    normalize_address,
)

__all__ = [
    # Types
    "Address",
    "AssetAddress",
    "Uint256",
    "NATIVE_SENTINEL",
    "normalize_address",
    # Assets
    "Asset",
]
