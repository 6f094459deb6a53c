"""Curated asset list: tradable assets plus the bridge subset used for routing.

The list is plain data supplied from outside the engine (a JSON document or
the built-in defaults). Route finding reads it at call time, so replacing the
list takes effect on the next quote.

JSON layout:
    {
        "wrappedNative": "0xc02a...",
        "tokens": [{"address": "ETH", "symbol": "ETH", "decimals": 18}, ...],
        "bridges": ["0xc02a...", "0xa0b8..."]
    }
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from swapper.constants import DEFAULT_BRIDGE_TOKENS, DEFAULT_TOKENS, WETH
from swapper.models.asset import Asset
from swapper.models.types import Address, AssetAddress, normalize_address


class TokenEntry(BaseModel):
    """One asset in the list."""

    address: AssetAddress
    symbol: str = Field(min_length=1)
    decimals: int = Field(ge=0, le=77)
    name: str | None = None
    logo_uri: str | None = Field(default=None, alias="logoURI")

    model_config = {"populate_by_name": True}

    def to_asset(self) -> Asset:
        return Asset(address=self.address, symbol=self.symbol, decimals=self.decimals, name=self.name)


class AssetList(BaseModel):
    """Tradable assets and the bridge assets allowed as intermediate hops."""

    wrapped_native: Address = Field(alias="wrappedNative")
    tokens: list[TokenEntry]
    bridges: list[AssetAddress] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_references(self) -> AssetList:
        known = {normalize_address(t.address) for t in self.tokens}
        if len(known) != len(self.tokens):
            raise ValueError("Duplicate token address in asset list")
        missing = [b for b in self.bridges if normalize_address(b) not in known]
        if missing:
            raise ValueError(f"Bridge assets not in token list: {missing}")
        return self

    def assets(self) -> list[Asset]:
        """Every tradable asset, in list order."""
        return [t.to_asset() for t in self.tokens]

    def get(self, address: str) -> Asset | None:
        """Look up an asset by address (any case) or the native sentinel."""
        wanted = normalize_address(address)
        for asset in self.assets():
            if normalize_address(asset.address) == wanted:
                return asset
        return None

    def by_symbol(self, symbol: str) -> Asset | None:
        """Look up an asset by symbol (case insensitive, first match)."""
        wanted = symbol.upper()
        for asset in self.assets():
            if asset.symbol.upper() == wanted:
                return asset
        return None

    def resolve(self, identifier: str) -> Asset | None:
        """Look up an asset by address, sentinel or symbol."""
        return self.get(identifier) or self.by_symbol(identifier)

    @property
    def bridge_assets(self) -> list[Asset]:
        result = []
        for address in self.bridges:
            asset = self.get(address)
            if asset is not None:
                result.append(asset)
        return result

    @property
    def native_asset(self) -> Asset | None:
        for asset in self.assets():
            if asset.is_native:
                return asset
        return None


def default_asset_list() -> AssetList:
    """The built-in mainnet token list."""
    return AssetList(
        wrapped_native=WETH,
        tokens=[
            TokenEntry(address=address, symbol=symbol, name=name, decimals=decimals)
            for address, symbol, name, decimals in DEFAULT_TOKENS
        ],
        bridges=list(DEFAULT_BRIDGE_TOKENS),
    )


def load_asset_list(path: str | Path) -> AssetList:
    """Load an asset list from a JSON file.

    Raises:
        pydantic.ValidationError: If the document is malformed
    """
    return AssetList.model_validate_json(Path(path).read_text())


__all__ = ["TokenEntry", "AssetList", "default_asset_list", "load_asset_list"]
