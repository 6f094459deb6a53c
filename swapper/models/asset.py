"""Asset definition."""

from __future__ import annotations

from dataclasses import dataclass

from swapper.models.types import NATIVE_SENTINEL, normalize_address


@dataclass(frozen=True)
class Asset:
    """A fungible asset: an ERC20 token or the chain's native coin.

    Raw amounts are only meaningful together with `decimals`; every
    conversion to or from display units goes through the asset's precision.
    """

    address: str
    symbol: str
    decimals: int
    name: str | None = None

    def __post_init__(self) -> None:
        if self.decimals < 0 or self.decimals > 77:
            raise ValueError(f"Invalid decimals for {self.symbol}: {self.decimals}")
        # Frozen dataclass: bypass __setattr__ to store the normalized form
        object.__setattr__(self, "address", normalize_address(self.address))

    @classmethod
    def native(cls, symbol: str = "ETH", decimals: int = 18, name: str | None = "Ethereum") -> Asset:
        """The native coin, identified by the sentinel instead of an address."""
        return cls(address=NATIVE_SENTINEL, symbol=symbol, decimals=decimals, name=name)

    @property
    def is_native(self) -> bool:
        return self.address == NATIVE_SENTINEL

    def routing_address(self, wrapped_native: str) -> str:
        """Address used for pool lookups and router paths.

        The native coin never has pools of its own; it trades through the
        wrapped representation.
        """
        if self.is_native:
            return normalize_address(wrapped_native)
        return self.address

    def __str__(self) -> str:
        return self.symbol


__all__ = ["Asset"]
