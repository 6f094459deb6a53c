"""Type definitions for routing module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from swapper.amm.uniswap_v2 import UniswapV2Pool
from swapper.amounts import format_amount
from swapper.constants import PRICE_SCALE
from swapper.models.asset import Asset
from swapper.models.types import TradeDirection
from swapper.pricing.impact import PriceImpact


class QuoteKind(str, Enum):
    """Whether a quote trades through pools or just wraps the native coin."""

    SWAP = "swap"
    WRAP = "wrap"
    UNWRAP = "unwrap"


@dataclass
class Route:
    """A path of assets and the pool snapshot for each hop.

    `token_path` holds the on-chain addresses (native coin replaced by the
    wrapped token); `pools[i]` trades token_path[i] for token_path[i + 1].
    """

    path: list[Asset]
    token_path: list[str]
    pools: list[UniswapV2Pool]

    def __post_init__(self) -> None:
        if len(self.path) < 2:
            raise ValueError("A route needs at least two assets")
        if len(self.token_path) != len(self.path) or len(self.pools) != len(self.path) - 1:
            raise ValueError(
                f"Route shape mismatch: {len(self.path)} assets, "
                f"{len(self.token_path)} addresses, {len(self.pools)} pools"
            )

    @property
    def hop_count(self) -> int:
        return len(self.pools)

    @property
    def is_direct(self) -> bool:
        return self.hop_count == 1

    @property
    def symbols(self) -> list[str]:
        return [asset.symbol for asset in self.path]

    def __str__(self) -> str:
        return " → ".join(self.symbols)


@dataclass
class HopResult:
    """Amounts through a single hop of a route."""

    pool: UniswapV2Pool
    input_token: str
    output_token: str
    amount_in: int
    amount_out: int


@dataclass
class Quote:
    """Priced route for a trade.

    `amounts` has one entry per path position: amounts[0] is the input and
    amounts[-1] the output, each step computed by the hop pricer on the
    route's own pool snapshot.
    """

    source: Asset
    destination: Asset
    direction: TradeDirection
    amounts: list[int]
    price_impact: PriceImpact
    route: Route | None = None
    kind: QuoteKind = QuoteKind.SWAP
    hops: list[HopResult] = field(default_factory=list)

    @property
    def amount_in(self) -> int:
        return self.amounts[0]

    @property
    def amount_out(self) -> int:
        return self.amounts[-1]

    @property
    def is_wrap(self) -> bool:
        return self.kind is not QuoteKind.SWAP

    @property
    def path(self) -> list[Asset]:
        if self.route is None:
            return [self.source, self.destination]
        return self.route.path

    @property
    def token_path(self) -> list[str]:
        if self.route is None:
            return []
        return self.route.token_path

    @property
    def rate_scaled(self) -> int:
        """Destination units per one whole source unit, at 18-decimal fixed point."""
        if self.amount_in == 0:
            return 0
        numerator = self.amount_out * 10**self.source.decimals * PRICE_SCALE
        denominator = self.amount_in * 10**self.destination.decimals
        return numerator // denominator

    @property
    def rate(self) -> str:
        """Display rate, e.g. "1 WETH = 2493.1 USDC"."""
        return (
            f"1 {self.source.symbol} = "
            f"{format_amount(self.rate_scaled, 18)} {self.destination.symbol}"
        )

    def formatted_amounts(self) -> list[str]:
        """Per-position amounts formatted with each asset's precision."""
        return [
            format_amount(amount, asset.decimals)
            for amount, asset in zip(self.amounts, self.path, strict=True)
        ]


__all__ = ["QuoteKind", "Route", "HopResult", "Quote"]
