"""Price impact of a trade: execution price against pre-trade spot price.

Both prices are integers at 18-decimal fixed point and the impact is kept
in hundredths of a percent (basis points). Conversion to Decimal or float
happens only when the value is displayed.

For multi-hop routes the spot price comes from the entry pool alone. The
execution price spans the whole route, so the impact of a multi-hop trade
also carries the fees and curve movement of the later hops.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from swapper.constants import BPS_SCALE, PRICE_SCALE
from swapper.errors import InsufficientLiquidity
from swapper.safe_int import S

if TYPE_CHECKING:
    from swapper.routing.types import Route

# Severity thresholds in basis points (1% and 5%)
MEDIUM_IMPACT_BPS = 100
HIGH_IMPACT_BPS = 500


class ImpactSeverity(str, Enum):
    """How alarming an impact is for the trader."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class PriceImpact:
    """Signed price impact in basis points (positive is unfavourable).

    Attributes:
        bps: Impact in hundredths of a percent, truncated toward zero
        spot_price: Entry-pool price of one output unit in input units (1e18 scale)
        execution_price: Realized price of one output unit in input units (1e18 scale)
    """

    bps: int
    spot_price: int = 0
    execution_price: int = 0

    @classmethod
    def zero(cls) -> PriceImpact:
        return cls(bps=0, spot_price=PRICE_SCALE, execution_price=PRICE_SCALE)

    @property
    def percent(self) -> Decimal:
        """Impact as a percentage with two decimals."""
        return Decimal(self.bps) / Decimal(100)

    @property
    def severity(self) -> ImpactSeverity:
        if self.bps > HIGH_IMPACT_BPS:
            return ImpactSeverity.HIGH
        if self.bps > MEDIUM_IMPACT_BPS:
            return ImpactSeverity.MEDIUM
        return ImpactSeverity.LOW

    def __float__(self) -> float:
        return self.bps / 100

    def __str__(self) -> str:
        return f"{self.percent:.2f}%"


def compute_impact(
    route: Route,
    amount_in: int,
    amount_out: int,
    include_fee: bool = True,
) -> PriceImpact:
    """Compute the price impact of trading amount_in for amount_out along a route.

    spot = reserve_in * 1e18 / reserve_out          (first hop, before the trade)
    execution = amount_in * 1e18 / amount_out
    impact = (execution - spot) * 10000 / spot      (basis points)

    Args:
        route: The route the amounts were computed on
        amount_in: Input amount of the trade
        amount_out: Output amount of the trade
        include_fee: If False, the spot price is grossed up by every hop's
            fee so only curve movement counts as impact; a negligible trade
            then reports zero impact. If True (default) the LP fee is part
            of the impact, as traders see it.

    Returns:
        PriceImpact

    Raises:
        InsufficientLiquidity: If reserves or amount_out are zero, or the spot
            price is below fixed-point resolution
    """
    if not route.pools:
        raise ValueError("Cannot compute price impact of a route without pools")
    first_pool = route.pools[0]
    reserve_in, reserve_out = first_pool.get_reserves(route.token_path[0])
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity(f"Empty reserves in pool {first_pool.address}")
    if amount_out <= 0:
        raise InsufficientLiquidity("Trade produces no output")

    spot_numerator = S(reserve_in) * S(PRICE_SCALE)
    spot_denominator = S(reserve_out)
    if not include_fee:
        for pool in route.pools:
            spot_numerator = spot_numerator * S(pool.fee_denominator)
            spot_denominator = spot_denominator * S(pool.fee_numerator)
    spot = (spot_numerator // spot_denominator).value
    if spot == 0:
        raise InsufficientLiquidity("Spot price below fixed-point resolution")

    execution = (S(amount_in) * S(PRICE_SCALE) // S(amount_out)).value

    # Truncate toward zero like the contract-side BigNumber math
    difference = execution - spot
    magnitude = abs(difference) * BPS_SCALE // spot
    bps = magnitude if difference >= 0 else -magnitude

    return PriceImpact(bps=bps, spot_price=spot, execution_price=execution)


__all__ = [
    "ImpactSeverity",
    "PriceImpact",
    "compute_impact",
    "MEDIUM_IMPACT_BPS",
    "HIGH_IMPACT_BPS",
]
