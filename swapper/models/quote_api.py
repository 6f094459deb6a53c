"""Pydantic models for the quote API request and response bodies."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from swapper.amounts import format_amount, parse_fraction
from swapper.constants import SLIPPAGE_SCALE
from swapper.models.types import TradeDirection, Uint256
from swapper.pricing.impact import ImpactSeverity
from swapper.routing.types import Quote


class QuoteRequest(BaseModel):
    """A quote request.

    Assets are given by address, the "ETH" sentinel, or symbol from the
    asset list. The amount is in display units of the anchor asset.
    """

    source: str = Field(min_length=1, description="Asset to sell (address, ETH or symbol)")
    destination: str = Field(min_length=1, description="Asset to buy (address, ETH or symbol)")
    direction: TradeDirection = TradeDirection.EXACT_INPUT
    amount: str = Field(
        min_length=1,
        description="Anchor amount in display units, e.g. '1.5'",
    )
    slippage: Decimal | None = Field(
        default=None,
        description="Tolerance as a fraction; the configured default if omitted",
    )
    max_hops: int | None = Field(default=None, alias="maxHops", ge=1, le=4)

    model_config = {"populate_by_name": True}

    @field_validator("slippage")
    @classmethod
    def _check_slippage(cls, value: Decimal | None) -> Decimal | None:
        if value is not None:
            parse_fraction(value, SLIPPAGE_SCALE)
        return value


class HopQuote(BaseModel):
    """Amounts through one pool."""

    pool: str
    input_token: str = Field(alias="inputToken")
    output_token: str = Field(alias="outputToken")
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    """A priced route."""

    kind: str
    direction: TradeDirection
    path: list[str] = Field(description="Asset symbols along the route")
    token_path: list[str] = Field(alias="tokenPath", description="On-chain addresses")
    amounts: list[str] = Field(description="Per-position amounts in display units")
    raw_amounts: list[Uint256] = Field(alias="rawAmounts")
    amount_in: str = Field(alias="amountIn")
    amount_out: str = Field(alias="amountOut")
    price_impact: str = Field(alias="priceImpact", description="e.g. '0.35%'")
    price_impact_bps: int = Field(alias="priceImpactBps")
    severity: ImpactSeverity
    rate: str
    bound: Uint256 = Field(description="Min output (exactIn) or max input (exactOut), raw")
    bound_formatted: str = Field(alias="boundFormatted")
    hops: list[HopQuote] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_quote(cls, quote: Quote, bound: int) -> QuoteResponse:
        bound_asset = quote.destination if quote.direction is TradeDirection.EXACT_INPUT else quote.source
        return cls(
            kind=quote.kind.value,
            direction=quote.direction,
            path=[asset.symbol for asset in quote.path],
            token_path=quote.token_path,
            amounts=quote.formatted_amounts(),
            raw_amounts=[str(amount) for amount in quote.amounts],
            amount_in=format_amount(quote.amount_in, quote.source.decimals),
            amount_out=format_amount(quote.amount_out, quote.destination.decimals),
            price_impact=str(quote.price_impact),
            price_impact_bps=quote.price_impact.bps,
            severity=quote.price_impact.severity,
            rate=quote.rate,
            bound=str(bound),
            bound_formatted=format_amount(bound, bound_asset.decimals),
            hops=[
                HopQuote(
                    pool=hop.pool.address,
                    input_token=hop.input_token,
                    output_token=hop.output_token,
                    amount_in=str(hop.amount_in),
                    amount_out=str(hop.amount_out),
                )
                for hop in quote.hops
            ],
        )


__all__ = ["QuoteRequest", "HopQuote", "QuoteResponse"]
