"""Error classes for routing, pricing and swap execution.

Pricing and registry errors are recoverable inside the route finder (the
candidate path is dropped). NoRouteFound ends a quote request. Swap
execution failures are reported on the SwapAttempt rather than raised; see
SwapFailure for callers that prefer an exception.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from swapper.models.swap import SwapAttempt


class SwapperError(Exception):
    """Base error for the swap engine."""

    pass


class PricingError(SwapperError):
    """Constant-product math cannot price the requested hop."""

    pass


class InsufficientLiquidity(PricingError):
    """One of the pool reserves is zero."""

    pass


class InsufficientOutputReserve(PricingError):
    """Requested output is not below the pool's output reserve."""

    pass


class InsufficientInputAmount(PricingError):
    """Amount to price is negative."""

    pass


class PoolUnavailable(SwapperError):
    """Chain query for a pool could not complete (network error, timeout).

    Unlike a missing pool, this says nothing about whether the edge exists.
    """

    pass


class NoRouteFound(SwapperError):
    """No candidate path between the two assets could be priced."""

    def __init__(self, source: str, destination: str, detail: str | None = None) -> None:
        self.source = source
        self.destination = destination
        self.detail = detail
        message = f"No path available from {source} to {destination}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SwapInProgress(SwapperError):
    """An attempt for this intent is already running."""

    pass


class IntentConsumed(SwapperError):
    """The intent already completed a successful swap."""

    pass


class SwapFailure(SwapperError):
    """A swap attempt ended in a terminal failure state."""

    def __init__(self, attempt: SwapAttempt) -> None:
        self.attempt = attempt
        super().__init__(attempt.message or "Swap failed")


__all__ = [
    "SwapperError",
    "PricingError",
    "InsufficientLiquidity",
    "InsufficientOutputReserve",
    "InsufficientInputAmount",
    "PoolUnavailable",
    "NoRouteFound",
    "SwapInProgress",
    "IntentConsumed",
    "SwapFailure",
]
