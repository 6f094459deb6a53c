"""Swap intent and attempt models.

A SwapIntent is what the trader asked for: two assets, a direction, the
anchor amount and a slippage tolerance. A SwapAttempt records one run of the
orchestrator over an intent, from IDLE to a terminal state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from swapper.amounts import parse_fraction
from swapper.constants import DEFAULT_SLIPPAGE, SLIPPAGE_SCALE
from swapper.errors import SwapFailure, SwapInProgress
from swapper.models.asset import Asset
from swapper.models.types import TradeDirection

if TYPE_CHECKING:
    from swapper.config import SwapConfig
    from swapper.execution.interfaces import GasSettings
    from swapper.execution.router_calls import RouterCall
    from swapper.routing.types import Quote

EXCESSIVE_IMPACT_MESSAGE = "Price impact too high. Try a smaller trade size."
RETRY_EXHAUSTED_MESSAGE = "Please try again with a smaller amount or more slippage tolerance"
APPROVAL_DENIED_MESSAGE = "Token approval failed"
NO_ROUTE_MESSAGE = "No path available for this trade"


class SwapStatus(str, Enum):
    """States of the swap submission state machine."""

    IDLE = "idle"
    APPROVING = "approving"
    ESTIMATING = "estimating"
    SUBMITTING = "submitting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SwapStatus.SUCCEEDED, SwapStatus.FAILED, SwapStatus.CANCELLED)


class FailureReason(str, Enum):
    """Why an attempt ended in FAILED."""

    APPROVAL_DENIED = "approval_denied"
    GAS_RETRY_EXHAUSTED = "gas_retry_exhausted"
    EXCESSIVE_IMPACT = "excessive_impact"
    NO_ROUTE = "no_route"
    UNKNOWN = "unknown"


class SwapIntent:
    """A trader's request to swap, mutable between attempts.

    Changing the assets, the amount or the direction drops the current quote;
    it must be recomputed before use. Edits raise SwapInProgress while an
    attempt is running. An intent is consumed by one successful swap. After
    a failed or cancelled attempt it may be executed again.

    Args:
        source: Asset to sell
        destination: Asset to buy
        direction: Whether `amount` is the exact input or the exact output
        amount: Anchor amount in the anchor asset's smallest unit
        slippage: Tolerance as a fraction in [0, 1), e.g. "0.005"
        recipient: Receiver of the output; defaults to the trading account
    """

    def __init__(
        self,
        source: Asset,
        destination: Asset,
        direction: TradeDirection,
        amount: int,
        slippage: str | Decimal = DEFAULT_SLIPPAGE,
        recipient: str | None = None,
    ) -> None:
        self._source = source
        self._destination = destination
        self._direction = direction
        self._amount = self._check_amount(amount)
        self._slippage_ppm = parse_fraction(slippage, SLIPPAGE_SCALE)
        self._slippage = Decimal(str(slippage))
        self.recipient = recipient
        self.quote: Quote | None = None

        self._in_flight = False
        self._submitted = False
        self._cancelled = False
        self._consumed = False

    @classmethod
    def from_config(
        cls,
        config: SwapConfig,
        source: Asset,
        destination: Asset,
        direction: TradeDirection,
        amount: int,
        recipient: str | None = None,
    ) -> SwapIntent:
        """Intent with the configured default slippage tolerance."""
        return cls(source, destination, direction, amount, config.slippage_tolerance, recipient)

    @staticmethod
    def _check_amount(amount: int) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TypeError(f"Amount must be an int, got {type(amount).__name__}")
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        return amount

    def _check_editable(self) -> None:
        if self._in_flight:
            raise SwapInProgress(f"{self!r} cannot change while an attempt is running")

    @property
    def source(self) -> Asset:
        return self._source

    @source.setter
    def source(self, asset: Asset) -> None:
        self._check_editable()
        self._source = asset
        self.quote = None

    @property
    def destination(self) -> Asset:
        return self._destination

    @destination.setter
    def destination(self, asset: Asset) -> None:
        self._check_editable()
        self._destination = asset
        self.quote = None

    @property
    def direction(self) -> TradeDirection:
        return self._direction

    @direction.setter
    def direction(self, direction: TradeDirection) -> None:
        self._check_editable()
        self._direction = direction
        self.quote = None

    @property
    def amount(self) -> int:
        return self._amount

    @amount.setter
    def amount(self, amount: int) -> None:
        self._check_editable()
        self._amount = self._check_amount(amount)
        self.quote = None

    @property
    def slippage(self) -> Decimal:
        return self._slippage

    @slippage.setter
    def slippage(self, value: str | Decimal) -> None:
        self._check_editable()
        self._slippage_ppm = parse_fraction(value, SLIPPAGE_SCALE)
        self._slippage = Decimal(str(value))

    @property
    def slippage_ppm(self) -> int:
        """Slippage tolerance in parts per million."""
        return self._slippage_ppm

    @property
    def anchor_asset(self) -> Asset:
        if self._direction is TradeDirection.EXACT_INPUT:
            return self._source
        return self._destination

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def switch_assets(self) -> None:
        """Swap source and destination and flip the direction.

        The anchor amount stays with the same asset: selling exactly `a` of
        A for B becomes buying exactly `a` of A with B.
        """
        self._check_editable()
        self._source, self._destination = self._destination, self._source
        self._direction = self._direction.flipped()
        self.quote = None

    def cancel(self) -> bool:
        """Request cancellation of the running attempt.

        Returns:
            True if the attempt will stop; False once the trade was submitted
            or when nothing is running
        """
        if not self._in_flight or self._submitted:
            return False
        self._cancelled = True
        return True

    def begin_attempt(self) -> None:
        self._in_flight = True
        self._submitted = False
        self._cancelled = False

    def mark_submitted(self) -> None:
        self._submitted = True

    def end_attempt(self, succeeded: bool) -> None:
        self._in_flight = False
        self._submitted = False
        if succeeded:
            self._consumed = True

    def __repr__(self) -> str:
        return (
            f"SwapIntent({self._source.symbol} -> {self._destination.symbol}, "
            f"{self._direction.value}, amount={self._amount}, slippage={self._slippage})"
        )


@dataclass
class SwapAttempt:
    """One run of the orchestrator over an intent.

    Attributes:
        intent: The intent being executed
        states: Every state entered, in order (starts with IDLE)
        gas: Gas settings of the latest submission
        bound: Current min output (exact input) or max input (exact output)
        call: Latest router call submitted
        quote: Quote the bound was derived from
        reason: Failure reason when status is FAILED
        message: User-facing message for failures
        tx_hashes: Hashes of approval and trade transactions, in order
        submissions: Number of trade submissions made
    """

    intent: SwapIntent
    states: list[SwapStatus] = field(default_factory=lambda: [SwapStatus.IDLE])
    gas: GasSettings | None = None
    bound: int | None = None
    call: RouterCall | None = None
    quote: Quote | None = None
    reason: FailureReason | None = None
    message: str | None = None
    tx_hashes: list[str] = field(default_factory=list)
    submissions: int = 0

    @property
    def status(self) -> SwapStatus:
        return self.states[-1]

    @property
    def succeeded(self) -> bool:
        return self.status is SwapStatus.SUCCEEDED

    @property
    def retried(self) -> bool:
        return SwapStatus.RETRYING in self.states

    def transition(self, status: SwapStatus) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"Attempt already ended in {self.status.value}")
        self.states.append(status)

    def fail(self, reason: FailureReason, message: str) -> None:
        self.reason = reason
        self.message = message
        self.transition(SwapStatus.FAILED)

    def raise_for_status(self) -> None:
        """Raise SwapFailure if the attempt failed or was cancelled."""
        if self.status in (SwapStatus.FAILED, SwapStatus.CANCELLED):
            raise SwapFailure(self)


__all__ = [
    "SwapStatus",
    "FailureReason",
    "SwapIntent",
    "SwapAttempt",
    "EXCESSIVE_IMPACT_MESSAGE",
    "RETRY_EXHAUSTED_MESSAGE",
    "APPROVAL_DENIED_MESSAGE",
    "NO_ROUTE_MESSAGE",
]
