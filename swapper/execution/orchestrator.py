"""Swap submission state machine.

IDLE -> APPROVING -> ESTIMATING -> SUBMITTING -> SUCCEEDED
                                       |
                                       +-> RETRYING -> SUCCEEDED / FAILED

APPROVING is skipped when the allowance already covers the trade (and for
native input). A gas-class failure of the first submission triggers exactly
one retry with the elevated gas tier and relaxed bounds. Failures are
recorded on the returned SwapAttempt, not raised.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

import structlog

from swapper.config import DEFAULT_SWAP_CONFIG, SwapConfig
from swapper.constants import SLIPPAGE_SCALE
from swapper.errors import IntentConsumed, SwapInProgress, SwapperError
from swapper.execution.interfaces import (
    Approver,
    ChainClient,
    GasSettings,
    NativeWrapper,
    RetryConfirmation,
    TradeExecutor,
)
from swapper.execution.router_calls import RouterCall, build_router_call
from swapper.models.swap import (
    APPROVAL_DENIED_MESSAGE,
    EXCESSIVE_IMPACT_MESSAGE,
    NO_ROUTE_MESSAGE,
    RETRY_EXHAUSTED_MESSAGE,
    FailureReason,
    SwapAttempt,
    SwapIntent,
    SwapStatus,
)
from swapper.models.types import UINT256_MAX, TradeDirection
from swapper.routing.router import Quoter
from swapper.routing.types import Quote, QuoteKind
from swapper.safe_int import S

logger = structlog.get_logger()

# Router revert reasons that mean the bound was crossed
_IMPACT_MARKERS = ("INSUFFICIENT_OUTPUT_AMOUNT", "EXCESSIVE_INPUT_AMOUNT")
_GAS_MARKERS = ("gas", "estimate")


class ErrorClass(str, Enum):
    """How a submission failure is handled."""

    GAS = "gas"
    EXCESSIVE_IMPACT = "excessive_impact"
    UNKNOWN = "unknown"


def classify_failure(error: BaseException) -> ErrorClass:
    """Classify a submission error by its message.

    Gas and estimation failures are checked first: a node that cannot
    estimate gas for a trade that would revert on its bound reports both,
    and the relaxed retry is the remedy for that case.
    """
    message = str(error)
    lowered = message.lower()
    if any(marker in lowered for marker in _GAS_MARKERS):
        return ErrorClass.GAS
    if any(marker in message for marker in _IMPACT_MARKERS):
        return ErrorClass.EXCESSIVE_IMPACT
    return ErrorClass.UNKNOWN


def slippage_bound(quote: Quote, direction: TradeDirection, slippage_ppm: int) -> int:
    """Min output (exact input, floored) or max input (exact output, ceiled)."""
    if direction is TradeDirection.EXACT_INPUT:
        return (S(quote.amount_out) * S(SLIPPAGE_SCALE - slippage_ppm) // S(SLIPPAGE_SCALE)).value
    return (S(quote.amount_in) * S(SLIPPAGE_SCALE + slippage_ppm)).ceiling_div(S(SLIPPAGE_SCALE)).value


class SwapOrchestrator:
    """Drives a swap intent through approval, estimation and submission.

    Args:
        quoter: Produces fresh quotes
        chain: Allowance queries
        executor: Submits router calls
        approver: Sets allowances
        config: Gas tiers, deadline, retry and approval policy
        wrapper: Executes native wrap/unwrap; optional
        confirm_retry: Asked before a relaxed retry when
            config.confirm_relaxed_retry is set
        clock: Returns the current unix time
    """

    def __init__(
        self,
        quoter: Quoter,
        chain: ChainClient,
        executor: TradeExecutor,
        approver: Approver,
        config: SwapConfig = DEFAULT_SWAP_CONFIG,
        wrapper: NativeWrapper | None = None,
        confirm_retry: RetryConfirmation | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if config.confirm_relaxed_retry and confirm_retry is None:
            raise ValueError("confirm_relaxed_retry requires a confirm_retry callback")
        self.quoter = quoter
        self.chain = chain
        self.executor = executor
        self.approver = approver
        self.config = config
        self.wrapper = wrapper
        self.confirm_retry = confirm_retry
        self.clock = clock

    async def execute(self, intent: SwapIntent) -> SwapAttempt:
        """Run one attempt for an intent.

        Returns:
            The attempt, in a terminal state

        Raises:
            IntentConsumed: If the intent already swapped successfully
            SwapInProgress: If another attempt for the intent is running
        """
        if intent.consumed:
            raise IntentConsumed(f"{intent!r} already completed")
        if intent.in_flight:
            raise SwapInProgress(f"{intent!r} has an attempt in progress")

        intent.begin_attempt()
        attempt = SwapAttempt(intent=intent)
        try:
            if self.quoter.wrap_kind(intent.source, intent.destination) is not None:
                await self._run_wrap(intent, attempt)
            else:
                await self._run_swap(intent, attempt)
        finally:
            intent.end_attempt(attempt.succeeded)

        logger.info(
            "swap_finished",
            status=attempt.status.value,
            reason=attempt.reason.value if attempt.reason else None,
            submissions=attempt.submissions,
            states=[state.value for state in attempt.states],
        )
        return attempt

    async def _run_swap(self, intent: SwapIntent, attempt: SwapAttempt) -> None:
        allowance = UINT256_MAX
        if not intent.source.is_native:
            covered = await self._ensure_allowance(intent, attempt)
            if covered is None:
                return
            allowance = covered
        if self._cancelled(intent, attempt):
            return

        # Estimating: reserves may have moved since the intent was quoted
        attempt.transition(SwapStatus.ESTIMATING)
        quote = await self._requote(intent, attempt)
        if quote is None or self._cancelled(intent, attempt):
            return
        attempt.quote = quote
        attempt.bound = slippage_bound(quote, intent.direction, intent.slippage_ppm)
        if intent.direction is TradeDirection.EXACT_OUTPUT:
            # The router cannot pull more than the approved amount
            attempt.bound = min(attempt.bound, allowance)

        deadline = int(self.clock()) + self.config.deadline_seconds
        call = self._build_call(intent, quote, attempt.bound, deadline)

        attempt.transition(SwapStatus.SUBMITTING)
        intent.mark_submitted()
        error = await self._submit(attempt, call, self.config.standard_gas)
        if error is None:
            attempt.transition(SwapStatus.SUCCEEDED)
            return

        error_class = classify_failure(error)
        if error_class is not ErrorClass.GAS:
            self._fail_submission(attempt, error, error_class)
            return

        attempt.transition(SwapStatus.RETRYING)
        relaxed = self._relax_bound(intent.direction, attempt.bound)
        if intent.direction is TradeDirection.EXACT_OUTPUT:
            relaxed = min(relaxed, allowance)
        logger.warning(
            "swap_retrying",
            error=str(error),
            bound=attempt.bound,
            relaxed_bound=relaxed,
            gas_limit=self.config.elevated_gas.gas_limit,
        )
        if self.config.confirm_relaxed_retry:
            if self.confirm_retry is None:
                raise RuntimeError("confirm_relaxed_retry requires a confirm_retry callback")
            if not await self.confirm_retry(attempt):
                attempt.fail(FailureReason.GAS_RETRY_EXHAUSTED, RETRY_EXHAUSTED_MESSAGE)
                return

        attempt.bound = relaxed
        call = self._build_call(intent, quote, relaxed, deadline)
        error = await self._submit(attempt, call, self.config.elevated_gas)
        if error is None:
            attempt.transition(SwapStatus.SUCCEEDED)
            return
        self._fail_submission(attempt, error, classify_failure(error))

    async def _run_wrap(self, intent: SwapIntent, attempt: SwapAttempt) -> None:
        """Wrap or unwrap the native coin 1:1; no approval or routing."""
        kind = self.quoter.wrap_kind(intent.source, intent.destination)
        if self.wrapper is None:
            attempt.fail(FailureReason.UNKNOWN, "Native wrapping is not available")
            return
        attempt.quote = await self.quoter.quote(
            intent.source, intent.destination, intent.direction, intent.amount
        )
        intent.quote = attempt.quote
        if self._cancelled(intent, attempt):
            return

        attempt.transition(SwapStatus.SUBMITTING)
        intent.mark_submitted()
        gas = self.config.standard_gas
        attempt.gas = gas
        attempt.submissions += 1
        try:
            if kind is QuoteKind.WRAP:
                pending = await self.wrapper.deposit(intent.amount, gas)
            else:
                pending = await self.wrapper.withdraw(intent.amount, gas)
            attempt.tx_hashes.append(pending.tx_hash)
            await pending.wait()
        except Exception as err:
            logger.warning("wrap_failed", kind=kind.value if kind else None, error=str(err))
            attempt.fail(FailureReason.UNKNOWN, str(err))
            return
        attempt.transition(SwapStatus.SUCCEEDED)

    async def _ensure_allowance(self, intent: SwapIntent, attempt: SwapAttempt) -> int | None:
        """Approve the router if the allowance falls short.

        For exact output the requirement is the relaxed max input of a fresh
        quote, so the gas retry stays within the allowance.

        Returns:
            The allowance the trade may spend, or None if the attempt ended
        """
        if intent.direction is TradeDirection.EXACT_INPUT:
            required = intent.amount
        else:
            quote = await self._requote(intent, attempt)
            if quote is None:
                return None
            bound = slippage_bound(quote, intent.direction, intent.slippage_ppm)
            required = self._relax_bound(intent.direction, bound)

        spender = self.executor.router_address
        try:
            allowance = await self.chain.get_allowance(
                self.executor.account, spender, intent.source.address
            )
        except Exception as err:
            logger.warning("allowance_query_failed", asset=intent.source.symbol, error=str(err))
            attempt.fail(FailureReason.UNKNOWN, str(err))
            return None
        if allowance >= required:
            return allowance
        if self._cancelled(intent, attempt):
            return None

        attempt.transition(SwapStatus.APPROVING)
        amount = UINT256_MAX if self.config.unlimited_approval else required
        logger.info(
            "approving",
            asset=intent.source.symbol,
            allowance=allowance,
            required=required,
            unlimited=self.config.unlimited_approval,
        )
        try:
            pending = await self.approver.approve(intent.source.address, spender, amount)
            attempt.tx_hashes.append(pending.tx_hash)
            await pending.wait()
        except Exception as err:
            logger.warning("approval_failed", asset=intent.source.symbol, error=str(err))
            attempt.fail(FailureReason.APPROVAL_DENIED, f"{APPROVAL_DENIED_MESSAGE}: {err}")
            return None
        return amount

    async def _requote(self, intent: SwapIntent, attempt: SwapAttempt) -> Quote | None:
        try:
            quote = await self.quoter.quote(
                intent.source,
                intent.destination,
                intent.direction,
                intent.amount,
                self.config.max_hops,
            )
        except SwapperError as err:
            logger.info("requote_failed", intent=repr(intent), error=str(err))
            attempt.fail(FailureReason.NO_ROUTE, f"{NO_ROUTE_MESSAGE}: {err}")
            return None
        intent.quote = quote
        return quote

    def _build_call(self, intent: SwapIntent, quote: Quote, bound: int, deadline: int) -> RouterCall:
        return build_router_call(
            direction=intent.direction,
            amount=intent.amount,
            bound=bound,
            path=quote.token_path,
            recipient=intent.recipient or self.executor.account,
            deadline=deadline,
            native_in=intent.source.is_native,
            native_out=intent.destination.is_native,
        )

    async def _submit(
        self, attempt: SwapAttempt, call: RouterCall, gas: GasSettings
    ) -> Exception | None:
        """Submit and wait for inclusion; returns the failure, if any."""
        attempt.call = call
        attempt.gas = gas
        attempt.submissions += 1
        logger.info(
            "swap_submitting",
            entry_point=call.entry_point.value,
            bound=attempt.bound,
            value=call.value,
            gas_limit=gas.gas_limit,
            gas_price=gas.gas_price,
        )
        try:
            pending = await self.executor.submit(call, gas)
            attempt.tx_hashes.append(pending.tx_hash)
            await pending.wait()
        except Exception as err:
            logger.warning("swap_submission_failed", error=str(err), submissions=attempt.submissions)
            return err
        return None

    def _relax_bound(self, direction: TradeDirection, bound: int) -> int:
        if direction is TradeDirection.EXACT_INPUT:
            return bound * self.config.retry_min_out_percent // 100
        return bound * self.config.retry_max_in_percent // 100

    def _fail_submission(self, attempt: SwapAttempt, error: Exception, error_class: ErrorClass) -> None:
        if error_class is ErrorClass.GAS:
            attempt.fail(FailureReason.GAS_RETRY_EXHAUSTED, RETRY_EXHAUSTED_MESSAGE)
        elif error_class is ErrorClass.EXCESSIVE_IMPACT:
            attempt.fail(FailureReason.EXCESSIVE_IMPACT, EXCESSIVE_IMPACT_MESSAGE)
        else:
            attempt.fail(FailureReason.UNKNOWN, str(error))

    @staticmethod
    def _cancelled(intent: SwapIntent, attempt: SwapAttempt) -> bool:
        if not intent.cancelled:
            return False
        attempt.transition(SwapStatus.CANCELLED)
        logger.info("swap_cancelled", state=attempt.states[-2].value)
        return True


__all__ = ["SwapOrchestrator", "ErrorClass", "classify_failure", "slippage_bound"]
