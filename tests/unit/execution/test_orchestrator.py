"""Tests for the swap submission state machine."""

import asyncio

import pytest

from swapper.config import SwapConfig
from swapper.errors import IntentConsumed, SwapFailure, SwapInProgress
from swapper.execution.interfaces import GasSettings
from swapper.execution.orchestrator import (
    ErrorClass,
    SwapOrchestrator,
    classify_failure,
    slippage_bound,
)
from swapper.execution.router_calls import RouterEntryPoint
from swapper.models.swap import (
    EXCESSIVE_IMPACT_MESSAGE,
    NO_ROUTE_MESSAGE,
    RETRY_EXHAUSTED_MESSAGE,
    FailureReason,
    SwapIntent,
    SwapStatus,
)
from swapper.models.types import UINT256_MAX, TradeDirection
from swapper.pricing.impact import PriceImpact
from swapper.routing.types import Quote
from tests.conftest import (
    MockApprover,
    MockChainClient,
    MockNativeWrapper,
    MockRetryConfirmation,
    MockTradeExecutor,
)
from tests.helpers import (
    ACCOUNT,
    ETH_ASSET,
    LINK_ASSET,
    NOW,
    RECIPIENT,
    ROUTER,
    UNI_ASSET,
    USDC,
    USDC_ASSET,
    WETH,
    WETH_ASSET,
    make_pool,
)

EXACT_IN = TradeDirection.EXACT_INPUT
EXACT_OUT = TradeDirection.EXACT_OUTPUT

GAS_ERROR = "cannot estimate gas; transaction may fail or may require manual gas limit"
OUTPUT_REVERT = "execution reverted: UniswapV2Router: INSUFFICIENT_OUTPUT_AMOUNT"
INPUT_REVERT = "execution reverted: UniswapV2Router: EXCESSIVE_INPUT_AMOUNT"

STANDARD_GAS = GasSettings(500_000, 100 * 10**9)
ELEVATED_GAS = GasSettings(1_000_000, 150 * 10**9)


def run(orchestrator, intent):
    return asyncio.run(orchestrator.execute(intent))


def make_orchestrator(quoter, chain, executor=None, approver=None, **kwargs):
    kwargs.setdefault("wrapper", MockNativeWrapper())
    return SwapOrchestrator(
        quoter=quoter,
        chain=chain,
        executor=executor or MockTradeExecutor(),
        approver=approver or MockApprover(chain=chain),
        clock=lambda: NOW,
        **kwargs,
    )


def states(attempt):
    return [state.value for state in attempt.states]


class AllowanceCheckingExecutor(MockTradeExecutor):
    """Reverts an exact-output swap whose max input exceeds the WETH allowance."""

    def __init__(self, chain, **kwargs):
        super().__init__(**kwargs)
        self.chain = chain
        self.max_inputs = []

    async def submit(self, call, gas):
        max_input = call.args[1]
        self.max_inputs.append(max_input)
        if max_input > await self.chain.get_allowance(ACCOUNT, ROUTER, WETH):
            raise RuntimeError("execution reverted: TransferHelper: TRANSFER_FROM_FAILED")
        return await super().submit(call, gas)


@pytest.fixture
def sell_weth() -> SwapIntent:
    """Sell exactly 1 WETH for USDC with 5% slippage."""
    return SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_IN, 10**18, slippage="0.05")


@pytest.fixture
def funded(chain):
    """The account has already approved the router for WETH and USDC."""
    chain.set_allowance(ACCOUNT, ROUTER, WETH, UINT256_MAX)
    chain.set_allowance(ACCOUNT, ROUTER, USDC, UINT256_MAX)
    return chain


class TestHappyPath:
    """Successful swaps."""

    def test_approves_then_swaps(self, orchestrator, approver, executor, sell_weth):
        attempt = run(orchestrator, sell_weth)

        assert attempt.succeeded
        assert states(attempt) == ["idle", "approving", "estimating", "submitting", "succeeded"]
        assert approver.approvals == [(WETH, ROUTER, UINT256_MAX)]
        assert len(executor.submissions) == 1
        assert attempt.tx_hashes == ["0x" + "ab" * 32, "0x" + f"{1:064x}"]
        assert attempt.reason is None
        assert sell_weth.consumed
        assert not sell_weth.in_flight

    def test_skips_approval_when_allowance_covers(self, orchestrator, approver, funded, sell_weth):
        attempt = run(orchestrator, sell_weth)

        assert states(attempt) == ["idle", "estimating", "submitting", "succeeded"]
        assert approver.approvals == []

    def test_exact_approval_amount(self, quoter, chain, approver):
        orchestrator = make_orchestrator(
            quoter, chain, approver=approver, config=SwapConfig(unlimited_approval=False)
        )
        intent = SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_IN, 10**18)

        run(orchestrator, intent)

        assert approver.approvals == [(WETH, ROUTER, 10**18)]

    def test_exact_output_approves_max_input(self, quoter, chain, approver):
        orchestrator = make_orchestrator(
            quoter, chain, approver=approver, config=SwapConfig(unlimited_approval=False)
        )
        intent = SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_OUT, 1_000 * 10**6, slippage="0.01")

        attempt = run(orchestrator, intent)

        assert attempt.succeeded
        # Room for the relaxed retry bound
        assert approver.approvals == [(WETH, ROUTER, attempt.bound * 110 // 100)]
        assert attempt.bound > attempt.quote.amount_in

    def test_exact_approval_ignores_stale_quote(self, quoter, chain, approver, weth_usdc_pool):
        """Approval is sized on current reserves, not the quote the intent carried."""
        executor = AllowanceCheckingExecutor(chain)
        orchestrator = make_orchestrator(
            quoter, chain, executor=executor, approver=approver, config=SwapConfig(unlimited_approval=False)
        )
        intent = SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_OUT, 1_000 * 10**6, slippage="0.01")
        intent.quote = asyncio.run(quoter.quote(WETH_ASSET, USDC_ASSET, EXACT_OUT, 1_000 * 10**6))
        stale_in = intent.quote.amount_in
        # WETH loses a fifth of its USDC price before execution
        chain.add_pool(
            make_pool(WETH, USDC, 1_000 * 10**18, 2_000_000 * 10**6, address=weth_usdc_pool.address)
        )

        attempt = run(orchestrator, intent)

        assert attempt.succeeded
        assert attempt.quote.amount_in > stale_in * 110 // 100
        (approved,) = [amount for _, _, amount in approver.approvals]
        assert executor.max_inputs == [attempt.bound]
        assert attempt.bound <= approved

    def test_call_uses_fresh_quote_and_bound(self, orchestrator, executor, funded, sell_weth):
        attempt = run(orchestrator, sell_weth)

        call, gas = executor.submissions[0]
        expected_bound = attempt.quote.amount_out * 950_000 // 1_000_000
        assert attempt.bound == expected_bound
        assert call.entry_point == RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_TOKENS_FOT
        assert call.args == (10**18, expected_bound, [WETH, USDC], ACCOUNT, NOW + 1200)
        assert gas == STANDARD_GAS
        assert sell_weth.quote is attempt.quote

    def test_recipient(self, orchestrator, executor, funded):
        intent = SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_IN, 10**18, recipient=RECIPIENT)

        run(orchestrator, intent)

        assert executor.submissions[0][0].recipient == RECIPIENT

    def test_native_input_needs_no_approval(self, orchestrator, approver, executor):
        intent = SwapIntent(ETH_ASSET, USDC_ASSET, EXACT_IN, 10**18)

        attempt = run(orchestrator, intent)

        assert states(attempt) == ["idle", "estimating", "submitting", "succeeded"]
        assert approver.approvals == []
        call = executor.submissions[0][0]
        assert call.entry_point == RouterEntryPoint.SWAP_EXACT_ETH_FOR_TOKENS_FOT
        assert call.value == 10**18

    def test_native_exact_output_sends_max_input(self, orchestrator, executor):
        intent = SwapIntent(ETH_ASSET, USDC_ASSET, EXACT_OUT, 1_000 * 10**6)

        attempt = run(orchestrator, intent)

        call = executor.submissions[0][0]
        assert call.entry_point == RouterEntryPoint.SWAP_ETH_FOR_EXACT_TOKENS
        assert call.value == attempt.bound

    def test_native_output(self, orchestrator, executor, funded):
        intent = SwapIntent(USDC_ASSET, ETH_ASSET, EXACT_IN, 1_000 * 10**6)

        run(orchestrator, intent)

        call = executor.submissions[0][0]
        assert call.entry_point == RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_ETH_FOT
        assert call.path == [USDC, WETH]


class TestGasRetry:
    """A gas-class failure gets exactly one relaxed retry."""

    def test_retry_succeeds_with_elevated_gas(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), None])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert attempt.succeeded
        assert attempt.retried
        assert states(attempt) == ["idle", "estimating", "submitting", "retrying", "succeeded"]
        assert attempt.submissions == 2
        (first, first_gas), (second, second_gas) = executor.submissions
        assert first_gas == STANDARD_GAS
        assert second_gas == ELEVATED_GAS
        assert second.args[1] == first.args[1] * 90 // 100
        assert second.deadline == first.deadline == NOW + 1200
        assert attempt.gas == ELEVATED_GAS

    def test_exact_output_retry_raises_max_input(self, quoter, funded):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), None])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)
        intent = SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_OUT, 1_000 * 10**6)

        attempt = run(orchestrator, intent)

        (first, _), (second, _) = executor.submissions
        assert attempt.succeeded
        assert second.args[1] == first.args[1] * 110 // 100

    def test_exact_output_retry_within_exact_approval(self, quoter, chain, approver):
        executor = AllowanceCheckingExecutor(chain, errors=[RuntimeError(GAS_ERROR), None])
        orchestrator = make_orchestrator(
            quoter, chain, executor=executor, approver=approver, config=SwapConfig(unlimited_approval=False)
        )
        intent = SwapIntent(WETH_ASSET, USDC_ASSET, EXACT_OUT, 1_000 * 10**6)

        attempt = run(orchestrator, intent)

        assert attempt.succeeded
        assert attempt.retried
        first, second = executor.max_inputs
        assert second == first * 110 // 100
        assert approver.approvals == [(WETH, ROUTER, second)]

    def test_confirmation_callback_removed_after_construction(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), None])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)
        orchestrator.config = SwapConfig(confirm_relaxed_retry=True)

        with pytest.raises(RuntimeError, match="confirm_retry callback"):
            run(orchestrator, sell_weth)

    def test_failure_on_wait_is_retried(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError("Gas estimation failed"), None], fail_on_wait=True)
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert attempt.succeeded
        assert attempt.submissions == 2

    def test_second_gas_failure_exhausts_retry(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), RuntimeError(GAS_ERROR)])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert attempt.status == SwapStatus.FAILED
        assert attempt.reason == FailureReason.GAS_RETRY_EXHAUSTED
        assert attempt.message == RETRY_EXHAUSTED_MESSAGE
        assert attempt.submissions == 2
        assert states(attempt) == ["idle", "estimating", "submitting", "retrying", "failed"]
        assert not sell_weth.consumed
        assert not sell_weth.in_flight

    def test_retry_reverting_on_bound(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), RuntimeError(OUTPUT_REVERT)])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert attempt.reason == FailureReason.EXCESSIVE_IMPACT

    def test_confirmation_refused(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), None])
        confirm = MockRetryConfirmation(False)
        orchestrator = make_orchestrator(
            quoter,
            funded,
            executor=executor,
            config=SwapConfig(confirm_relaxed_retry=True),
            confirm_retry=confirm,
        )

        attempt = run(orchestrator, sell_weth)

        assert confirm.asked == 1
        assert attempt.reason == FailureReason.GAS_RETRY_EXHAUSTED
        assert attempt.submissions == 1

    def test_confirmation_accepted(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(GAS_ERROR), None])
        confirm = MockRetryConfirmation(True)
        orchestrator = make_orchestrator(
            quoter,
            funded,
            executor=executor,
            config=SwapConfig(confirm_relaxed_retry=True),
            confirm_retry=confirm,
        )

        attempt = run(orchestrator, sell_weth)

        assert confirm.asked == 1
        assert attempt.succeeded

    def test_confirmation_requires_callback(self, quoter, chain):
        with pytest.raises(ValueError, match="confirm_retry"):
            make_orchestrator(quoter, chain, config=SwapConfig(confirm_relaxed_retry=True))


class TestFailures:
    """Terminal failures without retry."""

    def test_excessive_impact(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError(OUTPUT_REVERT)])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert attempt.reason == FailureReason.EXCESSIVE_IMPACT
        assert attempt.message == EXCESSIVE_IMPACT_MESSAGE
        assert attempt.submissions == 1
        assert not attempt.retried

    def test_unknown_error_message_is_verbatim(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError("nonce too low")])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert attempt.reason == FailureReason.UNKNOWN
        assert attempt.message == "nonce too low"
        assert attempt.submissions == 1

    def test_approval_denied(self, quoter, chain, sell_weth):
        approver = MockApprover(error=RuntimeError("User denied transaction signature"))
        executor = MockTradeExecutor()
        orchestrator = make_orchestrator(quoter, chain, executor=executor, approver=approver)

        attempt = run(orchestrator, sell_weth)

        assert attempt.reason == FailureReason.APPROVAL_DENIED
        assert "User denied" in attempt.message
        assert states(attempt) == ["idle", "approving", "failed"]
        assert executor.submissions == []

    def test_allowance_query_failure(self, quoter, sell_weth):
        class BrokenAllowanceChain(MockChainClient):
            async def get_allowance(self, owner, spender, asset):
                raise ConnectionError("node unreachable")

        chain = BrokenAllowanceChain()
        orchestrator = make_orchestrator(quoter, chain)

        attempt = run(orchestrator, sell_weth)

        assert attempt.reason == FailureReason.UNKNOWN
        assert attempt.message == "node unreachable"

    def test_no_route(self, orchestrator, chain):
        chain.set_allowance(ACCOUNT, ROUTER, LINK_ASSET.address, UINT256_MAX)
        intent = SwapIntent(LINK_ASSET, UNI_ASSET, EXACT_IN, 10**18)

        attempt = run(orchestrator, intent)

        assert attempt.reason == FailureReason.NO_ROUTE
        assert attempt.message.startswith(NO_ROUTE_MESSAGE)
        assert states(attempt) == ["idle", "estimating", "failed"]

    def test_raise_for_status(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError("nonce too low")])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        with pytest.raises(SwapFailure, match="nonce too low"):
            attempt.raise_for_status()

    def test_failed_intent_can_run_again(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor(errors=[RuntimeError("nonce too low")])
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        first = run(orchestrator, sell_weth)
        second = run(orchestrator, sell_weth)

        assert first.status == SwapStatus.FAILED
        assert second.succeeded
        assert sell_weth.consumed


class TestIntentLifecycle:
    """Concurrency and reuse guards."""

    def test_consumed_intent_rejected(self, orchestrator, funded, sell_weth):
        run(orchestrator, sell_weth)

        with pytest.raises(IntentConsumed):
            run(orchestrator, sell_weth)

    def test_in_flight_intent_rejected(self, orchestrator, sell_weth):
        sell_weth.begin_attempt()

        with pytest.raises(SwapInProgress):
            run(orchestrator, sell_weth)

    def test_cancel_before_submission(self, quoter, chain, sell_weth):
        class CancellingApprover(MockApprover):
            async def approve(self, asset, spender, amount):
                assert sell_weth.cancel()
                return await super().approve(asset, spender, amount)

        executor = MockTradeExecutor()
        orchestrator = make_orchestrator(quoter, chain, executor=executor, approver=CancellingApprover(chain=chain))

        attempt = run(orchestrator, sell_weth)

        assert states(attempt) == ["idle", "approving", "cancelled"]
        assert executor.submissions == []
        assert not sell_weth.consumed
        with pytest.raises(SwapFailure):
            attempt.raise_for_status()

    def test_cancel_after_submission_is_ignored(self, quoter, funded, sell_weth):
        executor = MockTradeExecutor()
        answers = []
        executor.on_submit = lambda index: answers.append(sell_weth.cancel())
        orchestrator = make_orchestrator(quoter, funded, executor=executor)

        attempt = run(orchestrator, sell_weth)

        assert answers == [False]
        assert attempt.succeeded

    def test_cancel_when_idle(self, sell_weth):
        assert not sell_weth.cancel()


class TestWrap:
    """Native wrap and unwrap skip routing and approval."""

    def test_wrap(self, orchestrator, executor, approver):
        intent = SwapIntent(ETH_ASSET, WETH_ASSET, EXACT_IN, 10**18)

        attempt = run(orchestrator, intent)

        assert attempt.succeeded
        assert states(attempt) == ["idle", "submitting", "succeeded"]
        assert orchestrator.wrapper.deposits == [10**18]
        assert executor.submissions == []
        assert approver.approvals == []
        assert attempt.quote.amounts == [10**18, 10**18]

    def test_unwrap(self, orchestrator):
        intent = SwapIntent(WETH_ASSET, ETH_ASSET, EXACT_IN, 10**18)

        attempt = run(orchestrator, intent)

        assert attempt.succeeded
        assert orchestrator.wrapper.withdrawals == [10**18]

    def test_wrap_failure_is_not_retried(self, quoter, chain):
        wrapper = MockNativeWrapper(error=RuntimeError("cannot estimate gas"))
        orchestrator = make_orchestrator(quoter, chain, wrapper=wrapper)
        intent = SwapIntent(ETH_ASSET, WETH_ASSET, EXACT_IN, 10**18)

        attempt = run(orchestrator, intent)

        assert attempt.reason == FailureReason.UNKNOWN
        assert attempt.message == "cannot estimate gas"
        assert attempt.submissions == 1
        assert wrapper.deposits == [10**18]

    def test_no_wrapper(self, quoter, chain):
        orchestrator = make_orchestrator(quoter, chain, wrapper=None)
        intent = SwapIntent(ETH_ASSET, WETH_ASSET, EXACT_IN, 10**18)

        attempt = run(orchestrator, intent)

        assert attempt.reason == FailureReason.UNKNOWN
        assert attempt.message == "Native wrapping is not available"


class TestClassifyFailure:
    """Error classification by message."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            (GAS_ERROR, ErrorClass.GAS),
            ("Gas estimation failed", ErrorClass.GAS),
            ("ESTIMATE_GAS_ERROR", ErrorClass.GAS),
            (OUTPUT_REVERT, ErrorClass.EXCESSIVE_IMPACT),
            (INPUT_REVERT, ErrorClass.EXCESSIVE_IMPACT),
            ("cannot estimate: INSUFFICIENT_OUTPUT_AMOUNT", ErrorClass.GAS),
            ("nonce too low", ErrorClass.UNKNOWN),
            ("execution reverted: UniswapV2: K", ErrorClass.UNKNOWN),
        ],
    )
    def test_classification(self, message, expected):
        assert classify_failure(RuntimeError(message)) == expected


class TestSlippageBound:
    """Bounds derived from a quote."""

    def make_quote(self, amount_in, amount_out):
        return Quote(
            source=WETH_ASSET,
            destination=USDC_ASSET,
            direction=EXACT_IN,
            amounts=[amount_in, amount_out],
            price_impact=PriceImpact.zero(),
        )

    def test_min_output_floors(self):
        # 999 * 0.995 = 994.005
        assert slippage_bound(self.make_quote(1, 999), EXACT_IN, 5_000) == 994

    def test_max_input_ceils(self):
        # 999 * 1.005 = 1003.995
        assert slippage_bound(self.make_quote(999, 1), EXACT_OUT, 5_000) == 1004

    def test_zero_slippage(self):
        quote = self.make_quote(1000, 2000)
        assert slippage_bound(quote, EXACT_IN, 0) == 2000
        assert slippage_bound(quote, EXACT_OUT, 0) == 1000
