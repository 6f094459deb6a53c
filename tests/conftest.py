"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from swapper.amm.uniswap_v2 import UniswapV2Pool
from swapper.asset_list import AssetList
from swapper.config import SwapConfig
from swapper.execution.interfaces import GasSettings
from swapper.execution.orchestrator import SwapOrchestrator
from swapper.execution.router_calls import RouterCall
from swapper.pools.registry import PoolRegistry
from swapper.routing.router import Quoter, RouteFinder
from tests.helpers import (
    ACCOUNT,
    DAI,
    NOW,
    ROUTER,
    USDC,
    WETH,
    make_asset_list,
    make_pool,
)

# =============================================================================
# Mock classes for dependency injection
# =============================================================================


class MockPendingTransaction:
    """Pending transaction that confirms, or raises `error` on wait()."""

    def __init__(self, tx_hash: str, error: Exception | None = None) -> None:
        self._tx_hash = tx_hash
        self.error = error
        self.waited = False

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    async def wait(self) -> None:
        self.waited = True
        if self.error is not None:
            raise self.error


class MockChainClient:
    """In-memory chain with UniswapV2 pairs and ERC20 allowances.

    Usage:
        chain = MockChainClient()
        chain.add_pool(make_pool(WETH, USDC, 10**21, 25 * 10**11))

        # Simulate a node failure for one pair, or for everything
        chain.fail_pair(WETH, USDC)
        chain.fail_all = True
    """

    def __init__(self) -> None:
        self.pairs: dict[frozenset[str], str] = {}
        self.reserves: dict[str, tuple[int, int]] = {}
        self.allowances: dict[tuple[str, str, str], int] = {}
        self.failing_pairs: set[frozenset[str]] = set()
        self.fail_all = False
        self.calls: list[tuple[str, ...]] = []  # Track calls for assertions

    def add_pool(self, pool: UniswapV2Pool) -> UniswapV2Pool:
        self.pairs[frozenset({pool.token0, pool.token1})] = pool.address
        self.reserves[pool.address] = (pool.reserve0, pool.reserve1)
        return pool

    def fail_pair(self, token_a: str, token_b: str) -> None:
        self.failing_pairs.add(frozenset({token_a.lower(), token_b.lower()}))

    def set_allowance(self, owner: str, spender: str, asset: str, amount: int) -> None:
        self.allowances[(owner.lower(), spender.lower(), asset.lower())] = amount

    async def get_pair(self, token_a: str, token_b: str) -> str | None:
        self.calls.append(("get_pair", token_a, token_b))
        key = frozenset({token_a.lower(), token_b.lower()})
        if self.fail_all or key in self.failing_pairs:
            raise ConnectionError("node unreachable")
        return self.pairs.get(key)

    async def get_reserves(self, pool_address: str) -> tuple[int, int]:
        self.calls.append(("get_reserves", pool_address))
        if self.fail_all:
            raise ConnectionError("node unreachable")
        return self.reserves[pool_address]

    async def get_allowance(self, owner: str, spender: str, asset: str) -> int:
        self.calls.append(("get_allowance", owner, spender, asset))
        return self.allowances.get((owner.lower(), spender.lower(), asset.lower()), 0)

    @property
    def pair_queries(self) -> int:
        return sum(1 for call in self.calls if call[0] == "get_pair")


class MockTradeExecutor:
    """Trade executor with scripted outcomes.

    Usage:
        # Every submission confirms
        executor = MockTradeExecutor()

        # First submission fails gas estimation, second confirms
        executor = MockTradeExecutor(errors=[RuntimeError("cannot estimate gas"), None])

        # Failures can also surface while waiting for inclusion
        executor = MockTradeExecutor(errors=[...], fail_on_wait=True)
    """

    def __init__(
        self,
        errors: list[Exception | None] | None = None,
        fail_on_wait: bool = False,
    ) -> None:
        self.errors = list(errors or [])
        self.fail_on_wait = fail_on_wait
        self.submissions: list[tuple[RouterCall, GasSettings]] = []
        self.on_submit = None  # Optional hook called with the submission index

    @property
    def router_address(self) -> str:
        return ROUTER

    @property
    def account(self) -> str:
        return ACCOUNT

    async def submit(self, call: RouterCall, gas: GasSettings) -> MockPendingTransaction:
        index = len(self.submissions)
        self.submissions.append((call, gas))
        if self.on_submit is not None:
            self.on_submit(index)
        error = self.errors[index] if index < len(self.errors) else None
        tx_hash = "0x" + f"{index + 1:064x}"
        if error is not None and not self.fail_on_wait:
            raise error
        return MockPendingTransaction(tx_hash, error)


class MockApprover:
    """Approver that records approvals and optionally fails."""

    def __init__(self, error: Exception | None = None, chain: MockChainClient | None = None) -> None:
        self.error = error
        self.chain = chain
        self.approvals: list[tuple[str, str, int]] = []

    async def approve(self, asset: str, spender: str, amount: int) -> MockPendingTransaction:
        self.approvals.append((asset, spender, amount))
        if self.error is not None:
            raise self.error
        if self.chain is not None:
            self.chain.set_allowance(ACCOUNT, spender, asset, amount)
        return MockPendingTransaction("0x" + "ab" * 32)


class MockNativeWrapper:
    """Native wrapper that records deposits and withdrawals."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.deposits: list[int] = []
        self.withdrawals: list[int] = []

    async def deposit(self, amount: int, gas: GasSettings) -> MockPendingTransaction:
        _ = gas
        self.deposits.append(amount)
        return MockPendingTransaction("0x" + "dd" * 32, self.error)

    async def withdraw(self, amount: int, gas: GasSettings) -> MockPendingTransaction:
        _ = gas
        self.withdrawals.append(amount)
        return MockPendingTransaction("0x" + "ee" * 32, self.error)


class MockRetryConfirmation:
    """Retry confirmation callback with a fixed answer."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.asked = 0

    async def __call__(self, attempt) -> bool:  # type: ignore[no-untyped-def]
        _ = attempt
        self.asked += 1
        return self.answer


# =============================================================================
# Pytest fixtures for mocks
# =============================================================================


@pytest.fixture
def weth_usdc_pool() -> UniswapV2Pool:
    """WETH/USDC pool: 1,000 WETH and 2.5M USDC."""
    return make_pool(WETH, USDC, 1_000 * 10**18, 2_500_000 * 10**6)


@pytest.fixture
def weth_dai_pool() -> UniswapV2Pool:
    """WETH/DAI pool: 1,000 WETH and 2.5M DAI."""
    return make_pool(WETH, DAI, 1_000 * 10**18, 2_500_000 * 10**18)


@pytest.fixture
def asset_list() -> AssetList:
    """Default test asset list (bridges: WETH, USDC, DAI)."""
    return make_asset_list()


@pytest.fixture
def chain(weth_usdc_pool: UniswapV2Pool, weth_dai_pool: UniswapV2Pool) -> MockChainClient:
    """A chain with WETH/USDC and WETH/DAI pools."""
    client = MockChainClient()
    client.add_pool(weth_usdc_pool)
    client.add_pool(weth_dai_pool)
    return client


@pytest.fixture
def registry(chain: MockChainClient) -> PoolRegistry:
    return PoolRegistry(chain, WETH)


@pytest.fixture
def finder(registry: PoolRegistry, asset_list: AssetList) -> RouteFinder:
    return RouteFinder(registry, asset_list)


@pytest.fixture
def quoter(finder: RouteFinder) -> Quoter:
    return Quoter(finder)


@pytest.fixture
def executor() -> MockTradeExecutor:
    return MockTradeExecutor()


@pytest.fixture
def approver(chain: MockChainClient) -> MockApprover:
    return MockApprover(chain=chain)


@pytest.fixture
def orchestrator(
    quoter: Quoter,
    chain: MockChainClient,
    executor: MockTradeExecutor,
    approver: MockApprover,
) -> SwapOrchestrator:
    """An orchestrator over mock collaborators with a fixed clock."""
    return SwapOrchestrator(
        quoter=quoter,
        chain=chain,
        executor=executor,
        approver=approver,
        config=SwapConfig(),
        wrapper=MockNativeWrapper(),
        clock=lambda: NOW,
    )
