"""Collaborator interfaces for chain access and transaction submission.

The engine never talks to a node or a wallet directly. These protocols are
the narrow seams it calls through; production code plugs in web3-backed
implementations, tests plug in mocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from swapper.execution.router_calls import RouterCall
    from swapper.models.swap import SwapAttempt


@dataclass(frozen=True)
class GasSettings:
    """Gas limit and price (wei) attached to a submission."""

    gas_limit: int
    gas_price: int


class PendingTransaction(Protocol):
    """A submitted transaction awaiting inclusion."""

    @property
    def tx_hash(self) -> str: ...

    async def wait(self) -> None:
        """Wait for confirmation; raises if the transaction reverted."""
        ...


class ChainClient(Protocol):
    """Read-only chain queries."""

    async def get_pair(self, token_a: str, token_b: str) -> str | None:
        """Pair contract address for two tokens, or None if no pair exists."""
        ...

    async def get_reserves(self, pool_address: str) -> tuple[int, int]:
        """Reserves of a pair as (reserve0, reserve1) in canonical token order."""
        ...

    async def get_allowance(self, owner: str, spender: str, asset: str) -> int:
        """ERC20 allowance granted by owner to spender."""
        ...


class TradeExecutor(Protocol):
    """Submits router calls on behalf of the connected account."""

    @property
    def router_address(self) -> str: ...

    @property
    def account(self) -> str: ...

    async def submit(self, call: RouterCall, gas: GasSettings) -> PendingTransaction: ...


class Approver(Protocol):
    """Sets ERC20 allowances for the connected account."""

    async def approve(self, asset: str, spender: str, amount: int) -> PendingTransaction: ...


class NativeWrapper(Protocol):
    """Wraps and unwraps the native coin through the wrapped-native contract."""

    async def deposit(self, amount: int, gas: GasSettings) -> PendingTransaction: ...

    async def withdraw(self, amount: int, gas: GasSettings) -> PendingTransaction: ...


class RetryConfirmation(Protocol):
    """Asks the user whether to resubmit with relaxed bounds."""

    async def __call__(self, attempt: SwapAttempt) -> bool: ...


__all__ = [
    "GasSettings",
    "PendingTransaction",
    "ChainClient",
    "TradeExecutor",
    "Approver",
    "NativeWrapper",
    "RetryConfirmation",
]
