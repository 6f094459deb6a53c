"""UniswapV2 Router02 call construction.

The entry point depends on the trade direction and on which side (if any)
is the native coin. Exact-input trades use the SupportingFeeOnTransferTokens
variants so tokens that skim transfers still settle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from eth_abi import encode  # type: ignore[attr-defined]

from swapper.models.types import TradeDirection, is_valid_address


class RouterEntryPoint(str, Enum):
    """Router02 swap functions, valued by name."""

    SWAP_EXACT_TOKENS_FOR_TOKENS = "swapExactTokensForTokens"
    SWAP_TOKENS_FOR_EXACT_TOKENS = "swapTokensForExactTokens"
    SWAP_EXACT_ETH_FOR_TOKENS = "swapExactETHForTokens"
    SWAP_TOKENS_FOR_EXACT_ETH = "swapTokensForExactETH"
    SWAP_EXACT_TOKENS_FOR_ETH = "swapExactTokensForETH"
    SWAP_ETH_FOR_EXACT_TOKENS = "swapETHForExactTokens"
    SWAP_EXACT_TOKENS_FOR_TOKENS_FOT = "swapExactTokensForTokensSupportingFeeOnTransferTokens"
    SWAP_EXACT_ETH_FOR_TOKENS_FOT = "swapExactETHForTokensSupportingFeeOnTransferTokens"
    SWAP_EXACT_TOKENS_FOR_ETH_FOT = "swapExactTokensForETHSupportingFeeOnTransferTokens"

    @property
    def selector(self) -> str:
        return _SELECTORS[self]

    @property
    def abi_types(self) -> list[str]:
        if self.payable:
            return ["uint256", "address[]", "address", "uint256"]
        return ["uint256", "uint256", "address[]", "address", "uint256"]

    @property
    def payable(self) -> bool:
        """Whether the call sends the native coin as value."""
        return self in (
            RouterEntryPoint.SWAP_EXACT_ETH_FOR_TOKENS,
            RouterEntryPoint.SWAP_ETH_FOR_EXACT_TOKENS,
            RouterEntryPoint.SWAP_EXACT_ETH_FOR_TOKENS_FOT,
        )


_SELECTORS: dict[RouterEntryPoint, str] = {
    RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_TOKENS: "0x38ed1739",
    RouterEntryPoint.SWAP_TOKENS_FOR_EXACT_TOKENS: "0x8803dbee",
    RouterEntryPoint.SWAP_EXACT_ETH_FOR_TOKENS: "0x7ff36ab5",
    RouterEntryPoint.SWAP_TOKENS_FOR_EXACT_ETH: "0x4a25d94a",
    RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_ETH: "0x18cbafe5",
    RouterEntryPoint.SWAP_ETH_FOR_EXACT_TOKENS: "0xfb3bdb41",
    RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_TOKENS_FOT: "0x5c11d795",
    RouterEntryPoint.SWAP_EXACT_ETH_FOR_TOKENS_FOT: "0xb6f9de95",
    RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_ETH_FOT: "0x791ac947",
}


def select_entry_point(
    direction: TradeDirection, native_in: bool, native_out: bool
) -> RouterEntryPoint:
    """Pick the router function for a trade shape."""
    if native_in and native_out:
        raise ValueError("A router trade cannot have the native coin on both sides")
    if direction is TradeDirection.EXACT_INPUT:
        if native_in:
            return RouterEntryPoint.SWAP_EXACT_ETH_FOR_TOKENS_FOT
        if native_out:
            return RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_ETH_FOT
        return RouterEntryPoint.SWAP_EXACT_TOKENS_FOR_TOKENS_FOT
    if native_in:
        return RouterEntryPoint.SWAP_ETH_FOR_EXACT_TOKENS
    if native_out:
        return RouterEntryPoint.SWAP_TOKENS_FOR_EXACT_ETH
    return RouterEntryPoint.SWAP_TOKENS_FOR_EXACT_TOKENS


@dataclass(frozen=True)
class RouterCall:
    """A router function call ready for submission.

    Attributes:
        entry_point: Router function
        args: Positional arguments in ABI order
        value: Native coin sent with the call (wei)
    """

    entry_point: RouterEntryPoint
    args: tuple[object, ...]
    value: int = 0

    @property
    def path(self) -> list[str]:
        return list(self.args[-3])  # type: ignore[call-overload]

    @property
    def recipient(self) -> str:
        return str(self.args[-2])

    @property
    def deadline(self) -> int:
        return int(self.args[-1])  # type: ignore[call-overload]

    @property
    def calldata(self) -> str:
        """ABI-encoded call: selector followed by the encoded arguments."""
        path, recipient = self.args[-3], self.args[-2]
        encoded_args = encode(
            self.entry_point.abi_types,
            [
                *self.args[:-3],
                [bytes.fromhex(addr[2:]) for addr in path],  # type: ignore[attr-defined]
                bytes.fromhex(str(recipient)[2:]),
                self.args[-1],
            ],
        )
        return self.entry_point.selector + encoded_args.hex()


def build_router_call(
    direction: TradeDirection,
    amount: int,
    bound: int,
    path: list[str],
    recipient: str,
    deadline: int,
    native_in: bool = False,
    native_out: bool = False,
) -> RouterCall:
    """Build the router call for a trade.

    Args:
        direction: Trade direction
        amount: Exact input (exact input) or exact output (exact output)
        bound: Minimum output (exact input) or maximum input (exact output)
        path: On-chain token addresses, wrapped native in place of the coin
        recipient: Receiver of the output
        deadline: Unix timestamp after which the router reverts
        native_in: Whether the input is the native coin
        native_out: Whether the output is the native coin

    Returns:
        RouterCall with positional arguments in ABI order

    Raises:
        ValueError: If an address is invalid or the path is too short
    """
    if len(path) < 2:
        raise ValueError(f"Router path needs at least two tokens, got {len(path)}")
    for i, addr in enumerate(path):
        if not is_valid_address(addr):
            raise ValueError(f"Invalid address in path[{i}]: {addr}")
    if not is_valid_address(recipient):
        raise ValueError(f"Invalid recipient address: {recipient}")

    entry_point = select_entry_point(direction, native_in, native_out)
    path = [addr.lower() for addr in path]
    recipient = recipient.lower()

    if direction is TradeDirection.EXACT_INPUT:
        if native_in:
            # Exact input amount travels as the call value
            return RouterCall(entry_point, (bound, path, recipient, deadline), value=amount)
        return RouterCall(entry_point, (amount, bound, path, recipient, deadline))

    if native_in:
        # Unused maximum input is refunded by the router
        return RouterCall(entry_point, (amount, path, recipient, deadline), value=bound)
    return RouterCall(entry_point, (amount, bound, path, recipient, deadline))


__all__ = ["RouterEntryPoint", "RouterCall", "select_entry_point", "build_router_call"]
