"""UniswapV2 constant-product pricing.

UniswapV2 uses the constant product formula: x * y = k
with a 0.3% fee taken from the input amount.

The arithmetic here must match UniswapV2Library on-chain bit for bit: unsigned
integers only, truncating division, and a +1 on the exact-output inverse so
rounding always favours the pool.
"""

from __future__ import annotations

from dataclasses import dataclass

from swapper.constants import FEE_DENOMINATOR, FEE_NUMERATOR
from swapper.errors import (
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientOutputReserve,
)
from swapper.models.types import normalize_address
from swapper.safe_int import S


@dataclass
class UniswapV2Pool:
    """Snapshot of a UniswapV2 pair.

    token0/token1 follow the pair contract's canonical order (sorted by
    address bytes), and reserve0/reserve1 follow the tokens.
    """

    address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR

    @classmethod
    def from_unordered(
        cls,
        address: str,
        token_a: str,
        token_b: str,
        reserve_a: int,
        reserve_b: int,
    ) -> UniswapV2Pool:
        """Build a pool from a token pair in any order, sorting into canonical order."""
        token_a = normalize_address(token_a)
        token_b = normalize_address(token_b)
        if bytes.fromhex(token_a[2:]) > bytes.fromhex(token_b[2:]):
            token_a, token_b = token_b, token_a
            reserve_a, reserve_b = reserve_b, reserve_a
        return cls(
            address=normalize_address(address),
            token0=token_a,
            token1=token_b,
            reserve0=reserve_a,
            reserve1=reserve_b,
        )

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == normalize_address(self.token0):
            return self.reserve0, self.reserve1
        elif token_in_norm == normalize_address(self.token1):
            return self.reserve1, self.reserve0
        else:
            raise ValueError(f"Token {token_in} not in pool")

    def get_token_out(self, token_in: str) -> str:
        """Get the output token for a given input token."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == normalize_address(self.token0):
            return self.token1
        elif token_in_norm == normalize_address(self.token1):
            return self.token0
        else:
            raise ValueError(f"Token {token_in} not in pool")


class UniswapV2:
    """UniswapV2 hop pricer.

    Formula: amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)
    """

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_numerator: int = FEE_NUMERATOR,
        fee_denominator: int = FEE_DENOMINATOR,
    ) -> int:
        """Calculate output amount using the constant product formula.

        Args:
            amount_in: Input token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_numerator: Share of the input that reaches the curve (997)
            fee_denominator: Fee scale (1000)

        Returns:
            Output token amount, truncated toward zero

        Raises:
            InsufficientLiquidity: If either reserve is zero
            InsufficientInputAmount: If amount_in is negative
        """
        if amount_in < 0:
            raise InsufficientInputAmount(f"Negative input amount: {amount_in}")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity(f"Empty reserves: in={reserve_in} out={reserve_out}")

        amount_in_with_fee = S(amount_in) * S(fee_numerator)
        numerator = amount_in_with_fee * S(reserve_out)
        denominator = S(reserve_in) * S(fee_denominator) + amount_in_with_fee

        return (numerator // denominator).value

    def get_amount_in(
        self,
        amount_out: int,
        reserve_in: int,
        reserve_out: int,
        fee_numerator: int = FEE_NUMERATOR,
        fee_denominator: int = FEE_DENOMINATOR,
    ) -> int:
        """Calculate the input required for a desired output.

        Formula: amount_in = (res_in * out * 1000) / ((res_out - out) * 997) + 1

        Args:
            amount_out: Desired output token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_numerator: Share of the input that reaches the curve (997)
            fee_denominator: Fee scale (1000)

        Returns:
            Required input token amount

        Raises:
            InsufficientLiquidity: If either reserve is zero
            InsufficientOutputReserve: If amount_out >= reserve_out
            InsufficientInputAmount: If amount_out is negative
        """
        if amount_out < 0:
            raise InsufficientInputAmount(f"Negative output amount: {amount_out}")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientLiquidity(f"Empty reserves: in={reserve_in} out={reserve_out}")
        if amount_out >= reserve_out:
            raise InsufficientOutputReserve(
                f"Requested output {amount_out} exceeds reserve {reserve_out}"
            )

        numerator = S(reserve_in) * S(amount_out) * S(fee_denominator)
        denominator = (S(reserve_out) - S(amount_out)) * S(fee_numerator)

        return ((numerator // denominator) + S(1)).value

    def get_amounts_out(
        self,
        amount_in: int,
        pools: list[UniswapV2Pool],
        path: list[str],
    ) -> list[int]:
        """Chain get_amount_out through every hop, left to right.

        Args:
            amount_in: Exact input for the first hop
            pools: One pool per hop
            path: Token addresses, len(path) == len(pools) + 1

        Returns:
            Amount at each path position; amounts[0] == amount_in
        """
        _check_path(pools, path)
        amounts = [amount_in]
        for i, pool in enumerate(pools):
            reserve_in, reserve_out = pool.get_reserves(path[i])
            amounts.append(
                self.get_amount_out(
                    amounts[-1],
                    reserve_in,
                    reserve_out,
                    pool.fee_numerator,
                    pool.fee_denominator,
                )
            )
        return amounts

    def get_amounts_in(
        self,
        amount_out: int,
        pools: list[UniswapV2Pool],
        path: list[str],
    ) -> list[int]:
        """Chain get_amount_in through every hop, right to left.

        Args:
            amount_out: Exact output of the last hop
            pools: One pool per hop
            path: Token addresses, len(path) == len(pools) + 1

        Returns:
            Amount at each path position; amounts[-1] == amount_out
        """
        _check_path(pools, path)
        amounts = [0] * len(path)
        amounts[-1] = amount_out
        for i in range(len(pools) - 1, -1, -1):
            pool = pools[i]
            reserve_in, reserve_out = pool.get_reserves(path[i])
            amounts[i] = self.get_amount_in(
                amounts[i + 1],
                reserve_in,
                reserve_out,
                pool.fee_numerator,
                pool.fee_denominator,
            )
        return amounts


def _check_path(pools: list[UniswapV2Pool], path: list[str]) -> None:
    if len(path) < 2:
        raise ValueError(f"Path needs at least two tokens, got {len(path)}")
    if len(pools) != len(path) - 1:
        raise ValueError(f"Path of {len(path)} tokens needs {len(path) - 1} pools, got {len(pools)}")


# Singleton instance
uniswap_v2 = UniswapV2()


__all__ = [
    "UniswapV2Pool",
    "UniswapV2",
    "uniswap_v2",
]
