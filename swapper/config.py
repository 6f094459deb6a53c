"""Configuration for quoting and swap execution."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from swapper.amounts import parse_fraction
from swapper.constants import (
    DEADLINE_SECONDS,
    DEFAULT_MAX_HOPS,
    DEFAULT_SLIPPAGE,
    ELEVATED_GAS_LIMIT,
    ELEVATED_GAS_PRICE,
    GWEI,
    RETRY_MAX_IN_PERCENT,
    RETRY_MIN_OUT_PERCENT,
    SLIPPAGE_SCALE,
    STANDARD_GAS_LIMIT,
    STANDARD_GAS_PRICE,
)
from swapper.execution.interfaces import GasSettings

_TRUE_VALUES = ("true", "1", "yes")


@dataclass(frozen=True)
class SwapConfig:
    """Centralized configuration for the swap orchestrator.

    Attributes:
        slippage_tolerance: Default slippage (fraction) for intents built with
            SwapIntent.from_config and for quote requests that omit it
        deadline_seconds: Router deadline offset from submission time
        max_hops: Maximum pools per route
        standard_gas: Gas settings for the first submission
        elevated_gas: Gas settings for the retry after a gas failure
        retry_min_out_percent: Percent of the min output kept on retry
        retry_max_in_percent: Percent of the max input allowed on retry
        unlimited_approval: If True, approve the maximum uint256 allowance.
            If False, approve exactly the required amount.
        confirm_relaxed_retry: If True, ask for confirmation before
            resubmitting with relaxed bounds
        query_timeout: Seconds to wait for a single chain query
    """

    slippage_tolerance: Decimal = Decimal(DEFAULT_SLIPPAGE)
    deadline_seconds: int = DEADLINE_SECONDS
    max_hops: int = DEFAULT_MAX_HOPS

    standard_gas: GasSettings = field(
        default_factory=lambda: GasSettings(STANDARD_GAS_LIMIT, STANDARD_GAS_PRICE)
    )
    elevated_gas: GasSettings = field(
        default_factory=lambda: GasSettings(ELEVATED_GAS_LIMIT, ELEVATED_GAS_PRICE)
    )

    retry_min_out_percent: int = RETRY_MIN_OUT_PERCENT
    retry_max_in_percent: int = RETRY_MAX_IN_PERCENT

    # Behavior flags
    unlimited_approval: bool = True
    confirm_relaxed_retry: bool = False

    query_timeout: float = 10.0

    def __post_init__(self) -> None:
        parse_fraction(self.slippage_tolerance, SLIPPAGE_SCALE)
        if self.max_hops < 1:
            raise ValueError(f"max_hops must be at least 1, got {self.max_hops}")
        if self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be positive, got {self.deadline_seconds}")
        if not 0 < self.retry_min_out_percent <= 100:
            raise ValueError(f"retry_min_out_percent must be in (0, 100], got {self.retry_min_out_percent}")
        if self.retry_max_in_percent < 100:
            raise ValueError(f"retry_max_in_percent must be at least 100, got {self.retry_max_in_percent}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SwapConfig:
        """Build a config from SWAPPER_* environment variables.

        Unset variables keep their defaults. Gas prices are given in gwei.
        """
        env: Mapping[str, str] = os.environ if environ is None else environ
        defaults = cls()

        def gas(prefix: str, default: GasSettings) -> GasSettings:
            limit = int(env.get(f"SWAPPER_{prefix}_GAS_LIMIT", default.gas_limit))
            price_gwei = env.get(f"SWAPPER_{prefix}_GAS_PRICE_GWEI")
            price = int(price_gwei) * GWEI if price_gwei is not None else default.gas_price
            return GasSettings(limit, price)

        return cls(
            slippage_tolerance=Decimal(env.get("SWAPPER_SLIPPAGE", str(defaults.slippage_tolerance))),
            deadline_seconds=int(env.get("SWAPPER_DEADLINE_SECONDS", defaults.deadline_seconds)),
            max_hops=int(env.get("SWAPPER_MAX_HOPS", defaults.max_hops)),
            standard_gas=gas("STANDARD", defaults.standard_gas),
            elevated_gas=gas("ELEVATED", defaults.elevated_gas),
            retry_min_out_percent=int(
                env.get("SWAPPER_RETRY_MIN_OUT_PERCENT", defaults.retry_min_out_percent)
            ),
            retry_max_in_percent=int(
                env.get("SWAPPER_RETRY_MAX_IN_PERCENT", defaults.retry_max_in_percent)
            ),
            unlimited_approval=env.get(
                "SWAPPER_UNLIMITED_APPROVAL", str(defaults.unlimited_approval)
            ).lower()
            in _TRUE_VALUES,
            confirm_relaxed_retry=env.get(
                "SWAPPER_CONFIRM_RELAXED_RETRY", str(defaults.confirm_relaxed_retry)
            ).lower()
            in _TRUE_VALUES,
            query_timeout=float(env.get("SWAPPER_QUERY_TIMEOUT", defaults.query_timeout)),
        )


# Default configuration instance
DEFAULT_SWAP_CONFIG = SwapConfig()


__all__ = ["SwapConfig", "DEFAULT_SWAP_CONFIG"]
