"""Shared type definitions for addresses and on-chain amounts."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

# Maximum uint256 value
UINT256_MAX = 2**256 - 1

# Sentinel used in place of an address for the chain's native coin
NATIVE_SENTINEL = "ETH"


def validate_uint256(value: Any) -> str:
    """Validate that a value is a valid uint256 decimal string.

    Args:
        value: Value to validate (string or int)

    Returns:
        Valid uint256 as decimal string

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 must be string or int, got bool")
    if isinstance(value, int):
        int_value = value
    elif isinstance(value, str):
        try:
            int_value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    else:
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")

    if int_value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if int_value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")
    return str(int_value)


# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Address or the native-coin sentinel
AssetAddress = Annotated[str, Field(pattern=r"^(ETH|0x[a-fA-F0-9]{40})$")]

# 256-bit unsigned integer as decimal string (validated)
Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer as decimal string"),
]


class TradeDirection(str, Enum):
    """Which side of the trade the user fixed."""

    EXACT_INPUT = "exactIn"
    EXACT_OUTPUT = "exactOut"

    def flipped(self) -> TradeDirection:
        if self is TradeDirection.EXACT_INPUT:
            return TradeDirection.EXACT_OUTPUT
        return TradeDirection.EXACT_INPUT


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase with 0x prefix.

    The native-coin sentinel is returned unchanged.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    if address == NATIVE_SENTINEL:
        return address
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x") or len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def short_address(address: str) -> str:
    """Last 8 characters of an address, for log lines."""
    return address[-8:]


__all__ = [
    "UINT256_MAX",
    "NATIVE_SENTINEL",
    "Address",
    "AssetAddress",
    "Uint256",
    "TradeDirection",
    "validate_uint256",
    "normalize_address",
    "is_valid_address",
    "short_address",
]
