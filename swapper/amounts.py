"""Conversion between raw integer amounts and human-readable decimal strings.

Raw amounts are integers in the asset's smallest unit. Conversions use
Decimal with a uint256-sized context so nothing passes through a float.
"""

from __future__ import annotations

import decimal
from decimal import Decimal, InvalidOperation

# 78 digits of precision: enough for uint256 values (up to ~10^77)
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78)


def parse_amount(text: str, decimals: int) -> int:
    """Parse a decimal string ("1.5") into a raw integer amount.

    Args:
        text: Non-negative decimal number, without exponent
        decimals: Asset precision

    Returns:
        Raw amount (text * 10**decimals)

    Raises:
        ValueError: If text is not a plain non-negative decimal number, or has
            more fractional digits than the asset supports
    """
    cleaned = text.strip()
    if not cleaned or cleaned.startswith(("-", "+")) or "e" in cleaned.lower():
        raise ValueError(f"Invalid amount: '{text}'")
    whole, _, fraction = cleaned.partition(".")
    if not (whole or fraction) or not (whole.isdigit() or whole == ""):
        raise ValueError(f"Invalid amount: '{text}'")
    if fraction and not fraction.isdigit():
        raise ValueError(f"Invalid amount: '{text}'")
    # Trailing zeros beyond the precision are harmless
    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(f"Amount '{text}' has more than {decimals} fractional digits")
    return int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


def format_amount(raw: int, decimals: int) -> str:
    """Format a raw integer amount as a decimal string.

    Trailing zeros are trimmed but at least one fractional digit is kept
    ("1.0", "0.5", "1234.000001"), matching ethers' formatUnits.
    """
    negative = raw < 0
    whole, fraction = divmod(abs(raw), 10**decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    result = f"{whole}.{fraction_text or '0'}"
    return f"-{result}" if negative else result


def to_decimal(raw: int, decimals: int) -> Decimal:
    """Exact Decimal value of a raw amount."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return Decimal(raw).scaleb(-decimals)


def parse_fraction(value: str | Decimal | float, scale: int) -> int:
    """Convert a fraction (e.g. slippage "0.005") to integer parts of `scale`.

    Raises:
        ValueError: If value is not a number in [0, 1)
    """
    try:
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            fraction = Decimal(str(value))
            parts = int((fraction * scale).to_integral_value(rounding=decimal.ROUND_HALF_UP))
    except (InvalidOperation, ValueError, OverflowError) as err:
        raise ValueError(f"Invalid fraction: {value}") from err
    if parts < 0 or parts >= scale:
        raise ValueError(f"Fraction must be in [0, 1): {value}")
    return parts


__all__ = [
    "DECIMAL_HIGH_PREC_CONTEXT",
    "parse_amount",
    "format_amount",
    "to_decimal",
    "parse_fraction",
]
