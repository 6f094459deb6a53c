"""Checked integer wrapper for pool-reserve arithmetic.

The constant-product math must reproduce the router contract exactly, so it
never touches floats. SafeInt keeps the arithmetic readable while turning the
two silent failure modes of plain ints into exceptions:
- Division by zero raises DivisionByZero
- Subtraction below zero raises Underflow

Usage pattern:
    from swapper.safe_int import S

    numerator = S(reserve_in) * S(amount_out) * S(1000)
    denominator = (S(reserve_out) - S(amount_out)) * S(997)
    return ((numerator // denominator) + S(1)).value
"""

from __future__ import annotations

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for SafeInt arithmetic errors."""

    pass


class DivisionByZero(SafeIntError):
    """Division by zero."""

    pass


class Underflow(SafeIntError):
    """Subtraction would produce a negative result."""

    pass


class Uint256Overflow(SafeIntError):
    """Value does not fit in a uint256 call argument."""

    pass


class SafeInt:
    """Non-negative integer with checked arithmetic.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _extract_value(other))

    def __radd__(self, other: int) -> SafeInt:
        return SafeInt(other + self._value)

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract other from self.

        Raises:
            Underflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise Underflow(f"Underflow: {self._value} - {other_val} = {result}")
        return SafeInt(result)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _extract_value(other))

    def __rmul__(self, other: int) -> SafeInt:
        return SafeInt(other * self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Integer division, truncating (operands are non-negative).

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Division rounding up.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Ceiling division by zero: {self._value}")
        return SafeInt(-(-self._value // other_val))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def to_uint256(self) -> int:
        """Return the value, checking it fits a uint256 call argument.

        Raises:
            Uint256Overflow: If value exceeds 2**256 - 1
        """
        if self._value > UINT256_MAX:
            raise Uint256Overflow(f"Value {self._value} exceeds uint256 max")
        return self._value


def _extract_value(other: SafeInt | int) -> int:
    if isinstance(other, SafeInt):
        return other._value
    if isinstance(other, int):
        return other
    raise TypeError(f"Expected SafeInt or int, got {type(other).__name__}")


def S(value: int | SafeInt) -> SafeInt:
    """Shorthand constructor: S(x) == SafeInt(x)."""
    return SafeInt(value)


__all__ = [
    "UINT256_MAX",
    "SafeInt",
    "SafeIntError",
    "DivisionByZero",
    "Underflow",
    "Uint256Overflow",
    "S",
]
