"""Checked integer wrapper for reserve and balance arithmetic.

Python integers never overflow, so the failure modes that matter here are
the ones a fixed-width runtime would surface as reverts:
- Division by zero raises DivisionByZero
- Subtraction below zero raises Underflow
- Values wider than a declared bit-width raise BoundedOverflow on check

Usage pattern:
    from aqua.safe_int import S

    def staged(d: int, x: int) -> int:
        sd, sx = S(d), S(x)
        return ((sd * sd) // (sx * 2)).value
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


class BoundedOverflow(SafeIntError):
    """Value does not fit in the requested unsigned bit-width."""

    pass


class SafeInt:
    """Non-negative integer with checked arithmetic.

    Addition and multiplication are unchecked (arbitrary precision);
    subtraction and division raise instead of producing values a
    fixed-width unsigned integer could not hold.

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
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

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

    def __rsub__(self, other: int) -> SafeInt:
        result = other - self._value
        if result < 0:
            raise Underflow(f"Underflow: {other} - {self._value} = {result}")
        return SafeInt(result)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _extract_value(other))

    def __rmul__(self, other: int) -> SafeInt:
        return SafeInt(other * self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Integer division rounding down.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

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

    def __index__(self) -> int:
        return self._value

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Ceiling division (rounds up).

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Ceiling division by zero: {self._value}")
        return SafeInt((self._value + other_val - 1) // other_val)

    def abs_diff(self, other: SafeInt | int) -> SafeInt:
        """Absolute difference, never raises."""
        return SafeInt(abs(self._value - _extract_value(other)))

    def checked_sub(self, other: SafeInt | int) -> SafeInt | None:
        """Subtract, returning None on underflow instead of raising."""
        result = self._value - _extract_value(other)
        if result < 0:
            return None
        return SafeInt(result)

    def fits(self, bits: int) -> bool:
        """Check if value fits in an unsigned integer of the given width."""
        return 0 <= self._value < (1 << bits)

    def to_bounded(self, bits: int) -> int:
        """Convert to int, validating unsigned bit-width bounds.

        Raises:
            BoundedOverflow: If value is negative or needs more than `bits` bits
        """
        if not self.fits(bits):
            raise BoundedOverflow(f"Value {self._value} does not fit in uint{bits}")
        return self._value

    def to_uint256(self) -> int:
        """Convert to int, validating uint256 bounds."""
        return self.to_bounded(256)

    @classmethod
    def zero(cls) -> SafeInt:
        return cls(0)


def _extract_value(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    return x


# Convenience alias for concise code
S = SafeInt
