#!/usr/bin/env python3
"""
Fixed-Point Decimal Arithmetic

Integer-backed decimals with 18 fractional digits used by every pool
calculation. No floats are involved at any step: values are stored as raw
integers scaled by 10**18 and all operations are checked.

- Decimal256: unsigned, bounded by 2**256 - 1 raw units
- SignedDecimal256: signed companion used where intermediate values may be
  negative (Newton iterations)
"""

from typing import Union

from .errors import FixedPointError

DECIMAL_PLACES = 18
DECIMAL_FRACTIONAL = 10 ** DECIMAL_PLACES
MAX_RAW = 2 ** 256 - 1


def _isqrt(n: int) -> int:
    """Integer square root (floor)"""
    if n < 0:
        raise FixedPointError("Square root of negative value")
    if n == 0:
        return 0
    x = 1 << ((n.bit_length() + 1) // 2)
    while True:
        y = (x + n // x) // 2
        if y >= x:
            return x
        x = y


def _parse_raw(value: str) -> int:
    """Parse a decimal string like '0.0026' into raw units without floats"""
    text = value.strip()
    negative = text.startswith("-")
    if negative or text.startswith("+"):
        text = text[1:]
    if not text or text.count(".") > 1:
        raise FixedPointError(f"Invalid decimal string: {value!r}")

    whole, _, frac = text.partition(".")
    if not (whole or frac) or not (whole + frac).isdigit():
        raise FixedPointError(f"Invalid decimal string: {value!r}")
    if len(frac) > DECIMAL_PLACES:
        raise FixedPointError(f"Too many fractional digits: {value!r}")

    raw = int(whole or "0") * DECIMAL_FRACTIONAL + int(frac.ljust(DECIMAL_PLACES, "0") or "0")
    return -raw if negative else raw


class Decimal256:
    """Unsigned fixed-point decimal with 18 fractional digits"""

    __slots__ = ("_raw",)

    def __init__(self, raw: int = 0):
        if not isinstance(raw, int):
            raise TypeError(f"Raw value must be int, got {type(raw).__name__}")
        self._raw = self._check(raw)

    @classmethod
    def _check(cls, raw: int) -> int:
        if raw < 0:
            raise FixedPointError("Decimal256 underflow")
        if raw > MAX_RAW:
            raise FixedPointError("Decimal256 overflow")
        return raw

    # ---------- Constructors ----------

    @classmethod
    def from_raw(cls, raw: int) -> "Decimal256":
        return cls(raw)

    @classmethod
    def zero(cls) -> "Decimal256":
        return cls(0)

    @classmethod
    def one(cls) -> "Decimal256":
        return cls(DECIMAL_FRACTIONAL)

    @classmethod
    def from_int(cls, value: int) -> "Decimal256":
        return cls(value * DECIMAL_FRACTIONAL)

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int) -> "Decimal256":
        if denominator == 0:
            raise FixedPointError("Division by zero")
        return cls(numerator * DECIMAL_FRACTIONAL // denominator)

    @classmethod
    def from_str(cls, value: str) -> "Decimal256":
        return cls(_parse_raw(value))

    @classmethod
    def with_precision(cls, amount: int, precision: int) -> "Decimal256":
        """Lift an integer token amount with `precision` decimals"""
        if precision > DECIMAL_PLACES:
            raise FixedPointError(f"Precision {precision} exceeds {DECIMAL_PLACES} decimals")
        return cls(amount * 10 ** (DECIMAL_PLACES - precision))

    @classmethod
    def coerce(cls, value: Union["Decimal256", int, str]) -> "Decimal256":
        """Accept a decimal, an integer or a decimal string"""
        if isinstance(value, Decimal256):
            return cls(value.raw)
        if isinstance(value, bool):
            raise TypeError("Booleans are not decimals")
        if isinstance(value, int):
            return cls.from_int(value)
        if isinstance(value, str):
            return cls.from_str(value)
        raise TypeError(f"Cannot convert {type(value).__name__} to Decimal256")

    # ---------- Accessors ----------

    @property
    def raw(self) -> int:
        return self._raw

    def is_zero(self) -> bool:
        return self._raw == 0

    def to_uint(self, precision: int) -> int:
        """Floor to an integer token amount with `precision` decimals"""
        if precision > DECIMAL_PLACES:
            raise FixedPointError(f"Precision {precision} exceeds {DECIMAL_PLACES} decimals")
        return self._raw // 10 ** (DECIMAL_PLACES - precision)

    def to_signed(self) -> "SignedDecimal256":
        return SignedDecimal256(self._raw)

    def __float__(self) -> float:
        # Reporting only; no pool math goes through floats
        return self._raw / DECIMAL_FRACTIONAL

    # ---------- Arithmetic ----------

    def _other_raw(self, other) -> int:
        if isinstance(other, Decimal256):
            return other.raw
        if isinstance(other, int) and not isinstance(other, bool):
            return other * DECIMAL_FRACTIONAL
        return NotImplemented

    def __add__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return type(self)(self._raw + raw)

    __radd__ = __add__

    def __sub__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return type(self)(self._raw - raw)

    def __rsub__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return type(self)(raw - self._raw)

    def __mul__(self, other):
        if isinstance(other, int) and not isinstance(other, bool):
            return type(self)(self._raw * other)
        if not isinstance(other, Decimal256):
            return NotImplemented
        return type(self)(self._raw * other.raw // DECIMAL_FRACTIONAL)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, int) and not isinstance(other, bool):
            if other == 0:
                raise FixedPointError("Division by zero")
            return type(self)(self._raw // other)
        if not isinstance(other, Decimal256):
            return NotImplemented
        if other.raw == 0:
            raise FixedPointError("Division by zero")
        return type(self)(self._raw * DECIMAL_FRACTIONAL // other.raw)

    def __pow__(self, exponent: int):
        if not isinstance(exponent, int) or exponent < 0:
            raise FixedPointError("Only non-negative integer powers are supported")
        result = type(self).one()
        for _ in range(exponent):
            result = result * self
        return result

    def sqrt(self) -> "Decimal256":
        return type(self)(_isqrt(self._raw * DECIMAL_FRACTIONAL))

    def inv(self) -> "Decimal256":
        return type(self).one() / self

    def diff(self, other: "Decimal256") -> "Decimal256":
        """Absolute difference"""
        return type(self)(abs(self._raw - other.raw))

    def saturating_sub(self, other: "Decimal256") -> "Decimal256":
        return type(self)(max(self._raw - other.raw, 0))

    def floor(self) -> int:
        return self._raw // DECIMAL_FRACTIONAL

    # ---------- Comparison ----------

    def __eq__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return self._raw == raw

    def __lt__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return self._raw < raw

    def __le__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return self._raw <= raw

    def __gt__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return self._raw > raw

    def __ge__(self, other):
        raw = self._other_raw(other)
        if raw is NotImplemented:
            return NotImplemented
        return self._raw >= raw

    def __hash__(self):
        return hash((DECIMAL_PLACES, self._raw))

    def __bool__(self):
        return self._raw != 0

    # Immutable value type
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    # ---------- Formatting ----------

    def __str__(self) -> str:
        sign = "-" if self._raw < 0 else ""
        whole, frac = divmod(abs(self._raw), DECIMAL_FRACTIONAL)
        if frac == 0:
            return f"{sign}{whole}"
        return f"{sign}{whole}." + str(frac).rjust(DECIMAL_PLACES, "0").rstrip("0")

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self}')"


class SignedDecimal256(Decimal256):
    """Signed fixed-point decimal used for intermediate solver values"""

    __slots__ = ()

    @classmethod
    def _check(cls, raw: int) -> int:
        if abs(raw) > MAX_RAW:
            raise FixedPointError("SignedDecimal256 overflow")
        return raw

    def is_negative(self) -> bool:
        return self._raw < 0

    def __neg__(self) -> "SignedDecimal256":
        return SignedDecimal256(-self._raw)

    def __abs__(self) -> "SignedDecimal256":
        return SignedDecimal256(abs(self._raw))

    def __mul__(self, other):
        if isinstance(other, int) and not isinstance(other, bool):
            return SignedDecimal256(self._raw * other)
        if not isinstance(other, Decimal256):
            return NotImplemented
        # Truncate toward zero so the sign never changes the magnitude
        product = self._raw * other.raw
        magnitude = abs(product) // DECIMAL_FRACTIONAL
        return SignedDecimal256(magnitude if product >= 0 else -magnitude)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, int) and not isinstance(other, bool):
            other = SignedDecimal256(other * DECIMAL_FRACTIONAL)
        if not isinstance(other, Decimal256):
            return NotImplemented
        if other.raw == 0:
            raise FixedPointError("Division by zero")
        numerator = self._raw * DECIMAL_FRACTIONAL
        magnitude = abs(numerator) // abs(other.raw)
        negative = (numerator < 0) != (other.raw < 0)
        return SignedDecimal256(-magnitude if negative else magnitude)

    def to_unsigned(self) -> Decimal256:
        if self._raw < 0:
            raise FixedPointError("Negative value cannot be converted to Decimal256")
        return Decimal256(self._raw)

    def sqrt(self) -> "SignedDecimal256":
        return SignedDecimal256(_isqrt(self._raw * DECIMAL_FRACTIONAL))
