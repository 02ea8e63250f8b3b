#!/usr/bin/env python3
"""
Fixed-Point Arithmetic Tests

Decimal256 / SignedDecimal256 construction, checked arithmetic and the
conversions between token amounts and internal decimals.
"""

import copy

import pytest

from pcl_pool_sim.core.errors import FixedPointError
from pcl_pool_sim.core.fixed_point import MAX_RAW, Decimal256, SignedDecimal256


class TestDecimal256:
    """Unsigned decimal behaviour"""

    def setup_method(self):
        self.one = Decimal256.one()
        self.half = Decimal256.from_str("0.5")

    def test_parsing(self):
        assert Decimal256.from_str("1.5").raw == 1_500_000_000_000_000_000
        assert Decimal256.from_str("0.0026") == Decimal256.from_ratio(26, 10_000)
        assert Decimal256.from_str(".5") == self.half
        assert str(Decimal256.from_str("12.340")) == "12.34"
        assert str(Decimal256.from_int(7)) == "7"

    def test_invalid_strings_rejected(self):
        for text in ("", "abc", "1.2.3", "0.0000000000000000001"):
            with pytest.raises(FixedPointError):
                Decimal256.from_str(text)

    def test_arithmetic(self):
        a = Decimal256.from_str("2.5")
        b = Decimal256.from_str("0.5")
        assert a + b == Decimal256.from_int(3)
        assert a - b == Decimal256.from_int(2)
        assert a * b == Decimal256.from_str("1.25")
        assert a / b == Decimal256.from_int(5)
        assert a * 2 == Decimal256.from_int(5)
        assert a / 5 == b
        assert b ** 3 == Decimal256.from_str("0.125")

    def test_underflow_and_overflow(self):
        with pytest.raises(FixedPointError):
            self.half - self.one
        with pytest.raises(FixedPointError):
            Decimal256(MAX_RAW) + self.one
        with pytest.raises(FixedPointError):
            self.one / Decimal256.zero()

    def test_helpers(self):
        assert Decimal256.from_int(4).sqrt() == Decimal256.from_int(2)
        assert Decimal256.from_int(4).inv() == Decimal256.from_str("0.25")
        assert self.half.diff(self.one) == self.half
        assert self.half.saturating_sub(self.one).is_zero()
        assert Decimal256.from_str("3.99").floor() == 3

    def test_token_precision_round_trip(self):
        amount = 123_456_789
        value = Decimal256.with_precision(amount, 6)
        assert value == Decimal256.from_str("123.456789")
        assert value.to_uint(6) == amount
        # Conversions to a coarser precision floor
        assert value.to_uint(2) == 12_345

    def test_copies_share_immutable_value(self):
        value = Decimal256.from_str("1.1")
        assert copy.deepcopy(value) is value
        assert {value: "x"}[Decimal256.from_str("1.10")] == "x"

    def test_coerce(self):
        assert Decimal256.coerce("0.1") == Decimal256.from_ratio(1, 10)
        assert Decimal256.coerce(3) == Decimal256.from_int(3)
        with pytest.raises(TypeError):
            Decimal256.coerce(0.1)
        with pytest.raises(TypeError):
            Decimal256.coerce(True)


class TestSignedDecimal256:
    """Signed decimal behaviour used by the Newton solvers"""

    def test_negative_results_allowed(self):
        a = SignedDecimal256.from_str("0.5")
        b = SignedDecimal256.one()
        result = a - b
        assert result.is_negative()
        assert abs(result) == a
        assert -result == a

    def test_multiplication_and_division_signs(self):
        minus_two = -SignedDecimal256.from_int(2)
        three = SignedDecimal256.from_int(3)
        assert minus_two * three == -SignedDecimal256.from_int(6)
        assert (minus_two / three).is_negative()
        assert minus_two * minus_two == SignedDecimal256.from_int(4)

    def test_to_unsigned(self):
        assert SignedDecimal256.from_int(2).to_unsigned() == Decimal256.from_int(2)
        with pytest.raises(FixedPointError):
            (-SignedDecimal256.one()).to_unsigned()
