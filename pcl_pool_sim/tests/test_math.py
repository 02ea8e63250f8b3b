#!/usr/bin/env python3
"""
Invariant Solver Tests

Newton solvers for D and y, virtual capital and the half-power helper used
by the EMA oracle.
"""

import pytest

from pcl_pool_sim.core import math as pool_math
from pcl_pool_sim.core.consts import TOL
from pcl_pool_sim.core.errors import ConvergenceError, ZeroAmountError
from pcl_pool_sim.core.fixed_point import Decimal256
from pcl_pool_sim.core.math import calc_d, calc_y, get_xcp, half_float_pow
from pcl_pool_sim.core.state import AmpGamma


def dec(value) -> Decimal256:
    return Decimal256.coerce(value)


def close(a: Decimal256, b: Decimal256, tolerance: str = "0.000001") -> bool:
    return a.diff(b) <= dec(tolerance)


class TestCalcD:
    """Invariant D for normalised balances"""

    def setup_method(self):
        self.amp_gamma = AmpGamma.new(dec(40), dec("0.000145"))

    def test_balanced_pool(self):
        """A balanced pool has D equal to the sum of balances"""
        d = calc_d([dec(1000), dec(1000)], self.amp_gamma)
        assert d == dec(2000)

    def test_bounded_by_product_and_sum(self):
        xs = [dec(1000), dec(800)]
        d = calc_d(xs, self.amp_gamma)
        geometric = (xs[0] * xs[1]).sqrt() * 2
        assert geometric < d < xs[0] + xs[1]

    def test_skewed_pool_converges(self):
        d = calc_d([dec(1_000_000), dec(1000)], self.amp_gamma)
        assert d > dec(0)

    def test_small_gamma_stable(self):
        amp_gamma = AmpGamma.new(dec(100), dec("0.0000001"))
        d = calc_d([dec(5000), dec(4000)], amp_gamma)
        assert dec(8900) < d < dec(9000)

    def test_zero_balance_rejected(self):
        with pytest.raises(ZeroAmountError):
            calc_d([dec(0), dec(1000)], self.amp_gamma)

    def test_non_convergence_is_fatal(self, monkeypatch):
        monkeypatch.setattr(pool_math, "MAX_ITER", 1)
        with pytest.raises(ConvergenceError):
            calc_d([dec(1000), dec(10)], self.amp_gamma)


class TestCalcY:
    """Balance solver keeping D constant"""

    def setup_method(self):
        self.amp_gamma = AmpGamma.new(dec(40), dec("0.000145"))

    def test_recovers_balance(self):
        xs = [dec(1200), dec(900)]
        d = calc_d(xs, self.amp_gamma)
        for j in (0, 1):
            y = calc_y(xs, d, self.amp_gamma, j)
            assert close(y, xs[j], "0.0001"), f"coin {j}: {y} != {xs[j]}"

    def test_more_input_less_output(self):
        xs = [dec(1000), dec(1000)]
        d = calc_d(xs, self.amp_gamma)
        y_small = calc_y([dec(1010), dec(1000)], d, self.amp_gamma, 1)
        y_large = calc_y([dec(1100), dec(1000)], d, self.amp_gamma, 1)
        assert y_large < y_small < dec(1000)

    def test_zero_invariant_rejected(self):
        with pytest.raises(ZeroAmountError):
            calc_y([dec(1), dec(1)], dec(0), self.amp_gamma, 0)


class TestXcpAndHalfPow:
    """Virtual capital and 0.5 ** x"""

    def test_get_xcp(self):
        assert get_xcp(dec(2000), dec(1)) == dec(1000)
        assert get_xcp(dec(2000), dec(4)) == dec(500)

    def test_half_pow_integer_powers(self):
        assert half_float_pow(dec(0)) == dec(1)
        assert half_float_pow(dec(1)) == dec("0.5")
        assert half_float_pow(dec(3)) == dec("0.125")

    def test_half_pow_fractional(self):
        assert close(half_float_pow(dec("0.5")), dec("0.707106781186547524"), "0.000000001")
        assert close(half_float_pow(dec("1.5")), dec("0.353553390593273762"), "0.000000001")

    def test_half_pow_decreasing(self):
        values = [half_float_pow(dec(p)) for p in ("0.1", "0.25", "0.9", "2.2")]
        assert values == sorted(values, reverse=True)


CORNERS = [
    ("0.4", "0.0000001"),
    ("0.4", "0.02"),
    ("400000", "0.0000001"),
    ("400000", "0.02"),
]
BALANCES = [(1000, 1000), (1500, 500), (5000, 1000)]


class TestSolverConvergence:
    """Solutions sit on the curve at the amp/gamma bounds"""

    @staticmethod
    def newton_step(value, slope) -> Decimal256:
        return abs(value / slope).to_unsigned()

    @pytest.mark.parametrize("amp, gamma", CORNERS)
    @pytest.mark.parametrize("balances", BALANCES)
    def test_calc_d_residual(self, amp, gamma, balances):
        amp_gamma = AmpGamma.new(dec(amp), dec(gamma))
        xs = [dec(x) for x in balances]
        d = calc_d(xs, amp_gamma)

        args = (d.to_signed(), [x.to_signed() for x in xs], amp_gamma.amp.to_signed(), amp_gamma.gamma.to_signed())
        step = self.newton_step(pool_math.f(*args), pool_math.df_dd(*args))
        assert step <= TOL, f"D={d} is {step} away from the root"
        assert (xs[0] * xs[1]).sqrt() * 2 - TOL <= d <= xs[0] + xs[1] + TOL

    @pytest.mark.parametrize("amp, gamma", CORNERS)
    @pytest.mark.parametrize("balances", BALANCES)
    def test_calc_y_residual(self, amp, gamma, balances):
        amp_gamma = AmpGamma.new(dec(amp), dec(gamma))
        xs = [dec(x) for x in balances]
        d = calc_d(xs, amp_gamma)
        # Sell 10% of coin 0 into the pool
        moved = [xs[0] + xs[0] / 10, xs[1]]
        y = calc_y(moved, d, amp_gamma, 1)
        assert y < xs[1]

        x = [moved[0].to_signed(), y.to_signed()]
        args = (d.to_signed(), x, amp_gamma.amp.to_signed(), amp_gamma.gamma.to_signed())
        step = self.newton_step(pool_math.f(*args), pool_math.df_dx(*args, 1))
        assert step <= TOL, f"y={y} is {step} away from the root"
