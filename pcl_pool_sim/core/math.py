#!/usr/bin/env python3
"""
Concentrated Pool Invariant Math

Pure fixed-point functions for the two-coin concentrated liquidity curve:

    K0 = x0 * x1 * N^N / D^N
    K  = A * K0 * gamma^2 / (gamma + 1 - K0)^2
    F  = K * D * (x0 + x1) + x0 * x1 - K * D^2 - (D / N)^N = 0

Balances passed here are already normalised by the price scale. Both
solvers use Newton's method with a hard iteration cap and never return an
unconverged value.
"""

import logging
from typing import List, Sequence, Tuple, TYPE_CHECKING

from .consts import HALFPOW_TOL, MAX_ITER, N, N_POW2, TOL
from .errors import ConvergenceError, ZeroAmountError
from .fixed_point import Decimal256, SignedDecimal256

if TYPE_CHECKING:
    from .state import AmpGamma

logger = logging.getLogger(__name__)

_ONE = SignedDecimal256.one()
_HALF = SignedDecimal256.from_str("0.5")


def _check_balances(xs: Sequence[Decimal256]) -> None:
    if len(xs) != 2:
        raise ValueError(f"Expected two balances, got {len(xs)}")
    if any(x.is_zero() for x in xs):
        raise ZeroAmountError("Pool balances must be positive")


def geometric_mean(xs: Sequence[Decimal256]) -> Decimal256:
    """sqrt(x0 * x1)"""
    return (xs[0] * xs[1]).sqrt()


def _k_coefficient(
    d: SignedDecimal256, x: List[SignedDecimal256], amp: SignedDecimal256, gamma: SignedDecimal256
) -> Tuple[SignedDecimal256, SignedDecimal256, SignedDecimal256]:
    """Return (K0, gamma + 1 - K0, K) at the given point"""
    k0 = x[0] * x[1] * N_POW2 / (d * d)
    g1k0 = gamma + _ONE - k0
    # gamma / g1k0 keeps precision when gamma is tiny
    ratio = gamma / g1k0
    k = amp * k0 * ratio * ratio
    return k0, g1k0, k


def f(d: SignedDecimal256, x: List[SignedDecimal256], amp: SignedDecimal256, gamma: SignedDecimal256) -> SignedDecimal256:
    """Curve equation value at D"""
    _, _, k = _k_coefficient(d, x, amp, gamma)
    d2 = d * d
    return k * d * (x[0] + x[1]) + x[0] * x[1] - k * d2 - d2 / N_POW2


def df_dd(d: SignedDecimal256, x: List[SignedDecimal256], amp: SignedDecimal256, gamma: SignedDecimal256) -> SignedDecimal256:
    """dF/dD"""
    k0, g1k0, k = _k_coefficient(d, x, amp, gamma)
    # D * dK/dD
    k_dd = -(k * 2 * (gamma + _ONE + k0) / g1k0)
    return (k_dd + k) * (x[0] + x[1]) - (k_dd + k * 2) * d - d / N


def df_dx(
    d: SignedDecimal256, x: List[SignedDecimal256], amp: SignedDecimal256, gamma: SignedDecimal256, i: int
) -> SignedDecimal256:
    """dF/dx_i"""
    k0, g1k0, k = _k_coefficient(d, x, amp, gamma)
    x_r = x[1 - i]
    k_dx = k * (gamma + _ONE + k0) / (g1k0 * x[i])
    return k_dx * d * (x[0] + x[1] - d) + k * d + x_r


def newton_d(xs: Sequence[Decimal256], amp: Decimal256, gamma: Decimal256) -> Decimal256:
    """Solve the curve equation for D"""
    x = [xi.to_signed() for xi in xs]
    a = amp.to_signed()
    g = gamma.to_signed()

    d_prev = (N * geometric_mean(xs)).to_signed()
    for iteration in range(MAX_ITER):
        d = d_prev - f(d_prev, x, a, g) / df_dd(d_prev, x, a, g)
        if d.is_negative() or d.is_zero():
            d = d_prev / 2
        if d.diff(d_prev) <= TOL:
            logger.debug("newton_d converged in %d iterations: D=%s", iteration + 1, d)
            return d.to_unsigned()
        d_prev = d

    raise ConvergenceError("newton_d is not converging")


def newton_y(xs: Sequence[Decimal256], amp: Decimal256, gamma: Decimal256, d: Decimal256, j: int) -> Decimal256:
    """Solve the curve equation for balance j given D and the other balance"""
    x = [xi.to_signed() for xi in xs]
    a = amp.to_signed()
    g = gamma.to_signed()
    sd = d.to_signed()

    # Constant product guess
    x[j] = sd * sd / (N_POW2 * x[1 - j])
    for iteration in range(MAX_ITER):
        xi = x[j]
        xi_next = xi - f(sd, x, a, g) / df_dx(sd, x, a, g, j)
        if xi_next.is_negative() or xi_next.is_zero():
            xi_next = xi / 2
        if xi_next.diff(xi) <= TOL:
            logger.debug("newton_y converged in %d iterations: y=%s", iteration + 1, xi_next)
            return xi_next.to_unsigned()
        x[j] = xi_next

    raise ConvergenceError("newton_y is not converging")


def calc_d(xs: Sequence[Decimal256], amp_gamma: "AmpGamma") -> Decimal256:
    """Pool invariant D for price-scale normalised balances"""
    _check_balances(xs)
    return newton_d(xs, amp_gamma.amp, amp_gamma.gamma)


def calc_y(xs: Sequence[Decimal256], d: Decimal256, amp_gamma: "AmpGamma", j: int) -> Decimal256:
    """New balance of coin j keeping D constant"""
    _check_balances(xs)
    if d.is_zero():
        raise ZeroAmountError("Invariant must be positive")
    return newton_y(xs, amp_gamma.amp, amp_gamma.gamma, d, j)


def get_xcp(d: Decimal256, price_scale: Decimal256) -> Decimal256:
    """Virtual capital of a balanced pool with invariant D: D / (2 * sqrt(price_scale))"""
    xs = [d / N, d / (N * price_scale)]
    return geometric_mean(xs)


def half_float_pow(power: Decimal256) -> Decimal256:
    """
    0.5 ** power

    The integer part is an exact shift; the fractional part is expanded as a
    binomial series until the next term is below HALFPOW_TOL.
    """
    int_power = power.floor()
    frac_power = (power - int_power).to_signed()
    result = Decimal256(Decimal256.one().raw >> int_power)
    if frac_power.is_zero():
        return result

    term = _ONE
    total = _ONE
    for k in range(1, MAX_ITER + 1):
        term = term * (frac_power - (k - 1)) * (-_HALF) / k
        total = total + term
        if abs(term) < HALFPOW_TOL:
            return result * total.to_unsigned()

    raise ConvergenceError("half_float_pow is not converging")
