#!/usr/bin/env python3
"""
Dynamic Fee Model

Blends mid_fee (balanced pool) and out_fee (skewed pool) using the pool
imbalance. Inputs are price-scale normalised balances.
"""

from typing import Sequence, Tuple, TYPE_CHECKING

from .consts import FEE_TOL, N_POW2
from .fixed_point import Decimal256

if TYPE_CHECKING:
    from .state import PoolParams


def balance_skew(xs: Sequence[Decimal256]) -> Decimal256:
    """1 - 4*x0*x1/(x0+x1)^2: zero for an even pool, approaching 1 as skew grows"""
    total = xs[0] + xs[1]
    if total.is_zero():
        return Decimal256.zero()
    k = xs[0] * xs[1] * N_POW2 / (total * total)
    return Decimal256.one().saturating_sub(k)


def imbalance_coefficient(xs: Sequence[Decimal256], fee_gamma: Decimal256) -> Decimal256:
    """g = skew / (skew + fee_gamma), in [0, 1)"""
    skew = balance_skew(xs)
    g = skew / (skew + fee_gamma)
    # The mid fee share below FEE_TOL is dropped entirely
    if Decimal256.one() - g <= FEE_TOL:
        g = Decimal256.one()
    return g


def compute_fee(xs: Sequence[Decimal256], pool_params: "PoolParams") -> Decimal256:
    """Swap fee rate between mid_fee and out_fee"""
    g = imbalance_coefficient(xs, pool_params.fee_gamma)
    return pool_params.mid_fee + (pool_params.out_fee - pool_params.mid_fee) * g


def calc_provide_fee(
    deposits: Sequence[Decimal256], xs: Sequence[Decimal256], pool_params: "PoolParams"
) -> Decimal256:
    """
    Fee rate applied to minted shares, proportional to how far the deposit is
    from the pool's current ratio. Both deposits and xs are in internal units.
    """
    total = deposits[0] + deposits[1]
    pool_total = xs[0] + xs[1]
    if total.is_zero() or pool_total.is_zero():
        return Decimal256.zero()
    # First coin of a deposit with the same value split as the pool
    balanced = total * xs[0] / pool_total
    return deposits[0].diff(balanced) * compute_fee(xs, pool_params) / total


def split_fee(total_fee: Decimal256, maker_fee_share: Decimal256) -> Tuple[Decimal256, Decimal256]:
    """Split a fee amount into (maker_fee, pool_fee)"""
    maker_fee = total_fee * maker_fee_share
    return maker_fee, total_fee - maker_fee
