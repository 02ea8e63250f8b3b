#!/usr/bin/env python3
"""
Pool Kind Dispatch

Constant-product and StableSwap quotes next to the concentrated engine so
callers can price any supported pair type through one entry point. The
branch on PairType is explicit; there is no pool class hierarchy.
"""

from typing import Optional, Sequence

from .consts import MAX_ITER, N, N_POW2, TOL
from .errors import ConvergenceError, InsufficientLiquidityError, ParamValidationError
from .fixed_point import Decimal256, SignedDecimal256
from .state import Config, PairType
from .swap import SwapResult, before_swap_check, compute_swap


def xyk_swap(
    pools: Sequence[Decimal256], offer_ind: int, offer_amount: Decimal256, fee_rate: Decimal256
) -> SwapResult:
    """x * y = k quote; the fee is taken from the output"""
    ask_ind = 1 - offer_ind
    offer_pool, ask_pool = pools[offer_ind], pools[ask_ind]

    out = ask_pool * offer_amount / (offer_pool + offer_amount)
    ideal_out = offer_amount * ask_pool / offer_pool
    total_fee = out * fee_rate
    return SwapResult(
        dy=out - total_fee,
        spread_fee=ideal_out.saturating_sub(out),
        maker_fee=Decimal256.zero(),
        total_fee=total_fee,
        fee_rate=fee_rate,
    )


def stable_d(xs: Sequence[Decimal256], amp: Decimal256) -> Decimal256:
    """StableSwap invariant for two coins"""
    ann = amp * N_POW2
    if ann <= Decimal256.one():
        raise ParamValidationError("amp", amp, "amp * 4 > 1")
    s = xs[0] + xs[1]
    d = s
    for _ in range(MAX_ITER):
        d_p = d * d / (xs[0] * N) * d / (xs[1] * N)
        d_prev = d
        d = (ann * s + d_p * N) * d / ((ann - Decimal256.one()) * d + (N + Decimal256.one()) * d_p)
        if d.diff(d_prev) <= TOL:
            return d
    raise ConvergenceError("stable_d is not converging")


def stable_y(x_other: Decimal256, d: Decimal256, amp: Decimal256) -> Decimal256:
    """Balance of the other coin keeping the StableSwap invariant"""
    ann = (amp * N_POW2).to_signed()
    sd = d.to_signed()
    c = sd * sd / (x_other * N) * sd / (ann * N)
    b = x_other.to_signed() + sd / ann
    y = sd
    for _ in range(MAX_ITER):
        y_prev = y
        y = (y * y + c) / (y * 2 + b - sd)
        if y.diff(y_prev) <= TOL:
            return y.to_unsigned()
    raise ConvergenceError("stable_y is not converging")


def stable_swap(
    pools: Sequence[Decimal256], offer_ind: int, offer_amount: Decimal256,
    amp: Decimal256, fee_rate: Decimal256,
) -> SwapResult:
    ask_ind = 1 - offer_ind
    d = stable_d(pools, amp)
    new_y = stable_y(pools[offer_ind] + offer_amount, d, amp)
    if new_y >= pools[ask_ind]:
        raise InsufficientLiquidityError("Swap output is zero")
    out = pools[ask_ind] - new_y
    total_fee = out * fee_rate
    return SwapResult(
        dy=out - total_fee,
        spread_fee=offer_amount.saturating_sub(out),
        maker_fee=Decimal256.zero(),
        total_fee=total_fee,
        fee_rate=fee_rate,
    )


def simulate_pool_swap(
    pair_type: PairType,
    pools: Sequence[Decimal256],
    offer_ind: int,
    offer_amount: Decimal256,
    *,
    fee_rate: Optional[Decimal256] = None,
    amp: Optional[Decimal256] = None,
    config: Optional[Config] = None,
    now: int = 0,
    maker_fee_share: Optional[Decimal256] = None,
) -> SwapResult:
    """Quote a swap for any pair type"""
    before_swap_check(pools, offer_amount)

    if pair_type is PairType.XYK:
        if fee_rate is None:
            raise ParamValidationError("fee_rate", None, "required for xyk pools")
        return xyk_swap(pools, offer_ind, offer_amount, fee_rate)
    elif pair_type is PairType.STABLE:
        if fee_rate is None or amp is None:
            raise ParamValidationError("fee_rate/amp", None, "required for stable pools")
        return stable_swap(pools, offer_ind, offer_amount, amp, fee_rate)
    elif pair_type is PairType.CONCENTRATED:
        if config is None:
            raise ParamValidationError("config", None, "required for concentrated pools")
        share = maker_fee_share if maker_fee_share is not None else Decimal256.zero()
        return compute_swap(pools, offer_amount, 1 - offer_ind, config, now, share)

    raise ParamValidationError("pair_type", pair_type, ", ".join(p.value for p in PairType))
