#!/usr/bin/env python3
"""
Concentrated Pool Swap Math

Computes swap outputs against the invariant, applies the dynamic fee and
checks slippage limits. All amounts are Decimal256 in real (not price-scale
normalised) units unless stated otherwise.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

from .consts import DEFAULT_SLIPPAGE, MAX_ALLOWED_SLIPPAGE
from .errors import InsufficientLiquidityError, MaxSpreadError, ParamValidationError, ZeroAmountError
from .fees import split_fee
from .fixed_point import Decimal256
from .math import calc_d, calc_y

if TYPE_CHECKING:
    from .state import Config


@dataclass(frozen=True)
class SwapResult:
    """Outcome of compute_swap, all amounts in ask asset units"""
    dy: Decimal256
    spread_fee: Decimal256
    maker_fee: Decimal256
    total_fee: Decimal256
    fee_rate: Decimal256

    def calc_last_prices(self, offer_amount: Decimal256, offer_ind: int) -> Tuple[Decimal256, Decimal256]:
        """
        Return (last_price, last_real_price), both as asset 0 per asset 1.

        last_price comes from the curve output before fees and drives the
        repeg oracle; last_real_price comes from what the trader receives.
        """
        curve_out = self.dy + self.total_fee
        if offer_ind == 0:
            return offer_amount / curve_out, offer_amount / self.dy
        return curve_out / offer_amount, self.dy / offer_amount


def before_swap_check(pools: Sequence[Decimal256], offer_amount: Decimal256) -> None:
    if offer_amount.is_zero():
        raise ZeroAmountError("Swap amount must be positive")
    if any(pool.is_zero() for pool in pools):
        raise InsufficientLiquidityError("One of the pool sides is empty")


def compute_swap(
    xs: Sequence[Decimal256],
    offer_amount: Decimal256,
    ask_ind: int,
    config: "Config",
    now: int,
    maker_fee_share: Decimal256,
) -> SwapResult:
    """
    Swap `offer_amount` of coin 1 - ask_ind for coin ask_ind.

    `xs` are the pool balances before the offer is added, in real units.
    """
    offer_ind = 1 - ask_ind
    price_scale = config.pool_state.price_state.price_scale

    ixs = [xs[0], xs[1] * price_scale]
    amp_gamma = config.pool_state.get_amp_gamma(now)
    d = calc_d(ixs, amp_gamma)

    ioffer = offer_amount * price_scale if offer_ind == 1 else offer_amount
    ixs[offer_ind] = ixs[offer_ind] + ioffer

    new_y = calc_y(ixs, d, amp_gamma, ask_ind)
    if new_y >= ixs[ask_ind]:
        raise InsufficientLiquidityError("Swap output is zero")
    dy = ixs[ask_ind] - new_y
    ixs[ask_ind] = new_y

    if ask_ind == 1:
        dy = dy / price_scale
        ideal_out = offer_amount / price_scale
    else:
        ideal_out = offer_amount * price_scale

    # price_scale lags the real price so the spread can be negative; clamp to zero
    spread_fee = ideal_out.saturating_sub(dy)

    fee_rate = config.pool_params.fee(ixs)
    total_fee = dy * fee_rate
    dy = dy - total_fee
    if dy.is_zero():
        raise InsufficientLiquidityError("Swap output is zero after fees")

    maker_fee, _ = split_fee(total_fee, maker_fee_share)
    return SwapResult(
        dy=dy,
        spread_fee=spread_fee,
        maker_fee=maker_fee,
        total_fee=total_fee,
        fee_rate=fee_rate,
    )


def assert_max_spread(
    belief_price: Optional[Decimal256],
    max_spread: Optional[Decimal256],
    offer_amount: Decimal256,
    return_amount: Decimal256,
    spread_amount: Decimal256,
) -> None:
    """
    Raise MaxSpreadError if the trade is worse than the caller accepts.

    belief_price is the expected price of the ask asset in offer units.
    """
    max_spread = max_spread if max_spread is not None else DEFAULT_SLIPPAGE
    if max_spread > MAX_ALLOWED_SLIPPAGE:
        raise ParamValidationError("max_spread", max_spread, f"<= {MAX_ALLOWED_SLIPPAGE}")

    if belief_price is not None:
        if belief_price.is_zero():
            raise ParamValidationError("belief_price", belief_price, "> 0")
        expected_return = offer_amount / belief_price
        spread = expected_return.saturating_sub(return_amount)
        if return_amount < expected_return and spread / expected_return > max_spread:
            raise MaxSpreadError(
                f"Spread {spread} exceeds {max_spread} of expected return {expected_return}"
            )
    elif spread_amount / (return_amount + spread_amount) > max_spread:
        raise MaxSpreadError(f"Spread {spread_amount} exceeds {max_spread}")
