#!/usr/bin/env python3
"""
Concentrated Pool Liquidity Math

Share minting for deposits and pro-rata refunds for balanced withdrawals.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, TYPE_CHECKING

from .consts import LP_TOKEN_PRECISION, MINIMUM_LIQUIDITY_AMOUNT, TOL
from .errors import InsufficientLiquidityError, MinimumLiquidityError, ZeroAmountError
from .fees import calc_provide_fee
from .fixed_point import Decimal256
from .math import calc_d, get_xcp

if TYPE_CHECKING:
    from .state import Config


@dataclass(frozen=True)
class ProvideResult:
    """Outcome of compute_provide"""
    share: Decimal256
    new_d: Decimal256
    xcp: Decimal256
    provide_fee: Decimal256
    # Balances after the deposit, multiplied by the price scale
    new_xp: List[Decimal256]
    # Price implied by the imbalanced part of the deposit, if any
    last_price: Optional[Decimal256] = None
    first_deposit: bool = False


def compute_provide(
    pools: Sequence[Decimal256],
    deposits: Sequence[Decimal256],
    total_share: Decimal256,
    config: "Config",
    now: int,
) -> ProvideResult:
    """
    Shares minted for `deposits` given pool balances before the deposit.

    For an empty pool the share is the initial xcp minus the locked
    minimum liquidity. Otherwise it is proportional to the growth of D,
    reduced by the imbalance fee.
    """
    if any(deposit.is_zero() for deposit in deposits):
        raise ZeroAmountError("Both deposit amounts must be positive")

    price_scale = config.pool_state.price_state.price_scale
    amp_gamma = config.pool_state.get_amp_gamma(now)

    new_xp = [pools[0] + deposits[0], (pools[1] + deposits[1]) * price_scale]
    new_d = calc_d(new_xp, amp_gamma)
    xcp = get_xcp(new_d, price_scale)

    if total_share.is_zero():
        minted = xcp.to_uint(LP_TOKEN_PRECISION)
        if minted <= MINIMUM_LIQUIDITY_AMOUNT:
            raise MinimumLiquidityError(
                f"Initial liquidity {minted} must exceed locked {MINIMUM_LIQUIDITY_AMOUNT}"
            )
        share = Decimal256.with_precision(minted - MINIMUM_LIQUIDITY_AMOUNT, LP_TOKEN_PRECISION)
        return ProvideResult(
            share=share,
            new_d=new_d,
            xcp=xcp,
            provide_fee=Decimal256.zero(),
            new_xp=new_xp,
            first_deposit=True,
        )

    if any(pool.is_zero() for pool in pools):
        raise InsufficientLiquidityError("Pool has shares outstanding but an empty side")

    old_xp = [pools[0], pools[1] * price_scale]
    old_d = calc_d(old_xp, amp_gamma)
    share = (total_share * new_d / old_d).saturating_sub(total_share)

    ideposits = [deposits[0], deposits[1] * price_scale]
    provide_fee = calc_provide_fee(ideposits, old_xp, config.pool_params)
    share = share * (Decimal256.one() - provide_fee)
    if share.to_uint(LP_TOKEN_PRECISION) == 0:
        raise ZeroAmountError("Deposit is too small to mint any shares")

    # Part of the deposit that is not pro-rata acts as an implicit trade
    share_ratio = share / (total_share + share)
    balanced_share = [new_xp[0] * share_ratio, new_xp[1] * share_ratio / price_scale]
    assets_diff = [deposits[0].diff(balanced_share[0]), deposits[1].diff(balanced_share[1])]

    last_price = None
    if assets_diff[0] > TOL and assets_diff[1] * price_scale > TOL:
        last_price = assets_diff[0] / assets_diff[1]

    return ProvideResult(
        share=share,
        new_d=new_d,
        xcp=xcp,
        provide_fee=provide_fee,
        new_xp=new_xp,
        last_price=last_price,
    )


def get_share_in_assets(
    pools: Sequence[Decimal256], amount: Decimal256, total_share: Decimal256
) -> List[Decimal256]:
    """Pro-rata pool balances owned by `amount` LP shares"""
    if total_share.is_zero():
        return [Decimal256.zero() for _ in pools]
    share_ratio = amount / total_share
    return [pool * share_ratio for pool in pools]


def compute_withdraw(
    pools: Sequence[Decimal256],
    amount: Decimal256,
    total_share: Decimal256,
    config: "Config",
    now: int,
):
    """Return (refunds, new xcp) for a balanced withdrawal of `amount` shares"""
    if amount.is_zero():
        raise ZeroAmountError("Withdraw amount must be positive")
    if amount > total_share:
        raise InsufficientLiquidityError(f"Withdraw amount {amount} exceeds total share {total_share}")

    refunds = get_share_in_assets(pools, amount, total_share)
    price_scale = config.pool_state.price_state.price_scale
    xs = [pools[0] - refunds[0], (pools[1] - refunds[1]) * price_scale]
    if any(x.is_zero() for x in xs):
        raise InsufficientLiquidityError("Withdrawal would empty the pool")

    d = calc_d(xs, config.pool_state.get_amp_gamma(now))
    return refunds, get_xcp(d, price_scale)
