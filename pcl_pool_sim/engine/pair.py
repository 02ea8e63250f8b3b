#!/usr/bin/env python3
"""
Concentrated Pair Entry Points

Pure operations over a pool Config. Each state-changing call works on a deep
copy of the config and returns the updated copy together with its result, so
a failure anywhere leaves the caller's config untouched. Persisting the
returned config is the caller's job.

Token amounts cross this boundary as integers in each asset's own precision;
LP shares use LP_TOKEN_PRECISION.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..config.schemas import AssetSpec, ConcentratedPoolParams, PromoteParams, UpdatePoolParams
from ..core.consts import CUMULATIVE_PRICE_MODULUS, LP_TOKEN_PRECISION, MINIMUM_LIQUIDITY_AMOUNT, TWAP_PRECISION
from ..core.errors import (
    ImbalancedWithdrawError, InstantiationError, InsufficientLiquidityError, InvalidAssetError,
    ParamValidationError,
)
from ..core.fixed_point import Decimal256
from ..core.liquidity import compute_provide, compute_withdraw, get_share_in_assets
from ..core.math import calc_d
from ..core.state import (
    AmpGamma, Config, CumulativePrice, PairType, PoolAsset, PoolParams, PoolState, PriceState,
)
from ..core.swap import assert_max_spread, before_swap_check, compute_swap

logger = logging.getLogger(__name__)

AssetLike = Union[PoolAsset, AssetSpec, Tuple[str, int]]


@dataclass(frozen=True)
class PendingInstantiation:
    """Validated pool waiting for its LP token to be created"""
    assets: Tuple[PoolAsset, ...]
    pool_params: PoolParams
    pool_state: PoolState
    created_at: int


@dataclass(frozen=True)
class SwapResponse:
    offer_asset: str
    ask_asset: str
    offer_amount: int
    return_amount: int
    spread_amount: int
    commission_amount: int
    maker_fee_amount: int
    last_price: Decimal256
    last_real_price: Decimal256
    price_scale_moved: bool


@dataclass(frozen=True)
class ProvideResponse:
    mint_amount: int
    # Shares minted to the pool itself and never redeemable
    locked_amount: int
    provide_fee: Decimal256
    price_scale_moved: bool


@dataclass(frozen=True)
class SimulationResponse:
    return_amount: int
    spread_amount: int
    commission_amount: int
    maker_fee_amount: int


# ---------- Helpers ----------

def _to_pool_asset(asset: AssetLike) -> PoolAsset:
    if isinstance(asset, PoolAsset):
        return asset
    if isinstance(asset, AssetSpec):
        return PoolAsset(denom=asset.denom, precision=asset.precision)
    denom, precision = asset
    return PoolAsset(denom=denom, precision=AssetSpec(denom=denom, precision=precision).precision)


def _to_decimals(config: Config, amounts: Sequence[int]) -> List[Decimal256]:
    if len(amounts) != len(config.assets):
        raise ParamValidationError("amounts", list(amounts), f"exactly {len(config.assets)} values")
    if any(amount < 0 for amount in amounts):
        raise ParamValidationError("amounts", list(amounts), "non-negative")
    return [
        Decimal256.with_precision(amount, config.precision(index))
        for index, amount in enumerate(amounts)
    ]


def _lp(amount: int) -> Decimal256:
    if amount < 0:
        raise ParamValidationError("share amount", amount, "non-negative")
    return Decimal256.with_precision(amount, LP_TOKEN_PRECISION)


def _offer_index(config: Config, offer: Union[int, str]) -> int:
    if isinstance(offer, str):
        return config.asset_index(offer)
    if offer not in (0, 1):
        raise InvalidAssetError(f"Offer index {offer} is out of range")
    return offer


def accumulate_prices(config: Config, now: int, last_real_price: Decimal256) -> None:
    """Advance the cumulative prices of both directions by the elapsed time"""
    if now <= config.block_time_last:
        return
    elapsed = now - config.block_time_last
    base_denom = config.assets[0].denom
    for cumulative in config.cumulative_prices:
        # last_real_price is quoted as asset 0 per asset 1
        price = last_real_price.inv() if cumulative.offer_asset == base_denom else last_real_price
        cumulative.value = (
            cumulative.value + elapsed * price.to_uint(TWAP_PRECISION)
        ) % CUMULATIVE_PRICE_MODULUS
    config.block_time_last = now


# ---------- Instantiation ----------

def begin_instantiate(
    assets: Sequence[AssetLike], params: ConcentratedPoolParams, now: int
) -> PendingInstantiation:
    """Validate pool parameters; the LP token is created by the caller"""
    pool_assets = tuple(_to_pool_asset(asset) for asset in assets)
    if len(pool_assets) != 2:
        raise ParamValidationError("assets", [a.denom for a in pool_assets], "exactly two assets")
    if pool_assets[0].denom == pool_assets[1].denom:
        raise ParamValidationError("assets", [a.denom for a in pool_assets], "distinct assets")
    if params.price_scale.is_zero():
        raise ParamValidationError("price_scale", params.price_scale, "> 0")

    pool_params = PoolParams()
    pool_params.update_params(UpdatePoolParams(
        mid_fee=params.mid_fee,
        out_fee=params.out_fee,
        fee_gamma=params.fee_gamma,
        repeg_profit_threshold=params.repeg_profit_threshold,
        min_price_scale_delta=params.min_price_scale_delta,
        ma_half_time=params.ma_half_time,
    ))

    amp_gamma = AmpGamma.new(params.amp, params.gamma)
    pool_state = PoolState(
        initial=amp_gamma,
        future=amp_gamma,
        initial_time=now,
        future_time=now,
        price_state=PriceState(
            oracle_price=params.price_scale,
            last_price=params.price_scale,
            price_scale=params.price_scale,
            last_price_update=now,
        ),
    )
    return PendingInstantiation(
        assets=pool_assets, pool_params=pool_params, pool_state=pool_state, created_at=now
    )


def complete_instantiate(pending: PendingInstantiation, liquidity_token: str) -> Config:
    """Attach the created LP token and produce the pool config"""
    if not liquidity_token:
        raise InstantiationError("Liquidity token address is empty")

    assets = list(pending.assets)
    cumulative_prices = [
        CumulativePrice(offer_asset=offer.denom, ask_asset=ask.denom)
        for offer in assets
        for ask in assets
        if offer.denom != ask.denom
    ]
    config = Config(
        assets=assets,
        pool_params=copy.deepcopy(pending.pool_params),
        pool_state=copy.deepcopy(pending.pool_state),
        block_time_last=pending.created_at,
        cumulative_prices=cumulative_prices,
        liquidity_token=liquidity_token,
        pair_type=PairType.CONCENTRATED,
    )
    logger.info(
        "Instantiated %s-%s pool with price scale %s",
        assets[0].denom, assets[1].denom, config.pool_state.price_state.price_scale,
    )
    return config


def instantiate_pool(
    assets: Sequence[AssetLike],
    params: ConcentratedPoolParams,
    now: int,
    liquidity_token: str = "uLP",
) -> Config:
    return complete_instantiate(begin_instantiate(assets, params, now), liquidity_token)


# ---------- Swap ----------

def swap(
    config: Config,
    balances: Sequence[int],
    offer: Union[int, str],
    offer_amount: int,
    total_share: int,
    now: int,
    belief_price: Optional[Decimal256] = None,
    max_spread: Optional[Decimal256] = None,
    maker_fee_share: Optional[Decimal256] = None,
) -> Tuple[SwapResponse, Config]:
    """
    Swap `offer_amount` of the offer asset against the pool.

    `balances` are the pool balances before the offer is added. The maker fee
    share comes from the external fee configuration and is zero when no fee
    address is set.
    """
    config = copy.deepcopy(config)
    offer_ind = _offer_index(config, offer)
    ask_ind = 1 - offer_ind
    maker_fee_share = maker_fee_share if maker_fee_share is not None else Decimal256.zero()

    pools = _to_decimals(config, balances)
    offer_dec = Decimal256.with_precision(offer_amount, config.precision(offer_ind))
    before_swap_check(pools, offer_dec)

    result = compute_swap(pools, offer_dec, ask_ind, config, now, maker_fee_share)

    xs = list(pools)
    xs[offer_ind] = xs[offer_ind] + offer_dec
    ask_out = result.dy + result.maker_fee
    if ask_out >= xs[ask_ind]:
        raise InsufficientLiquidityError("Not enough liquidity to cover the swap")
    xs[ask_ind] = xs[ask_ind] - ask_out

    assert_max_spread(belief_price, max_spread, offer_dec, result.dy, result.spread_fee)

    last_price, last_real_price = result.calc_last_prices(offer_dec, offer_ind)
    logger.debug(
        "coin_%d->coin_%d (%s->%s) last price %s last real price %s",
        offer_ind, ask_ind, offer_dec, ask_out, last_price, last_real_price,
    )

    # update_price works with the internal representation
    xs[1] = xs[1] * config.pool_state.price_state.price_scale
    moved = config.pool_state.update_price(config.pool_params, now, _lp(total_share), xs, last_price)
    accumulate_prices(config, now, last_real_price)

    ask_prec = config.precision(ask_ind)
    response = SwapResponse(
        offer_asset=config.assets[offer_ind].denom,
        ask_asset=config.assets[ask_ind].denom,
        offer_amount=offer_amount,
        return_amount=result.dy.to_uint(ask_prec),
        spread_amount=result.spread_fee.to_uint(ask_prec),
        commission_amount=result.total_fee.to_uint(ask_prec),
        maker_fee_amount=result.maker_fee.to_uint(ask_prec),
        last_price=last_price,
        last_real_price=last_real_price,
        price_scale_moved=moved,
    )
    return response, config


# ---------- Liquidity ----------

def provide_liquidity(
    config: Config,
    balances: Sequence[int],
    deposit_amounts: Sequence[int],
    total_share: int,
    now: int,
) -> Tuple[ProvideResponse, Config]:
    """Mint LP shares for a deposit; `balances` exclude the deposit"""
    config = copy.deepcopy(config)
    pools = _to_decimals(config, balances)
    deposits = _to_decimals(config, deposit_amounts)
    total_share_dec = _lp(total_share)

    result = compute_provide(pools, deposits, total_share_dec, config, now)
    price_state = config.pool_state.price_state
    mint_amount = result.share.to_uint(LP_TOKEN_PRECISION)
    moved = False

    if result.first_deposit:
        locked = MINIMUM_LIQUIDITY_AMOUNT
        price_state.xcp = result.xcp
        price_state.xcp_profit = Decimal256.one()
        price_state.virtual_price = result.xcp / _lp(mint_amount + locked)
    else:
        locked = 0
        if result.last_price is not None:
            moved = config.pool_state.update_price(
                config.pool_params, now, total_share_dec + _lp(mint_amount), result.new_xp, result.last_price
            )
            accumulate_prices(config, now, result.last_price)
        else:
            price_state.xcp = result.xcp

    logger.debug("Provided %s, minted %d shares (fee %s)", list(deposit_amounts), mint_amount, result.provide_fee)
    return ProvideResponse(
        mint_amount=mint_amount,
        locked_amount=locked,
        provide_fee=result.provide_fee,
        price_scale_moved=moved,
    ), config


def withdraw_liquidity(
    config: Config,
    balances: Sequence[int],
    burn_amount: int,
    total_share: int,
    now: int,
    assets: Optional[Sequence[int]] = None,
) -> Tuple[List[int], Config]:
    """Burn LP shares for a pro-rata share of both assets"""
    if assets:
        raise ImbalancedWithdrawError("Imbalanced withdraw is currently disabled")

    config = copy.deepcopy(config)
    pools = _to_decimals(config, balances)
    refunds, xcp = compute_withdraw(pools, _lp(burn_amount), _lp(total_share), config, now)
    config.pool_state.price_state.xcp = xcp

    refund_amounts = [refund.to_uint(config.precision(index)) for index, refund in enumerate(refunds)]
    logger.debug("Withdrew %d shares for %s", burn_amount, refund_amounts)
    return refund_amounts, config


# ---------- Governance ----------

def promote_params(config: Config, params: PromoteParams, now: int) -> Config:
    config = copy.deepcopy(config)
    config.pool_state.promote_params(now, params.next_amp, params.next_gamma, params.future_time)
    return config


def stop_promotion(config: Config, now: int) -> Config:
    config = copy.deepcopy(config)
    config.pool_state.stop_promotion(now)
    return config


def update_pool_params(config: Config, params: UpdatePoolParams) -> Config:
    config = copy.deepcopy(config)
    config.pool_params.update_params(params)
    return config


# ---------- Queries ----------

def simulate_swap(
    config: Config,
    balances: Sequence[int],
    offer: Union[int, str],
    offer_amount: int,
    now: int,
    maker_fee_share: Optional[Decimal256] = None,
) -> SimulationResponse:
    """Quote a swap without touching the price state"""
    offer_ind = _offer_index(config, offer)
    ask_ind = 1 - offer_ind
    pools = _to_decimals(config, balances)
    offer_dec = Decimal256.with_precision(offer_amount, config.precision(offer_ind))
    before_swap_check(pools, offer_dec)

    share = maker_fee_share if maker_fee_share is not None else Decimal256.zero()
    result = compute_swap(pools, offer_dec, ask_ind, config, now, share)
    ask_prec = config.precision(ask_ind)
    return SimulationResponse(
        return_amount=result.dy.to_uint(ask_prec),
        spread_amount=result.spread_fee.to_uint(ask_prec),
        commission_amount=result.total_fee.to_uint(ask_prec),
        maker_fee_amount=result.maker_fee.to_uint(ask_prec),
    )


def query_pool(config: Config, balances: Sequence[int], total_share: int) -> Dict[str, Any]:
    return {
        "assets": [
            {"denom": asset.denom, "amount": amount}
            for asset, amount in zip(config.assets, balances)
        ],
        "total_share": total_share,
    }


def query_share(config: Config, balances: Sequence[int], amount: int, total_share: int) -> List[int]:
    pools = _to_decimals(config, balances)
    refunds = get_share_in_assets(pools, _lp(amount), _lp(total_share))
    return [refund.to_uint(config.precision(index)) for index, refund in enumerate(refunds)]


def query_cumulative_prices(config: Config) -> List[Tuple[str, str, int]]:
    return [(c.offer_asset, c.ask_asset, c.value) for c in config.cumulative_prices]


def query_compute_d(config: Config, balances: Sequence[int], now: int) -> Decimal256:
    xs = _to_decimals(config, balances)
    xs[1] = xs[1] * config.pool_state.price_state.price_scale
    return calc_d(xs, config.pool_state.get_amp_gamma(now))


def query_lp_price(config: Config) -> Decimal256:
    """LP share value in asset 0 units: 2 * virtual_price * sqrt(oracle_price)"""
    price_state = config.pool_state.price_state
    return price_state.virtual_price * 2 * price_state.oracle_price.sqrt()


def query_config(config: Config, now: int) -> Dict[str, Any]:
    amp_gamma = config.pool_state.get_amp_gamma(now)
    price_state = config.pool_state.price_state
    params = config.pool_params
    return {
        "amp": amp_gamma.amp,
        "gamma": amp_gamma.gamma,
        "mid_fee": params.mid_fee,
        "out_fee": params.out_fee,
        "fee_gamma": params.fee_gamma,
        "repeg_profit_threshold": params.repeg_profit_threshold,
        "min_price_scale_delta": params.min_price_scale_delta,
        "ma_half_time": params.ma_half_time,
        "price_scale": price_state.price_scale,
        "oracle_price": price_state.oracle_price,
        "last_price": price_state.last_price,
        "xcp_profit": price_state.xcp_profit,
        "promoting": config.pool_state.is_promoting(now),
        "block_time_last": config.block_time_last,
    }
