#!/usr/bin/env python3
"""
Concentrated Pool State

Plain state records owned by a single pool plus the two state machines that
mutate them:

- amp/gamma promotion (Stable -> Promoting -> Stable)
- price state update with EMA oracle and profit-gated repegging
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .consts import (
    AMP_MAX, AMP_MIN, FEE_GAMMA_MAX, FEE_GAMMA_MIN, GAMMA_MAX, GAMMA_MIN,
    MA_HALF_TIME_MAX, MA_HALF_TIME_MIN, MAX_CHANGE, MAX_FEE, MIN_AMP_CHANGING_TIME,
    MIN_FEE, PRICE_SCALE_DELTA_MAX, PRICE_SCALE_DELTA_MIN, REPEG_PROFIT_THRESHOLD_MAX,
    REPEG_PROFIT_THRESHOLD_MIN,
)
from .errors import InvalidAssetError, ParamValidationError, PromotionError, ZeroAmountError
from .fees import compute_fee
from .fixed_point import Decimal256
from .math import calc_d, get_xcp, half_float_pow

logger = logging.getLogger(__name__)


def _check_range(name: str, value, low, high) -> None:
    if not low <= value <= high:
        raise ParamValidationError(name, value, f"[{low}, {high}]")


class PairType(Enum):
    """Supported pool kinds"""
    XYK = "xyk"
    STABLE = "stable"
    CONCENTRATED = "concentrated"


@dataclass(frozen=True)
class AmpGamma:
    """Curve shape parameters"""
    amp: Decimal256
    gamma: Decimal256

    @classmethod
    def new(cls, amp: Decimal256, gamma: Decimal256) -> "AmpGamma":
        _check_range("amp", amp, AMP_MIN, AMP_MAX)
        _check_range("gamma", gamma, GAMMA_MIN, GAMMA_MAX)
        return cls(amp=amp, gamma=gamma)


@dataclass
class PriceState:
    """Internal price scale, EMA oracle and profit counters"""
    oracle_price: Decimal256
    last_price: Decimal256
    price_scale: Decimal256
    last_price_update: int
    xcp_profit: Decimal256 = field(default_factory=Decimal256.zero)
    xcp: Decimal256 = field(default_factory=Decimal256.zero)
    # xcp per LP share at the last update
    virtual_price: Decimal256 = field(default_factory=Decimal256.zero)


@dataclass
class PoolParams:
    """Governance-set fee and repeg parameters"""
    mid_fee: Decimal256 = field(default_factory=Decimal256.zero)
    out_fee: Decimal256 = field(default_factory=Decimal256.zero)
    fee_gamma: Decimal256 = field(default_factory=Decimal256.zero)
    repeg_profit_threshold: Decimal256 = field(default_factory=Decimal256.zero)
    min_price_scale_delta: Decimal256 = field(default_factory=Decimal256.zero)
    ma_half_time: int = 0

    def update_params(self, params) -> None:
        """
        Apply an UpdatePoolParams record. Every provided field is validated
        against its range before anything is assigned.
        """
        mid_fee = params.mid_fee if params.mid_fee is not None else self.mid_fee
        out_fee = params.out_fee if params.out_fee is not None else self.out_fee

        if params.mid_fee is not None:
            _check_range("mid_fee", mid_fee, MIN_FEE, MAX_FEE)
        if params.out_fee is not None:
            _check_range("out_fee", out_fee, MIN_FEE, MAX_FEE)
        if out_fee < mid_fee:
            raise ParamValidationError("out_fee", out_fee, f"out_fee >= mid_fee ({mid_fee})")
        if params.fee_gamma is not None:
            _check_range("fee_gamma", params.fee_gamma, FEE_GAMMA_MIN, FEE_GAMMA_MAX)
        if params.repeg_profit_threshold is not None:
            _check_range(
                "repeg_profit_threshold", params.repeg_profit_threshold,
                REPEG_PROFIT_THRESHOLD_MIN, REPEG_PROFIT_THRESHOLD_MAX,
            )
        if params.min_price_scale_delta is not None:
            _check_range(
                "min_price_scale_delta", params.min_price_scale_delta,
                PRICE_SCALE_DELTA_MIN, PRICE_SCALE_DELTA_MAX,
            )
        if params.ma_half_time is not None:
            _check_range("ma_half_time", params.ma_half_time, MA_HALF_TIME_MIN, MA_HALF_TIME_MAX)

        self.mid_fee = mid_fee
        self.out_fee = out_fee
        if params.fee_gamma is not None:
            self.fee_gamma = params.fee_gamma
        if params.repeg_profit_threshold is not None:
            self.repeg_profit_threshold = params.repeg_profit_threshold
        if params.min_price_scale_delta is not None:
            self.min_price_scale_delta = params.min_price_scale_delta
        if params.ma_half_time is not None:
            self.ma_half_time = params.ma_half_time

    def fee(self, xs: Sequence[Decimal256]) -> Decimal256:
        return compute_fee(xs, self)


@dataclass
class PoolState:
    """Amp/gamma promotion window and price state"""
    initial: AmpGamma
    future: AmpGamma
    initial_time: int
    future_time: int
    price_state: PriceState

    # ---------- Promotion state machine ----------

    def is_promoting(self, now: int) -> bool:
        return now < self.future_time

    def get_amp_gamma(self, now: int) -> AmpGamma:
        """Effective amp/gamma, linearly interpolated inside the promotion window"""
        if now >= self.future_time:
            return self.future
        if now <= self.initial_time:
            return self.initial

        total = self.future_time - self.initial_time
        passed = now - self.initial_time
        remaining = total - passed
        amp = (self.initial.amp.raw * remaining + self.future.amp.raw * passed) // total
        gamma = (self.initial.gamma.raw * remaining + self.future.gamma.raw * passed) // total
        return AmpGamma(amp=Decimal256(amp), gamma=Decimal256(gamma))

    def promote_params(self, now: int, next_amp: Decimal256, next_gamma: Decimal256, future_time: int) -> None:
        """Start moving amp/gamma towards new values until future_time"""
        if self.is_promoting(now):
            raise PromotionError("Amp/gamma promotion is already in progress")
        if now < self.initial_time + MIN_AMP_CHANGING_TIME:
            raise PromotionError(
                f"Amp/gamma was changed less than {MIN_AMP_CHANGING_TIME} seconds ago"
            )
        if future_time < now + MIN_AMP_CHANGING_TIME:
            raise PromotionError(
                f"Promotion window must be at least {MIN_AMP_CHANGING_TIME} seconds"
            )

        next_amp_gamma = AmpGamma.new(next_amp, next_gamma)
        current = self.get_amp_gamma(now)

        amp_change = (next_amp_gamma.amp / current.amp).diff(Decimal256.one())
        if amp_change > MAX_CHANGE:
            raise PromotionError(f"Amp change {amp_change} exceeds {MAX_CHANGE}")
        gamma_change = (next_amp_gamma.gamma / current.gamma).diff(Decimal256.one())
        if gamma_change > MAX_CHANGE:
            raise PromotionError(f"Gamma change {gamma_change} exceeds {MAX_CHANGE}")

        self.initial = current
        self.initial_time = now
        self.future = next_amp_gamma
        self.future_time = future_time
        logger.info(
            "Promoting amp %s -> %s, gamma %s -> %s until %d",
            current.amp, next_amp_gamma.amp, current.gamma, next_amp_gamma.gamma, future_time,
        )

    def stop_promotion(self, now: int) -> None:
        """Freeze amp/gamma at the value reached so far"""
        if not self.is_promoting(now):
            raise PromotionError("No amp/gamma promotion in progress")
        current = self.get_amp_gamma(now)
        self.initial = current
        self.future = current
        self.future_time = now
        logger.info("Promotion stopped at amp %s, gamma %s", current.amp, current.gamma)

    # ---------- Price state ----------

    def update_oracle(self, pool_params: PoolParams, now: int) -> None:
        """Blend the previous last_price into the EMA oracle"""
        price_state = self.price_state
        if price_state.last_price_update >= now:
            return

        if pool_params.ma_half_time == 0:
            alpha = Decimal256.zero()
        else:
            elapsed = now - price_state.last_price_update
            alpha = half_float_pow(Decimal256.from_ratio(elapsed, pool_params.ma_half_time))

        price_state.oracle_price = (
            price_state.last_price * (Decimal256.one() - alpha) + price_state.oracle_price * alpha
        )
        price_state.last_price_update = now

    def update_price(
        self,
        pool_params: PoolParams,
        now: int,
        total_lp: Decimal256,
        xs: Sequence[Decimal256],
        last_price: Decimal256,
    ) -> bool:
        """
        Update the oracle, profit counters and possibly the price scale.

        `xs` are the balances after the operation, already multiplied by the
        current price scale. Returns True if the price scale was moved.
        """
        if total_lp.is_zero():
            raise ZeroAmountError("Total LP supply must be positive")

        amp_gamma = self.get_amp_gamma(now)
        price_state = self.price_state

        self.update_oracle(pool_params, now)
        price_state.last_price = last_price

        d = calc_d(xs, amp_gamma)
        xcp = get_xcp(d, price_state.price_scale)
        virtual_price = xcp / total_lp

        if not price_state.virtual_price.is_zero():
            grown = price_state.xcp_profit * virtual_price / price_state.virtual_price
            if grown > price_state.xcp_profit:
                price_state.xcp_profit = grown
            elif virtual_price < price_state.virtual_price and not self.is_promoting(now):
                logger.debug(
                    "Virtual price dropped %s -> %s", price_state.virtual_price, virtual_price
                )

        price_state.xcp = xcp
        price_state.virtual_price = virtual_price

        norm = price_state.oracle_price.diff(price_state.price_scale) / price_state.price_scale
        scale_delta = max(pool_params.min_price_scale_delta, norm / 10)
        if norm < scale_delta:
            return False

        required_profit = price_state.xcp_profit * (Decimal256.one() + pool_params.repeg_profit_threshold)
        if virtual_price.is_zero():
            logger.debug("No virtual price to repeg against")
            return False

        price_scale_new = (
            price_state.price_scale * (norm - scale_delta) + price_state.oracle_price * scale_delta
        ) / norm
        new_xs = [xs[0], xs[1] * price_scale_new / price_state.price_scale]
        new_d = calc_d(new_xs, amp_gamma)
        new_xcp = get_xcp(new_d, price_scale_new)
        new_virtual_price = new_xcp / total_lp

        # A repeg may never eat into accumulated profit
        candidate_profit = price_state.xcp_profit * new_virtual_price / virtual_price
        if candidate_profit < required_profit:
            logger.debug(
                "Repeg rejected: price_scale %s -> %s would leave vp=%s",
                price_state.price_scale, price_scale_new, new_virtual_price,
            )
            return False

        logger.debug("Repeg accepted: price_scale %s -> %s", price_state.price_scale, price_scale_new)
        price_state.price_scale = price_scale_new
        price_state.xcp = new_xcp
        price_state.virtual_price = new_virtual_price
        return True


@dataclass(frozen=True)
class PoolAsset:
    """Asset metadata: denomination and decimal precision"""
    denom: str
    precision: int


@dataclass
class CumulativePrice:
    """Time-weighted price accumulator for one direction"""
    offer_asset: str
    ask_asset: str
    value: int = 0


@dataclass
class Config:
    """Everything a pool persists between calls"""
    assets: List[PoolAsset]
    pool_params: PoolParams
    pool_state: PoolState
    block_time_last: int
    cumulative_prices: List[CumulativePrice] = field(default_factory=list)
    liquidity_token: Optional[str] = None
    pair_type: PairType = PairType.CONCENTRATED

    def asset_index(self, denom: str) -> int:
        for index, asset in enumerate(self.assets):
            if asset.denom == denom:
                return index
        raise InvalidAssetError(f"Asset {denom} does not belong to this pool")

    def precision(self, index: int) -> int:
        return self.assets[index].precision
