#!/usr/bin/env python3
"""
Pool State Machine Tests

Amp/gamma promotion, parameter validation, the dynamic fee model and the
oracle / profit-gated repeg logic.
"""

import pytest

from pcl_pool_sim.config.schemas import UpdatePoolParams
from pcl_pool_sim.core.consts import MIN_AMP_CHANGING_TIME
from pcl_pool_sim.core.errors import ParamValidationError, PromotionError
from pcl_pool_sim.core.fees import calc_provide_fee, compute_fee, split_fee
from pcl_pool_sim.core.fixed_point import Decimal256
from pcl_pool_sim.core.math import calc_d, get_xcp
from pcl_pool_sim.core.state import AmpGamma, PoolParams, PoolState, PriceState

NOW = 1_700_000_000
DAY = MIN_AMP_CHANGING_TIME


def dec(value) -> Decimal256:
    return Decimal256.coerce(value)


def make_params(**overrides) -> PoolParams:
    values = {
        "mid_fee": "0.0026",
        "out_fee": "0.0045",
        "fee_gamma": "0.00023",
        "repeg_profit_threshold": "0.000002",
        "min_price_scale_delta": "0.000146",
        "ma_half_time": 600,
    }
    values.update(overrides)
    params = PoolParams()
    params.update_params(UpdatePoolParams(**values))
    return params


def make_state(amp="40", gamma="0.000145", price_scale="1") -> PoolState:
    amp_gamma = AmpGamma.new(dec(amp), dec(gamma))
    return PoolState(
        initial=amp_gamma,
        future=amp_gamma,
        initial_time=NOW,
        future_time=NOW,
        price_state=PriceState(
            oracle_price=dec(price_scale),
            last_price=dec(price_scale),
            price_scale=dec(price_scale),
            last_price_update=NOW,
        ),
    )


class TestPromotion:
    """Stable -> Promoting -> Stable"""

    def setup_method(self):
        self.state = make_state()
        self.start = NOW + DAY

    def test_get_amp_gamma_when_stable(self):
        amp_gamma = self.state.get_amp_gamma(NOW + 10)
        assert amp_gamma.amp == dec(40)
        assert not self.state.is_promoting(NOW + 10)

    def test_linear_interpolation(self):
        self.state.promote_params(self.start, dec(44), dec("0.00015"), self.start + DAY)
        assert self.state.is_promoting(self.start + 1)

        assert self.state.get_amp_gamma(self.start).amp == dec(40)
        midpoint = self.state.get_amp_gamma(self.start + DAY // 2)
        assert midpoint.amp == dec(42)
        assert midpoint.gamma == dec("0.0001475")
        end = self.state.get_amp_gamma(self.start + DAY)
        assert end.amp == dec(44)
        assert end.gamma == dec("0.00015")
        # Clamped after the window
        assert self.state.get_amp_gamma(self.start + 10 * DAY).amp == dec(44)
        assert not self.state.is_promoting(self.start + DAY)

    def test_too_soon_after_creation(self):
        with pytest.raises(PromotionError):
            self.state.promote_params(NOW + 100, dec(44), dec("0.000145"), NOW + 100 + DAY)

    def test_window_too_short(self):
        with pytest.raises(PromotionError):
            self.state.promote_params(self.start, dec(44), dec("0.000145"), self.start + DAY - 1)

    def test_change_too_large(self):
        with pytest.raises(PromotionError):
            self.state.promote_params(self.start, dec(45), dec("0.000145"), self.start + DAY)
        with pytest.raises(PromotionError):
            self.state.promote_params(self.start, dec(40), dec("0.0002"), self.start + DAY)

    def test_out_of_bounds_rejected(self):
        state = make_state(amp="400000")
        with pytest.raises(ParamValidationError):
            state.promote_params(self.start, dec(410_000), dec("0.000145"), self.start + DAY)

    def test_already_promoting(self):
        self.state.promote_params(self.start, dec(44), dec("0.000145"), self.start + DAY)
        with pytest.raises(PromotionError):
            self.state.promote_params(self.start + 10, dec(42), dec("0.000145"), self.start + 2 * DAY)

    def test_stop_promotion_freezes_current_value(self):
        self.state.promote_params(self.start, dec(44), dec("0.000145"), self.start + DAY)
        self.state.stop_promotion(self.start + DAY // 2)

        assert not self.state.is_promoting(self.start + DAY // 2)
        assert self.state.get_amp_gamma(self.start + DAY).amp == dec(42)
        assert self.state.initial == self.state.future

    def test_stop_without_promotion(self):
        with pytest.raises(PromotionError):
            self.state.stop_promotion(self.start)

    def test_promote_after_stop_requires_wait(self):
        self.state.promote_params(self.start, dec(44), dec("0.000145"), self.start + DAY)
        self.state.stop_promotion(self.start + 100)
        with pytest.raises(PromotionError):
            self.state.promote_params(self.start + 200, dec(42), dec("0.000145"), self.start + 2 * DAY)


class TestPoolParams:
    """Fee and repeg parameter validation"""

    def test_valid_update(self):
        params = make_params()
        params.update_params(UpdatePoolParams(mid_fee="0.003", ma_half_time=0))
        assert params.mid_fee == dec("0.003")
        assert params.out_fee == dec("0.0045")
        assert params.ma_half_time == 0

    @pytest.mark.parametrize("field, value", [
        ("mid_fee", "0.0001"),
        ("out_fee", "0.6"),
        ("fee_gamma", "0.5"),
        ("repeg_profit_threshold", "0.02"),
        ("min_price_scale_delta", "2"),
    ])
    def test_out_of_range_rejected(self, field, value):
        params = make_params()
        with pytest.raises(ParamValidationError):
            params.update_params(UpdatePoolParams(**{field: value}))

    def test_out_fee_below_mid_fee_rejected(self):
        params = make_params()
        with pytest.raises(ParamValidationError):
            params.update_params(UpdatePoolParams(out_fee="0.002"))
        # Nothing was applied
        assert params.out_fee == dec("0.0045")

    def test_half_time_too_long(self):
        params = make_params()
        with pytest.raises(ParamValidationError):
            params.update_params(UpdatePoolParams(ma_half_time=8 * 86400))


class TestFeeModel:
    """mid_fee + (out_fee - mid_fee) * g"""

    def setup_method(self):
        self.params = make_params()

    def test_balanced_pool_charges_mid_fee(self):
        assert compute_fee([dec(1000), dec(1000)], self.params) == self.params.mid_fee

    def test_fee_grows_with_imbalance(self):
        fees = [
            compute_fee([dec(1000), dec(other)], self.params)
            for other in (1000, 990, 900, 500)
        ]
        assert fees == sorted(fees)
        assert all(self.params.mid_fee <= fee <= self.params.out_fee for fee in fees)

    def test_extreme_imbalance_charges_out_fee(self):
        assert compute_fee([dec(1), dec(1_000_000)], self.params) == self.params.out_fee

    def test_provide_fee_zero_for_pool_ratio(self):
        xs = [dec(3000), dec(1000)]
        assert calc_provide_fee([dec(300), dec(100)], xs, self.params).is_zero()
        assert not calc_provide_fee([dec(400), dec(0)], xs, self.params).is_zero()

    def test_split_fee(self):
        maker, pool = split_fee(dec(10), dec("0.3"))
        assert maker == dec(3)
        assert pool == dec(7)


class TestPriceUpdate:
    """EMA oracle, xcp_profit and profit-gated repegging"""

    def setup_method(self):
        self.state = make_state()
        self.xs = [dec(100_000), dec(100_000)]
        # Pretend a previous operation recorded this virtual price
        self.state.price_state.xcp_profit = dec(1)
        self.state.price_state.virtual_price = dec(1)

    def test_oracle_ema(self):
        params = make_params()
        self.state.price_state.last_price = dec("1.2")
        self.state.update_oracle(params, NOW + 600)
        assert self.state.price_state.oracle_price == dec("1.1")
        assert self.state.price_state.last_price_update == NOW + 600

    def test_oracle_snaps_with_zero_half_time(self):
        params = make_params(ma_half_time=0)
        self.state.price_state.last_price = dec("1.2")
        self.state.update_oracle(params, NOW + 1)
        assert self.state.price_state.oracle_price == dec("1.2")

    def test_oracle_same_block_unchanged(self):
        params = make_params()
        self.state.price_state.last_price = dec("1.2")
        self.state.update_oracle(params, NOW)
        assert self.state.price_state.oracle_price == dec(1)

    def pre_move_virtual_price(self, xs, total_lp):
        amp_gamma = self.state.get_amp_gamma(NOW + 10)
        return get_xcp(calc_d(xs, amp_gamma), dec(1)) / total_lp

    def test_repeg_accepted_with_profit(self):
        params = make_params(ma_half_time=0, repeg_profit_threshold="0")
        self.state.price_state.last_price = dec("1.1")
        pre_move_vp = self.pre_move_virtual_price(self.xs, dec(90_000))

        moved = self.state.update_price(params, NOW + 10, dec(90_000), self.xs, dec("1.1"))

        assert moved
        price_state = self.state.price_state
        assert price_state.price_scale == dec("1.01")
        assert price_state.oracle_price == dec("1.1")
        assert price_state.xcp_profit > dec(1)
        # Rescaling a balanced pool towards the oracle raises xcp
        assert price_state.virtual_price >= pre_move_vp, "Repeg lowered the virtual price"
        assert price_state.virtual_price >= price_state.xcp_profit

    def test_repeg_rejected_when_virtual_price_would_drop(self):
        params = make_params(ma_half_time=0, repeg_profit_threshold="0")
        self.state.price_state.last_price = dec("1.1")
        xs = [dec(120_000), dec(80_000)]
        pre_move_vp = self.pre_move_virtual_price(xs, dec(90_000))

        moved = self.state.update_price(params, NOW + 10, dec(90_000), xs, dec("1.1"))

        price_state = self.state.price_state
        assert not moved, "Repeg accepted although it would lower the virtual price"
        assert price_state.price_scale == dec(1)
        assert price_state.virtual_price == pre_move_vp
        assert price_state.virtual_price == price_state.xcp_profit

    def test_rejected_repeg_still_updates_oracle(self):
        params = make_params(ma_half_time=600)
        self.state.price_state.last_price = dec("1.2")
        xs = [dec(120_000), dec(80_000)]

        moved = self.state.update_price(params, NOW + 600, dec(100_000), xs, dec("1.2"))

        price_state = self.state.price_state
        assert not moved
        assert price_state.oracle_price == dec("1.1")
        assert price_state.price_scale == dec(1)
        assert price_state.last_price == dec("1.2")
        assert price_state.last_price_update == NOW + 600

    @pytest.mark.parametrize("balances", [
        (100_000, 100_000),
        (120_000, 80_000),
        (90_000, 110_000),
        (104_880, 95_346),
    ])
    def test_repeg_never_lowers_virtual_price(self, balances):
        params = make_params(ma_half_time=0)
        self.state.price_state.last_price = dec("1.1")
        xs = [dec(x) for x in balances]
        pre_move_vp = self.pre_move_virtual_price(xs, dec(90_000))

        moved = self.state.update_price(params, NOW + 10, dec(90_000), xs, dec("1.1"))

        price_state = self.state.price_state
        if moved:
            assert price_state.virtual_price >= pre_move_vp * (dec(1) + params.repeg_profit_threshold)
        else:
            assert price_state.virtual_price == pre_move_vp
            assert price_state.price_scale == dec(1)

    def test_repeg_rejected_by_threshold(self):
        params = make_params(ma_half_time=0, repeg_profit_threshold="0.01")
        self.state.price_state.last_price = dec("1.1")

        moved = self.state.update_price(params, NOW + 10, dec(99_000), self.xs, dec("1.1"))

        assert not moved
        assert self.state.price_state.price_scale == dec(1)
        assert self.state.price_state.xcp_profit > dec(1)

    def test_no_repeg_when_oracle_matches(self):
        params = make_params(ma_half_time=0)
        moved = self.state.update_price(params, NOW + 10, dec(90_000), self.xs, dec(1))
        assert not moved

    def test_xcp_profit_never_decreases(self):
        params = make_params()
        self.state.update_price(params, NOW + 10, dec(95_000), self.xs, dec(1))
        profit = self.state.price_state.xcp_profit
        # Larger supply for the same balances lowers the virtual price
        self.state.update_price(params, NOW + 20, dec(120_000), self.xs, dec(1))
        assert self.state.price_state.xcp_profit == profit
