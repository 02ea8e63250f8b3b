#!/usr/bin/env python3
"""
Pool Kind Dispatch Tests

Constant-product and StableSwap quotes and the PairType dispatcher.
"""

import pytest

from pcl_pool_sim.core.errors import ParamValidationError
from pcl_pool_sim.core.fixed_point import Decimal256
from pcl_pool_sim.core.pool_types import simulate_pool_swap, stable_d, xyk_swap
from pcl_pool_sim.core.state import PairType
from pcl_pool_sim.engine.config import DEFAULT_POOL_PARAMS
from pcl_pool_sim.config.schemas import ConcentratedPoolParams
from pcl_pool_sim.engine.pair import instantiate_pool

NOW = 1_700_000_000


def dec(value) -> Decimal256:
    return Decimal256.coerce(value)


class TestPoolTypes:
    """Quotes for every supported pair type"""

    def setup_method(self):
        self.pools = [dec(1000), dec(1000)]
        self.fee = dec("0.003")

    def test_xyk_quote(self):
        result = xyk_swap(self.pools, 0, dec(100), self.fee)
        expected = dec(1000) * dec(100) / dec(1100)
        assert result.dy + result.total_fee == expected
        assert result.total_fee == expected * self.fee
        assert result.spread_fee == dec(100) - expected

    def test_stable_d_balanced(self):
        assert stable_d(self.pools, dec(100)).diff(dec(2000)) <= dec("0.000001")

    def test_stable_beats_constant_product(self):
        stable = simulate_pool_swap(PairType.STABLE, self.pools, 0, dec(100), fee_rate=self.fee, amp=dec(100))
        xyk = simulate_pool_swap(PairType.XYK, self.pools, 0, dec(100), fee_rate=self.fee)
        assert xyk.dy < stable.dy < dec(100)

    def test_concentrated_dispatch(self):
        config = instantiate_pool([("uusd", 6), ("uluna", 6)], ConcentratedPoolParams(**DEFAULT_POOL_PARAMS), NOW)
        result = simulate_pool_swap(PairType.CONCENTRATED, self.pools, 0, dec(10), config=config, now=NOW)
        assert dec(9) < result.dy < dec(10)

    def test_missing_parameters(self):
        with pytest.raises(ParamValidationError):
            simulate_pool_swap(PairType.XYK, self.pools, 0, dec(10))
        with pytest.raises(ParamValidationError):
            simulate_pool_swap(PairType.STABLE, self.pools, 0, dec(10), fee_rate=self.fee)
        with pytest.raises(ParamValidationError):
            simulate_pool_swap(PairType.CONCENTRATED, self.pools, 0, dec(10))
