#!/usr/bin/env python3
"""
Parameter definitions and scenarios

Default pool parameters and simulation settings used by the CLI and tests.
"""

from typing import Dict

from ..config.schemas import ConcentratedPoolParams, SimulationSettings


DEFAULT_POOL_PARAMS: Dict[str, object] = {
    "amp": "40",
    "gamma": "0.000145",
    "mid_fee": "0.0026",
    "out_fee": "0.0045",
    "fee_gamma": "0.00023",
    "repeg_profit_threshold": "0.000002",
    "min_price_scale_delta": "0.000146",
    "price_scale": "1",
    "ma_half_time": 600,
}


class SimulationConfig:
    """Simple simulation configuration"""

    def __init__(self):
        # Pool setup
        self.base_denom = "uusd"
        self.quote_denom = "uluna"
        self.base_precision = 6
        self.quote_precision = 6
        self.pool_params = dict(DEFAULT_POOL_PARAMS)
        self.start_time = 1_700_000_000

        # Market and arbitrage
        self.settings = SimulationSettings()

        # Share of swap fees sent to the maker fee address
        self.maker_fee_share = "0"

    def build_pool_params(self) -> ConcentratedPoolParams:
        params = dict(self.pool_params)
        params["price_scale"] = self.settings.initial_price
        return ConcentratedPoolParams(**params)


class PriceScenarios:
    """Preset market paths for the arbitrage simulation"""

    CALM = {
        "name": "Calm",
        "description": "Low volatility, no drift",
        "volatility": 0.002,
        "drift": 0.0,
    }

    TRENDING = {
        "name": "Trending",
        "description": "Steady upward drift",
        "volatility": 0.005,
        "drift": 0.001,
    }

    VOLATILE = {
        "name": "Volatile",
        "description": "High volatility random walk",
        "volatility": 0.03,
        "drift": 0.0,
    }

    FLASH_CRASH = {
        "name": "Flash_Crash",
        "description": "Calm market with a sudden 20% drop halfway through",
        "volatility": 0.002,
        "drift": 0.0,
        "shock": -0.2,
    }

    @classmethod
    def get(cls, name: str) -> Dict[str, object]:
        scenario = getattr(cls, name.upper(), None)
        if not isinstance(scenario, dict):
            raise KeyError(f"Unknown scenario: {name}")
        return scenario
