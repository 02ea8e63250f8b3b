#!/usr/bin/env python3
"""
Pool Simulation Engine

Runs a single concentrated pool against a simulated market: seeds initial
liquidity, steps time forward along a price path and lets an arbitrageur
trade the pool toward the market. Records one snapshot per step.
"""

import logging
from typing import Dict, List, Optional

from ..core.consts import LP_TOKEN_PRECISION, MAX_ALLOWED_SLIPPAGE
from ..core.errors import MaxSpreadError
from ..core.fixed_point import Decimal256
from ..engine.config import SimulationConfig
from ..engine.pair import (
    instantiate_pool, provide_liquidity, query_config, query_lp_price, swap, withdraw_liquidity,
)
from .arbitrageur import Arbitrageur
from .price_path import apply_shock, generate_price_path

logger = logging.getLogger(__name__)


class PoolSimulationEngine:
    """Arbitrage-driven simulation of one pool"""

    def __init__(self, config: SimulationConfig):
        self.config = config
        settings = config.settings

        self.now = config.start_time
        self.pool = instantiate_pool(
            [(config.base_denom, config.base_precision), (config.quote_denom, config.quote_precision)],
            config.build_pool_params(),
            self.now,
        )
        self.balances: List[int] = [0, 0]
        self.total_share = 0
        self.provider_share = 0
        self.initial_deposit: List[int] = [0, 0]

        self.maker_fee_share = Decimal256.from_str(config.maker_fee_share)
        self.arbitrageur = Arbitrageur(min_profit=float(settings.min_profit))
        self.price_path = generate_price_path(
            float(settings.initial_price), settings.steps, settings.volatility, settings.drift, settings.seed
        )
        if settings.shock:
            shock_step = settings.shock_step if settings.shock_step is not None else settings.steps // 2
            self.price_path = apply_shock(self.price_path, shock_step, settings.shock)
            logger.info("Market shock of %+.1f%% at step %d", settings.shock * 100, shock_step)

        self.snapshots: List[Dict] = []
        self.maker_fees = [0, 0]
        self.repeg_count = 0
        self.failed_trades = 0

    def _seed_liquidity(self):
        """Initial balanced deposit at the starting price"""
        settings = self.config.settings
        deposit0 = settings.initial_liquidity * 10 ** self.config.base_precision
        price = Decimal256.from_str(settings.initial_price)
        deposit1 = (Decimal256.from_int(settings.initial_liquidity) / price).to_uint(self.config.quote_precision)

        response, self.pool = provide_liquidity(self.pool, self.balances, [deposit0, deposit1], 0, self.now)
        self.balances = [deposit0, deposit1]
        self.initial_deposit = [deposit0, deposit1]
        self.provider_share = response.mint_amount
        self.total_share = response.mint_amount + response.locked_amount
        logger.info("Seeded pool with %s, minted %d shares", self.balances, response.mint_amount)

    def _execute_arbitrage(self, market_price: float):
        trade = self.arbitrageur.find_trade(self.pool, self.balances, market_price, self.now)
        if trade is None:
            return None

        try:
            response, self.pool = swap(
                self.pool, self.balances, trade.offer_index, trade.offer_amount, self.total_share, self.now,
                max_spread=MAX_ALLOWED_SLIPPAGE, maker_fee_share=self.maker_fee_share,
            )
        except MaxSpreadError as e:
            logger.warning("Arbitrage trade rejected: %s", e)
            self.failed_trades += 1
            return None

        ask_index = 1 - trade.offer_index
        self.balances[trade.offer_index] += trade.offer_amount
        self.balances[ask_index] -= response.return_amount + response.maker_fee_amount
        self.maker_fees[ask_index] += response.maker_fee_amount
        if response.price_scale_moved:
            self.repeg_count += 1
        self.arbitrageur.record_trade(trade)
        return response

    def _record_snapshot(self, step: int, market_price: float, response) -> None:
        price_state = self.pool.pool_state.price_state
        self.snapshots.append({
            "step": step,
            "time": self.now,
            "market_price": market_price,
            "oracle_price": float(price_state.oracle_price),
            "price_scale": float(price_state.price_scale),
            "last_price": float(price_state.last_price),
            "xcp_profit": float(price_state.xcp_profit),
            "virtual_price": float(price_state.virtual_price),
            "lp_price": float(query_lp_price(self.pool)),
            "balance_0": self.balances[0] / 10 ** self.config.base_precision,
            "balance_1": self.balances[1] / 10 ** self.config.quote_precision,
            "traded": response is not None,
            "fee_paid": (
                response.commission_amount / 10 ** self.pool.precision(
                    self.pool.asset_index(response.ask_asset)
                ) if response is not None else 0.0
            ),
            "repegged": bool(response is not None and response.price_scale_moved),
        })

    def run_simulation(self, steps: Optional[int] = None) -> Dict:
        """Run the arbitrage simulation for the configured number of steps"""
        steps = steps or self.config.settings.steps
        steps = min(steps, len(self.price_path) - 1)

        if self.total_share == 0:
            self._seed_liquidity()
        self._record_snapshot(0, float(self.price_path[0]), None)

        for step in range(1, steps + 1):
            self.now += self.config.settings.step_seconds
            market_price = float(self.price_path[step])
            response = self._execute_arbitrage(market_price)
            self._record_snapshot(step, market_price, response)

            if step % 100 == 0:
                logger.info("Pool simulation step %d/%d", step, steps)

        return self._generate_results()

    def _generate_results(self) -> Dict:
        final_price = float(self.price_path[len(self.snapshots) - 1])
        refunds, _ = withdraw_liquidity(
            self.pool, self.balances, self.provider_share, self.total_share, self.now
        )
        base_scale = 10 ** self.config.base_precision
        quote_scale = 10 ** self.config.quote_precision
        lp_value = refunds[0] / base_scale + refunds[1] / quote_scale * final_price
        hodl_value = self.initial_deposit[0] / base_scale + self.initial_deposit[1] / quote_scale * final_price

        return {
            "snapshots": self.snapshots,
            "arbitrage": {
                "trades_executed": self.arbitrageur.trades_executed,
                "total_profit": self.arbitrageur.total_profit,
                "failed_trades": self.failed_trades,
            },
            "liquidity": {
                "provider_share": self.provider_share / 10 ** LP_TOKEN_PRECISION,
                "withdraw_value": lp_value,
                "hodl_value": hodl_value,
                "maker_fees": [self.maker_fees[0] / base_scale, self.maker_fees[1] / quote_scale],
            },
            "repeg_count": self.repeg_count,
            "final_state": {key: str(value) for key, value in query_config(self.pool, self.now).items()},
        }
