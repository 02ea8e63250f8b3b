#!/usr/bin/env python3
"""
Arbitrage Agent

Trades the pool toward the external market price whenever a trade is
profitable after fees. Profit is measured in asset 0 at the market price.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.errors import PoolError
from ..core.state import Config
from ..engine.pair import simulate_swap

logger = logging.getLogger(__name__)

# Golden ratio step used by the trade size search
_INV_PHI = (5 ** 0.5 - 1) / 2


@dataclass(frozen=True)
class ArbitrageTrade:
    offer_index: int
    offer_amount: int
    expected_return: int
    expected_profit: float


class Arbitrageur:
    """Single arbitrage agent with unlimited inventory"""

    def __init__(
        self,
        agent_id: str = "arbitrageur",
        min_profit: float = 0.0,
        max_pool_fraction: float = 0.5,
        search_iterations: int = 40,
    ):
        self.agent_id = agent_id
        self.min_profit = min_profit
        self.max_pool_fraction = max_pool_fraction
        self.search_iterations = search_iterations

        # State tracking
        self.trades_executed = 0
        self.total_profit = 0.0

    def _profit(
        self, config: Config, balances: Sequence[int], offer_index: int, amount: int,
        market_price: float, now: int,
    ) -> Optional[tuple]:
        if amount <= 0:
            return None
        try:
            quote = simulate_swap(config, balances, offer_index, amount, now)
        except PoolError:
            return None

        scale_offer = 10 ** config.precision(offer_index)
        scale_ask = 10 ** config.precision(1 - offer_index)
        if offer_index == 0:
            profit = quote.return_amount / scale_ask * market_price - amount / scale_offer
        else:
            profit = quote.return_amount / scale_ask - amount / scale_offer * market_price
        return profit, quote.return_amount

    def find_trade(
        self, config: Config, balances: Sequence[int], market_price: float, now: int
    ) -> Optional[ArbitrageTrade]:
        """Best profitable trade against the pool, or None"""
        best = None
        for offer_index in (0, 1):
            probe = max(1, balances[offer_index] // 1_000_000)
            probe_result = self._profit(config, balances, offer_index, probe, market_price, now)
            if probe_result is None or probe_result[0] <= 0:
                continue

            low, high = float(probe), float(balances[offer_index]) * self.max_pool_fraction
            for _ in range(self.search_iterations):
                if high - low < 1:
                    break
                left = high - (high - low) * _INV_PHI
                right = low + (high - low) * _INV_PHI
                left_result = self._profit(config, balances, offer_index, int(left), market_price, now)
                right_result = self._profit(config, balances, offer_index, int(right), market_price, now)
                left_profit = left_result[0] if left_result else float("-inf")
                right_profit = right_result[0] if right_result else float("-inf")
                if left_profit < right_profit:
                    low = left
                else:
                    high = right

            amount = int((low + high) / 2)
            result = self._profit(config, balances, offer_index, amount, market_price, now)
            if result is None or result[0] <= self.min_profit:
                continue
            if best is None or result[0] > best.expected_profit:
                best = ArbitrageTrade(
                    offer_index=offer_index,
                    offer_amount=amount,
                    expected_return=result[1],
                    expected_profit=result[0],
                )
        return best

    def record_trade(self, trade: ArbitrageTrade) -> None:
        self.trades_executed += 1
        self.total_profit += trade.expected_profit
        logger.debug(
            "%s offered %d of asset %d for %d (profit %.6f)",
            self.agent_id, trade.offer_amount, trade.offer_index, trade.expected_return, trade.expected_profit,
        )
