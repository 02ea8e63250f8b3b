#!/usr/bin/env python3
"""
Pool Simulation Metrics

Turns simulation snapshots into a DataFrame and summarises how well the
pool tracked the market and what liquidity providers earned.
"""

from typing import Dict

import numpy as np
import pandas as pd


class PoolMetricsCalculator:
    """Summary statistics over one simulation run"""

    def __init__(self, results: Dict):
        self.results = results
        self.frame = self.snapshots_to_frame(results)

    @staticmethod
    def snapshots_to_frame(results: Dict) -> pd.DataFrame:
        frame = pd.DataFrame(results.get("snapshots", []))
        if frame.empty:
            return frame
        frame["tracking_error"] = (frame["price_scale"] / frame["market_price"] - 1.0).abs()
        frame["oracle_error"] = (frame["oracle_price"] / frame["market_price"] - 1.0).abs()
        return frame.set_index("step")

    def calculate_tracking_metrics(self) -> Dict[str, float]:
        """How closely price_scale and the oracle followed the market"""
        if self.frame.empty:
            return {}
        return {
            "mean_tracking_error": float(self.frame["tracking_error"].mean()),
            "max_tracking_error": float(self.frame["tracking_error"].max()),
            "mean_oracle_error": float(self.frame["oracle_error"].mean()),
            "repeg_count": int(self.frame["repegged"].sum()),
        }

    def calculate_lp_metrics(self) -> Dict[str, float]:
        """Profit counters and LP value against holding the initial deposit"""
        if self.frame.empty:
            return {}
        liquidity = self.results.get("liquidity", {})
        hodl_value = liquidity.get("hodl_value", 0.0)
        withdraw_value = liquidity.get("withdraw_value", 0.0)
        lp_prices = self.frame["lp_price"].to_numpy()
        log_returns = np.diff(np.log(lp_prices[lp_prices > 0]))

        return {
            "final_xcp_profit": float(self.frame["xcp_profit"].iloc[-1]),
            "final_virtual_price": float(self.frame["virtual_price"].iloc[-1]),
            "total_fees_paid": float(self.frame["fee_paid"].sum()),
            "lp_vs_hodl": withdraw_value / hodl_value - 1.0 if hodl_value > 0 else 0.0,
            "lp_price_volatility": float(np.std(log_returns)) if len(log_returns) else 0.0,
        }

    def calculate_summary(self) -> Dict[str, Dict]:
        return {
            "tracking": self.calculate_tracking_metrics(),
            "liquidity": self.calculate_lp_metrics(),
            "arbitrage": dict(self.results.get("arbitrage", {})),
        }
