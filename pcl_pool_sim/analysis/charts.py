#!/usr/bin/env python3
"""
Pool Simulation Charts

Price tracking and profit charts for one simulation run.
"""

import logging
from pathlib import Path
from typing import List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

logger = logging.getLogger(__name__)


class PoolChartGenerator:
    """Generates the standard charts for a simulation run"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        plt.style.use("default")
        plt.rcParams.update({
            "figure.figsize": (12, 8),
            "font.size": 11,
            "axes.titlesize": 14,
            "axes.labelsize": 12,
            "legend.fontsize": 10,
        })

    def generate_charts(self, frame: pd.DataFrame, charts_dir: Path, name: str = "pool") -> List[Path]:
        """Write the price and profit charts and return their paths"""
        if frame.empty:
            logger.warning("No snapshots recorded, skipping charts")
            return []
        charts_dir.mkdir(parents=True, exist_ok=True)
        return [
            self._price_tracking_chart(frame, charts_dir / f"{name}_price_tracking.png"),
            self._profit_chart(frame, charts_dir / f"{name}_profit.png"),
        ]

    def _price_tracking_chart(self, frame: pd.DataFrame, path: Path) -> Path:
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(14, 10), sharex=True)

        ax1.plot(frame.index, frame["market_price"], label="Market price", linewidth=1.5)
        ax1.plot(frame.index, frame["oracle_price"], label="Oracle (EMA)", linewidth=1.2)
        ax1.plot(frame.index, frame["price_scale"], label="Price scale", linewidth=1.2, linestyle="--")
        repegs = frame[frame["repegged"]]
        ax1.scatter(repegs.index, repegs["price_scale"], s=12, color="red", label="Repeg", zorder=3)
        ax1.set_ylabel("Price (asset 0 per asset 1)")
        ax1.set_title("Price Scale Tracking")
        ax1.legend()
        ax1.grid(True, alpha=0.3)

        ax2.plot(frame.index, frame["tracking_error"] * 100, label="|price_scale / market - 1|")
        ax2.set_xlabel("Step")
        ax2.set_ylabel("Tracking error (%)")
        ax2.legend()
        ax2.grid(True, alpha=0.3)

        fig.tight_layout()
        fig.savefig(path, dpi=150)
        plt.close(fig)
        logger.info("Saved %s", path)
        return path

    def _profit_chart(self, frame: pd.DataFrame, path: Path) -> Path:
        fig, ax = plt.subplots(figsize=(14, 6))
        ax.plot(frame.index, frame["xcp_profit"], label="xcp_profit")
        ax.plot(frame.index, frame["virtual_price"] / frame["virtual_price"].iloc[0], label="Virtual price (normalised)")
        ax.set_xlabel("Step")
        ax.set_title("Pool Profit")
        ax.legend()
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        fig.savefig(path, dpi=150)
        plt.close(fig)
        logger.info("Saved %s", path)
        return path
