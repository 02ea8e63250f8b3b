#!/usr/bin/env python3
"""
Market Price Paths

Geometric random walk of the external market price used to drive arbitrage.
"""

from typing import Optional

import numpy as np


def generate_price_path(
    initial_price: float,
    steps: int,
    volatility: float,
    drift: float = 0.0,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Return `steps + 1` prices starting at `initial_price`"""
    if initial_price <= 0:
        raise ValueError("Initial price must be positive")
    rng = np.random.default_rng(seed)
    log_returns = drift - 0.5 * volatility ** 2 + volatility * rng.standard_normal(steps)
    path = initial_price * np.exp(np.concatenate(([0.0], np.cumsum(log_returns))))
    return path


def apply_shock(path: np.ndarray, at_step: int, shock: float) -> np.ndarray:
    """Multiply every price from `at_step` on by (1 + shock)"""
    shocked = path.copy()
    shocked[at_step:] *= 1.0 + shock
    return shocked
