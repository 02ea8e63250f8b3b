"""
Concentrated Liquidity Pool Simulation

Pricing core of a two-asset concentrated liquidity pool: fixed-point
invariant solver, amp/gamma promotion, EMA oracle with profit-gated
repegging, dynamic fees, swaps and liquidity, plus an arbitrage simulation.
"""

__version__ = "1.0.0"

# Core components
from .core.fixed_point import Decimal256
from .core.state import Config, PairType, PoolParams, PoolState, PriceState
from .core.errors import PoolError

# Configuration
from .config.schemas import ConcentratedPoolParams, UpdatePoolParams, PromoteParams, AssetSpec

# Pool operations
from .engine.pair import (
    instantiate_pool, swap, provide_liquidity, withdraw_liquidity,
    promote_params, stop_promotion, update_pool_params, simulate_swap,
)

__all__ = [
    # Core
    "Decimal256", "Config", "PairType", "PoolParams", "PoolState", "PriceState", "PoolError",

    # Configuration
    "ConcentratedPoolParams", "UpdatePoolParams", "PromoteParams", "AssetSpec",

    # Operations
    "instantiate_pool", "swap", "provide_liquidity", "withdraw_liquidity",
    "promote_params", "stop_promotion", "update_pool_params", "simulate_swap",
]
