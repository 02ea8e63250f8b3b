"""Pool entry points and simulation defaults"""

from .pair import (
    PendingInstantiation, SwapResponse, ProvideResponse, SimulationResponse,
    begin_instantiate, complete_instantiate, instantiate_pool,
    swap, provide_liquidity, withdraw_liquidity,
    promote_params, stop_promotion, update_pool_params, accumulate_prices,
    simulate_swap, query_pool, query_share, query_cumulative_prices, query_compute_d, query_lp_price, query_config,
)
from .config import SimulationConfig, PriceScenarios, DEFAULT_POOL_PARAMS

__all__ = [
    "PendingInstantiation", "SwapResponse", "ProvideResponse", "SimulationResponse",
    "begin_instantiate", "complete_instantiate", "instantiate_pool",
    "swap", "provide_liquidity", "withdraw_liquidity",
    "promote_params", "stop_promotion", "update_pool_params", "accumulate_prices",
    "simulate_swap", "query_pool", "query_share", "query_cumulative_prices", "query_compute_d", "query_lp_price",
    "query_config", "SimulationConfig", "PriceScenarios", "DEFAULT_POOL_PARAMS",
]
