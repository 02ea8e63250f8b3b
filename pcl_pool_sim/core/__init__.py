"""Concentrated pool math, state and error types"""

from .errors import (
    PoolError, FixedPointError, ParamValidationError, ConvergenceError, ZeroAmountError,
    InvalidAssetError, InsufficientLiquidityError, MaxSpreadError, MinimumLiquidityError,
    PromotionError, ImbalancedWithdrawError, InstantiationError,
)
from .fixed_point import Decimal256, SignedDecimal256
from .math import calc_d, calc_y, get_xcp, half_float_pow
from .fees import compute_fee, calc_provide_fee, split_fee
from .state import AmpGamma, Config, CumulativePrice, PairType, PoolAsset, PoolParams, PoolState, PriceState
from .swap import SwapResult, compute_swap, assert_max_spread
from .liquidity import ProvideResult, compute_provide, compute_withdraw, get_share_in_assets
from .pool_types import simulate_pool_swap

__all__ = [
    # Errors
    "PoolError", "FixedPointError", "ParamValidationError", "ConvergenceError", "ZeroAmountError",
    "InvalidAssetError", "InsufficientLiquidityError", "MaxSpreadError", "MinimumLiquidityError",
    "PromotionError", "ImbalancedWithdrawError", "InstantiationError",

    # Math
    "Decimal256", "SignedDecimal256", "calc_d", "calc_y", "get_xcp", "half_float_pow",
    "compute_fee", "calc_provide_fee", "split_fee",

    # State
    "AmpGamma", "Config", "CumulativePrice", "PairType", "PoolAsset", "PoolParams", "PoolState", "PriceState",

    # Operations
    "SwapResult", "compute_swap", "assert_max_spread",
    "ProvideResult", "compute_provide", "compute_withdraw", "get_share_in_assets",
    "simulate_pool_swap",
]
