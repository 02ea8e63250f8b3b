#!/usr/bin/env python3
"""
Pool Error Taxonomy

Every failure raised by the pool core derives from PoolError so callers can
reject the whole operation with a single except clause.
"""


class PoolError(Exception):
    """Base class for all pool failures"""


class FixedPointError(PoolError, ArithmeticError):
    """Overflow, underflow or division by zero in fixed-point math"""


class ParamValidationError(PoolError, ValueError):
    """A parameter is outside of its allowed range"""

    def __init__(self, name: str, value, bounds: str = ""):
        self.name = name
        self.value = value
        self.bounds = bounds
        message = f"Invalid {name}: {value}"
        if bounds:
            message += f" (allowed {bounds})"
        super().__init__(message)


class ConvergenceError(PoolError):
    """Newton's method did not converge within MAX_ITER iterations"""


class ZeroAmountError(PoolError, ValueError):
    """Operation with a zero amount"""


class InvalidAssetError(PoolError, ValueError):
    """Asset is not part of this pool"""


class InsufficientLiquidityError(PoolError):
    """Pool cannot cover the requested output"""


class MaxSpreadError(PoolError):
    """Operation exceeds the allowed slippage"""


class MinimumLiquidityError(PoolError):
    """First deposit is too small to cover the locked minimum liquidity"""


class PromotionError(PoolError):
    """Illegal amp/gamma promotion request"""


class ImbalancedWithdrawError(PoolError):
    """Imbalanced withdraw is currently disabled"""


class InstantiationError(PoolError):
    """Pool instantiation was not completed correctly"""
