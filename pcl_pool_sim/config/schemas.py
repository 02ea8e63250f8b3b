#!/usr/bin/env python3
"""
Configuration schemas for the concentrated pool.

Pydantic models for every externally supplied parameter record. They coerce
decimal strings and integers into Decimal256 and check basic shape; range
checks against the pool limits happen in the state layer so that they raise
the pool's own error types.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.errors import FixedPointError
from ..core.fixed_point import Decimal256


def _to_decimal(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float):
        # Floats are rejected to keep every parameter exact
        raise ValueError("Use a decimal string instead of a float")
    try:
        return Decimal256.coerce(value)
    except (TypeError, FixedPointError) as exc:
        raise ValueError(str(exc)) from exc


class _DecimalModel(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class ConcentratedPoolParams(_DecimalModel):
    """Pool instantiation parameters"""
    amp: Decimal256
    gamma: Decimal256
    mid_fee: Decimal256
    out_fee: Decimal256
    fee_gamma: Decimal256
    repeg_profit_threshold: Decimal256
    min_price_scale_delta: Decimal256
    price_scale: Decimal256
    ma_half_time: int = Field(ge=0, description="EMA half-life in seconds")

    @field_validator(
        "amp", "gamma", "mid_fee", "out_fee", "fee_gamma", "repeg_profit_threshold",
        "min_price_scale_delta", "price_scale", mode="before",
    )
    @classmethod
    def coerce_decimal(cls, v):
        return _to_decimal(v)


class UpdatePoolParams(_DecimalModel):
    """Partial update of fee and repeg parameters; None keeps the current value"""
    mid_fee: Optional[Decimal256] = None
    out_fee: Optional[Decimal256] = None
    fee_gamma: Optional[Decimal256] = None
    repeg_profit_threshold: Optional[Decimal256] = None
    min_price_scale_delta: Optional[Decimal256] = None
    ma_half_time: Optional[int] = Field(default=None, ge=0)

    @field_validator(
        "mid_fee", "out_fee", "fee_gamma", "repeg_profit_threshold", "min_price_scale_delta",
        mode="before",
    )
    @classmethod
    def coerce_decimal(cls, v):
        return _to_decimal(v)


class PromoteParams(_DecimalModel):
    """Amp/gamma promotion request"""
    next_amp: Decimal256
    next_gamma: Decimal256
    future_time: int = Field(ge=0, description="Unix timestamp when the promotion completes")

    @field_validator("next_amp", "next_gamma", mode="before")
    @classmethod
    def coerce_decimal(cls, v):
        return _to_decimal(v)


class AssetSpec(BaseModel):
    """One side of the pair"""
    denom: str = Field(min_length=1)
    precision: int = Field(ge=0, le=18)


class SimulationSettings(BaseModel):
    """Arbitrage simulation run parameters"""
    steps: int = Field(gt=0, default=500, description="Number of simulation steps")
    step_seconds: int = Field(gt=0, default=600, description="Seconds between steps")
    initial_price: str = Field(default="1", description="Initial market price (asset 0 per asset 1)")
    volatility: float = Field(ge=0, le=1, default=0.01, description="Per-step log-price volatility")
    drift: float = Field(default=0.0, description="Per-step log-price drift")
    initial_liquidity: int = Field(gt=0, default=1_000_000, description="Asset 0 deposit in whole tokens")
    seed: Optional[int] = Field(default=None, description="Random seed for the price path")
    min_profit: str = Field(default="0", description="Minimum arbitrage profit in asset 0 units")
    shock: float = Field(gt=-1, default=0.0, description="One-off relative market move, e.g. -0.2 for a 20% drop")
    shock_step: Optional[int] = Field(default=None, ge=0, description="Step at which the shock hits; defaults to mid-run")

    @model_validator(mode="after")
    def check_shock_step(self):
        if self.shock_step is not None and self.shock_step > self.steps:
            raise ValueError(f"shock_step {self.shock_step} is beyond the last step {self.steps}")
        return self
