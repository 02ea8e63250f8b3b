"""Arbitrage simulation over a concentrated pool"""

from .price_path import generate_price_path, apply_shock
from .arbitrageur import Arbitrageur, ArbitrageTrade
from .engine import PoolSimulationEngine

__all__ = ["generate_price_path", "apply_shock", "Arbitrageur", "ArbitrageTrade", "PoolSimulationEngine"]
