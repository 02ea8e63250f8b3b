"""Metrics and charts for simulation results"""

from .metrics import PoolMetricsCalculator
from .charts import PoolChartGenerator

__all__ = ["PoolMetricsCalculator", "PoolChartGenerator"]
