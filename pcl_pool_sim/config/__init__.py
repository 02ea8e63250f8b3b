"""Parameter schemas"""

from .schemas import (
    AssetSpec, ConcentratedPoolParams, PromoteParams, SimulationSettings, UpdatePoolParams
)

__all__ = [
    "AssetSpec", "ConcentratedPoolParams", "PromoteParams", "SimulationSettings", "UpdatePoolParams"
]
