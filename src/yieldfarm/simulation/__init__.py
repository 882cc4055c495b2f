"""Scenario simulation over in-memory collaborators."""

from .collaborators import AccruingStrategy, FixedRateRouter, StaticPriceOracle
from .runner import LedgerSnapshot, SimulationResult, SimulationRunner
from .scenario import add_farm, build_protocol

__all__ = [
    "AccruingStrategy",
    "FixedRateRouter",
    "LedgerSnapshot",
    "SimulationResult",
    "SimulationRunner",
    "StaticPriceOracle",
    "add_farm",
    "build_protocol",
]
