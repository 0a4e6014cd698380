"""Hourly dispatch and reliability engine for islanded wind/diesel/battery plants."""

from islandgrid.errors import ConfigurationError
from islandgrid.parameters import BusSystemType, SimInput, SimulationConfig, SystemParameters
from islandgrid.simulation import SimulationMetrics, simulate

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "BusSystemType",
    "SimInput",
    "SimulationConfig",
    "SystemParameters",
    "SimulationMetrics",
    "simulate",
]
