"""Single-run simulation engine module."""

from .metrics import SimulationMetrics
from .runner import simulate
from .trace import BusHourRecord, DieselSnapshot, HourRecord

__all__ = [
    "SimulationMetrics",
    "simulate",
    "BusHourRecord",
    "DieselSnapshot",
    "HourRecord",
]
