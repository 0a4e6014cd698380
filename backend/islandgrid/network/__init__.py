"""Plant network engine module."""

from .failure_step import NetworkState, step_equipment, step_network
from .load_transfer import effective_bus_loads, should_close_tie_breaker
from .topology import Breaker, Bus, Plant, SwitchgearRoom, build_plant

__all__ = [
    "NetworkState",
    "step_equipment",
    "step_network",
    "effective_bus_loads",
    "should_close_tie_breaker",
    "Breaker",
    "Bus",
    "Plant",
    "SwitchgearRoom",
    "build_plant",
]
