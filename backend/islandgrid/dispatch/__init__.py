"""Hourly dispatch engine module."""

from .accounting import Totals, accumulate, add_ens_by_category, add_ens_proportional
from .context import DispatchContext, HourOutcome
from .finalize import finalize_idle_and_burn, finalize_stopped
from .fleet import sorted_generators
from .per_bus import dead_bus_hour, dispatch_bus_hour
from .planner import DieselPlan, plan_diesel
from .pooled import dispatch_pooled_hour
from .reserve import apply_idle_reserve, apply_rotation_reserve

__all__ = [
    "Totals",
    "accumulate",
    "add_ens_by_category",
    "add_ens_proportional",
    "DispatchContext",
    "HourOutcome",
    "finalize_idle_and_burn",
    "finalize_stopped",
    "sorted_generators",
    "dead_bus_hour",
    "dispatch_bus_hour",
    "DieselPlan",
    "plan_diesel",
    "dispatch_pooled_hour",
    "apply_idle_reserve",
    "apply_rotation_reserve",
]
