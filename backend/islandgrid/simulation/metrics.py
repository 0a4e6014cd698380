"""Whole-horizon result of one simulation run."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from islandgrid.constants import EPSILON

from .trace import HourRecord


@dataclass(frozen=True)
class SimulationMetrics:
    """Energy totals (kWh), fuel (L), run-hours and event counters.

    ``trace`` holds one :class:`HourRecord` per hour when the run was
    traced, otherwise ``None``.
    """

    hours: int
    load_kwh: float
    ens_kwh: float
    ens_cat1_kwh: float
    ens_cat2_kwh: float
    wre_kwh: float
    wt_to_load_kwh: float
    dg_to_load_kwh: float
    bt_to_load_kwh: float
    fuel_liters: float
    total_moto_hours: float

    bus_failures: int = 0
    diesel_failures: int = 0
    wind_turbine_failures: int = 0
    battery_failures: int = 0
    breaker_failures: int = 0
    room_failures: int = 0
    battery_replacements: int = 0
    diesel_maintenances: int = 0

    trace: list[HourRecord] | None = field(default=None, repr=False, compare=False)

    def share_of_load(self, value_kwh: float) -> float:
        """*value_kwh* as a percentage of total load (0 for no load)."""
        if self.load_kwh <= EPSILON:
            return 0.0
        return 100.0 * value_kwh / self.load_kwh

    @property
    def ens_cat3_kwh(self) -> float:
        return max(0.0, self.ens_kwh - self.ens_cat1_kwh - self.ens_cat2_kwh)

    def to_dict(self) -> dict[str, Any]:
        """Scalar fields only; the trace is exported separately."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "trace"}
