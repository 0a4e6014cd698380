"""Catalogue of plant parameters that a sensitivity study may vary.

Each entry maps a factor name onto a :class:`SystemParameters` field
together with a default range.  Unit-cube samples are scaled linearly
into the range; integer fields (counts, repair hours) are rounded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from islandgrid.errors import ConfigurationError
from islandgrid.parameters import SystemParameters


@dataclass(frozen=True)
class TunableParameter:
    """One variable factor: a parameter field and its sampling range."""

    name: str
    field: str
    min_value: float
    max_value: float
    integer: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not self.max_value > self.min_value:
            raise ConfigurationError(
                f"max_value must be > min_value for factor {self.name}: "
                f"[{self.min_value}, {self.max_value}]"
            )

    def scale_from_unit(self, u: float) -> float:
        """Map ``u`` in [0, 1] (clipped) onto the factor range."""
        u = min(1.0, max(0.0, float(u)))
        value = self.min_value + u * (self.max_value - self.min_value)
        if self.integer:
            return float(int(round(value)))
        return value

    def with_range(self, min_value: float, max_value: float) -> TunableParameter:
        return replace(self, min_value=float(min_value), max_value=float(max_value))

    def apply(self, params: SystemParameters, value: float) -> SystemParameters:
        typed: Any = int(round(value)) if self.integer else float(value)
        return params.replace(**{self.field: typed})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "field": self.field,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "integer": self.integer,
            "description": self.description,
        }


def _catalogue(entries: Iterable[TunableParameter]) -> dict[str, TunableParameter]:
    return {p.name: p for p in entries}


TUNABLE_PARAMETERS: dict[str, TunableParameter] = _catalogue([
    # Failure rates (1/year)
    TunableParameter("WT_FAILURE_RATE", "wt_failure_rate_per_year", 0.485, 3.88,
                     description="Wind turbine failure rate"),
    TunableParameter("DG_FAILURE_RATE", "dg_failure_rate_per_year", 1.1875, 7.0,
                     description="Diesel generator failure rate"),
    TunableParameter("BT_FAILURE_RATE", "bt_failure_rate_per_year", 0.2, 3.0,
                     description="Battery failure rate"),
    TunableParameter("BUS_FAILURE_RATE", "bus_failure_rate_per_year", 0.005, 0.5,
                     description="Bus failure rate"),
    TunableParameter("BRK_FAILURE_RATE", "brk_failure_rate_per_year", 0.005, 0.3,
                     description="Tie breaker failure rate"),
    # Repair times (h)
    TunableParameter("WT_REPAIR_TIME", "wt_repair_time_hours", 25, 100, integer=True,
                     description="Wind turbine repair time"),
    TunableParameter("DG_REPAIR_TIME", "dg_repair_time_hours", 25, 100, integer=True,
                     description="Diesel generator repair time"),
    TunableParameter("BT_REPAIR_TIME", "bt_repair_time_hours", 25, 100, integer=True,
                     description="Battery repair time"),
    TunableParameter("BUS_REPAIR_TIME", "bus_repair_time_hours", 5, 20, integer=True,
                     description="Bus repair time"),
    TunableParameter("BRK_REPAIR_TIME", "brk_repair_time_hours", 5, 20, integer=True,
                     description="Tie breaker repair time"),
    # Generation fleet
    TunableParameter("WT_COUNT", "total_wind_turbine_count", 1, 20, integer=True,
                     description="Total wind turbines"),
    TunableParameter("WT_POWER", "wind_turbine_power_kw", 100.0, 500.0,
                     description="Wind turbine rating (kW)"),
    TunableParameter("DG_COUNT", "total_diesel_generator_count", 1, 20, integer=True,
                     description="Total diesel generators"),
    TunableParameter("DG_POWER", "diesel_generator_power_kw", 100.0, 800.0,
                     description="Diesel generator rating (kW)"),
    # Storage
    TunableParameter("BT_CAPACITY_PER_BUS", "battery_capacity_kwh_per_bus", 0.0, 2000.0,
                     description="Battery capacity per bus (kWh)"),
    TunableParameter("BT_MAX_CHARGE_CURRENT", "max_charge_current", 0.2, 1.0,
                     description="Charge C-rate limit"),
    TunableParameter("BT_MAX_DISCHARGE_CURRENT", "max_discharge_current", 0.5, 5.0,
                     description="Discharge C-rate limit"),
    TunableParameter("BT_NON_RESERVE_DISCHARGE_LVL", "non_reserve_discharge_level", 0.0, 0.8,
                     description="SOC floor for non-reserve discharge"),
])


def get_parameter(name: str) -> TunableParameter:
    try:
        return TUNABLE_PARAMETERS[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown tunable parameter {name!r}; "
            f"expected one of {sorted(TUNABLE_PARAMETERS)}"
        ) from None


def select_factors(
    names: Sequence[str],
    ranges: Mapping[str, tuple[float, float]] | None = None,
) -> list[TunableParameter]:
    """Catalogue entries for *names*, with optional range overrides.

    Raises
    ------
    ConfigurationError
        For an unknown or duplicated name, or an empty selection.
    """
    if not names:
        raise ConfigurationError("at least one factor is required")
    if len(set(names)) != len(names):
        raise ConfigurationError(f"duplicate factors in {list(names)}")

    ranges = ranges or {}
    factors = []
    for name in names:
        factor = get_parameter(name)
        if name in ranges:
            lo, hi = ranges[name]
            factor = factor.with_range(lo, hi)
        factors.append(factor)
    return factors


def apply_factors(
    base: SystemParameters,
    factors: Sequence[TunableParameter],
    unit_row: Sequence[float] | np.ndarray,
) -> tuple[SystemParameters, dict[str, float]]:
    """Scale one unit-cube row and apply it to *base*.

    Returns the new parameter set and the applied value per factor.
    """
    if len(unit_row) != len(factors):
        raise ConfigurationError(
            f"row has {len(unit_row)} values for {len(factors)} factors"
        )
    values: dict[str, float] = {}
    params = base
    for factor, u in zip(factors, unit_row):
        value = factor.scale_from_unit(u)
        params = factor.apply(params, value)
        values[factor.name] = value
    return params, values
