"""Immutable inputs of a single simulation run.

``SystemParameters`` describes the plant (topology, equipment counts and
ratings, reliability data, battery limits), ``SimulationConfig`` the
policy switches, and ``SimInput`` bundles both with the hourly wind and
load series.  All three validate in ``__post_init__`` and raise
:class:`~islandgrid.errors.ConfigurationError` before any hour is run.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from islandgrid.constants import DG_START_DELAY_HOURS, EPSILON
from islandgrid.errors import ConfigurationError


class BusSystemType(str, enum.Enum):
    """Busbar arrangement of the plant."""

    SINGLE_NOT_SECTIONAL_BUS = "single_not_sectional_bus"
    SINGLE_SECTIONAL_BUS = "single_sectional_bus"
    DOUBLE_BUS = "double_bus"

    @property
    def bus_count(self) -> int:
        return 1 if self is BusSystemType.SINGLE_NOT_SECTIONAL_BUS else 2


# ======================================================================
# Plant parameters
# ======================================================================

@dataclass(frozen=True)
class SystemParameters:
    """Plant description.

    Equipment counts are plant totals; the topology builder splits them
    evenly over the buses (integer division).  Failure rates are in
    events per year of work, repair times in hours.  Battery C-rates are
    multiples of capacity per hour.
    """

    bus_system_type: BusSystemType = BusSystemType.DOUBLE_BUS

    # Reliability category shares of the load.
    first_cat: float = 0.1
    second_cat: float = 0.3
    third_cat: float = 0.6

    total_wind_turbine_count: int = 8
    wind_turbine_power_kw: float = 330.0
    total_diesel_generator_count: int = 8
    diesel_generator_power_kw: float = 315.0

    battery_capacity_kwh_per_bus: float = 336.5
    max_charge_current: float = 1.0
    max_discharge_current: float = 2.0
    non_reserve_discharge_level: float = 0.8

    wt_failure_rate_per_year: float = 1.94
    wt_repair_time_hours: int = 46
    dg_failure_rate_per_year: float = 4.75
    dg_repair_time_hours: int = 50
    bt_failure_rate_per_year: float = 0.575
    bt_repair_time_hours: int = 44
    bus_failure_rate_per_year: float = 0.015
    bus_repair_time_hours: int = 12
    brk_failure_rate_per_year: float = 0.15
    brk_repair_time_hours: int = 10

    # Common-cause (switchgear room) model.  An explicit room failure rate
    # wins; otherwise the room rate is bus_rate * beta.
    switchgear_room_failure_rate_per_year: float = 0.0
    switchgear_room_repair_time_hours: int = 46
    bus_ccf_beta_sectional: float = 0.2
    bus_ccf_beta_double: float = 0.05

    def __post_init__(self) -> None:
        if not isinstance(self.bus_system_type, BusSystemType):
            try:
                object.__setattr__(self, "bus_system_type", BusSystemType(self.bus_system_type))
            except ValueError as exc:
                raise ConfigurationError(
                    f"unknown bus_system_type {self.bus_system_type!r}"
                ) from exc

        for name in ("first_cat", "second_cat", "third_cat"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if self.first_cat + self.second_cat > 1.0 + EPSILON:
            raise ConfigurationError(
                "first_cat + second_cat must not exceed 1, got "
                f"{self.first_cat + self.second_cat}"
            )

        for name in ("total_wind_turbine_count", "total_diesel_generator_count"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.total_diesel_generator_count > 0 and self.diesel_generator_power_kw <= 0:
            raise ConfigurationError(
                f"diesel_generator_power_kw must be > 0, got {self.diesel_generator_power_kw}"
            )
        if self.wind_turbine_power_kw < 0:
            raise ConfigurationError(
                f"wind_turbine_power_kw must be >= 0, got {self.wind_turbine_power_kw}"
            )
        if self.battery_capacity_kwh_per_bus < 0:
            raise ConfigurationError(
                "battery_capacity_kwh_per_bus must be >= 0, got "
                f"{self.battery_capacity_kwh_per_bus}"
            )
        if self.max_charge_current < 0 or self.max_discharge_current < 0:
            raise ConfigurationError("battery C-rate limits must be >= 0")

        for prefix in ("wt", "dg", "bt", "bus", "brk"):
            rate = getattr(self, f"{prefix}_failure_rate_per_year")
            repair = getattr(self, f"{prefix}_repair_time_hours")
            if rate < 0:
                raise ConfigurationError(f"{prefix}_failure_rate_per_year must be >= 0, got {rate}")
            if repair < 0:
                raise ConfigurationError(f"{prefix}_repair_time_hours must be >= 0, got {repair}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def bus_count(self) -> int:
        return self.bus_system_type.bus_count

    def replace(self, **changes: Any) -> SystemParameters:
        """Copy with *changes* applied (validated again)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["bus_system_type"] = self.bus_system_type.value
        return data


# ======================================================================
# Policy switches
# ======================================================================

@dataclass(frozen=True)
class SimulationConfig:
    """Policy switches of a run.

    Parameters
    ----------
    consider_failures : bool
        Random equipment failures.
    consider_maintenance : bool
        Scheduled diesel maintenance.
    consider_charge_by_dg : bool
        Let diesel surplus charge the battery (burn surplus always does).
    consider_idle_reserve : bool
        Keep idle diesels spinning against sudden wind loss.
    consider_battery_degradation : bool
        Throughput and calendar capacity fade.
    consider_rotation_reserve : bool
        N-1 rotating reserve.
    dg_start_delay_hours : float
        Fraction of the hour a cold-started diesel needs to reach output.
    """

    consider_failures: bool = True
    consider_maintenance: bool = True
    consider_charge_by_dg: bool = False
    consider_idle_reserve: bool = True
    consider_battery_degradation: bool = True
    consider_rotation_reserve: bool = True
    dg_start_delay_hours: float = DG_START_DELAY_HOURS

    def __post_init__(self) -> None:
        if not 0.0 <= self.dg_start_delay_hours < 1.0:
            raise ConfigurationError(
                f"dg_start_delay_hours must be in [0, 1), got {self.dg_start_delay_hours}"
            )


# ======================================================================
# Run input
# ======================================================================

@dataclass(frozen=True)
class SimInput:
    """Everything one call of :func:`~islandgrid.simulation.simulate` needs."""

    wind_ms: NDArray[np.float64] = field(repr=False)
    total_load_kw: NDArray[np.float64] = field(repr=False)
    params: SystemParameters = field(default_factory=SystemParameters)
    config: SimulationConfig = field(default_factory=SimulationConfig)

    def __post_init__(self) -> None:
        wind = np.asarray(self.wind_ms, dtype=np.float64).ravel()
        load = np.asarray(self.total_load_kw, dtype=np.float64).ravel()
        if wind.size == 0:
            raise ConfigurationError("input series must not be empty")
        if wind.shape != load.shape:
            raise ConfigurationError(
                "wind_ms and total_load_kw must have the same length, "
                f"got {wind.size} vs {load.size}"
            )
        if not (np.all(np.isfinite(wind)) and np.all(np.isfinite(load))):
            raise ConfigurationError("input series must be finite")
        if np.any(load < 0):
            raise ConfigurationError("total_load_kw must be >= 0")
        object.__setattr__(self, "wind_ms", wind)
        object.__setattr__(self, "total_load_kw", load)

    @property
    def hours(self) -> int:
        return int(self.wind_ms.size)

    def with_params(self, params: SystemParameters) -> SimInput:
        return SimInput(self.wind_ms, self.total_load_kw, params, self.config)
