"""Plant topology: buses, tie breaker and switchgear rooms.

``build_plant`` turns immutable :class:`SystemParameters` into a fresh
set of mutable equipment objects for one run.  Buses split the total
load evenly and receive ``total // bus_count`` turbines and diesels each;
every bus gets its own battery when ``battery_capacity_kwh_per_bus > 0``.

Switchgear rooms model common-cause outages:

* single non-sectional bus: one room;
* single sectional bus: one room shared by both sections;
* double bus: one room per bus.

A room with no failure rate or no repair time collapses to a single
never-failing room.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from islandgrid.battery import Battery
from islandgrid.constants import BUS_CCF_BETA_MAX
from islandgrid.generator import DieselGenerator
from islandgrid.parameters import BusSystemType, SystemParameters
from islandgrid.reliability import FailureModel, RandomStreams
from islandgrid.wind import WindTurbine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Equipment variants
# ---------------------------------------------------------------------------

@dataclass
class Bus:
    """Bus section with its load series and attached sources."""

    index: int
    load_kw: NDArray[np.float64] = field(repr=False)
    wind_turbines: list[WindTurbine] = field(default_factory=list)
    diesel_generators: list[DieselGenerator] = field(default_factory=list)
    battery: Battery | None = None
    reliability: FailureModel = field(default_factory=FailureModel)

    type_code = "BUS"

    @property
    def available(self) -> bool:
        return self.reliability.available

    def wind_potential_kw(self, wind_speed_ms: float) -> float:
        """Sum of available turbine outputs (kW)."""
        return sum(wt.potential_kw(wind_speed_ms) for wt in self.wind_turbines)

    def diesel_potential_kw(self) -> float:
        return sum(dg.max_power_kw for dg in self.diesel_generators if dg.available)

    def battery_discharge_potential_kw(self) -> float:
        bt = self.battery
        if bt is None or not bt.available:
            return 0.0
        return bt.discharge_capacity_kw()

    def total_potential_kw(self, wind_speed_ms: float) -> float:
        """Wind + diesel + battery capability without side effects."""
        return (
            self.wind_potential_kw(wind_speed_ms)
            + self.diesel_potential_kw()
            + self.battery_discharge_potential_kw()
        )

    def book_turbine_hour(self) -> None:
        """Credit one work hour to every available turbine."""
        for wt in self.wind_turbines:
            wt.reliability.add_work_time(1.0)


@dataclass
class Breaker:
    """Tie breaker between the two bus sections."""

    index: int
    reliability: FailureModel = field(default_factory=FailureModel)
    closed: bool = False

    type_code = "BRK"

    @property
    def available(self) -> bool:
        return self.reliability.available


@dataclass
class SwitchgearRoom:
    """Common-cause failure source shared by one or more buses."""

    index: int
    reliability: FailureModel = field(default_factory=FailureModel)

    type_code = "ROOM"

    @property
    def available(self) -> bool:
        return self.reliability.available


# ---------------------------------------------------------------------------
# Plant
# ---------------------------------------------------------------------------

@dataclass
class Plant:
    """Complete mutable equipment set of one simulation run."""

    params: SystemParameters
    buses: list[Bus]
    breaker: Breaker | None
    rooms: list[SwitchgearRoom]
    room_index_by_bus: list[int]

    def room_of(self, bus_index: int) -> SwitchgearRoom:
        return self.rooms[self.room_index_by_bus[bus_index]]

    def diesel_generators(self) -> Iterator[DieselGenerator]:
        for bus in self.buses:
            yield from bus.diesel_generators

    def wind_turbines(self) -> Iterator[WindTurbine]:
        for bus in self.buses:
            yield from bus.wind_turbines

    def batteries(self) -> Iterator[Battery]:
        for bus in self.buses:
            if bus.battery is not None:
                yield bus.battery

    def init_failure_models(self, streams: RandomStreams, consider_failures: bool) -> None:
        """Re-seed every timer for a new trial.

        Draw order is fixed (rooms, breaker, then per bus: bus, turbines,
        diesels, battery) so each type stream sees the same sequence for
        the same topology.
        """
        for room in self.rooms:
            room.reliability.reset(streams.room, consider_failures)
        if self.breaker is not None:
            self.breaker.reliability.reset(streams.breaker, consider_failures)
            self.breaker.closed = False
        for bus in self.buses:
            bus.reliability.reset(streams.bus, consider_failures)
            for wt in bus.wind_turbines:
                wt.reliability.reset(streams.wind_turbine, consider_failures)
            for dg in bus.diesel_generators:
                dg.reliability.reset(streams.diesel, consider_failures)
            if bus.battery is not None:
                bus.battery.init_failure_model(streams.battery, consider_failures)

    def failure_counts(self) -> dict[str, int]:
        """Random (and cascading) failures per equipment type."""
        return {
            "bus": sum(b.reliability.failure_count for b in self.buses),
            "diesel": sum(d.reliability.failure_count for d in self.diesel_generators()),
            "wind_turbine": sum(w.reliability.failure_count for w in self.wind_turbines()),
            "battery": sum(b.reliability.failure_count for b in self.batteries()),
            "breaker": self.breaker.reliability.failure_count if self.breaker else 0,
            "room": sum(r.reliability.failure_count for r in self.rooms),
        }


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def _room_failure_rate(params: SystemParameters) -> float:
    if params.switchgear_room_failure_rate_per_year > 0:
        return params.switchgear_room_failure_rate_per_year
    if params.bus_system_type is BusSystemType.SINGLE_SECTIONAL_BUS:
        beta = params.bus_ccf_beta_sectional
    elif params.bus_system_type is BusSystemType.DOUBLE_BUS:
        beta = params.bus_ccf_beta_double
    else:
        return 0.0
    beta = min(max(beta, 0.0), BUS_CCF_BETA_MAX)
    return params.bus_failure_rate_per_year * beta


def build_plant(params: SystemParameters, total_load_kw: NDArray[np.float64]) -> Plant:
    """Build the equipment set for one run.

    Parameters
    ----------
    params : SystemParameters
        Plant description.
    total_load_kw : ndarray
        Hourly plant load (kW); each bus carries an equal share.

    Returns
    -------
    Plant
    """
    bus_count = params.bus_count
    bus_load = np.asarray(total_load_kw, dtype=np.float64) / bus_count
    wt_per_bus = params.total_wind_turbine_count // bus_count
    dg_per_bus = params.total_diesel_generator_count // bus_count

    buses: list[Bus] = []
    wt_id = dg_id = 0
    for b in range(bus_count):
        turbines = []
        for _ in range(wt_per_bus):
            turbines.append(WindTurbine(
                index=wt_id,
                rated_power_kw=params.wind_turbine_power_kw,
                reliability=FailureModel(params.wt_failure_rate_per_year, params.wt_repair_time_hours),
            ))
            wt_id += 1

        diesels = []
        for _ in range(dg_per_bus):
            diesels.append(DieselGenerator(
                index=dg_id,
                rated_power_kw=params.diesel_generator_power_kw,
                reliability=FailureModel(params.dg_failure_rate_per_year, params.dg_repair_time_hours),
            ))
            dg_id += 1

        battery = None
        if params.battery_capacity_kwh_per_bus > 0:
            battery = Battery(
                index=b,
                nominal_capacity_kwh=params.battery_capacity_kwh_per_bus,
                max_charge_c_rate=params.max_charge_current,
                max_discharge_c_rate=params.max_discharge_current,
                non_reserve_discharge_level=params.non_reserve_discharge_level,
                reliability=FailureModel(params.bt_failure_rate_per_year, params.bt_repair_time_hours),
            )

        buses.append(Bus(
            index=b,
            load_kw=bus_load,
            wind_turbines=turbines,
            diesel_generators=diesels,
            battery=battery,
            reliability=FailureModel(params.bus_failure_rate_per_year, params.bus_repair_time_hours),
        ))

    breaker = None
    if params.bus_system_type is not BusSystemType.SINGLE_NOT_SECTIONAL_BUS:
        breaker = Breaker(
            index=0,
            reliability=FailureModel(params.brk_failure_rate_per_year, params.brk_repair_time_hours),
        )

    room_rate = _room_failure_rate(params)
    room_repair = params.switchgear_room_repair_time_hours
    if room_rate <= 0 or room_repair <= 0:
        rooms = [SwitchgearRoom(index=0)]
        room_index_by_bus = [0] * bus_count
    elif params.bus_system_type is BusSystemType.DOUBLE_BUS:
        rooms = [
            SwitchgearRoom(index=b, reliability=FailureModel(room_rate, room_repair))
            for b in range(bus_count)
        ]
        room_index_by_bus = list(range(bus_count))
    else:
        rooms = [SwitchgearRoom(index=0, reliability=FailureModel(room_rate, room_repair))]
        room_index_by_bus = [0] * bus_count

    logger.debug(
        "Built %s plant: %d bus(es), %d WT/bus, %d DG/bus, battery=%s, %d room(s)",
        params.bus_system_type.value, bus_count, wt_per_bus, dg_per_bus,
        params.battery_capacity_kwh_per_bus > 0, len(rooms),
    )

    return Plant(
        params=params,
        buses=buses,
        breaker=breaker,
        rooms=rooms,
        room_index_by_bus=room_index_by_bus,
    )
