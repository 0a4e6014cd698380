"""Per-hour trace records for export and debugging."""

from __future__ import annotations

from dataclasses import dataclass

from islandgrid.dispatch import HourOutcome
from islandgrid.network import Bus, Plant


@dataclass(frozen=True)
class DieselSnapshot:
    index: int
    load_kw: float
    available: bool
    working: bool
    in_maintenance: bool
    idle_hours: int
    hours_since_maintenance: float
    total_run_hours: float


@dataclass(frozen=True)
class BusHourRecord:
    """State and flows of one bus at the end of an hour."""

    bus: int
    alive: bool
    load_kw: float
    wind_to_load_kw: float
    dg_to_load_kw: float
    bt_net_kw: float
    ens_kw: float
    wre_kw: float
    battery_soc: float | None
    battery_capacity_kwh: float | None
    diesels: tuple[DieselSnapshot, ...]


@dataclass(frozen=True)
class HourRecord:
    hour: int
    wind_ms: float
    breaker_closed: bool
    buses: tuple[BusHourRecord, ...]

    @property
    def total_load_kw(self) -> float:
        return sum(b.load_kw for b in self.buses)

    @property
    def total_ens_kw(self) -> float:
        return sum(b.ens_kw for b in self.buses)


def _bus_record(bus: Bus, outcome: HourOutcome) -> BusHourRecord:
    bt = bus.battery
    return BusHourRecord(
        bus=bus.index,
        alive=outcome.alive,
        load_kw=outcome.load_kw,
        wind_to_load_kw=outcome.wind_to_load_kw,
        dg_to_load_kw=outcome.dg_to_load_kw,
        bt_net_kw=outcome.bt_net_kw,
        ens_kw=outcome.ens_kw,
        wre_kw=outcome.wre_kw,
        battery_soc=bt.soc if bt is not None else None,
        battery_capacity_kwh=bt.max_capacity_kwh if bt is not None else None,
        diesels=tuple(
            DieselSnapshot(
                index=dg.index,
                load_kw=dg.current_load_kw,
                available=dg.available,
                working=dg.working,
                in_maintenance=dg.in_maintenance,
                idle_hours=dg.idle_hours,
                hours_since_maintenance=dg.hours_since_maintenance,
                total_run_hours=dg.total_run_hours,
            )
            for dg in bus.diesel_generators
        ),
    )


def hour_record(
    hour: int,
    wind_ms: float,
    plant: Plant,
    outcomes: list[HourOutcome],
) -> HourRecord:
    return HourRecord(
        hour=hour,
        wind_ms=wind_ms,
        breaker_closed=plant.breaker is not None and plant.breaker.closed,
        buses=tuple(_bus_record(bus, out) for bus, out in zip(plant.buses, outcomes)),
    )
