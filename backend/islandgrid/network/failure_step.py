"""Hourly failure/repair step for the network and attached equipment.

Order within an hour:

1. switchgear rooms;
2. tie breaker;
3. buses, then ``bus_alive[b] = bus.available and room(b).available``;
4. breaker coupling rules;
5. turbines, diesels and batteries of buses that are alive this hour.

Coupling rules for a breaker that was closed at the start of the hour:

* a bus went down and the breaker did not fail: the breaker trips open,
  the healthy section keeps running;
* the breaker failed and a bus went down too: the fault propagates and
  every bus is forced down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from islandgrid.parameters import SimulationConfig
from islandgrid.reliability import FailureEvent, RandomStreams

from .topology import Plant

logger = logging.getLogger(__name__)


@dataclass
class NetworkState:
    """Result of :func:`step_network` for one hour."""

    bus_alive: list[bool]
    bus_failed_this_hour: list[bool]
    breaker_closed_at_start: bool
    breaker_failed_this_hour: bool = False
    cascade: bool = False


def step_network(
    plant: Plant,
    streams: RandomStreams,
    consider_failures: bool,
) -> NetworkState:
    """Advance rooms, breaker and buses by one hour.

    Parameters
    ----------
    plant : Plant
        Equipment of the run (mutated).
    streams : RandomStreams
        Per-type random streams of the run.
    consider_failures : bool
        Enable random failures.

    Returns
    -------
    NetworkState
    """
    buses = plant.buses
    breaker = plant.breaker
    alive_before = [bus.available and plant.room_of(i).available for i, bus in enumerate(buses)]

    closed_at_start = breaker is not None and breaker.closed
    breaker_avail_before = breaker is not None and breaker.available

    # 1. Rooms age every hour they are in service.
    for room in plant.rooms:
        room.reliability.step(streams.room, consider_failures)
        room.reliability.add_work_time(1.0)

    # 2. Breaker.
    if breaker is not None:
        breaker.reliability.step(streams.breaker, consider_failures)

    # 3. Buses.
    for bus in buses:
        bus.reliability.step(streams.bus, consider_failures)

    bus_alive = [bus.available and plant.room_of(i).available for i, bus in enumerate(buses)]
    failed = [before and not now for before, now in zip(alive_before, bus_alive)]

    breaker_failed = breaker is not None and breaker_avail_before and not breaker.available
    state = NetworkState(
        bus_alive=bus_alive,
        bus_failed_this_hour=failed,
        breaker_closed_at_start=closed_at_start,
        breaker_failed_this_hour=breaker_failed,
    )

    # 4. Coupling rules.
    if breaker is not None:
        if closed_at_start and not all(bus_alive):
            if breaker_failed:
                for i, bus in enumerate(buses):
                    if bus_alive[i]:
                        bus.reliability.force_fail_now()
                    bus_alive[i] = False
                    failed[i] = True
                state.cascade = True
                logger.debug("Breaker failed while closed: fault propagated to all buses")
            breaker.closed = False
        elif not breaker.available:
            breaker.closed = False

        if closed_at_start:
            breaker.reliability.add_work_time(1.0)

    return state


def step_equipment(
    plant: Plant,
    state: NetworkState,
    streams: RandomStreams,
    config: SimulationConfig,
) -> bool:
    """Advance equipment of live buses by one hour.

    A diesel may only begin maintenance when no other diesel on its bus is
    already in maintenance.

    Returns
    -------
    bool
        True if any diesel began maintenance this hour.
    """
    maintenance_started = False
    for bus, alive in zip(plant.buses, state.bus_alive):
        if not alive:
            continue

        for wt in bus.wind_turbines:
            wt.reliability.step(streams.wind_turbine, config.consider_failures)

        for dg in bus.diesel_generators:
            sibling_busy = any(
                other.in_maintenance for other in bus.diesel_generators if other is not dg
            )
            allow = config.consider_maintenance and not sibling_busy
            event = dg.update_hour(streams.diesel, config.consider_failures, allow)
            if dg.maintenance_started_this_hour:
                maintenance_started = True
            if event is FailureEvent.FAILED:
                logger.debug("Diesel %d failed", dg.index)

        if bus.battery is not None:
            bus.battery.update_hour(
                streams.battery,
                config.consider_failures,
                config.consider_battery_degradation,
            )

    return maintenance_started
