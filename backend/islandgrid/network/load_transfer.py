"""Load transfer between bus sections and the tie-breaker decision.

Transfer rules (two-bus topologies only):

* **one section down**: dual-fed consumers move to the live section.  In
  the first outage hour only category 1 is switched over (automatic
  transfer); from the second hour category 2 follows.
* **double bus, both live**: if one bus lacks potential (wind + diesel
  maximum + battery discharge capability) and the other has spare, load
  up to the smaller of the two moves across.

For a single sectional bus with both sections live, the sections are
pooled by closing the tie breaker instead; :func:`should_close_tie_breaker`
makes that call.
"""

from __future__ import annotations

from collections.abc import Sequence

from islandgrid.constants import EPSILON
from islandgrid.parameters import BusSystemType, SystemParameters

from .topology import Bus


def _deficit_and_surplus(
    buses: Sequence[Bus],
    loads: Sequence[float],
    wind_speed_ms: float,
) -> tuple[list[float], list[float]]:
    deficit = []
    surplus = []
    for bus, load in zip(buses, loads):
        pot = bus.total_potential_kw(wind_speed_ms)
        deficit.append(max(0.0, load - pot))
        surplus.append(max(0.0, pot - load))
    return deficit, surplus


def effective_bus_loads(
    params: SystemParameters,
    buses: Sequence[Bus],
    base_loads: Sequence[float],
    bus_alive: Sequence[bool],
    first_outage_hour: Sequence[bool],
    wind_speed_ms: float,
) -> list[float]:
    """Per-bus load after transfers for this hour.

    Parameters
    ----------
    params : SystemParameters
        Topology and category shares.
    buses : sequence of Bus
        Bus sections.
    base_loads : sequence of float
        Scheduled load of each bus this hour (kW).
    bus_alive : sequence of bool
        Liveness from the network step.
    first_outage_hour : sequence of bool
        True for a bus that went down this hour.
    wind_speed_ms : float
        Wind speed used for potentials (m/s).

    Returns
    -------
    list of float
    """
    loads = [float(x) for x in base_loads]
    if len(buses) != 2 or params.bus_system_type is BusSystemType.SINGLE_NOT_SECTIONAL_BUS:
        return loads

    if bus_alive[0] != bus_alive[1]:
        dead = 0 if not bus_alive[0] else 1
        live = 1 - dead
        if first_outage_hour[dead]:
            ratio = params.first_cat
        else:
            ratio = params.first_cat + params.second_cat
        transfer = loads[dead] * ratio
        loads[dead] = max(0.0, loads[dead] - transfer)
        loads[live] += transfer
        return loads

    if params.bus_system_type is not BusSystemType.DOUBLE_BUS or not bus_alive[0]:
        return loads

    deficit, surplus = _deficit_and_surplus(buses, loads, wind_speed_ms)
    for src, dst in ((0, 1), (1, 0)):
        if deficit[src] > EPSILON and surplus[dst] > EPSILON:
            transfer = min(deficit[src], surplus[dst], loads[src])
            loads[src] = max(0.0, loads[src] - transfer)
            loads[dst] += transfer
            break
    return loads


def should_close_tie_breaker(
    buses: Sequence[Bus],
    loads: Sequence[float],
    wind_speed_ms: float,
) -> bool:
    """Close the tie only when one section is short and the other has spare."""
    if len(buses) != 2:
        return False
    deficit, surplus = _deficit_and_surplus(buses, loads, wind_speed_ms)
    return (
        (deficit[0] > EPSILON and surplus[1] > EPSILON)
        or (deficit[1] > EPSILON and surplus[0] > EPSILON)
    )
