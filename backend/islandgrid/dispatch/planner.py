"""Diesel unit count, battery start-bridging and load split.

Shared by single-bus and pooled dispatch.  Given the deficit left after
wind, the planner

1. sizes the fleet: ``n = ceil(D / optimal_kw)`` when ``available`` units
   at optimal loading can cover ``D``, else ``ceil(D / max_kw)``, capped
   at ``available``;
2. searches ``i = 0..n`` for the fewest units whose start-up (and any
   steady shortfall) the battery can bridge, discharging exactly that
   energy for the first accepted ``i``; with no accepted ``i`` it uses
   all ``n`` units and lets the battery cover what it can;
3. splits the load: units already spinning carry
   ``per_ready_start * tau + per_steady * (1 - tau)``, units started this
   hour ``per_steady * (1 - tau)``.

A newly started unit delivers nothing during the start delay ``tau``; the
resulting shortfall is reported as ``start_ens_kwh`` so the caller can
apportion it proportionally.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from islandgrid.battery import Battery
from islandgrid.constants import BATTERY_MIN_SOC, BATTERY_EFFICIENCY, DG_START_WEAR_FACTOR, EPSILON
from islandgrid.generator import DieselGenerator

from .context import DispatchContext
from .fleet import count_available, count_ready

logger = logging.getLogger(__name__)


@dataclass
class DieselPlan:
    """Result of :func:`plan_diesel`."""

    units: int = 0
    ready_units: int = 0
    produced_kw: float = 0.0
    bt_discharge_kwh: float = 0.0
    start_ens_kwh: float = 0.0
    fallback: bool = False


# ---------------------------------------------------------------------------
# Battery helpers
# ---------------------------------------------------------------------------

def _discharge(
    battery: Battery,
    energy_kwh: float,
    current_kw: float,
    ctx: DispatchContext,
    double_time: bool = False,
    bridge: bool = False,
) -> float:
    if energy_kwh <= EPSILON:
        return 0.0
    battery.adjust_capacity(
        -energy_kwh,
        current_kw,
        double_time=double_time,
        consider_degradation=ctx.consider_degradation,
        bridge=bridge,
    )
    return energy_kwh


def _usable_energy_kwh(battery: Battery) -> float:
    return max(0.0, (battery.soc - BATTERY_MIN_SOC) * battery.max_capacity_kwh * BATTERY_EFFICIENCY)


def _fallback_discharge(
    battery: Battery,
    deficit_kw: float,
    units: int,
    ready_units: int,
    tau: float,
    ctx: DispatchContext,
) -> float:
    """Battery covers what it can of the start and steady shortfalls."""
    max_by_current_kw = battery.max_capacity_kwh * battery.max_discharge_c_rate
    avail_kwh = _usable_energy_kwh(battery)
    delivered = 0.0

    start_def_kw = max(0.0, deficit_kw - ready_units * ctx.dg_max_kw)
    start_kwh = start_def_kw * tau
    if start_kwh > EPSILON and tau > EPSILON:
        x = min(start_kwh, max_by_current_kw * tau, avail_kwh)
        if x > EPSILON:
            delivered += _discharge(battery, x, x / tau, ctx, bridge=True)
            avail_kwh -= x

    steady_h = 1.0 - tau
    if steady_h > EPSILON:
        steady_def_kw = max(0.0, deficit_kw - units * ctx.dg_max_kw)
        steady_kwh = steady_def_kw * steady_h
        if steady_kwh > EPSILON:
            x = min(steady_kwh, max_by_current_kw * steady_h, avail_kwh)
            if x > EPSILON:
                delivered += _discharge(
                    battery, x, x / steady_h, ctx, double_time=delivered > 0.0,
                )
    return delivered


# ---------------------------------------------------------------------------
# Load split
# ---------------------------------------------------------------------------

def distribute_load(
    generators: Sequence[DieselGenerator],
    deficit_kw: float,
    units: int,
    per_unit_cap_kw: float,
    tau: float,
    ctx: DispatchContext,
) -> float:
    """Assign loads to the first *units* available generators.

    Units beyond the plan are unloaded (and stopped later by the
    finalization).  Returns the assigned diesel output (kW).
    """
    ready = min(count_ready(generators), units)
    ready_start_kw = min(deficit_kw, ready * ctx.dg_max_kw)
    per_ready_start = ready_start_kw / ready if ready > 0 else 0.0
    per_steady = min(deficit_kw / units, per_unit_cap_kw) if units > 0 else 0.0

    used = 0
    total = 0.0
    for dg in generators:
        if not dg.available or used >= units:
            dg.current_load_kw = 0.0
            dg.is_idle = False
            continue

        was_working = dg.working
        if was_working:
            gen_kw = per_ready_start * tau + per_steady * (1.0 - tau)
        else:
            gen_kw = per_steady * (1.0 - tau)
        gen_kw = min(max(gen_kw, 0.0), ctx.dg_max_kw)

        dg.current_load_kw = gen_kw
        dg.add_work_time(1.0, 1.0 if was_working else 1.0 + DG_START_WEAR_FACTOR)
        dg.start()

        total += gen_kw
        used += 1
    return total


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

def plan_diesel(
    generators: Sequence[DieselGenerator],
    deficit_kw: float,
    ctx: DispatchContext,
    battery: Battery | None,
    tau: float,
) -> DieselPlan:
    """Choose, bridge and load the diesels for a deficit hour.

    Parameters
    ----------
    generators : sequence of DieselGenerator
        Fleet in dispatch order (see :func:`~.fleet.sorted_generators`).
    deficit_kw : float
        Load left after wind (kW).
    ctx : DispatchContext
        Ratings and switches.
    battery : Battery or None
        Usable storage; ``None`` disables bridging.
    tau : float
        Effective start delay for this hour (h).

    Returns
    -------
    DieselPlan
    """
    plan = DieselPlan()
    if battery is not None and not battery.available:
        battery = None

    available = count_available(generators)
    ready_all = count_ready(generators)

    if deficit_kw <= EPSILON:
        distribute_load(generators, 0.0, 0, 0.0, tau, ctx)
        return plan

    bt_cap = battery.discharge_capacity_kw() if battery is not None else 0.0

    if available == 0:
        distribute_load(generators, 0.0, 0, 0.0, tau, ctx)
        if battery is not None:
            x = min(deficit_kw, bt_cap)
            plan.bt_discharge_kwh = _discharge(battery, x, x, ctx)
        return plan

    can_use_optimal = ctx.dg_optimal_kw * available >= deficit_kw
    per_unit_cap = ctx.dg_optimal_kw if can_use_optimal else ctx.dg_max_kw
    planned = min(math.ceil(deficit_kw / per_unit_cap), available)

    units = planned
    accepted = False
    for i in range(planned + 1):
        start_def = 0.0
        start_kwh = 0.0
        if i == 0:
            energy_kwh = deficit_kw
            current_kw = deficit_kw
            steady_def = deficit_kw
        else:
            start_def = max(0.0, deficit_kw - min(i, ready_all) * ctx.dg_max_kw)
            start_kwh = start_def * tau
            per_unit = min(deficit_kw / i, per_unit_cap)
            steady_def = max(0.0, deficit_kw - per_unit * i)
            energy_kwh = start_kwh + steady_def * (1.0 - tau)
            current_kw = max(start_def, steady_def)

        if battery is None:
            continue

        base_ok = (
            battery.can_bridge(current_kw, 1.0, bt_cap)
            and battery.use_battery(energy_kwh, bt_cap)
        )
        start_bridge_ok = (
            i > 0
            and steady_def <= EPSILON
            and battery.can_bridge(start_def, tau, bt_cap)
        )
        if not (base_ok or start_bridge_ok):
            continue

        if base_ok:
            plan.bt_discharge_kwh = _discharge(battery, energy_kwh, current_kw, ctx)
        else:
            plan.bt_discharge_kwh = _discharge(battery, start_kwh, start_def, ctx, bridge=True)
        units = i
        accepted = True
        break

    if not accepted:
        units = planned
        plan.fallback = True
        if battery is not None:
            plan.bt_discharge_kwh = _fallback_discharge(
                battery, deficit_kw, units, min(ready_all, units), tau, ctx,
            )

    plan.units = units
    plan.ready_units = min(ready_all, units)
    plan.produced_kw = distribute_load(generators, deficit_kw, units, per_unit_cap, tau, ctx)

    if tau > EPSILON and units > plan.ready_units:
        ready_start_kw = min(deficit_kw, plan.ready_units * ctx.dg_max_kw)
        plan.start_ens_kwh = max(0.0, deficit_kw - ready_start_kw) * tau

    logger.debug(
        "Diesel plan: deficit=%.1f kW units=%d ready=%d battery=%.1f kWh fallback=%s",
        deficit_kw, plan.units, plan.ready_units, plan.bt_discharge_kwh, plan.fallback,
    )
    return plan
