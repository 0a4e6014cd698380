"""Pooled dispatch of two bus sections joined by a closed tie breaker.

Wind, batteries and diesels of both sections serve the combined load:

1. wind is split pro rata to each section's load, renormalised so the
   split never exceeds the pooled potential;
2. each battery serves its own section first and then lends to the
   other; battery energy is booked on the section it served;
3. the diesel planner runs on the combined residual over the union of
   both fleets, with no battery left to bridge;
4. the idle and N-1 reserves run over the pooled fleet;
5. diesel surplus charges battery 0, then battery 1;
6. diesel-to-load is re-split by each section's unmet need, start-delay
   ENS by each section's deficit.
"""

from __future__ import annotations

from collections.abc import Sequence

from islandgrid.battery import Battery
from islandgrid.constants import BATTERY_MAX_SOC, EPSILON
from islandgrid.generator import FuelCurve
from islandgrid.network import Bus

from .context import DispatchContext, HourOutcome
from .finalize import finalize_idle_and_burn, finalize_stopped
from .fleet import any_maintenance_started, produced_kw, sorted_generators
from .planner import plan_diesel
from .reserve import apply_idle_reserve, apply_rotation_reserve


def _split_wind(loads: Sequence[float], wind_pot: float) -> list[float]:
    total = sum(loads)
    if total <= EPSILON:
        return [0.0 for _ in loads]
    shares = [min(load, wind_pot * (load / total)) for load in loads]
    used = sum(shares)
    if used > wind_pot and used > 0.0:
        k = wind_pot / used
        shares = [s * k for s in shares]
    return shares


def _charge_in_order(
    batteries: Sequence[Battery | None],
    outcomes: Sequence[HourOutcome],
    surplus_kw: float,
    ctx: DispatchContext,
    double_time: bool,
) -> float:
    """Charge batteries in bus order from *surplus_kw*; return the rest."""
    for bt, out in zip(batteries, outcomes):
        if surplus_kw <= EPSILON:
            break
        if bt is None or bt.soc >= BATTERY_MAX_SOC - EPSILON:
            continue
        charge = min(surplus_kw, bt.charge_capacity_kw())
        if charge > EPSILON:
            bt.adjust_capacity(
                charge, charge, double_time=double_time,
                consider_degradation=ctx.consider_degradation,
            )
            out.bt_charge_kw += charge
            surplus_kw -= charge
    return max(0.0, surplus_kw)


def dispatch_pooled_hour(
    buses: Sequence[Bus],
    loads_kw: Sequence[float],
    wind_speed_ms: float,
    ctx: DispatchContext,
    fuel_curve: FuelCurve,
) -> list[HourOutcome]:
    """Dispatch both sections of a closed tie as one pool for one hour.

    Parameters
    ----------
    buses : sequence of Bus
        The two live sections.
    loads_kw : sequence of float
        Per-section load of the hour (kW).
    wind_speed_ms : float
        Hub-height wind speed (m/s).
    ctx : DispatchContext
        Run constants.
    fuel_curve : FuelCurve
        Diesel fuel model.

    Returns
    -------
    list of HourOutcome
        One outcome per section, each balancing on its own.
    """
    outs = [HourOutcome(load_kw=load) for load in loads_kw]
    total_load = sum(loads_kw)

    potentials = [bus.wind_potential_kw(wind_speed_ms) for bus in buses]
    wind_pot = sum(potentials)
    wind_to_load = _split_wind(loads_kw, wind_pot)
    used_wind = sum(wind_to_load)
    for out, w in zip(outs, wind_to_load):
        out.wind_to_load_kw = w

    batteries: list[Battery | None] = [
        bus.battery if bus.battery is not None and bus.battery.available else None
        for bus in buses
    ]
    caps = [bt.discharge_capacity_kw() if bt is not None else 0.0 for bt in batteries]
    discharged = [False for _ in batteries]
    remaining = [max(0.0, load - w) for load, w in zip(loads_kw, wind_to_load)]

    # Own battery first, then the neighbour's.
    order = [(b, b) for b in range(len(buses))] + [(b, 1 - b) for b in range(len(buses))]
    for served, source in order:
        bt = batteries[source]
        if bt is None or remaining[served] <= EPSILON or caps[source] <= EPSILON:
            continue
        x = min(remaining[served], caps[source])
        if x <= EPSILON:
            continue
        bt.adjust_capacity(
            -x, x, double_time=discharged[source],
            consider_degradation=ctx.consider_degradation,
        )
        discharged[source] = True
        outs[served].bt_discharge_kw += x
        remaining[served] -= x
        caps[source] -= x

    bt_to_load_total = sum(out.bt_discharge_kw for out in outs)
    deficit_kw = sum(remaining)

    if wind_pot >= total_load - EPSILON:
        surplus = _charge_in_order(batteries, outs, max(0.0, wind_pot - total_load), ctx, False)
        if wind_pot > EPSILON:
            for out, pot in zip(outs, potentials):
                out.wre_kw = surplus * pot / wind_pot

        for bus, bt, load in zip(buses, batteries, loads_kw):
            apply_idle_reserve(
                sorted_generators(bus.diesel_generators), load, load, ctx, bt, surplus=True,
            )

        pooled = sorted_generators(dg for bus in buses for dg in bus.diesel_generators)
        burn = finalize_idle_and_burn(pooled, ctx.dg_min_kw)
        finalize_stopped(pooled)
        if burn:
            _charge_in_order(batteries, outs, produced_kw(pooled), ctx, True)
        for out, bus in zip(outs, buses):
            out.burn = burn
            out.dg_produced_kw = produced_kw(bus.diesel_generators)
    else:
        pooled = sorted_generators(dg for bus in buses for dg in bus.diesel_generators)
        tau = 0.0 if any_maintenance_started(pooled) else ctx.dg_start_delay_hours

        plan = plan_diesel(pooled, deficit_kw, ctx, None, tau)

        if used_wind > EPSILON:
            apply_idle_reserve(pooled, total_load, used_wind, ctx, None, surplus=False)
        if ctx.consider_rotation_reserve:
            apply_rotation_reserve(pooled, total_load, used_wind, bt_to_load_total, None, ctx)

        burn = finalize_idle_and_burn(pooled, ctx.dg_min_kw)
        finalize_stopped(pooled)

        produced = produced_kw(pooled)
        dg_to_load_total = min(deficit_kw, produced)
        surplus = max(0.0, produced - dg_to_load_total)
        if ctx.consider_charge_by_dg or burn:
            _charge_in_order(batteries, outs, surplus, ctx, True)

        if deficit_kw > EPSILON:
            for out, need in zip(outs, remaining):
                out.dg_to_load_kw = dg_to_load_total * (need / deficit_kw)

        for out, bus in zip(outs, buses):
            out.burn = burn
            out.dg_produced_kw = produced_kw(bus.diesel_generators)
            out.settle_ens()

        ens_total = sum(out.ens_kw for out in outs)
        start_ens = min(ens_total, plan.start_ens_kwh)
        if ens_total > EPSILON and start_ens > EPSILON:
            for out in outs:
                out.start_ens_kw = start_ens * (out.ens_kw / ens_total)

    for out, bus in zip(outs, buses):
        out.fuel_liters = fuel_curve.fleet_consumption(bus.diesel_generators)
        out.settle_ens()
    return outs
