"""Single-bus hourly dispatch.

Order within a live bus hour:

* **surplus** (wind potential covers the load): wind serves the load,
  the excess charges the battery, the rest is wasted renewable energy;
  the idle reserve may keep units spinning;
* **deficit**: the planner sizes and loads the diesels and lets the
  battery bridge start-ups, then the idle and N-1 reserves augment the
  fleet, then one finalization pass books idle hours and burns.  Diesel
  surplus charges the battery when charging from diesel is enabled or a
  burn happened.
"""

from __future__ import annotations

from islandgrid.battery import Battery
from islandgrid.constants import BATTERY_MAX_SOC, EPSILON
from islandgrid.generator import FuelCurve
from islandgrid.network import Bus

from .context import DispatchContext, HourOutcome
from .finalize import finalize_idle_and_burn, finalize_stopped
from .fleet import any_maintenance_started, produced_kw, sorted_generators, stop_all
from .planner import plan_diesel
from .reserve import apply_idle_reserve, apply_rotation_reserve


def dead_bus_hour(bus: Bus, load_kw: float) -> HourOutcome:
    """Outcome of a bus that is down: all load is unserved."""
    stop_all(bus.diesel_generators)
    out = HourOutcome(load_kw=load_kw, alive=False)
    out.settle_ens()
    return out


def dispatch_bus_hour(
    bus: Bus,
    wind_speed_ms: float,
    load_kw: float,
    ctx: DispatchContext,
    fuel_curve: FuelCurve,
) -> HourOutcome:
    """Dispatch one live bus for one hour.

    Parameters
    ----------
    bus : Bus
        Bus section (equipment state is mutated).
    wind_speed_ms : float
        Hub-height wind speed of the hour (m/s).
    load_kw : float
        Load the bus must serve this hour, after any transfer (kW).
    ctx : DispatchContext
        Run constants.
    fuel_curve : FuelCurve
        Diesel fuel model.

    Returns
    -------
    HourOutcome
    """
    out = HourOutcome(load_kw=load_kw)
    wind_pot = bus.wind_potential_kw(wind_speed_ms)

    battery = bus.battery
    if battery is not None and not battery.available:
        battery = None

    dgs = sorted_generators(bus.diesel_generators)

    if wind_pot >= load_kw - EPSILON:
        out.wind_to_load_kw = load_kw
        surplus = max(0.0, wind_pot - load_kw)

        if battery is not None and battery.soc < BATTERY_MAX_SOC:
            charge = min(surplus, battery.charge_capacity_kw())
            if charge > EPSILON:
                battery.adjust_capacity(
                    charge, charge, consider_degradation=ctx.consider_degradation,
                )
                out.bt_charge_kw += charge
                surplus -= charge

        out.wre_kw = max(0.0, surplus)

        apply_idle_reserve(dgs, load_kw, load_kw, ctx, battery, surplus=True)
        out.burn = finalize_idle_and_burn(dgs, ctx.dg_min_kw)
        finalize_stopped(dgs)

        # A burn in a surplus hour has nowhere to go but the battery.
        if out.burn:
            _charge_from_diesel(out, battery, produced_kw(dgs), ctx)
        out.dg_produced_kw = produced_kw(dgs)
    else:
        out.wind_to_load_kw = wind_pot
        deficit_kw = load_kw - wind_pot
        tau = 0.0 if any_maintenance_started(bus.diesel_generators) else ctx.dg_start_delay_hours

        plan = plan_diesel(dgs, deficit_kw, ctx, battery, tau)
        out.bt_discharge_kw = min(plan.bt_discharge_kwh, deficit_kw)
        out.start_ens_kw = plan.start_ens_kwh

        if out.wind_to_load_kw > EPSILON:
            apply_idle_reserve(dgs, load_kw, out.wind_to_load_kw, ctx, battery, surplus=False)
        if ctx.consider_rotation_reserve:
            apply_rotation_reserve(
                dgs, load_kw, out.wind_to_load_kw, out.bt_discharge_kw, battery, ctx,
            )

        out.burn = finalize_idle_and_burn(dgs, ctx.dg_min_kw)
        finalize_stopped(dgs)

        out.dg_produced_kw = produced_kw(dgs)
        need_kw = max(0.0, load_kw - out.wind_to_load_kw - out.bt_discharge_kw)
        surplus_kw = max(0.0, out.dg_produced_kw - need_kw)
        if ctx.consider_charge_by_dg or out.burn:
            _charge_from_diesel(out, battery, surplus_kw, ctx)
        out.dg_to_load_kw = max(0.0, min(out.dg_produced_kw - out.bt_charge_kw, need_kw))

    out.fuel_liters = fuel_curve.fleet_consumption(bus.diesel_generators)
    out.settle_ens()
    return out


def _charge_from_diesel(
    out: HourOutcome,
    battery: Battery | None,
    surplus_kw: float,
    ctx: DispatchContext,
) -> None:
    if battery is None or surplus_kw <= EPSILON:
        return
    if battery.soc >= BATTERY_MAX_SOC - EPSILON:
        return
    charge = min(surplus_kw, battery.charge_capacity_kw())
    if charge > EPSILON:
        battery.adjust_capacity(
            charge, charge, double_time=True, consider_degradation=ctx.consider_degradation,
        )
        out.bt_charge_kw += charge
