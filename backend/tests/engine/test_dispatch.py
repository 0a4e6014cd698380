"""Tests for islandgrid.dispatch: planner, reserves, finalization, accounting."""

from __future__ import annotations

import pytest

from islandgrid.battery import Battery
from islandgrid.constants import BATTERY_MAX_SOC, BATTERY_MIN_SOC, DG_START_WEAR_FACTOR
from islandgrid.dispatch import (
    HourOutcome,
    Totals,
    accumulate,
    add_ens_by_category,
    add_ens_proportional,
    apply_rotation_reserve,
    dead_bus_hour,
    dispatch_bus_hour,
    dispatch_pooled_hour,
    finalize_idle_and_burn,
    plan_diesel,
)
from islandgrid.generator import DieselGenerator, FuelCurve


@pytest.fixture
def fuel() -> FuelCurve:
    return FuelCurve()


def _balance(out: HourOutcome) -> float:
    return out.wind_to_load_kw + out.dg_to_load_kw + out.bt_discharge_kw + out.ens_kw


# ======================================================================
# Single-bus dispatch
# ======================================================================

class TestDispatchBusHour:
    def test_single_diesel_covers_load(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_dg=1)
        out = dispatch_bus_hour(bus, 0.0, 200.0, make_ctx(), fuel)

        assert out.ens_kw == pytest.approx(0.0)
        assert out.dg_to_load_kw == pytest.approx(200.0)
        assert bus.diesel_generators[0].current_load_kw == pytest.approx(200.0)
        assert out.fuel_liters > 0.0

    def test_no_sources_leaves_load_unserved(self, make_bus, make_ctx, fuel):
        out = dispatch_bus_hour(make_bus(), 0.0, 300.0, make_ctx(), fuel)
        assert out.ens_kw == pytest.approx(300.0)
        assert out.fuel_liters == 0.0

    def test_full_wind_surplus_stops_diesels(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_wt=4, n_dg=2)
        ctx = make_ctx(consider_idle_reserve=False)
        out = dispatch_bus_hour(bus, 12.0, 500.0, ctx, fuel)

        assert out.wind_to_load_kw == pytest.approx(500.0)
        assert out.wre_kw == pytest.approx(1500.0)
        assert out.ens_kw == 0.0
        assert not any(dg.working for dg in bus.diesel_generators)
        assert out.fuel_liters == 0.0

    def test_idle_reserve_spins_unit_in_surplus(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_wt=4, n_dg=2)
        out = dispatch_bus_hour(bus, 12.0, 500.0, make_ctx(), fuel)

        spinning = [dg for dg in bus.diesel_generators if dg.working]
        assert len(spinning) == 1
        assert spinning[0].current_load_kw < 0.0
        assert spinning[0].is_idle
        assert out.dg_produced_kw == 0.0
        assert out.fuel_liters > 0.0

    def test_low_load_burn_after_max_idle_hours(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_dg=1, dg_kw=100.0)
        dg = bus.diesel_generators[0]
        dg.idle_hours = 4
        dg.begin_hour()

        ctx = make_ctx(dg_kw=100.0, consider_rotation_reserve=False)
        out = dispatch_bus_hour(bus, 0.0, 10.0, ctx, fuel)

        assert out.burn
        assert dg.current_load_kw == pytest.approx(30.0)
        assert dg.idle_hours == 0
        assert out.dg_to_load_kw == pytest.approx(10.0)
        assert out.ens_kw == pytest.approx(0.0)

    def test_low_load_counts_idle_hour_before_burn(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_dg=1, dg_kw=100.0)
        dg = bus.diesel_generators[0]
        dg.idle_hours = 2
        dg.begin_hour()

        ctx = make_ctx(dg_kw=100.0, consider_rotation_reserve=False)
        out = dispatch_bus_hour(bus, 0.0, 10.0, ctx, fuel)

        assert not out.burn
        assert dg.idle_hours == 3
        assert dg.is_idle

    def test_start_delay_shortfall_is_reported(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_dg=1)
        bus.diesel_generators[0].stop()
        out = dispatch_bus_hour(bus, 0.0, 200.0, make_ctx(dg_start_delay_hours=0.5), fuel)

        assert out.ens_kw == pytest.approx(100.0)
        assert out.start_ens_kw == pytest.approx(100.0)

    def test_battery_bus_balances_every_hour(self, make_bus, make_ctx, fuel):
        bus = make_bus(n_wt=1, n_dg=2, battery=Battery(index=0, nominal_capacity_kwh=500.0))
        ctx = make_ctx(consider_charge_by_dg=True)
        for wind, load in [(8.0, 900.0), (14.0, 300.0), (0.0, 650.0), (5.0, 120.0)]:
            for dg in bus.diesel_generators:
                dg.begin_hour()
            out = dispatch_bus_hour(bus, wind, load, ctx, fuel)
            assert _balance(out) == pytest.approx(load)
            assert out.ens_kw >= 0.0
            assert BATTERY_MIN_SOC - 1e-9 <= bus.battery.soc <= BATTERY_MAX_SOC + 1e-9

    def test_dead_bus_serves_nothing(self, make_bus):
        bus = make_bus(n_dg=2)
        out = dead_bus_hour(bus, 250.0)
        assert not out.alive
        assert out.ens_kw == pytest.approx(250.0)
        assert not any(dg.working for dg in bus.diesel_generators)


# ======================================================================
# Pooled dispatch
# ======================================================================

class TestDispatchPooledHour:
    def test_each_section_balances(self, make_bus, make_ctx, fuel):
        bus0 = make_bus(n_dg=2)
        bus1 = make_bus(n_wt=2, n_dg=2, battery=Battery(index=1, nominal_capacity_kwh=400.0))
        outs = dispatch_pooled_hour([bus0, bus1], [400.0, 400.0], 8.0, make_ctx(), fuel)

        assert len(outs) == 2
        for out, load in zip(outs, (400.0, 400.0)):
            assert _balance(out) == pytest.approx(load)
        assert sum(out.ens_kw for out in outs) == pytest.approx(0.0)

    def test_wind_split_never_exceeds_potential(self, make_bus, make_ctx, fuel):
        bus0 = make_bus(n_wt=1, n_dg=1)
        bus1 = make_bus(n_dg=1)
        pot = bus0.wind_potential_kw(9.0)
        outs = dispatch_pooled_hour([bus0, bus1], [300.0, 100.0], 9.0, make_ctx(), fuel)

        assert sum(out.wind_to_load_kw for out in outs) <= pot + 1e-9
        assert outs[0].wind_to_load_kw == pytest.approx(3.0 * outs[1].wind_to_load_kw)

    def test_pooled_surplus_splits_waste_by_potential(self, make_bus, make_ctx, fuel):
        bus0 = make_bus(n_wt=3)
        bus1 = make_bus(n_wt=1)
        ctx = make_ctx(consider_idle_reserve=False)
        outs = dispatch_pooled_hour([bus0, bus1], [200.0, 200.0], 12.0, ctx, fuel)

        assert sum(out.wre_kw for out in outs) == pytest.approx(1600.0)
        assert outs[0].wre_kw == pytest.approx(1200.0)
        assert outs[1].wre_kw == pytest.approx(400.0)


# ======================================================================
# Diesel planner
# ======================================================================

def _cold_fleet(make_bus, n_dg: int = 2) -> list[DieselGenerator]:
    generators = make_bus(n_dg=n_dg, dg_kw=100.0).diesel_generators
    for dg in generators:
        dg.stop()
    return generators


class TestPlanDiesel:
    """150 kW deficit, two cold 100 kW units, half-hour start delay.

    The full battery can deliver 744 kW; the non-reserve level decides how
    many units the bridging search settles on.
    """

    TAU = 0.5

    def test_battery_alone_carries_small_deficit(self, make_bus, make_ctx):
        generators = _cold_fleet(make_bus)
        battery = Battery(index=0, nominal_capacity_kwh=1000.0, non_reserve_discharge_level=0.1)

        plan = plan_diesel(generators, 150.0, make_ctx(dg_kw=100.0), battery, self.TAU)

        assert plan.units == 0
        assert not plan.fallback
        assert plan.bt_discharge_kwh == pytest.approx(150.0)
        assert plan.produced_kw == 0.0
        assert plan.start_ens_kwh == 0.0
        assert not any(dg.working for dg in generators)

    def test_battery_lets_one_unit_do(self, make_bus, make_ctx):
        generators = _cold_fleet(make_bus)
        battery = Battery(index=0, nominal_capacity_kwh=1000.0, non_reserve_discharge_level=0.6)

        plan = plan_diesel(generators, 150.0, make_ctx(dg_kw=100.0), battery, self.TAU)

        # Start slice 150 * 0.5 plus steady shortfall (150 - 80) * 0.5.
        assert plan.units == 1
        assert plan.bt_discharge_kwh == pytest.approx(110.0)
        assert [dg.working for dg in generators] == [True, False]
        assert generators[0].current_load_kw == pytest.approx(40.0)
        assert generators[1].current_load_kw == 0.0
        assert plan.produced_kw + plan.bt_discharge_kwh == pytest.approx(150.0)

    def test_battery_bridges_start_delay_only(self, make_bus, make_ctx):
        generators = _cold_fleet(make_bus)
        battery = Battery(index=0, nominal_capacity_kwh=1000.0, non_reserve_discharge_level=0.8)

        plan = plan_diesel(generators, 150.0, make_ctx(dg_kw=100.0), battery, self.TAU)

        assert plan.units == 2
        assert plan.ready_units == 0
        assert not plan.fallback
        assert plan.bt_discharge_kwh == pytest.approx(75.0)
        assert all(dg.working for dg in generators)
        for dg in generators:
            assert dg.current_load_kw == pytest.approx(37.5)
        assert battery.soc == pytest.approx(1.0 - 75.0 / 1000.0 / 0.93)

    def test_without_battery_planned_units_run(self, make_bus, make_ctx):
        generators = _cold_fleet(make_bus, n_dg=3)

        plan = plan_diesel(generators, 150.0, make_ctx(dg_kw=100.0), None, self.TAU)

        assert plan.units == 2
        assert plan.fallback
        assert plan.bt_discharge_kwh == 0.0
        assert plan.start_ens_kwh == pytest.approx(75.0)
        assert [dg.working for dg in generators] == [True, True, False]


# ======================================================================
# N-1 rotating reserve
# ======================================================================

class TestRotationReserve:
    def _fleet(self, make_bus, n_dg: int = 2) -> list[DieselGenerator]:
        generators = make_bus(n_dg=n_dg, dg_kw=100.0).diesel_generators
        generators[0].current_load_kw = 100.0
        for dg in generators[1:]:
            dg.stop()
        return generators

    def test_full_unit_forces_second_on(self, make_bus, make_ctx):
        generators = self._fleet(make_bus)

        total = apply_rotation_reserve(generators, 100.0, 0.0, 0.0, None, make_ctx(dg_kw=100.0))

        assert total == pytest.approx(100.0)
        assert all(dg.working for dg in generators)
        for dg in generators:
            assert dg.current_load_kw == pytest.approx(50.0)
        assert generators[1].total_run_hours == 1 + DG_START_WEAR_FACTOR

    def test_battery_that_bridges_the_loss_avoids_a_start(self, make_bus, make_ctx):
        generators = self._fleet(make_bus)
        battery = Battery(index=0, nominal_capacity_kwh=500.0)

        total = apply_rotation_reserve(generators, 100.0, 0.0, 0.0, battery, make_ctx(dg_kw=100.0))

        assert total == pytest.approx(100.0)
        assert not generators[1].working
        assert generators[0].current_load_kw == pytest.approx(100.0)

    def test_spinning_unit_preferred_over_cold_start(self, make_bus, make_ctx):
        generators = self._fleet(make_bus, n_dg=3)
        generators[2].start()

        apply_rotation_reserve(generators, 100.0, 0.0, 0.0, None, make_ctx(dg_kw=100.0))

        assert not generators[1].working
        assert generators[2].current_load_kw == pytest.approx(50.0)
        assert generators[2].total_run_hours == 1.0

    def test_wind_and_battery_reduce_the_need(self, make_bus, make_ctx):
        generators = self._fleet(make_bus)

        total = apply_rotation_reserve(generators, 160.0, 60.0, 20.0, None, make_ctx(dg_kw=100.0))

        assert total == pytest.approx(80.0)
        for dg in generators:
            assert dg.current_load_kw == pytest.approx(40.0)


# ======================================================================
# Finalization
# ======================================================================

class TestFinalize:
    def test_second_pass_reaches_same_state(self):
        dg = DieselGenerator(index=0, rated_power_kw=340.0)
        dg.idle_hours = 1
        dg.begin_hour()
        dg.current_load_kw = 50.0

        finalize_idle_and_burn([dg], 102.0)
        first = (dg.idle_hours, dg.is_idle, dg.current_load_kw)
        finalize_idle_and_burn([dg], 102.0)

        assert (dg.idle_hours, dg.is_idle, dg.current_load_kw) == first == (2, True, 50.0)

    def test_stopped_units_are_ignored(self):
        dg = DieselGenerator(index=0, rated_power_kw=340.0)
        dg.stop()
        assert not finalize_idle_and_burn([dg], 102.0)
        assert dg.idle_hours == 0


# ======================================================================
# Accounting
# ======================================================================

class TestAccounting:
    def test_priority_fills_category_one_first(self):
        totals = Totals()
        add_ens_by_category(totals, 100.0, 15.0, 0.1, 0.3)
        assert totals.ens_cat1_kwh == pytest.approx(10.0)
        assert totals.ens_cat2_kwh == pytest.approx(5.0)

    def test_priority_overflow_lands_in_category_three(self):
        totals = Totals()
        add_ens_by_category(totals, 100.0, 50.0, 0.1, 0.3)
        assert totals.ens_cat1_kwh == pytest.approx(10.0)
        assert totals.ens_cat2_kwh == pytest.approx(30.0)

    def test_proportional_split(self):
        totals = Totals()
        add_ens_proportional(totals, 100.0, 10.0, 0.1, 0.3)
        assert totals.ens_cat1_kwh == pytest.approx(1.0)
        assert totals.ens_cat2_kwh == pytest.approx(3.0)

    def test_dead_bus_hour_is_proportional(self):
        totals = Totals()
        accumulate(totals, HourOutcome(load_kw=100.0, alive=False, ens_kw=100.0), 0.1, 0.3)
        assert totals.ens_kwh == pytest.approx(100.0)
        assert totals.ens_cat1_kwh == pytest.approx(10.0)
        assert totals.ens_cat2_kwh == pytest.approx(30.0)
        assert totals.wt_to_load_kwh == 0.0

    def test_start_slice_proportional_rest_by_priority(self):
        totals = Totals()
        out = HourOutcome(load_kw=100.0, wind_to_load_kw=80.0, ens_kw=20.0, start_ens_kw=10.0)
        accumulate(totals, out, 0.1, 0.3)
        assert totals.ens_cat1_kwh == pytest.approx(11.0)
        assert totals.ens_cat2_kwh == pytest.approx(3.0)
        assert totals.wt_to_load_kwh == pytest.approx(80.0)
