"""Tests for islandgrid.simulation.simulate."""

from __future__ import annotations

import numpy as np
import pytest

from islandgrid import ConfigurationError, SimInput, SimulationConfig, SystemParameters, simulate
from islandgrid.constants import BATTERY_MAX_SOC, BATTERY_MIN_SOC


class TestSimulate:
    def test_same_seed_same_result(self, sim_input):
        a = simulate(sim_input, seed=7)
        b = simulate(sim_input, seed=7)
        assert a == b
        assert a.to_dict() == b.to_dict()

    def test_negative_seed_is_accepted(self, sim_input):
        a = simulate(sim_input, seed=-5)
        b = simulate(sim_input, seed=-5)
        assert a == b
        supplied = a.wt_to_load_kwh + a.dg_to_load_kwh + a.bt_to_load_kwh
        assert supplied + a.ens_kwh == pytest.approx(a.load_kwh, rel=1e-9)

    def test_energy_balance(self, sim_input):
        m = simulate(sim_input, seed=3)
        supplied = m.wt_to_load_kwh + m.dg_to_load_kwh + m.bt_to_load_kwh
        assert supplied + m.ens_kwh == pytest.approx(m.load_kwh, rel=1e-9)
        assert m.load_kwh == pytest.approx(float(np.sum(sim_input.total_load_kw)))

    def test_category_split_is_bounded(self, sim_input):
        m = simulate(sim_input, seed=5)
        assert 0.0 <= m.ens_cat1_kwh <= m.ens_kwh + 1e-9
        assert 0.0 <= m.ens_cat2_kwh <= m.ens_kwh + 1e-9
        assert m.ens_cat3_kwh >= 0.0

    def test_every_topology_runs(self, topology, wind_series, load_series):
        params = SystemParameters(bus_system_type=topology)
        m = simulate(SimInput(wind_series, load_series, params), seed=1)
        assert m.hours == len(wind_series)
        assert m.fuel_liters > 0.0
        assert m.total_moto_hours > 0.0

    def test_quiet_plant_serves_all_load(self, wind_series, load_series):
        config = SimulationConfig(
            consider_failures=False, consider_maintenance=False, dg_start_delay_hours=0.0,
        )
        m = simulate(SimInput(wind_series, load_series, SystemParameters(), config), seed=0)
        assert m.ens_kwh < 1e-3 * m.load_kwh
        assert m.diesel_failures == 0
        assert m.diesel_maintenances == 0

    def test_no_sources_means_all_load_unserved(self, load_series):
        params = SystemParameters(
            total_wind_turbine_count=0,
            total_diesel_generator_count=0,
            battery_capacity_kwh_per_bus=0.0,
        )
        wind = np.zeros_like(load_series)
        m = simulate(SimInput(wind, load_series, params, SimulationConfig()), seed=0)
        assert m.ens_kwh == pytest.approx(m.load_kwh)
        assert m.fuel_liters == 0.0


class TestTrace:
    def test_disabled_by_default(self, sim_input):
        assert simulate(sim_input, seed=0).trace is None

    def test_one_record_per_hour(self, sim_input):
        m = simulate(sim_input, seed=0, trace_enabled=True)
        assert len(m.trace) == sim_input.hours
        assert [r.hour for r in m.trace[:3]] == [0, 1, 2]
        assert len(m.trace[0].buses) == 2

    def test_battery_soc_stays_in_bounds(self, sim_input):
        m = simulate(sim_input, seed=2, trace_enabled=True)
        socs = [b.battery_soc for r in m.trace for b in r.buses if b.battery_soc is not None]
        assert socs
        assert min(socs) >= BATTERY_MIN_SOC - 1e-9
        assert max(socs) <= BATTERY_MAX_SOC + 1e-9

    def test_trace_totals_match_metrics(self, sim_input):
        m = simulate(sim_input, seed=4, trace_enabled=True)
        assert sum(r.total_load_kw for r in m.trace) == pytest.approx(m.load_kwh)
        assert sum(r.total_ens_kw for r in m.trace) == pytest.approx(m.ens_kwh, abs=1e-6)

    def test_trace_does_not_change_result(self, sim_input):
        assert simulate(sim_input, seed=9) == simulate(sim_input, seed=9, trace_enabled=True)


class TestInputValidation:
    def test_mismatched_lengths(self):
        with pytest.raises(ConfigurationError):
            SimInput(np.zeros(10), np.zeros(9))

    def test_empty_series(self):
        with pytest.raises(ConfigurationError):
            SimInput(np.zeros(0), np.zeros(0))

    def test_negative_load(self):
        with pytest.raises(ConfigurationError):
            SimInput(np.zeros(3), np.array([1.0, -1.0, 1.0]))

    def test_category_shares_over_one(self):
        with pytest.raises(ConfigurationError):
            SystemParameters(first_cat=0.6, second_cat=0.5)

    def test_unknown_topology_string(self):
        with pytest.raises(ConfigurationError):
            SystemParameters(bus_system_type="triple_bus")

    def test_topology_from_string(self):
        params = SystemParameters(bus_system_type=SystemParameters().bus_system_type.value)
        assert params.bus_count == 2

    def test_start_delay_range(self):
        with pytest.raises(ConfigurationError):
            SimulationConfig(dg_start_delay_hours=1.0)
