"""Tests for islandgrid.network: topology, failure step, load transfer."""

from __future__ import annotations

import numpy as np
import pytest

from islandgrid.network import (
    Bus,
    build_plant,
    effective_bus_loads,
    should_close_tie_breaker,
    step_network,
)
from islandgrid.parameters import BusSystemType, SystemParameters
from islandgrid.reliability import RandomStreams
from islandgrid.wind import WindTurbine


def _plant(bus_type: BusSystemType, **overrides):
    params = SystemParameters(bus_system_type=bus_type, **overrides)
    plant = build_plant(params, np.full(24, 800.0))
    streams = RandomStreams.from_seed(11)
    plant.init_failure_models(streams, consider_failures=True)
    return plant, streams


def _windy_bus(index: int, n_wt: int) -> Bus:
    return Bus(
        index=index,
        load_kw=np.zeros(1),
        wind_turbines=[WindTurbine(index=i, rated_power_kw=500.0) for i in range(n_wt)],
    )


# ======================================================================
# Topology
# ======================================================================

class TestBuildPlant:
    def test_double_bus_split(self):
        plant, _ = _plant(BusSystemType.DOUBLE_BUS)
        assert len(plant.buses) == 2
        assert all(len(b.diesel_generators) == 4 for b in plant.buses)
        assert all(len(b.wind_turbines) == 4 for b in plant.buses)
        assert all(b.battery is not None for b in plant.buses)
        assert plant.breaker is not None
        assert len(plant.rooms) == 2
        np.testing.assert_allclose(plant.buses[0].load_kw, 400.0)

    def test_single_bus_has_no_breaker(self):
        plant, _ = _plant(BusSystemType.SINGLE_NOT_SECTIONAL_BUS)
        assert len(plant.buses) == 1
        assert plant.breaker is None
        assert len(plant.buses[0].diesel_generators) == 8

    def test_sectional_bus_shares_one_room(self):
        plant, _ = _plant(BusSystemType.SINGLE_SECTIONAL_BUS)
        assert len(plant.rooms) == 1
        assert plant.room_of(0) is plant.room_of(1)

    def test_no_battery_when_capacity_zero(self):
        plant, _ = _plant(BusSystemType.DOUBLE_BUS, battery_capacity_kwh_per_bus=0.0)
        assert list(plant.batteries()) == []

    def test_odd_counts_use_integer_division(self):
        plant, _ = _plant(BusSystemType.DOUBLE_BUS, total_diesel_generator_count=5)
        assert sum(len(b.diesel_generators) for b in plant.buses) == 4


# ======================================================================
# Network failure step
# ======================================================================

class TestStepNetwork:
    def test_quiet_hour_keeps_everything_alive(self):
        plant, streams = _plant(BusSystemType.DOUBLE_BUS)
        state = step_network(plant, streams, consider_failures=False)
        assert state.bus_alive == [True, True]
        assert state.bus_failed_this_hour == [False, False]
        assert not state.cascade

    def test_bus_failure_trips_closed_breaker(self):
        plant, streams = _plant(BusSystemType.SINGLE_SECTIONAL_BUS)
        plant.breaker.closed = True
        plant.buses[0].reliability.next_failure_hours = 0.0

        state = step_network(plant, streams, consider_failures=True)

        assert state.bus_alive == [False, True]
        assert state.bus_failed_this_hour == [True, False]
        assert not plant.breaker.closed
        assert not state.cascade

    def test_breaker_failure_with_bus_failure_cascades(self):
        plant, streams = _plant(BusSystemType.SINGLE_SECTIONAL_BUS)
        plant.breaker.closed = True
        plant.breaker.reliability.next_failure_hours = 0.0
        plant.buses[0].reliability.next_failure_hours = 0.0

        state = step_network(plant, streams, consider_failures=True)

        assert state.cascade
        assert state.bus_alive == [False, False]
        assert not plant.buses[1].reliability.available
        assert plant.buses[1].reliability.failure_count == 1
        assert not plant.breaker.closed

    def test_room_outage_takes_down_its_buses(self):
        plant, streams = _plant(
            BusSystemType.SINGLE_SECTIONAL_BUS,
            switchgear_room_failure_rate_per_year=1.0,
        )
        plant.rooms[0].reliability.next_failure_hours = 0.0
        state = step_network(plant, streams, consider_failures=True)
        assert state.bus_alive == [False, False]
        assert state.bus_failed_this_hour == [True, True]


# ======================================================================
# Load transfer and tie decision
# ======================================================================

class TestLoadTransfer:
    @pytest.fixture
    def sectional(self) -> SystemParameters:
        return SystemParameters(
            bus_system_type=BusSystemType.SINGLE_SECTIONAL_BUS, first_cat=0.1, second_cat=0.3,
        )

    def test_first_outage_hour_moves_category_one(self, sectional):
        buses = [_windy_bus(0, 0), _windy_bus(1, 0)]
        loads = effective_bus_loads(sectional, buses, [100.0, 100.0], [False, True], [True, False], 0.0)
        assert loads == pytest.approx([90.0, 110.0])

    def test_later_outage_hours_move_categories_one_and_two(self, sectional):
        buses = [_windy_bus(0, 0), _windy_bus(1, 0)]
        loads = effective_bus_loads(sectional, buses, [100.0, 100.0], [False, True], [False, False], 0.0)
        assert loads == pytest.approx([60.0, 140.0])

    def test_single_bus_untouched(self):
        params = SystemParameters(bus_system_type=BusSystemType.SINGLE_NOT_SECTIONAL_BUS)
        loads = effective_bus_loads(params, [_windy_bus(0, 1)], [250.0], [True], [False], 10.0)
        assert loads == [250.0]

    def test_double_bus_deficit_moves_to_surplus(self):
        params = SystemParameters(bus_system_type=BusSystemType.DOUBLE_BUS)
        buses = [_windy_bus(0, 0), _windy_bus(1, 4)]
        loads = effective_bus_loads(params, buses, [300.0, 500.0], [True, True], [False, False], 12.0)
        assert loads == pytest.approx([0.0, 800.0])

    def test_tie_closes_only_with_deficit_and_spare(self):
        short_and_spare = [_windy_bus(0, 0), _windy_bus(1, 4)]
        assert should_close_tie_breaker(short_and_spare, [300.0, 500.0], 12.0)

        both_fine = [_windy_bus(0, 2), _windy_bus(1, 2)]
        assert not should_close_tie_breaker(both_fine, [300.0, 300.0], 12.0)
