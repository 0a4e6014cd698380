"""Shared test fixtures for IslandGrid engine and API tests."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.typing import NDArray

from islandgrid.dispatch import DispatchContext
from islandgrid.generator import DieselGenerator
from islandgrid.network import Bus
from islandgrid.parameters import BusSystemType, SimInput, SimulationConfig, SystemParameters
from islandgrid.reliability import FailureModel
from islandgrid.wind import WindTurbine

HOURS_PER_MONTH = 720


# ======================================================================
# Series fixtures
# ======================================================================

@pytest.fixture
def wind_series() -> NDArray[np.float64]:
    """One month of hub-height wind speed (Weibull k=2, mean about 7 m/s)."""
    rng = np.random.default_rng(42)
    return (8.0 * rng.weibull(2.0, HOURS_PER_MONTH)).astype(np.float64)


@pytest.fixture
def load_series() -> NDArray[np.float64]:
    """One month of plant load with a daily cycle between ~700 and ~1300 kW."""
    hours = np.arange(HOURS_PER_MONTH, dtype=np.float64)
    hour_of_day = hours % 24
    return 1000.0 + 300.0 * np.sin(2 * np.pi * (hour_of_day - 8) / 24)


# ======================================================================
# Parameter fixtures
# ======================================================================

@pytest.fixture
def default_params() -> SystemParameters:
    return SystemParameters()


@pytest.fixture
def quiet_config() -> SimulationConfig:
    """No random failures or maintenance; deterministic equipment."""
    return SimulationConfig(consider_failures=False, consider_maintenance=False)


@pytest.fixture
def sim_input(wind_series, load_series, default_params) -> SimInput:
    return SimInput(wind_series, load_series, default_params, SimulationConfig())


@pytest.fixture(params=list(BusSystemType), ids=lambda t: t.value)
def topology(request) -> BusSystemType:
    return request.param


# ======================================================================
# Equipment fixtures
# ======================================================================

@pytest.fixture
def make_bus():
    """Factory for a live bus with ``n_wt`` turbines and ``n_dg`` diesels."""

    def _make(
        n_wt: int = 0,
        wt_kw: float = 500.0,
        n_dg: int = 0,
        dg_kw: float = 340.0,
        battery=None,
    ) -> Bus:
        return Bus(
            index=0,
            load_kw=np.zeros(1),
            wind_turbines=[WindTurbine(index=i, rated_power_kw=wt_kw) for i in range(n_wt)],
            diesel_generators=[
                DieselGenerator(index=i, rated_power_kw=dg_kw, reliability=FailureModel())
                for i in range(n_dg)
            ],
            battery=battery,
        )

    return _make


@pytest.fixture
def make_ctx():
    def _make(dg_kw: float = 340.0, **overrides) -> DispatchContext:
        kwargs = dict(cat1=0.1, cat2=0.3, dg_rated_kw=dg_kw, dg_start_delay_hours=0.0)
        kwargs.update(overrides)
        return DispatchContext(**kwargs)

    return _make
