"""Immutable per-run dispatch settings and the per-hour outcome record."""

from __future__ import annotations

from dataclasses import dataclass

from islandgrid.constants import DG_MAX_POWER, DG_MIN_POWER, DG_OPTIMAL_POWER
from islandgrid.parameters import SimulationConfig, SystemParameters


@dataclass(frozen=True)
class DispatchContext:
    """Constants the dispatch functions read but never change.

    Built once per run from the plant parameters and policy switches.
    Diesel ratings are plant-wide: every unit has the same nameplate.
    """

    cat1: float
    cat2: float
    dg_rated_kw: float
    dg_start_delay_hours: float = 0.0
    consider_charge_by_dg: bool = False
    consider_idle_reserve: bool = True
    consider_rotation_reserve: bool = True
    consider_degradation: bool = False

    @classmethod
    def from_input(cls, params: SystemParameters, config: SimulationConfig) -> DispatchContext:
        return cls(
            cat1=params.first_cat,
            cat2=params.second_cat,
            dg_rated_kw=params.diesel_generator_power_kw,
            dg_start_delay_hours=config.dg_start_delay_hours,
            consider_charge_by_dg=config.consider_charge_by_dg,
            consider_idle_reserve=config.consider_idle_reserve,
            consider_rotation_reserve=config.consider_rotation_reserve,
            consider_degradation=config.consider_battery_degradation,
        )

    @property
    def dg_min_kw(self) -> float:
        return self.dg_rated_kw * DG_MIN_POWER

    @property
    def dg_max_kw(self) -> float:
        return self.dg_rated_kw * DG_MAX_POWER

    @property
    def dg_optimal_kw(self) -> float:
        return self.dg_rated_kw * DG_OPTIMAL_POWER


@dataclass
class HourOutcome:
    """Energy flows of one bus for one hour (kW over a 1 h step = kWh).

    ``bt_discharge_kw`` is battery energy delivered to this bus's load,
    ``bt_charge_kw`` energy absorbed by this bus's battery.  The hour
    balances as ``wind + diesel + battery + ens == load``.
    """

    load_kw: float = 0.0
    alive: bool = True
    wind_to_load_kw: float = 0.0
    dg_to_load_kw: float = 0.0
    dg_produced_kw: float = 0.0
    bt_discharge_kw: float = 0.0
    bt_charge_kw: float = 0.0
    wre_kw: float = 0.0
    ens_kw: float = 0.0
    start_ens_kw: float = 0.0
    fuel_liters: float = 0.0
    burn: bool = False

    @property
    def bt_net_kw(self) -> float:
        """Net battery flow, positive when discharging."""
        return self.bt_discharge_kw - self.bt_charge_kw

    @property
    def supplied_kw(self) -> float:
        return self.wind_to_load_kw + self.dg_to_load_kw + self.bt_discharge_kw

    def settle_ens(self) -> None:
        """Set ENS from the supplied energy; cap the start-delay slice by it."""
        self.ens_kw = max(0.0, self.load_kw - self.supplied_kw)
        self.start_ens_kw = min(self.ens_kw, max(0.0, self.start_ens_kw))
