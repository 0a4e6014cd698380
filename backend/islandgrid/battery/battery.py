"""
Bus battery: state of charge, power limits, degradation and replacement.

``Battery`` is the storage model used by the dispatch code.  It exposes
charge/discharge *capacities* (the most power the battery can absorb or
deliver over the next hour), the bridging and non-reserve tests used when
deciding whether to lean on storage instead of a diesel start, and a single
``adjust_capacity`` mutator that moves SOC and books degradation.

Capacity limits
---------------
Each limit is the tighter of an energy bound and a C-rate bound::

    charge    = min(max(0, cap * (SOC_MAX - soc) / eta), cap * c_charge)
    discharge = min(max(0, (soc - SOC_MIN) * cap * eta), cap * c_discharge)

SOC is always kept inside ``[SOC_MIN, SOC_MAX]``.
"""

from __future__ import annotations

import numpy as np

from islandgrid.constants import (
    BATTERY_DEGRADATION_THRESHOLD,
    BATTERY_EFFICIENCY,
    BATTERY_MAX_SOC,
    BATTERY_MIN_SOC,
    BATTERY_SELF_DISCHARGE_PER_HOUR,
    BATTERY_START_SOC,
    BATTERY_WORK_THRESHOLD,
    EPSILON,
)
from islandgrid.reliability import FailureEvent, FailureModel

from .degradation import calendar_loss_kwh_per_hour, crate_severity, throughput_loss_fraction


class Battery:
    """Battery bank attached to one bus.

    Parameters
    ----------
    index : int
        Plant-wide identifier.
    nominal_capacity_kwh : float
        Nameplate energy capacity (kWh).  Must be > 0.
    max_charge_c_rate : float
        Charge power limit as a multiple of current capacity (1/h).
    max_discharge_c_rate : float
        Discharge power limit as a multiple of current capacity (1/h).
    non_reserve_discharge_level : float
        Fraction of capacity that must remain dischargeable after a
        discretionary discharge (see :meth:`use_battery`).
    reliability : FailureModel, optional
        Failure/repair timer.
    """

    type_code = "BT"

    def __init__(
        self,
        index: int,
        nominal_capacity_kwh: float,
        max_charge_c_rate: float = 1.0,
        max_discharge_c_rate: float = 2.0,
        non_reserve_discharge_level: float = 0.8,
        reliability: FailureModel | None = None,
    ) -> None:
        if nominal_capacity_kwh <= 0:
            raise ValueError(
                f"nominal_capacity_kwh must be > 0, got {nominal_capacity_kwh}"
            )
        if max_charge_c_rate < 0 or max_discharge_c_rate < 0:
            raise ValueError("C-rate limits must be >= 0")

        self.index: int = index
        self.nominal_capacity_kwh: float = nominal_capacity_kwh
        self.max_charge_c_rate: float = max_charge_c_rate
        self.max_discharge_c_rate: float = max_discharge_c_rate
        self.non_reserve_discharge_level: float = non_reserve_discharge_level
        self.reliability: FailureModel = reliability or FailureModel()

        self.max_capacity_kwh: float = nominal_capacity_kwh
        self.soc: float = BATTERY_START_SOC
        self.efc_effective: float = 0.0
        self.replacement_count: int = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        return self.reliability.available

    @property
    def stored_energy_kwh(self) -> float:
        return self.soc * self.max_capacity_kwh

    def charge_capacity_kw(self) -> float:
        """Most power the battery can absorb over the next hour (kW)."""
        cap = self.max_capacity_kwh
        if cap <= EPSILON:
            return 0.0
        by_energy = max(0.0, cap * (BATTERY_MAX_SOC - self.soc) / BATTERY_EFFICIENCY)
        return min(by_energy, cap * self.max_charge_c_rate)

    def discharge_capacity_kw(self) -> float:
        """Most power the battery can deliver over the next hour (kW)."""
        cap = self.max_capacity_kwh
        if cap <= EPSILON:
            return 0.0
        by_energy = max(0.0, (self.soc - BATTERY_MIN_SOC) * cap * BATTERY_EFFICIENCY)
        return min(by_energy, cap * self.max_discharge_c_rate)

    # ------------------------------------------------------------------
    # Dispatch tests
    # ------------------------------------------------------------------

    def use_battery(self, energy_kwh: float, discharge_capacity_kw: float) -> bool:
        """Non-reserve rule for a discretionary discharge.

        The discharge is allowed only if what would remain dischargeable,
        relative to capacity, stays above ``non_reserve_discharge_level``.
        """
        if self.max_capacity_kwh <= EPSILON:
            return False
        remaining = discharge_capacity_kw - energy_kwh
        return remaining / self.max_capacity_kwh > self.non_reserve_discharge_level

    def can_bridge(
        self,
        power_kw: float,
        duration_h: float,
        discharge_capacity_kw: float,
    ) -> bool:
        """Whether the battery can hold *power_kw* for *duration_h* hours.

        Both the power limit (``discharge_capacity_kw``) and the energy
        stored above ``SOC_MIN`` must cover the request.
        """
        if not self.available:
            return False
        if power_kw <= EPSILON:
            return True
        if power_kw > discharge_capacity_kw + EPSILON:
            return False
        usable_kwh = max(0.0, (self.soc - BATTERY_MIN_SOC) * self.max_capacity_kwh * BATTERY_EFFICIENCY)
        return power_kw * duration_h <= usable_kwh + EPSILON

    # ------------------------------------------------------------------
    # State mutation
    # ------------------------------------------------------------------

    def adjust_capacity(
        self,
        energy_delta_kwh: float,
        current_kw: float,
        double_time: bool = False,
        consider_degradation: bool = False,
        bridge: bool = False,
    ) -> None:
        """Move SOC by *energy_delta_kwh* (> 0 charge, < 0 discharge).

        Parameters
        ----------
        energy_delta_kwh : float
            Energy delivered to (positive) or drawn from (negative) the
            bus side of the battery during the hour.
        current_kw : float
            Power level of the operation, used for C-rate stress.
        double_time : bool
            Second operation in the same hour; no extra work time is booked.
        consider_degradation : bool
            Book throughput degradation for discharges.
        bridge : bool
            Short start-bridging discharge (relieved C-rate penalty).
        """
        cap = self.max_capacity_kwh
        if cap <= EPSILON or abs(energy_delta_kwh) <= 0.0:
            return

        if energy_delta_kwh > 0:
            self.soc = min(BATTERY_MAX_SOC, self.soc + energy_delta_kwh / cap * BATTERY_EFFICIENCY)
        else:
            self.soc = max(BATTERY_MIN_SOC, self.soc + energy_delta_kwh / cap / BATTERY_EFFICIENCY)

        if not double_time and abs(energy_delta_kwh) > BATTERY_WORK_THRESHOLD * self.nominal_capacity_kwh:
            self.reliability.add_work_time(1.0)

        if consider_degradation and energy_delta_kwh < 0:
            self._degrade(abs(energy_delta_kwh), abs(current_kw), bridge)

    def _degrade(self, discharged_kwh: float, current_kw: float, bridge: bool) -> None:
        nominal = self.nominal_capacity_kwh
        d_efc = discharged_kwh / nominal
        c_rate = current_kw / nominal

        loss_before = throughput_loss_fraction(self.efc_effective)
        self.efc_effective += d_efc * crate_severity(c_rate, bridge)
        loss_after = throughput_loss_fraction(self.efc_effective)

        self.max_capacity_kwh = max(0.0, self.max_capacity_kwh - nominal * (loss_after - loss_before))

    def _restore(self) -> None:
        self.max_capacity_kwh = self.nominal_capacity_kwh
        self.efc_effective = 0.0
        self.soc = BATTERY_START_SOC

    # ------------------------------------------------------------------
    # Hourly reliability step
    # ------------------------------------------------------------------

    def init_failure_model(self, rng: np.random.Generator, consider_failures: bool) -> None:
        self.reliability.reset(rng, consider_failures)
        self._restore()
        self.replacement_count = 0

    def update_hour(
        self,
        rng: np.random.Generator,
        consider_failures: bool,
        consider_degradation: bool,
    ) -> FailureEvent:
        """Advance failure/repair state, apply standing losses, check fade.

        A completed repair installs a fresh bank (nominal capacity, start
        SOC).  While in service the battery self-discharges and, with
        degradation enabled, loses calendar capacity.  A bank faded to the
        replacement threshold is taken out for a replacement outage.
        """
        event = self.reliability.step(rng, consider_failures)
        if event is FailureEvent.REPAIRED:
            self._restore()

        if not self.available:
            return event

        if consider_degradation:
            self.max_capacity_kwh = max(
                0.0,
                self.max_capacity_kwh - calendar_loss_kwh_per_hour(self.nominal_capacity_kwh),
            )

        if self.max_capacity_kwh > EPSILON:
            loss_soc = self.nominal_capacity_kwh * BATTERY_SELF_DISCHARGE_PER_HOUR / self.max_capacity_kwh
            self.soc = max(BATTERY_MIN_SOC, min(BATTERY_MAX_SOC, self.soc - loss_soc))

        if self.max_capacity_kwh <= BATTERY_DEGRADATION_THRESHOLD * self.nominal_capacity_kwh:
            self.replacement_count += 1
            if not self.reliability.begin_outage(self.reliability.repair_time_hours):
                self._restore()

        return event

    def __repr__(self) -> str:
        return (
            f"Battery(index={self.index}, capacity={self.max_capacity_kwh:.1f}/"
            f"{self.nominal_capacity_kwh:.1f} kWh, soc={self.soc:.3f})"
        )
