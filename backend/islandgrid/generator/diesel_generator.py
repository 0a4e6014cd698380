"""Diesel generator dispatch state and lifecycle tracking.

Provides a stateful generator model that tracks spinning/idle state,
the signed low-load marker used by the reserve policies, idle-hour
bookkeeping for anti-wet-stacking burns, scheduled maintenance and
cumulative run-hours.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from islandgrid.constants import (
    DG_MAINTENANCE_DURATION_HOURS,
    DG_MAINTENANCE_INTERVAL_HOURS,
    DG_MAX_POWER,
    DG_MIN_POWER,
    DG_OPTIMAL_POWER,
)
from islandgrid.reliability import FailureEvent, FailureModel


@dataclass
class DieselGenerator:
    """Dispatchable diesel generator with reliability and maintenance state.

    Parameters
    ----------
    index : int
        Plant-wide identifier.
    rated_power_kw : float
        Nameplate maximum continuous output (kW).
    reliability : FailureModel
        Random failure/repair timer.  Maintenance outages reuse its
        repair countdown without counting as failures.

    Notes
    -----
    ``current_load_kw`` is signed.  A negative value marks a unit that is
    spinning as reserve below its minimum loadable output; it delivers no
    real power.  ``current_load_kw == 0`` whenever ``working`` is False.
    """

    index: int
    rated_power_kw: float
    reliability: FailureModel = field(default_factory=FailureModel)

    # --- Dispatch state (not constructor parameters) ----------------------
    working: bool = field(default=True, init=False)
    current_load_kw: float = field(default=0.0, init=False)
    idle_hours: int = field(default=0, init=False)
    idle_hours_at_hour_start: int = field(default=0, init=False, repr=False)
    is_idle: bool = field(default=False, init=False)

    # --- Maintenance and run-hour accumulators ---------------------------
    in_maintenance: bool = field(default=False, init=False)
    hours_since_maintenance: float = field(default=0.0, init=False)
    maintenance_count: int = field(default=0, init=False)
    total_run_hours: float = field(default=0.0, init=False)

    type_code = "DG"

    def __post_init__(self) -> None:
        if self.rated_power_kw <= 0:
            raise ValueError(
                f"rated_power_kw must be > 0, got {self.rated_power_kw}"
            )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        return self.reliability.available

    @property
    def min_power_kw(self) -> float:
        """Minimum loadable output (kW)."""
        return self.rated_power_kw * DG_MIN_POWER

    @property
    def max_power_kw(self) -> float:
        return self.rated_power_kw * DG_MAX_POWER

    @property
    def optimal_power_kw(self) -> float:
        return self.rated_power_kw * DG_OPTIMAL_POWER

    @property
    def maintenance_started_this_hour(self) -> bool:
        """True in the hour the maintenance outage began."""
        return (
            self.in_maintenance
            and self.reliability.repair_countdown == DG_MAINTENANCE_DURATION_HOURS
        )

    def dispatch_key(self) -> tuple[bool, float]:
        """Sort key: working units first, then ascending run-hours."""
        return (not self.working, self.total_run_hours)

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Spin the unit up; ignored while unavailable."""
        if self.available:
            self.working = True

    def stop(self) -> None:
        """Shut the unit down and clear its load."""
        self.working = False
        self.current_load_kw = 0.0
        self.is_idle = False

    def begin_hour(self) -> None:
        """Snapshot idle hours for this hour's low-load finalization."""
        self.idle_hours_at_hour_start = self.idle_hours

    def reset_idle(self) -> None:
        self.is_idle = False
        self.idle_hours = 0

    # ------------------------------------------------------------------
    # Wear accounting
    # ------------------------------------------------------------------

    def add_work_time(self, hours: float, moto_hours: float) -> None:
        """Book *hours* of operation worth *moto_hours* of engine wear."""
        if not self.available:
            return
        self.reliability.time_worked += moto_hours
        self.total_run_hours += moto_hours
        self.hours_since_maintenance += hours

    # ------------------------------------------------------------------
    # Hourly reliability step
    # ------------------------------------------------------------------

    def update_hour(
        self,
        rng: np.random.Generator,
        consider_failures: bool,
        allow_maintenance_start: bool,
    ) -> FailureEvent:
        """Advance failure, repair and maintenance state by one hour.

        Parameters
        ----------
        rng : numpy.random.Generator
            Diesel failure stream.
        consider_failures : bool
            Enable random failures.
        allow_maintenance_start : bool
            Whether a due maintenance may begin this hour.  The network
            step passes False while a sibling on the same bus is already
            in maintenance.

        Returns
        -------
        FailureEvent
        """
        rel = self.reliability
        if rel.repair_countdown > 0:
            was_maintenance = self.in_maintenance
            event = rel.step(rng, consider_failures, redraw_on_repair=not was_maintenance)
            if event is FailureEvent.REPAIRED and was_maintenance:
                self.in_maintenance = False
            return event

        if not rel.status:
            return FailureEvent.NONE

        if (
            allow_maintenance_start
            and self.hours_since_maintenance >= DG_MAINTENANCE_INTERVAL_HOURS
        ):
            if rel.begin_outage(DG_MAINTENANCE_DURATION_HOURS):
                self.in_maintenance = True
                self.maintenance_count += 1
                self.hours_since_maintenance = 0.0
                self.stop()
                return FailureEvent.NONE

        event = rel.step(rng, consider_failures)
        if event is FailureEvent.FAILED:
            self.stop()
        return event
