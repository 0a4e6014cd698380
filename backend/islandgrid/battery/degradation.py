"""
Battery capacity fade: throughput power law and calendar aging.

Cycle aging
-----------
Discharge throughput is converted to equivalent full cycles (EFC) and
weighted by a C-rate severity factor ``exp(H * c_rate)``.  Capacity loss
follows a power law in the accumulated effective EFC:

    loss(EFC) = K * EFC ** Z

with ``K`` calibrated so that 2000 EFC at low C-rate costs 20 % of
nominal capacity.  Short start-bridging discharges have their C-rate
penalty relieved towards 1.

Calendar aging
--------------
A constant fraction of nominal capacity per year, applied hourly while
the battery is in service.
"""

from __future__ import annotations

import math

import numpy as np

from islandgrid.constants import (
    BATTERY_BRIDGE_CRATE_RELIEF,
    BATTERY_CALENDAR_LOSS_PER_YEAR,
    BATTERY_DEG_H,
    BATTERY_DEG_K,
    BATTERY_DEG_Z,
    HOURS_PER_YEAR,
)


# ======================================================================
# Cycle aging
# ======================================================================

def crate_severity(c_rate: float, bridge: bool = False) -> float:
    """C-rate stress multiplier applied to one discharge.

    Parameters
    ----------
    c_rate : float
        Discharge power divided by nominal capacity (1/h).
    bridge : bool
        Start-bridging discharge; the penalty above 1 is reduced by
        ``BATTERY_BRIDGE_CRATE_RELIEF``.

    Returns
    -------
    float
        Multiplier >= 1.
    """
    sev = math.exp(BATTERY_DEG_H * max(0.0, c_rate))
    if bridge:
        sev = 1.0 + (sev - 1.0) * (1.0 - BATTERY_BRIDGE_CRATE_RELIEF)
    return sev


def throughput_loss_fraction(efc_effective: float) -> float:
    """Fractional capacity loss after *efc_effective* weighted cycles."""
    if efc_effective <= 0:
        return 0.0
    return float(np.clip(BATTERY_DEG_K * efc_effective ** BATTERY_DEG_Z, 0.0, 1.0))


# ======================================================================
# Calendar aging
# ======================================================================

def calendar_loss_kwh_per_hour(nominal_capacity_kwh: float) -> float:
    """Hourly calendar capacity loss (kWh)."""
    return BATTERY_CALENDAR_LOSS_PER_YEAR / HOURS_PER_YEAR * nominal_capacity_kwh
