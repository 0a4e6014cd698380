"""Physical and operational constants shared by the engine modules.

Values are per-unit fractions of rated power unless the name says otherwise.
"""

from __future__ import annotations

import math

EPSILON: float = 1e-6
HOURS_PER_YEAR: int = 8760

# ======================================================================
# Wind turbine power curve
# ======================================================================

WT_CUT_IN_MS: float = 3.0
WT_RATED_SPEED_MS: float = 12.0
WT_CUT_OUT_MS: float = 25.0

# ======================================================================
# Diesel generator
# ======================================================================

DG_MIN_POWER: float = 0.30
DG_MAX_POWER: float = 1.00
DG_OPTIMAL_POWER: float = 0.80
DG_START_DELAY_HOURS: float = 0.10
DG_MAX_IDLE_HOURS: int = 4

# A cold start books 1 + DG_START_WEAR_FACTOR moto-hours.
DG_START_WEAR_FACTOR: int = 5

DG_MAINTENANCE_INTERVAL_HOURS: int = 250
DG_MAINTENANCE_DURATION_HOURS: int = 4

# Idle-marker load of a spinning-reserve unit, as a fraction of rated power.
DG_IDLE_MARKER_FRACTION: float = 0.15

# Weight of category-2 load in the wind-loss critical reserve.
DG_IDLE_K2: float = 0.5
DG_IDLE_MARGIN: float = 0.10

# ======================================================================
# Battery
# ======================================================================

BATTERY_START_SOC: float = 1.0
BATTERY_MIN_SOC: float = 0.20
BATTERY_MAX_SOC: float = 1.00
BATTERY_EFFICIENCY: float = 0.93

# 3 % per month.
BATTERY_SELF_DISCHARGE_PER_HOUR: float = 0.03 / 720.0
BATTERY_CALENDAR_LOSS_PER_YEAR: float = 0.0025

BATTERY_DEGRADATION_THRESHOLD: float = 0.80
BATTERY_BRIDGE_CRATE_RELIEF: float = 0.50

# Throughput power law: loss = K * EFC**Z, calibrated to 20 % at 2000 EFC.
BATTERY_DEG_Z: float = 0.57
BATTERY_DEG_H: float = 0.35
BATTERY_DEG_K: float = 0.20 / math.pow(2000.0, BATTERY_DEG_Z)

# Discharges smaller than this fraction of nominal do not count as work.
BATTERY_WORK_THRESHOLD: float = 0.0005

# ======================================================================
# Network
# ======================================================================

BUS_CCF_BETA_MAX: float = 0.9
