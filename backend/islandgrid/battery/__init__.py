"""Battery engine module."""

from .battery import Battery
from .degradation import calendar_loss_kwh_per_hour, crate_severity, throughput_loss_fraction

__all__ = [
    "Battery",
    "calendar_loss_kwh_per_hour",
    "crate_severity",
    "throughput_loss_fraction",
]
