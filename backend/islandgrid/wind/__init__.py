"""Wind turbine engine module."""

from .power_curve import CubicPowerCurve
from .wind_turbine import WindTurbine

__all__ = ["CubicPowerCurve", "WindTurbine"]
