"""Diesel generator engine module."""

from .fuel_curve import FuelCurve
from .diesel_generator import DieselGenerator

__all__ = ["FuelCurve", "DieselGenerator"]
