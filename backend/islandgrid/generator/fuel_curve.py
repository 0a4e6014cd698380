"""Fuel consumption curve model for diesel generators.

Models hourly fuel burn as a function of the loading level
``l = |P_out| / P_rated`` (clamped to [0, 1]) using two quadratic
coefficient polynomials:

    F(l) = a(l) * P_rated + b(l)   [L/hr]

    a(l) = k11 * l^2 + k21 * l + k31
    b(l) = k12 * l^2 + k22 * l + k32

where ``a`` is the per-kW-rated specific term and ``b`` a size-independent
offset.  The absolute value of the output is used so that the negative
idle-marker load of a spinning-reserve unit burns idle fuel.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from islandgrid.constants import EPSILON

if TYPE_CHECKING:
    from .diesel_generator import DieselGenerator


@dataclass(frozen=True)
class FuelCurve:
    """Quadratic fuel-consumption curve for a reciprocating generator.

    Parameters
    ----------
    k11, k21, k31 : float
        Coefficients of the specific term ``a(l)`` (L/hr per kW-rated).
    k12, k22, k32 : float
        Coefficients of the offset term ``b(l)`` (L/hr).
    """

    k11: float = 0.0185
    k21: float = -0.0361
    k31: float = 0.2745
    k12: float = 5.3978
    k22: float = -11.4831
    k32: float = 11.6284

    def consumption(self, power_output_kw: float, rated_power_kw: float) -> float:
        """Fuel consumption at a given operating point.

        Parameters
        ----------
        power_output_kw : float
            Electrical output of the generator (kW).  The sign is ignored.
        rated_power_kw : float
            Nameplate rated capacity of the generator (kW).

        Returns
        -------
        float
            Fuel consumption in litres per hour, never negative.
        """
        if rated_power_kw <= EPSILON:
            return 0.0
        level = min(abs(power_output_kw) / rated_power_kw, 1.0)
        a = self.k11 * level * level + self.k21 * level + self.k31
        b = self.k12 * level * level + self.k22 * level + self.k32
        return max(0.0, a * rated_power_kw + b)

    def fleet_consumption(self, generators: Iterable[DieselGenerator]) -> float:
        """Total hourly fuel of every available, working generator (L)."""
        liters = 0.0
        for dg in generators:
            if not dg.available or not dg.working:
                continue
            liters += self.consumption(dg.current_load_kw, dg.rated_power_kw)
        return liters
