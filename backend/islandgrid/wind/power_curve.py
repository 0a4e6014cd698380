"""Wind turbine power curve.

Provides the :class:`CubicPowerCurve` used by every turbine in the plant:
zero below cut-in, a cubic ramp up to rated speed, flat at rated power up
to cut-out, and zero at or above cut-out.

.. math::

    P(v) = P_{\\text{rated}} \\cdot
           \\frac{v^3 - v_{\\text{ci}}^3}
                 {v_{\\text{rated}}^3 - v_{\\text{ci}}^3}
    \\quad v_{\\text{ci}} \\le v < v_{\\text{rated}}
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from islandgrid.constants import WT_CUT_IN_MS, WT_CUT_OUT_MS, WT_RATED_SPEED_MS


# ---------------------------------------------------------------------------
# CubicPowerCurve class
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CubicPowerCurve:
    """Piecewise cubic power curve.

    Parameters
    ----------
    rated_power_kw : float
        Nameplate rated power (kW).
    cut_in : float, optional
        Cut-in wind speed (m/s).  Default 3.0.
    rated_speed : float, optional
        Wind speed at which the turbine reaches rated power (m/s).
        Default 12.0.
    cut_out : float, optional
        Cut-out wind speed (m/s).  Default 25.0.

    Raises
    ------
    ValueError
        If ``rated_power_kw`` is negative or the speeds do not satisfy
        ``0 < cut_in < rated_speed < cut_out``.
    """

    rated_power_kw: float
    cut_in: float = WT_CUT_IN_MS
    rated_speed: float = WT_RATED_SPEED_MS
    cut_out: float = WT_CUT_OUT_MS

    def __post_init__(self) -> None:
        if self.rated_power_kw < 0:
            raise ValueError(
                f"rated_power_kw must be >= 0, got {self.rated_power_kw}"
            )
        if not (0 < self.cut_in < self.rated_speed < self.cut_out):
            raise ValueError(
                "Speeds must satisfy 0 < cut_in < rated_speed < cut_out, "
                f"got cut_in={self.cut_in}, rated_speed={self.rated_speed}, "
                f"cut_out={self.cut_out}"
            )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def power(self, wind_speed_ms: float) -> float:
        """Output (kW) of one turbine at a single wind speed."""
        v = float(wind_speed_ms)
        if v < self.cut_in or v >= self.cut_out:
            return 0.0
        if v >= self.rated_speed:
            return self.rated_power_kw
        ci3 = self.cut_in ** 3
        return self.rated_power_kw * (v ** 3 - ci3) / (self.rated_speed ** 3 - ci3)

    def interpolate(self, wind_speeds: ArrayLike) -> NDArray[np.float64]:
        """Vectorised :meth:`power` over an array of wind speeds.

        Parameters
        ----------
        wind_speeds : array-like
            Query wind speeds (m/s), arbitrary shape.

        Returns
        -------
        ndarray
            Power output (kW) with the same shape as *wind_speeds*.
        """
        ws = np.asarray(wind_speeds, dtype=np.float64)
        ci3 = self.cut_in ** 3
        ramp = self.rated_power_kw * (ws ** 3 - ci3) / (self.rated_speed ** 3 - ci3)
        power = np.where(ws >= self.rated_speed, self.rated_power_kw, ramp)
        power = np.where((ws < self.cut_in) | (ws >= self.cut_out), 0.0, power)
        return power
