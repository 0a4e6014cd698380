"""Wind turbine: a power curve scaled by availability."""

from __future__ import annotations

from dataclasses import dataclass, field

from islandgrid.reliability import FailureModel

from .power_curve import CubicPowerCurve


@dataclass
class WindTurbine:
    """One wind turbine attached to a bus.

    Parameters
    ----------
    index : int
        Plant-wide identifier.
    rated_power_kw : float
        Nameplate rated power (kW).
    reliability : FailureModel
        Failure/repair timer of this turbine.
    """

    index: int
    rated_power_kw: float
    reliability: FailureModel = field(default_factory=FailureModel)
    curve: CubicPowerCurve = field(init=False, repr=False)

    type_code = "WT"

    def __post_init__(self) -> None:
        self.curve = CubicPowerCurve(rated_power_kw=self.rated_power_kw)

    @property
    def available(self) -> bool:
        return self.reliability.available

    def potential_kw(self, wind_speed_ms: float) -> float:
        """Output at *wind_speed_ms*; zero while unavailable."""
        if not self.available:
            return 0.0
        return self.curve.power(wind_speed_ms)
