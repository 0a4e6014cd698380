"""Per-asset-type random streams derived from a single trial seed.

Each asset type draws from its own generator keyed by ``(seed, offset)``.
The seed is reduced to 64 bits first, so negative seeds are valid.
Two trials run with the same seed but different plant parameters therefore
see identical failure draws for every asset type (common random numbers).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

SEED_MASK = 0xFFFF_FFFF_FFFF_FFFF

SEED_OFFSETS: dict[str, int] = {
    "wind_turbine": 1,
    "diesel": 2,
    "battery": 3,
    "bus": 4,
    "breaker": 5,
    "room": 6,
}


@dataclass(frozen=True)
class RandomStreams:
    """Bundle of independent :class:`numpy.random.Generator` handles."""

    wind_turbine: np.random.Generator
    diesel: np.random.Generator
    battery: np.random.Generator
    bus: np.random.Generator
    breaker: np.random.Generator
    room: np.random.Generator

    @classmethod
    def from_seed(cls, seed: int) -> RandomStreams:
        return cls(**{
            name: np.random.default_rng([int(seed) & SEED_MASK, offset])
            for name, offset in SEED_OFFSETS.items()
        })
