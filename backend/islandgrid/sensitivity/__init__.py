"""Sensitivity analysis engine module."""

from .parameters import (
    TUNABLE_PARAMETERS,
    TunableParameter,
    apply_factors,
    get_parameter,
    select_factors,
)
from .sobol import (
    SobolConfig,
    SobolIndices,
    SobolResult,
    run_sobol,
    saltelli_indices,
    sample_matrices,
)

__all__ = [
    "TUNABLE_PARAMETERS",
    "TunableParameter",
    "apply_factors",
    "get_parameter",
    "select_factors",
    "SobolConfig",
    "SobolIndices",
    "SobolResult",
    "run_sobol",
    "saltelli_indices",
    "sample_matrices",
]
