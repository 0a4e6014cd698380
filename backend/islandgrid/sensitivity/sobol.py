"""Variance-based (Sobol) sensitivity of the reliability metrics.

Uses the Saltelli (2010) estimators over a pair of quasi-random sample
matrices ``A`` and ``B`` and the ``d`` mixed matrices ``AB_j`` (``A`` with
column ``j`` taken from ``B``)::

    S_j  = mean(y_B * (y_ABj - y_A)) / var_y
    ST_j = mean((y_A - y_ABj)**2) / (2 * var_y)

``mean_y`` and ``var_y`` (population variance) are taken over the
concatenation of ``y_A`` and ``y_B``.  Every model evaluation is itself a
Monte Carlo estimate; A, B and each AB_j use their own seed rows so the
failure draws of different matrices are independent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.stats import qmc

from islandgrid.errors import ConfigurationError
from islandgrid.montecarlo import MonteCarloEstimate, MonteCarloRunner
from islandgrid.parameters import SimInput

from .parameters import TunableParameter, apply_factors

logger = logging.getLogger(__name__)

METRICS: tuple[str, ...] = ("ens", "fuel", "moto_hours")


def _metric(estimate: MonteCarloEstimate, metric: str) -> float:
    if metric == "ens":
        return estimate.ens.mean
    if metric == "fuel":
        return estimate.mean_fuel_liters
    if metric == "moto_hours":
        return estimate.mean_moto_hours
    raise ValueError(f"unknown metric {metric!r}")


# ======================================================================
# Configuration and result
# ======================================================================

@dataclass(frozen=True)
class SobolConfig:
    """Sobol study settings.

    Parameters
    ----------
    n : int
        Rows per sample matrix.  Total evaluations are ``n * (d + 2)``.
    mc_iterations : int
        Monte Carlo iterations per evaluation.
    base_seed : int
        Base seed of every Monte Carlo evaluation.
    factors : list of TunableParameter
        Varied parameters, in column order.
    """

    n: int
    mc_iterations: int
    base_seed: int
    factors: list[TunableParameter]

    def __post_init__(self) -> None:
        if self.n <= 0:
            raise ConfigurationError(f"n must be > 0, got {self.n}")
        if self.mc_iterations <= 0:
            raise ConfigurationError(f"mc_iterations must be > 0, got {self.mc_iterations}")
        if not self.factors:
            raise ConfigurationError("factors must not be empty")

    @property
    def dim(self) -> int:
        return len(self.factors)

    @property
    def total_evaluations(self) -> int:
        return self.n * (self.dim + 2)


@dataclass
class SobolIndices:
    first_order: NDArray[np.float64]
    total_order: NDArray[np.float64]
    mean: float
    variance: float


@dataclass
class SobolResult:
    """Indices per metric plus the raw evaluations."""

    factor_names: list[str]
    indices: dict[str, SobolIndices]
    y_a: list[MonteCarloEstimate] = field(repr=False)
    y_b: list[MonteCarloEstimate] = field(repr=False)
    y_ab: list[list[MonteCarloEstimate]] = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"factors": list(self.factor_names), "metrics": {}}
        for metric, idx in self.indices.items():
            out["metrics"][metric] = {
                "mean": idx.mean,
                "variance": idx.variance,
                "first_order": dict(zip(self.factor_names, idx.first_order.tolist())),
                "total_order": dict(zip(self.factor_names, idx.total_order.tolist())),
            }
        return out


# ======================================================================
# Sampling and estimators
# ======================================================================

def sample_matrices(n: int, dim: int) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Unscrambled Sobol points in ``2 * dim`` dimensions split into A and B."""
    sampler = qmc.Sobol(d=2 * dim, scramble=False)
    points = sampler.random(n)
    return points[:, :dim], points[:, dim:]


def mixed_matrix(a: NDArray[np.float64], b: NDArray[np.float64], j: int) -> NDArray[np.float64]:
    ab = a.copy()
    ab[:, j] = b[:, j]
    return ab


def saltelli_indices(
    y_a: NDArray[np.float64],
    y_b: NDArray[np.float64],
    y_ab: NDArray[np.float64],
) -> SobolIndices:
    """First and total order indices from model outputs.

    ``y_ab`` has shape ``(d, n)``.  Both index vectors are NaN when the
    output variance is not positive.
    """
    y_a = np.asarray(y_a, dtype=np.float64)
    y_b = np.asarray(y_b, dtype=np.float64)
    y_ab = np.atleast_2d(np.asarray(y_ab, dtype=np.float64))
    d = y_ab.shape[0]

    y_all = np.concatenate([y_a, y_b])
    mean_y = float(np.mean(y_all))
    var_y = float(np.var(y_all))

    if not np.isfinite(var_y) or var_y <= 0.0:
        nan = np.full(d, np.nan)
        return SobolIndices(nan, nan.copy(), mean_y, var_y)

    first = np.mean(y_b[None, :] * (y_ab - y_a[None, :]), axis=1) / var_y
    total = np.mean((y_a[None, :] - y_ab) ** 2, axis=1) / (2.0 * var_y)
    return SobolIndices(first, total, mean_y, var_y)


# ======================================================================
# Driver
# ======================================================================

def run_sobol(
    base_input: SimInput,
    config: SobolConfig,
    runner: MonteCarloRunner | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> SobolResult:
    """Evaluate the A, B and AB_j designs and compute the indices.

    Row ``i`` of A uses seed row ``i``, of B ``i + n``, of AB_j
    ``i + (2 + j) * n``.
    """
    runner = runner or MonteCarloRunner()
    n = config.n
    a, b = sample_matrices(n, config.dim)
    total = config.total_evaluations
    done = 0

    logger.info(
        "Sobol: n=%d, %d factors, %d evaluations x %d MC iterations",
        n, config.dim, total, config.mc_iterations,
    )

    def evaluate(row: NDArray[np.float64], seed_row: int) -> MonteCarloEstimate:
        nonlocal done
        params, values = apply_factors(base_input.params, config.factors, row)
        logger.debug("Sobol row %d: %s", seed_row, values)
        estimate = runner.evaluate(
            base_input.with_params(params),
            config.mc_iterations,
            base_seed=config.base_seed,
            row_index=seed_row,
        )
        done += 1
        if progress_callback is not None:
            progress_callback(done, total)
        return estimate

    y_a = [evaluate(a[i], i) for i in range(n)]
    y_b = [evaluate(b[i], i + n) for i in range(n)]
    y_ab = []
    for j in range(config.dim):
        ab = mixed_matrix(a, b, j)
        y_ab.append([evaluate(ab[i], i + (2 + j) * n) for i in range(n)])

    indices = {}
    for metric in METRICS:
        va = np.array([_metric(e, metric) for e in y_a])
        vb = np.array([_metric(e, metric) for e in y_b])
        vab = np.array([[_metric(e, metric) for e in col] for col in y_ab])
        idx = saltelli_indices(va, vb, vab)
        logger.info(
            "Sobol %s: mean=%.4f var=%.4e sum S=%.4f sum ST=%.4f",
            metric, idx.mean, idx.variance,
            float(np.nansum(idx.first_order)), float(np.nansum(idx.total_order)),
        )
        indices[metric] = idx

    return SobolResult(
        factor_names=[f.name for f in config.factors],
        indices=indices,
        y_a=y_a,
        y_b=y_b,
        y_ab=y_ab,
    )
