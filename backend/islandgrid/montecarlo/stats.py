"""Sample statistics for Monte Carlo estimates.

Confidence interval of the mean with a fixed t-score::

    CI = mean +/- t * s / sqrt(n)

and the sample size needed for a relative half-width ``eps_r``::

    N = ceil((t * s / (eps_r * |mean|))**2)
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike


@dataclass(frozen=True)
class MonteCarloStats:
    mean: float
    std: float
    ci_low: float
    ci_high: float
    required_sample_size: int
    actual_sample_size: int

    @property
    def ci_half_width(self) -> float:
        return 0.5 * (self.ci_high - self.ci_low)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def remove_outliers_iqr(values: np.ndarray) -> np.ndarray:
    """Drop points outside ``[q1 - 1.5 IQR, q3 + 1.5 IQR]``.

    Quartiles are order statistics ``sorted[n // 4]`` and
    ``sorted[3n // 4]``; fewer than four points are returned unchanged.
    """
    n = values.size
    if n < 4:
        return values
    ordered = np.sort(values)
    q1 = ordered[n // 4]
    q3 = ordered[(3 * n) // 4]
    iqr = q3 - q1
    lower = q1 - 1.5 * iqr
    upper = q3 + 1.5 * iqr
    return ordered[(ordered >= lower) & (ordered <= upper)]


def compute_stats(
    sample: ArrayLike,
    remove_outliers: bool = False,
    t_score: float = 1.96,
    relative_error: float = 0.10,
) -> MonteCarloStats:
    """Mean, confidence interval and required sample size of *sample*.

    Non-finite values are dropped first.  The standard deviation is the
    sample (``ddof=1``) estimate and 0 for fewer than two points.  The
    required size is 1 when either the mean or the deviation is zero.
    """
    data = np.asarray(sample, dtype=np.float64).ravel()
    data = data[np.isfinite(data)]
    if remove_outliers:
        data = remove_outliers_iqr(data)

    n = int(data.size)
    if n == 0:
        return MonteCarloStats(0.0, 0.0, 0.0, 0.0, 0, 0)

    mean = float(np.mean(data))
    std = float(np.std(data, ddof=1)) if n >= 2 else 0.0
    margin = t_score * std / math.sqrt(n)

    half_width = relative_error * abs(mean)
    if half_width > 0.0 and std > 0.0:
        required = int(math.ceil((t_score * std / half_width) ** 2))
    else:
        required = 1

    return MonteCarloStats(
        mean=mean,
        std=std,
        ci_low=mean - margin,
        ci_high=mean + margin,
        required_sample_size=required,
        actual_sample_size=n,
    )
