"""Monte Carlo engine module."""

from .runner import MonteCarloEstimate, MonteCarloRunner, seed_for
from .stats import MonteCarloStats, compute_stats, remove_outliers_iqr

__all__ = [
    "MonteCarloEstimate",
    "MonteCarloRunner",
    "seed_for",
    "MonteCarloStats",
    "compute_stats",
    "remove_outliers_iqr",
]
