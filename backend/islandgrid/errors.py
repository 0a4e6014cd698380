"""Exception types raised at the engine boundary."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Inconsistent plant parameters or input series.

    Raised before the first simulated hour; a run never fails mid-way.
    """
