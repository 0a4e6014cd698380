"""End-of-hour diesel bookkeeping: low-load idle hours, burns and stops.

``finalize_idle_and_burn`` must run once per hour after every load
change.  It reads ``idle_hours_at_hour_start`` rather than the running
counter, so a second call in the same hour reaches the same state.
"""

from __future__ import annotations

from collections.abc import Iterable

from islandgrid.constants import DG_MAX_IDLE_HOURS, EPSILON
from islandgrid.generator import DieselGenerator


def finalize_idle_and_burn(generators: Iterable[DieselGenerator], dg_min_kw: float) -> bool:
    """Update idle hours and trigger burns from the final loads.

    Parameters
    ----------
    generators : iterable of DieselGenerator
        Fleet of the dispatch (one bus or the pooled pair).
    dg_min_kw : float
        Minimum loadable output (kW).

    Returns
    -------
    bool
        True if any unit burns this hour.
    """
    burn = False
    for dg in generators:
        if not dg.available:
            continue

        p = abs(dg.current_load_kw)
        if p <= EPSILON:
            dg.is_idle = False
            continue

        if p + EPSILON < dg_min_kw:
            if dg.idle_hours_at_hour_start >= DG_MAX_IDLE_HOURS:
                dg.current_load_kw = dg_min_kw
                dg.idle_hours = 0
                dg.is_idle = False
                burn = True
            else:
                dg.idle_hours = dg.idle_hours_at_hour_start + 1
                dg.is_idle = True
        else:
            dg.reset_idle()
    return burn


def finalize_stopped(generators: Iterable[DieselGenerator]) -> None:
    """Stop available units left without load."""
    for dg in generators:
        if dg.available and abs(dg.current_load_kw) <= EPSILON:
            dg.stop()
            dg.reset_idle()
