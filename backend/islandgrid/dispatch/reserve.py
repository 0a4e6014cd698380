"""Spinning-reserve augmentations applied after the diesel load split.

Two policies may bring extra diesels online before the end-of-hour
finalization:

* **Idle reserve** keeps units spinning at a small negative idle-marker
  load so that a sudden collapse of the wind serving critical load can be
  picked up without a cold start.
* **N-1 rotating reserve** adds units until losing the largest online
  unit would still leave the diesel need covered, then spreads the need
  evenly over all online units.

Both return without side effects when there is nothing to add.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from islandgrid.battery import Battery
from islandgrid.constants import (
    DG_IDLE_K2,
    DG_IDLE_MARGIN,
    DG_IDLE_MARKER_FRACTION,
    DG_START_WEAR_FACTOR,
    EPSILON,
)
from islandgrid.generator import DieselGenerator

from .context import DispatchContext
from .fleet import produced_kw


def _bring_online(dg: DieselGenerator) -> None:
    """Spin *dg* up and book the hour, with start wear for a cold unit."""
    if dg.working:
        dg.add_work_time(1.0, 1.0)
    else:
        dg.start()
        dg.add_work_time(1.0, 1.0 + DG_START_WEAR_FACTOR)


# ---------------------------------------------------------------------------
# Idle reserve
# ---------------------------------------------------------------------------

def apply_idle_reserve(
    generators: Sequence[DieselGenerator],
    load_kw: float,
    wind_to_load_kw: float,
    ctx: DispatchContext,
    battery: Battery | None,
    surplus: bool,
) -> int:
    """Keep extra diesels spinning against a sudden loss of wind.

    Parameters
    ----------
    generators : sequence of DieselGenerator
        Fleet in dispatch order.
    load_kw : float
        Load the fleet protects (kW).
    wind_to_load_kw : float
        Wind currently serving that load (kW).
    ctx : DispatchContext
        Category shares, ratings and the policy switch.
    battery : Battery or None
        Storage that may firm the loss; ``None`` when none is usable.
    surplus : bool
        Wind covers the whole load.  Every available unit is unloaded
        first and online diesel headroom does not count as firm cover.

    Returns
    -------
    int
        Number of units put on idle reserve.
    """
    if surplus:
        for dg in generators:
            if dg.available:
                dg.current_load_kw = 0.0

    if not ctx.consider_idle_reserve:
        return 0
    if load_kw <= EPSILON or wind_to_load_kw <= EPSILON:
        return 0

    p_crit = load_kw * (ctx.cat1 + DG_IDLE_K2 * ctx.cat2)
    wind_loss = min(wind_to_load_kw, p_crit)
    if wind_loss <= EPSILON:
        return 0

    firm = 0.0
    if battery is not None and battery.available:
        cap = battery.discharge_capacity_kw()
        firm += wind_loss if battery.can_bridge(wind_loss, 1.0, cap) else cap

    if not surplus:
        for dg in generators:
            if dg.available and dg.working and dg.current_load_kw > EPSILON:
                firm += max(0.0, dg.max_power_kw - dg.current_load_kw)

    residual = wind_loss - firm
    if residual <= EPSILON:
        return 0

    capable = [dg for dg in generators if dg.available and abs(dg.current_load_kw) <= EPSILON]
    if not capable:
        return 0
    capable.sort(key=lambda dg: not dg.working)

    need_kw = residual * (1.0 + DG_IDLE_MARGIN)
    n_units = math.ceil(need_kw / capable[0].rated_power_kw)

    chosen = capable[:n_units]
    for dg in chosen:
        _bring_online(dg)
        dg.current_load_kw = -DG_IDLE_MARKER_FRACTION * dg.rated_power_kw
    return len(chosen)


# ---------------------------------------------------------------------------
# N-1 rotating reserve
# ---------------------------------------------------------------------------

def _next_reserve_unit(
    generators: Sequence[DieselGenerator],
    online_ids: set[int],
) -> DieselGenerator | None:
    hot = None
    cold = None
    for dg in generators:
        if not dg.available or id(dg) in online_ids:
            continue
        if dg.working and hot is None:
            hot = dg
        elif not dg.working and cold is None:
            cold = dg
    return hot if hot is not None else cold


def apply_rotation_reserve(
    generators: Sequence[DieselGenerator],
    load_kw: float,
    wind_to_load_kw: float,
    bt_discharge_kw: float,
    battery: Battery | None,
    ctx: DispatchContext,
) -> float:
    """Add units until the fleet survives losing its largest online unit.

    The diesel need is ``load - wind - battery discharge``.  With ``n``
    online units of equal rating the post-contingency deficit is
    ``need - (n - 1) * max_kw``; a unit is added while that deficit is
    positive and the battery cannot bridge it for one hour.  Hot units
    (spinning without real load) are preferred over cold starts.

    Returns
    -------
    float
        Diesel output after the augmentation (kW).
    """
    need_kw = load_kw - wind_to_load_kw - max(0.0, bt_discharge_kw)
    if need_kw <= EPSILON:
        return produced_kw(generators)

    max_kw = ctx.dg_max_kw
    bt_cap = battery.discharge_capacity_kw() if battery is not None and battery.available else 0.0

    online = [
        dg for dg in generators
        if dg.available and dg.working and abs(dg.current_load_kw) > EPSILON
    ]

    # Units carrying the idle marker are already online and booked.
    online_ids = {id(dg) for dg in online}

    added = 0
    while True:
        post_deficit = need_kw - max(len(online) - 1, 0) * max_kw
        if post_deficit <= EPSILON:
            break
        if battery is not None and battery.can_bridge(post_deficit, 1.0, bt_cap):
            break
        unit = _next_reserve_unit(generators, online_ids)
        if unit is None:
            break
        _bring_online(unit)
        online.append(unit)
        online_ids.add(id(unit))
        added += 1

    if added == 0:
        return produced_kw(generators)

    per_unit = min(need_kw / len(online), max_kw)
    for dg in online:
        dg.current_load_kw = per_unit
    return per_unit * len(online)
