"""Run totals and ENS apportionment by reliability category.

Two apportionment rules:

* **proportional** splits ENS over categories 1/2/3 by their load
  shares (``cat3 = max(0, 1 - cat1 - cat2)``); used for outage-caused ENS
  and the start-delay slice;
* **priority** fills category 1's load share first, then category 2's;
  whatever is left falls to category 3.  Used for capacity shortfalls.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from islandgrid.constants import EPSILON

from .context import HourOutcome


@dataclass
class Totals:
    """Mutable energy accumulators of one run (kWh, litres)."""

    load_kwh: float = 0.0
    ens_kwh: float = 0.0
    ens_cat1_kwh: float = 0.0
    ens_cat2_kwh: float = 0.0
    wre_kwh: float = 0.0
    wt_to_load_kwh: float = 0.0
    dg_to_load_kwh: float = 0.0
    bt_to_load_kwh: float = 0.0
    fuel_liters: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def add_ens_by_category(
    totals: Totals,
    load_kw: float,
    ens_kw: float,
    cat1: float,
    cat2: float,
) -> None:
    """Priority rule: ENS hits category 1's share first, then category 2's."""
    if ens_kw <= EPSILON:
        return
    p1 = load_kw * cat1
    p2 = load_kw * cat2
    ens1 = min(ens_kw, p1)
    ens2 = min(max(0.0, ens_kw - p1), p2)
    totals.ens_cat1_kwh += ens1
    totals.ens_cat2_kwh += ens2


def add_ens_proportional(
    totals: Totals,
    load_kw: float,
    ens_kw: float,
    cat1: float,
    cat2: float,
) -> None:
    """Proportional rule: split ENS by each category's share of the load."""
    if ens_kw <= EPSILON:
        return
    cat3 = max(0.0, 1.0 - cat1 - cat2)
    p1 = load_kw * cat1
    p2 = load_kw * cat2
    p3 = load_kw * cat3
    total = p1 + p2 + p3
    if total <= EPSILON:
        return
    totals.ens_cat1_kwh += ens_kw * (p1 / total)
    totals.ens_cat2_kwh += ens_kw * (p2 / total)


def accumulate(totals: Totals, outcome: HourOutcome, cat1: float, cat2: float) -> None:
    """Add one bus-hour to *totals*."""
    totals.load_kwh += outcome.load_kw
    totals.ens_kwh += outcome.ens_kw
    totals.fuel_liters += outcome.fuel_liters

    if not outcome.alive:
        add_ens_proportional(totals, outcome.load_kw, outcome.ens_kw, cat1, cat2)
        return

    totals.wt_to_load_kwh += outcome.wind_to_load_kw
    totals.dg_to_load_kwh += outcome.dg_to_load_kw
    totals.bt_to_load_kwh += outcome.bt_discharge_kw
    totals.wre_kwh += outcome.wre_kw

    start_ens = min(outcome.ens_kw, outcome.start_ens_kw)
    add_ens_proportional(totals, outcome.load_kw, start_ens, cat1, cat2)
    add_ens_by_category(totals, outcome.load_kw, max(0.0, outcome.ens_kw - start_ens), cat1, cat2)
