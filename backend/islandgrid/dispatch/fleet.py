"""Helpers over a list of diesel generators."""

from __future__ import annotations

from collections.abc import Iterable

from islandgrid.constants import EPSILON
from islandgrid.generator import DieselGenerator


def sorted_generators(generators: Iterable[DieselGenerator]) -> list[DieselGenerator]:
    """Dispatch order: working units first, then ascending run-hours.

    ``sorted`` is stable, so equal keys keep their plant order.
    """
    return sorted(generators, key=DieselGenerator.dispatch_key)


def stop_all(generators: Iterable[DieselGenerator]) -> None:
    for dg in generators:
        dg.stop()


def any_maintenance_started(generators: Iterable[DieselGenerator]) -> bool:
    return any(dg.maintenance_started_this_hour for dg in generators)


def count_available(generators: Iterable[DieselGenerator]) -> int:
    return sum(1 for dg in generators if dg.available)


def count_ready(generators: Iterable[DieselGenerator]) -> int:
    """Available units already spinning at the start of dispatch."""
    return sum(1 for dg in generators if dg.available and dg.working)


def produced_kw(generators: Iterable[DieselGenerator]) -> float:
    """Real power from the positive loads of available units."""
    total = 0.0
    for dg in generators:
        if dg.available and dg.current_load_kw > EPSILON:
            total += dg.current_load_kw
    return total
