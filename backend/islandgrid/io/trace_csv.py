"""CSV export of a traced run, one row per hour."""

from __future__ import annotations

import csv
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from islandgrid.simulation import HourRecord

_BUS_FIELDS = (
    "alive", "load_kw", "wind_to_load_kw", "dg_to_load_kw",
    "bt_net_kw", "ens_kw", "wre_kw", "battery_soc",
)


def _header(first: HourRecord) -> list[str]:
    cols = ["hour", "wind_ms", "breaker_closed", "total_load_kw", "total_ens_kw"]
    for bus in first.buses:
        prefix = f"bus{bus.bus + 1}"
        cols.extend(f"{prefix}_{name}" for name in _BUS_FIELDS)
        cols.extend(f"{prefix}_dg{dg.index + 1}_load_kw" for dg in bus.diesels)
    return cols


def _fmt(value: float | None) -> str:
    return "" if value is None else f"{value:.3f}"


def _row(record: HourRecord) -> list[str]:
    row = [
        str(record.hour),
        _fmt(record.wind_ms),
        str(int(record.breaker_closed)),
        _fmt(record.total_load_kw),
        _fmt(record.total_ens_kw),
    ]
    for bus in record.buses:
        row.append(str(int(bus.alive)))
        row.extend(_fmt(getattr(bus, name)) for name in _BUS_FIELDS[1:])
        row.extend(_fmt(dg.load_kw) for dg in bus.diesels)
    return row


def write_trace(records: Sequence[HourRecord], stream: TextIO, delimiter: str = ",") -> int:
    """Write *records* to an open text stream; returns the row count."""
    writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
    if not records:
        return 0
    writer.writerow(_header(records[0]))
    for record in records:
        writer.writerow(_row(record))
    return len(records)


def write_trace_csv(records: Sequence[HourRecord], path: str | Path, delimiter: str = ",") -> int:
    with open(path, "w", newline="", encoding="utf-8") as fh:
        return write_trace(records, fh, delimiter)
