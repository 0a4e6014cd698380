"""Hourly input series readers.

Input files hold one value per line (or per row; the last column is
taken).  Decimal commas are accepted, blank lines and lines starting with
``#`` are skipped, and a non-numeric first row is treated as a header.
"""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from islandgrid.errors import ConfigurationError

# Log-law wind shear defaults (anemometer at 50 m, hub at 35 m, open terrain).
WIND_REFERENCE_HEIGHT_M: float = 50.0
WIND_HUB_HEIGHT_M: float = 35.0
WIND_ROUGHNESS_M: float = 0.03


@dataclass
class InputSeries:
    """Hourly load (kW) and wind speed at hub height (m/s)."""

    total_load_kw: np.ndarray
    wind_ms: np.ndarray

    def validate(self, expected_length: int | None = None) -> None:
        if self.total_load_kw.size != self.wind_ms.size:
            raise ConfigurationError(
                f"load has {self.total_load_kw.size} values, wind has {self.wind_ms.size}"
            )
        if expected_length is not None and self.wind_ms.size != expected_length:
            raise ConfigurationError(
                f"series have {self.wind_ms.size} values, expected {expected_length}"
            )


def wind_height_factor(
    hub_height_m: float = WIND_HUB_HEIGHT_M,
    reference_height_m: float = WIND_REFERENCE_HEIGHT_M,
    roughness_m: float = WIND_ROUGHNESS_M,
) -> float:
    """Log-law speed ratio ``ln(h/z0) / ln(h_ref/z0)``, rounded to 3 decimals."""
    if min(hub_height_m, reference_height_m, roughness_m) <= 0:
        raise ConfigurationError("heights and roughness must be > 0")
    raw = math.log(hub_height_m / roughness_m) / math.log(reference_height_m / roughness_m)
    return round(raw, 3)


def _parse_number(cell: str) -> float:
    return float(cell.strip().replace(",", "."))


def parse_series(text: str, source: str = "<text>") -> np.ndarray:
    """Parse one numeric column from CSV *text*.

    Separators ``;`` and tab are recognised so that a decimal comma does
    not split the value.  A comma is only taken as a separator when the
    rows also contain a decimal point.
    """
    lines = [
        line for line in text.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    if not lines:
        raise ConfigurationError(f"{source}: no data")

    sample = lines[-1]
    if ";" in sample:
        delimiter = ";"
    elif "\t" in sample:
        delimiter = "\t"
    elif "," in sample and "." in sample:
        delimiter = ","
    else:
        delimiter = None

    values: list[float] = []
    if delimiter is None:
        rows = ([line] for line in lines)
    else:
        rows = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)

    for lineno, row in enumerate(rows, start=1):
        cells = [c for c in row if c.strip()]
        if not cells:
            continue
        try:
            values.append(_parse_number(cells[-1]))
        except ValueError:
            if lineno == 1:
                continue
            raise ConfigurationError(
                f"{source}: line {lineno}: not a number: {cells[-1]!r}"
            ) from None

    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        raise ConfigurationError(f"{source}: no numeric values")
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"{source}: non-finite values")
    return arr


def read_series(path: str | Path) -> np.ndarray:
    path = Path(path)
    return parse_series(path.read_text(encoding="utf-8-sig"), source=str(path))


def load_series(
    load_path: str | Path,
    wind_path: str | Path,
    expected_length: int | None = None,
    load_scale_kw: float = 1.0,
    wind_factor: float = 1.0,
) -> InputSeries:
    """Read the load and wind files and apply the scaling.

    Parameters
    ----------
    load_path, wind_path : path-like
        Single-column files.
    expected_length : int, optional
        Required number of hours.
    load_scale_kw : float
        Multiplier for the load column (e.g. peak kW for a per-unit
        profile).
    wind_factor : float
        Multiplier for the wind column, see :func:`wind_height_factor`.

    Raises
    ------
    ConfigurationError
        On unreadable values or mismatched lengths.
    """
    data = InputSeries(
        total_load_kw=read_series(load_path) * float(load_scale_kw),
        wind_ms=read_series(wind_path) * float(wind_factor),
    )
    data.validate(expected_length)
    return data
