"""Series input and trace output."""

from .series import InputSeries, load_series, parse_series, read_series, wind_height_factor
from .trace_csv import write_trace, write_trace_csv

__all__ = [
    "InputSeries",
    "load_series",
    "parse_series",
    "read_series",
    "wind_height_factor",
    "write_trace",
    "write_trace_csv",
]
