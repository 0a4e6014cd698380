"""Equipment reliability engine module."""

from .failure_model import FailureEvent, FailureModel, draw_failure_time
from .streams import SEED_OFFSETS, RandomStreams

__all__ = [
    "FailureEvent",
    "FailureModel",
    "draw_failure_time",
    "SEED_OFFSETS",
    "RandomStreams",
]
