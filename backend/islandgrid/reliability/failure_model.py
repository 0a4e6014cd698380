"""Exponential failure / fixed-duration repair timer.

Every physical asset in the plant owns one :class:`FailureModel`.  The
timer counts *work* hours rather than calendar hours: an asset only ages
while it is in service, and a failure is triggered once accumulated work
time reaches a threshold drawn from an exponential distribution

    T = -ln(1 - U) / lambda_h,      lambda_h = failure_rate_per_year / 8760

with ``U ~ Uniform[0, 1)``.  After a failure the asset is out of service
for ``repair_time_hours`` hours; on completion work time is cleared and a
fresh threshold is drawn.

The random generator is never stored on the model; callers pass the
per-asset-type stream into :meth:`FailureModel.reset` and
:meth:`FailureModel.step` (see :mod:`islandgrid.reliability.streams`).
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field

import numpy as np

from islandgrid.constants import HOURS_PER_YEAR


class FailureEvent(enum.Enum):
    """Outcome of one hourly :meth:`FailureModel.step`."""

    NONE = "none"
    FAILED = "failed"
    REPAIRED = "repaired"


def draw_failure_time(rng: np.random.Generator, failure_rate_per_year: float) -> float:
    """Draw the work hours until the next failure.

    Returns ``inf`` for a non-positive failure rate.
    """
    if failure_rate_per_year <= 0:
        return math.inf
    lambda_h = failure_rate_per_year / HOURS_PER_YEAR
    u = float(rng.random())
    return -math.log(1.0 - u) / lambda_h


@dataclass
class FailureModel:
    """Failure/repair state shared by every equipment variant.

    Parameters
    ----------
    failure_rate_per_year : float
        Mean number of failures per year of work (lambda).  Zero disables
        random failures.
    repair_time_hours : int
        Fixed repair duration after a failure (h).
    """

    failure_rate_per_year: float = 0.0
    repair_time_hours: int = 0

    status: bool = field(default=True, init=False)
    time_worked: float = field(default=0.0, init=False)
    next_failure_hours: float = field(default=math.inf, init=False)
    repair_countdown: int = field(default=0, init=False)
    failure_count: int = field(default=0, init=False)
    _consider_failures: bool = field(default=True, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.failure_rate_per_year < 0:
            raise ValueError(
                f"failure_rate_per_year must be >= 0, got {self.failure_rate_per_year}"
            )
        if self.repair_time_hours < 0:
            raise ValueError(
                f"repair_time_hours must be >= 0, got {self.repair_time_hours}"
            )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def available(self) -> bool:
        """``status and repair_countdown == 0``."""
        return self.status and self.repair_countdown == 0

    @property
    def in_repair(self) -> bool:
        return self.repair_countdown > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, rng: np.random.Generator, consider_failures: bool) -> None:
        """Return to the as-new state and draw the first failure threshold."""
        self._consider_failures = consider_failures
        self.status = True
        self.time_worked = 0.0
        self.repair_countdown = 0
        self.failure_count = 0
        self.next_failure_hours = math.inf
        if consider_failures:
            self.next_failure_hours = draw_failure_time(rng, self.failure_rate_per_year)

    def redraw(self, rng: np.random.Generator) -> None:
        """Draw a fresh failure threshold (no-op when failures are off)."""
        if self._consider_failures:
            self.next_failure_hours = draw_failure_time(rng, self.failure_rate_per_year)
        else:
            self.next_failure_hours = math.inf

    def step(
        self,
        rng: np.random.Generator,
        consider_failures: bool,
        *,
        redraw_on_repair: bool = True,
    ) -> FailureEvent:
        """Advance the timer by one hour.

        A running repair counts down first; an asset that finishes repair
        this hour cannot fail in the same hour.

        Parameters
        ----------
        rng : numpy.random.Generator
            Stream of the asset type, used when a repair completes.
        consider_failures : bool
            When False the asset never fails randomly.
        redraw_on_repair : bool
            Clear work time and draw a new threshold when a repair ends.
            Diesel maintenance completions pass False.

        Returns
        -------
        FailureEvent
        """
        if self.repair_countdown > 0:
            self.repair_countdown -= 1
            if self.repair_countdown == 0:
                self.status = True
                if redraw_on_repair:
                    self.time_worked = 0.0
                    self.redraw(rng)
                return FailureEvent.REPAIRED
            return FailureEvent.NONE

        if not self.status:
            return FailureEvent.NONE

        if (
            consider_failures
            and self.failure_rate_per_year > 0
            and self.time_worked >= self.next_failure_hours
        ):
            self.fail()
            return FailureEvent.FAILED

        return FailureEvent.NONE

    def fail(self) -> None:
        """Take the asset out of service for its repair duration."""
        self.status = False
        self.failure_count += 1
        self.repair_countdown = self.repair_time_hours
        if self.repair_countdown == 0:
            # Zero-length repair: back in service immediately.
            self.status = True
            self.time_worked = 0.0

    def force_fail_now(self) -> None:
        """Cascading failure that bypasses the random clock."""
        self.fail()
        self.time_worked = 0.0

    def begin_outage(self, hours: int) -> bool:
        """Take the asset out of service for *hours* without counting a failure.

        Returns False (and leaves the asset in service) when *hours* is not
        positive.
        """
        if hours <= 0:
            return False
        self.status = False
        self.repair_countdown = hours
        return True

    def add_work_time(self, hours: float) -> None:
        """Accumulate work time; ignored while out of service."""
        if self.available:
            self.time_worked += hours
