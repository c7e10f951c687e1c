"""
Pulse / period detector.

Algorithm
---------
1. Each filtered sample is routed by sign into one of two small rings that
   hold the most recent "up" and "down" magnitudes.
2. The ring means give an amplitude-adaptive hysteresis band: a sample
   below ``-0.5 × average_down`` arms the detector, and the next sample at
   or above ``0.5 × average_up`` fires a transition.
3. The time between consecutive transitions is one period.  Periods outside
   a plausible range are discarded so that a missed or duplicated crossing
   cannot poison the history.
4. The reported period is the mean of the recent (fresh) periods.

All state has fixed size; every call does work bounded by the ring
capacities.
"""

from __future__ import annotations

import enum
import logging
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

AVERAGE_SIZE = 20          # amplitude samples kept per polarity
MAX_PERIODS_TO_STORE = 20
FRESHNESS_WINDOW = 10.0    # seconds
MIN_PERIOD = 0.05          # seconds (1200 BPM)
MAX_PERIOD = 2.0           # seconds (30 BPM)
HYSTERESIS_FRACTION = 0.5


class Trend(enum.Enum):
    """Phase of the filtered signal relative to the hysteresis band."""

    FALLING = -1
    NEUTRAL = 0
    RISING = 1


class RollingAverage:
    """Fixed-capacity ring of floats; empty slots are ``None``."""

    def __init__(self, size: int = AVERAGE_SIZE) -> None:
        self.size = size
        self._values: List[Optional[float]] = [None] * size
        self._index = 0

    def add(self, value: float) -> None:
        self._values[self._index] = value
        self._index += 1
        if self._index >= self.size:
            self._index = 0

    def mean(self) -> Optional[float]:
        """Mean of the filled slots, or *None* when nothing was written yet."""
        total = 0.0
        count = 0
        for value in self._values:
            if value is not None:
                total += value
                count += 1
        if count == 0:
            return None
        return total / count

    def reset(self) -> None:
        for i in range(self.size):
            self._values[i] = None
        self._index = 0


class PulseDetector:
    """
    Detects the down→up crossing of a zero-centred periodic signal and keeps
    a short history of the intervals between crossings.

    Not thread-safe: drive it from one context, or wrap it the way
    :class:`~fingertip_pulse.analyzer.PulseAnalyzer` does.

    Parameters
    ----------
    min_period, max_period:
        Open interval (seconds) an inter-crossing time must fall into to be
        stored.  Defaults: 0.05 – 2.0 s.
    freshness_window:
        Periods recorded more than this many seconds before ``now`` are
        ignored by :meth:`get_average_period`.  Default: 10 s.
    """

    def __init__(
        self,
        min_period: float = MIN_PERIOD,
        max_period: float = MAX_PERIOD,
        freshness_window: float = FRESHNESS_WINDOW,
    ) -> None:
        self.min_period = min_period
        self.max_period = max_period
        self.freshness_window = freshness_window

        self._up = RollingAverage(AVERAGE_SIZE)
        self._down = RollingAverage(AVERAGE_SIZE)
        self._periods: List[Optional[Tuple[float, float]]] = [None] * MAX_PERIODS_TO_STORE
        self._period_index = 0
        self._was_down = False
        self._period_start: Optional[float] = None
        self._last_transition = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_sample(self, value: float, at_time: float) -> Trend:
        """
        Feed one filtered sample taken at *at_time* (seconds, non-decreasing).

        Returns the sample's position relative to the hysteresis band.
        """
        if value > 0:
            self._up.add(value)
        elif value < 0:
            self._down.add(-value)

        self._last_transition = False
        average_up = self._up.mean()
        average_down = self._down.mean()
        if average_up is None or average_down is None:
            return Trend.NEUTRAL

        down_threshold = -HYSTERESIS_FRACTION * average_down
        up_threshold = HYSTERESIS_FRACTION * average_up

        if value < down_threshold:
            self._was_down = True

        if value >= up_threshold and self._was_down:
            self._was_down = False
            self._last_transition = True
            self._record_transition(at_time)

        if value > up_threshold:
            return Trend.RISING
        if value < down_threshold:
            return Trend.FALLING
        return Trend.NEUTRAL

    def get_average_period(self, now: float) -> Optional[float]:
        """
        Mean of the periods recorded within the freshness window before *now*.

        Returns *None* until more than two fresh periods are available.
        """
        total = 0.0
        count = 0
        for entry in self._periods:
            if entry is None:
                continue
            period, recorded_at = entry
            if now - recorded_at < self.freshness_window:
                total += period
                count += 1
        if count > 2:
            return total / count
        return None

    def reset(self) -> None:
        """Forget everything; the detector behaves like a new instance."""
        self._up.reset()
        self._down.reset()
        for i in range(MAX_PERIODS_TO_STORE):
            self._periods[i] = None
        self._period_index = 0
        self._was_down = False
        self._period_start = None
        self._last_transition = False

    @property
    def average_up(self) -> Optional[float]:
        return self._up.mean()

    @property
    def average_down(self) -> Optional[float]:
        return self._down.mean()

    @property
    def period_count(self) -> int:
        """Number of stored periods, fresh or not."""
        return sum(1 for entry in self._periods if entry is not None)

    @property
    def last_sample_was_transition(self) -> bool:
        """Whether the most recent :meth:`add_sample` call fired a crossing."""
        return self._last_transition

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _record_transition(self, at_time: float) -> None:
        if self._period_start is not None:
            elapsed = at_time - self._period_start
            if self.min_period < elapsed < self.max_period:
                self._periods[self._period_index] = (elapsed, at_time)
                self._period_index += 1
                if self._period_index >= MAX_PERIODS_TO_STORE:
                    self._period_index = 0
            else:
                logger.debug("Rejected implausible period %.3f s at t=%.3f", elapsed, at_time)
        # Advance even on rejection so one outlier cannot stall later periods.
        self._period_start = at_time


def period_to_bpm(period: Optional[float]) -> Optional[float]:
    """Convert a period in seconds to beats per minute (*None* stays *None*)."""
    if period is None or period <= 0:
        return None
    return 60.0 / period
