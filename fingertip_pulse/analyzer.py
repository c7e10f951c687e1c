"""
Frame-sample pipeline: quality gate → warm-up → hue filter → pulse detector.

The analyzer is what a frame source talks to.  It decides whether a frame is
usable (the finger must cover the lit lens, which shows up as a saturated,
bright mean colour), waits for the filter to settle, and reports what the
detector finds as a list of events per frame instead of through callbacks.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from fingertip_pulse.config import AnalyzerConfig
from fingertip_pulse.frame_sample import FrameSample
from fingertip_pulse.hue_filter import HueFilter
from fingertip_pulse.pulse_detector import PulseDetector, Trend, period_to_bpm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PulseEvent:
    time: float


@dataclass(frozen=True)
class MeasurementStarted(PulseEvent):
    """The warm-up is over and samples now reach the detector."""


@dataclass(frozen=True)
class MeasurementFinished(PulseEvent):
    """The quality gate failed; all state was reset."""


@dataclass(frozen=True)
class PulseUpdated(PulseEvent):
    """A crossing produced a new valid average."""

    bpm: float = 0.0
    period: float = 0.0


class PulseAnalyzer:
    """
    Thread-safe wrapper around :class:`HueFilter` and :class:`PulseDetector`.

    One lock guards every public method, so a display thread may poll
    :meth:`get_average_pulse_bpm` while the capture thread feeds frames.

    Parameters
    ----------
    config:
        Pipeline tunables; defaults to :class:`AnalyzerConfig()`.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()
        self._filter = HueFilter(
            fps=self.config.fps,
            bpm_low=self.config.bpm_low,
            bpm_high=self.config.bpm_high,
            filter_order=self.config.filter_order,
        )
        self._detector = PulseDetector()
        self._lock = threading.Lock()
        self._valid_frames = 0
        self._measuring = False
        self._latest_bpm: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def on_frame_sample(
        self,
        hue: float,
        saturation: float,
        brightness: float,
        time: float,
    ) -> List[PulseEvent]:
        """
        Process one frame's mean colour captured at *time* (seconds).

        Returns the events this frame produced (often none).
        """
        with self._lock:
            if self._passes_gate(saturation, brightness):
                return self._accept(hue, time)
            return self._reject(time)

    def on_frame(self, sample: FrameSample) -> List[PulseEvent]:
        return self.on_frame_sample(sample.hue, sample.saturation, sample.brightness, sample.time)

    def get_average_pulse_bpm(self, now: float) -> Optional[float]:
        """Current pulse in BPM, or *None* while there is not enough data."""
        with self._lock:
            return period_to_bpm(self._detector.get_average_period(now))

    def reset(self) -> None:
        with self._lock:
            self._reset_state()
            self._measuring = False

    @property
    def latest_bpm(self) -> Optional[float]:
        """BPM carried by the most recent :class:`PulseUpdated` event."""
        with self._lock:
            return self._latest_bpm

    @property
    def is_measuring(self) -> bool:
        with self._lock:
            return self._measuring

    # ------------------------------------------------------------------
    # Private helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _passes_gate(self, saturation: float, brightness: float) -> bool:
        return (
            saturation > self.config.saturation_threshold
            and brightness > self.config.brightness_threshold
        )

    def _accept(self, hue: float, time: float) -> List[PulseEvent]:
        events: List[PulseEvent] = []
        self._valid_frames += 1
        filtered = self._filter.process(hue)
        if self._valid_frames <= self.config.warm_up_frames:
            return events

        trend = self._detector.add_sample(filtered, time)
        if not self._measuring:
            self._measuring = True
            logger.info("Measurement started at t=%.3f", time)
            events.append(MeasurementStarted(time=time))

        if trend is Trend.RISING and self._detector.last_sample_was_transition:
            period = self._detector.get_average_period(time)
            bpm = period_to_bpm(period)
            if bpm is not None:
                self._latest_bpm = bpm
                logger.debug("Pulse %.1f BPM (period %.3f s)", bpm, period)
                events.append(PulseUpdated(time=time, bpm=bpm, period=period))
        return events

    def _reject(self, time: float) -> List[PulseEvent]:
        self._reset_state()
        if not self._measuring:
            return []
        self._measuring = False
        logger.info("Measurement finished at t=%.3f (signal quality lost)", time)
        return [MeasurementFinished(time=time)]

    def _reset_state(self) -> None:
        self._valid_frames = 0
        self._filter.reset()
        self._detector.reset()
        self._latest_bpm = None
