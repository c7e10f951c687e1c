"""
Sample-by-sample Butterworth band-pass for the hue signal.

The raw hue sits on a large, slowly drifting DC level; the pulse is a small
ripple on top of it.  A band-pass around the plausible heart-rate band
removes the DC and drift and leaves a zero-centred waveform whose sign says
whether the pulse is rising or falling.
"""

from __future__ import annotations

import numpy as np
from scipy.signal import butter, sosfilt, sosfilt_zi


class HueFilter:
    """
    Streaming IIR band-pass (second-order sections).

    Parameters
    ----------
    fps:
        Sample rate of the incoming stream (frames per second).
    bpm_low, bpm_high:
        Pass band in beats per minute (default 45 – 240 BPM).
    filter_order:
        Butterworth order (default 2).
    """

    def __init__(
        self,
        fps: float = 30.0,
        bpm_low: float = 45.0,
        bpm_high: float = 240.0,
        filter_order: int = 2,
    ) -> None:
        self.fps = fps
        self.bpm_low = bpm_low
        self.bpm_high = bpm_high
        self.filter_order = filter_order

        self._sos = self._build_filter()
        # Unit-step steady state; scaled by the first sample to prime the delay line.
        self._zi_step = sosfilt_zi(self._sos)
        self._zi: np.ndarray | None = None

    def process(self, value: float) -> float:
        """Filter one raw sample and return the band-passed value."""
        if self._zi is None:
            self._zi = self._zi_step * value
        out, self._zi = sosfilt(self._sos, [value], zi=self._zi)
        return float(out[0])

    def reset(self) -> None:
        """Drop the filter history; the next sample re-primes it."""
        self._zi = None

    def _build_filter(self) -> np.ndarray:
        nyq = self.fps / 2.0
        low = (self.bpm_low / 60.0) / nyq
        high = (self.bpm_high / 60.0) / nyq
        # Clamp to valid range
        low = max(1e-4, min(low, 0.999))
        high = max(low + 1e-4, min(high, 0.999))
        return butter(self.filter_order, [low, high], btype="bandpass", output="sos")
