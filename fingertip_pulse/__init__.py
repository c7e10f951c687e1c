"""
Fingertip Pulse — heart rate from the camera with a finger on the lens.

The mean hue of the lit fingertip ripples with every heartbeat.  Each frame
is reduced to one hue sample, band-pass filtered, and a hysteresis crossing
detector turns the ripple into a running average period and BPM.
"""

from fingertip_pulse.analyzer import (
    MeasurementFinished,
    MeasurementStarted,
    PulseAnalyzer,
    PulseEvent,
    PulseUpdated,
)
from fingertip_pulse.config import AnalyzerConfig
from fingertip_pulse.hue_filter import HueFilter
from fingertip_pulse.pulse_detector import PulseDetector, Trend, period_to_bpm

__all__ = [
    "AnalyzerConfig",
    "HueFilter",
    "MeasurementFinished",
    "MeasurementStarted",
    "PulseAnalyzer",
    "PulseDetector",
    "PulseEvent",
    "PulseUpdated",
    "Trend",
    "period_to_bpm",
]

__version__ = "0.1.0"
__author__ = "fingertip_pulse"
