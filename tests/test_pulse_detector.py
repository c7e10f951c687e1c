"""
Unit tests for PulseDetector and the BPM conversion.
Run with:  pytest tests/test_pulse_detector.py
"""

from __future__ import annotations

import numpy as np
import pytest

from fingertip_pulse.pulse_detector import (
    AVERAGE_SIZE,
    MAX_PERIODS_TO_STORE,
    PulseDetector,
    Trend,
    period_to_bpm,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _feed_sine(det: PulseDetector, period: float, seconds: float, fps: float = 30.0):
    """Feed ``sin(2πt / period)``; return the list of (t, average_period) after each sample."""
    history = []
    for i in range(int(seconds * fps)):
        t = i / fps
        det.add_sample(float(np.sin(2 * np.pi * t / period)), t)
        history.append((t, det.get_average_period(t)))
    return history


def _primed() -> PulseDetector:
    """Detector with unit up/down averages and the down latch armed."""
    det = PulseDetector()
    det.add_sample(1.0, 0.0)
    det.add_sample(-1.0, 0.0)
    return det


def _beat(det: PulseDetector, t: float) -> None:
    """One full down→up swing ending with a crossing at *t*."""
    det.add_sample(-1.0, t - 0.001)
    det.add_sample(1.0, t)


# ---------------------------------------------------------------------------
# Period estimation
# ---------------------------------------------------------------------------

class TestPeriodEstimation:

    def test_sine_period_within_one_percent(self):
        det = PulseDetector()
        history = _feed_sine(det, period=1.0, seconds=5.0)
        t_end, average = history[-1]
        assert average is not None
        assert average == pytest.approx(1.0, rel=0.01)

    def test_invalid_before_three_periods(self):
        det = PulseDetector()
        history = _feed_sine(det, period=1.0, seconds=5.0)
        first_valid = next(i for i, (_, avg) in enumerate(history) if avg is not None)
        # Crossings land ~1 s apart starting near t≈1; the third period
        # completes after t≈4.
        assert history[first_valid][0] > 3.5
        assert all(avg is None for _, avg in history[:first_valid])

    def test_sixty_bpm_scenario(self):
        det = PulseDetector()
        _feed_sine(det, period=1.0, seconds=5.0)
        bpm = period_to_bpm(det.get_average_period(5.0))
        assert bpm is not None
        assert abs(bpm - 60.0) <= 2.0

    @pytest.mark.parametrize("period", [0.5, 0.8, 1.5])
    def test_other_periods(self, period):
        det = PulseDetector()
        history = _feed_sine(det, period=period, seconds=8.0)
        _, average = history[-1]
        assert average == pytest.approx(period, rel=0.05)

    def test_constant_zero_never_valid(self):
        det = PulseDetector()
        for i in range(300):
            t = i / 30.0
            assert det.add_sample(0.0, t) is Trend.NEUTRAL
            assert det.get_average_period(t) is None
        assert det.period_count == 0

    def test_stale_periods_expire(self):
        det = _primed()
        for t in (1.0, 2.0, 3.0, 4.0):
            _beat(det, t)
        assert det.get_average_period(4.0) == pytest.approx(1.0)
        # Only the entries recorded at 3 and 4 are still fresh.
        assert det.get_average_period(12.5) is None
        assert det.period_count == 3

    def test_idempotent_average(self):
        det = PulseDetector()
        _feed_sine(det, period=1.0, seconds=6.0)
        assert det.get_average_period(6.0) == det.get_average_period(6.0)


# ---------------------------------------------------------------------------
# Plausibility gate
# ---------------------------------------------------------------------------

class TestPlausibilityGate:

    def test_first_crossing_only_starts_timing(self):
        det = _primed()
        _beat(det, 1.0)
        assert det.period_count == 0
        _beat(det, 2.0)
        assert det.period_count == 1

    def test_fast_outlier_rejected(self):
        det = _primed()
        for t in (1.0, 2.0, 3.0):
            _beat(det, t)
        # Spurious crossing 0.01 s after the last one.
        det.add_sample(-1.0, 3.005)
        det.add_sample(1.0, 3.01)
        assert det.period_count == 2
        _beat(det, 4.01)
        assert det.period_count == 3
        assert det.get_average_period(4.01) == pytest.approx(1.0)

    def test_slow_outlier_rejected(self):
        det = _primed()
        for t in (1.0, 2.0, 3.0):
            _beat(det, t)
        _beat(det, 8.0)                 # 5 s gap: missed beats
        assert det.period_count == 2
        _beat(det, 9.0)
        assert det.period_count == 3
        assert det.get_average_period(9.0) == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Amplitude tracking and trend
# ---------------------------------------------------------------------------

class TestAmplitudeAndTrend:

    def test_empty_ring_suppresses_detection(self):
        det = PulseDetector()
        assert det.add_sample(5.0, 0.0) is Trend.NEUTRAL
        assert det.average_down is None
        assert det.add_sample(5.0, 0.1) is Trend.NEUTRAL

    def test_trend_tri_state(self):
        det = _primed()
        assert det.add_sample(0.8, 0.1) is Trend.RISING
        assert det.add_sample(-0.8, 0.2) is Trend.FALLING
        assert det.add_sample(0.1, 0.3) is Trend.NEUTRAL

    def test_rings_keep_latest_values_only(self):
        det = PulseDetector()
        for i in range(1, 101):
            det.add_sample(float(i), i * 0.01)
            det.add_sample(-float(i) * 2, i * 0.01)
        latest = np.arange(101 - AVERAGE_SIZE, 101, dtype=np.float64)
        assert det.average_up == pytest.approx(latest.mean())
        assert det.average_down == pytest.approx(2 * latest.mean())

    def test_period_history_capacity(self):
        det = _primed()
        for k in range(1, 60):
            _beat(det, k * 0.5)
        assert det.period_count == MAX_PERIODS_TO_STORE
        assert det.get_average_period(30.0) == pytest.approx(0.5)

    def test_zero_sample_updates_neither_ring(self):
        det = _primed()
        det.add_sample(0.0, 0.1)
        assert det.average_up == pytest.approx(1.0)
        assert det.average_down == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Reset
# ---------------------------------------------------------------------------

class TestReset:

    def test_reset_matches_fresh_instance(self):
        rng = np.random.default_rng(7)
        t = np.arange(300) / 30.0
        signal = np.sin(2 * np.pi * 1.1 * t) + 0.2 * rng.standard_normal(t.size)

        used = PulseDetector()
        _feed_sine(used, period=0.7, seconds=6.0)
        used.reset()
        fresh = PulseDetector()

        for value, ts in zip(signal, t):
            assert used.add_sample(float(value), float(ts)) is fresh.add_sample(float(value), float(ts))
        for now in (5.0, 9.0, 9.97):
            assert used.get_average_period(now) == fresh.get_average_period(now)
        assert used.period_count == fresh.period_count

    def test_reset_clears_history(self):
        det = PulseDetector()
        _feed_sine(det, period=1.0, seconds=6.0)
        det.reset()
        assert det.get_average_period(6.0) is None
        assert det.average_up is None
        assert det.average_down is None
        assert det.period_count == 0


# ---------------------------------------------------------------------------
# BPM conversion
# ---------------------------------------------------------------------------

class TestPeriodToBpm:

    def test_one_second_is_sixty(self):
        assert period_to_bpm(1.0) == pytest.approx(60.0)

    def test_invalid_is_unavailable(self):
        assert period_to_bpm(None) is None
        assert period_to_bpm(0.0) is None
