"""Tunables for the frame-sample pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AnalyzerConfig:
    fps: float = 30.0                   # nominal camera rate, drives the filter design
    bpm_low: float = 45.0               # filter pass band
    bpm_high: float = 240.0
    filter_order: int = 2
    saturation_threshold: float = 0.5   # quality gate, both in 0..1
    brightness_threshold: float = 0.5
    warm_up_frames: int = 30            # accepted frames before the detector is fed
