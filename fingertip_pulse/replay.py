"""Record and replay frame-sample streams as CSV."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

import numpy as np

from fingertip_pulse.frame_sample import FrameSample

COLUMNS = ("hue", "saturation", "brightness", "time")


def save_samples(path: Path, samples: Iterable[FrameSample]) -> None:
    rows = [(s.hue, s.saturation, s.brightness, s.time) for s in samples]
    data = np.array(rows, dtype=np.float64).reshape(-1, len(COLUMNS))
    np.savetxt(path, data, delimiter=",", header=",".join(COLUMNS), comments="", fmt="%.9g")


def load_samples(path: Path) -> List[FrameSample]:
    """
    Load samples written by :func:`save_samples`.

    Raises :class:`ValueError` if the file does not hold four numeric columns
    or its timestamps go backwards.
    """
    data = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    if data.size == 0:
        return []
    if data.shape[1] != len(COLUMNS):
        raise ValueError(
            f"{path}: expected {len(COLUMNS)} columns ({','.join(COLUMNS)}), got {data.shape[1]}"
        )
    if np.any(np.diff(data[:, 3]) < 0):
        raise ValueError(f"{path}: timestamps must be non-decreasing")
    return [FrameSample(float(h), float(s), float(v), float(t)) for h, s, v, t in data]
