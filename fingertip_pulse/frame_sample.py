"""
Frame → single scalar sample.

With a fingertip pressed on the lens and the light on, the whole frame is a
nearly uniform red field.  Its average colour, expressed as hue / saturation /
brightness, is what the pulse pipeline consumes: hue carries the pulse, while
saturation and brightness tell whether the finger is actually covering the
lens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class FrameSample:
    """One frame reduced to its mean colour, plus the capture time (s)."""

    hue: float
    saturation: float
    brightness: float
    time: float


def mean_hsv(frame: np.ndarray) -> Tuple[float, float, float]:
    """
    Return the ``(hue, saturation, brightness)`` of the frame's mean colour.

    Parameters
    ----------
    frame:
        BGR image array (H × W × 3, uint8).

    Returns
    -------
    hue in [0, 1), saturation and brightness in [0, 1].
    """
    b, g, r, _ = cv2.mean(frame)
    pixel = np.array([[[b, g, r]]], dtype=np.float32) / 255.0
    # float32 input: H in degrees [0, 360), S and V in [0, 1]
    h, s, v = cv2.cvtColor(pixel, cv2.COLOR_BGR2HSV)[0, 0]
    # Not unwrapped: a red fingertip sits at the 0/1 seam and may flip across it.
    return (float(h) / 360.0) % 1.0, float(s), float(v)


def sample_from_frame(frame: np.ndarray, timestamp: float) -> FrameSample:
    hue, saturation, brightness = mean_hsv(frame)
    return FrameSample(hue=hue, saturation=saturation, brightness=brightness, time=timestamp)
