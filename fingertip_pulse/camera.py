"""
Camera frame source.

Wraps OpenCV ``VideoCapture`` and yields BGR frames together with a
monotonic capture timestamp, which is what the pulse pipeline needs.
"""

from __future__ import annotations

import logging
import time
from typing import Generator, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

MAX_FAILED_READS = 10


class Camera:
    """
    Thin wrapper around an OpenCV capture device.

    Parameters
    ----------
    resolution:
        (width, height) of captured frames.  A small frame is plenty: only
        the mean colour is used.
    fps:
        Target frame rate.  Actual rate may differ slightly.
    camera_index:
        OpenCV camera index.
    """

    def __init__(
        self,
        resolution: Tuple[int, int] = (320, 240),
        fps: int = 30,
        camera_index: int = 0,
    ) -> None:
        self.resolution = resolution
        self.fps = fps
        self.camera_index = camera_index
        self._cap: cv2.VideoCapture | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the device; raises :class:`RuntimeError` if it is unavailable."""
        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            raise RuntimeError(
                f"Cannot open video capture device index={self.camera_index}"
            )
        w, h = self.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        self._cap = cap
        logger.info(
            "Camera opened – index=%d resolution=%s fps=%d",
            self.camera_index,
            self.resolution,
            self.fps,
        )

    def close(self) -> None:
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Camera closed.")

    def __enter__(self) -> "Camera":
        self.open()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Frame acquisition
    # ------------------------------------------------------------------

    def read_frame(self) -> Tuple[np.ndarray | None, float]:
        """
        Capture a single frame.

        Returns
        -------
        ``(frame, timestamp)`` where *frame* is a BGR array or *None* on
        failure and *timestamp* is ``time.monotonic()`` at capture.
        """
        if self._cap is None:
            raise RuntimeError("Camera is not open.  Call open() first.")
        ok, frame = self._cap.read()
        timestamp = time.monotonic()
        if not ok:
            logger.warning("VideoCapture.read() returned False.")
            return None, timestamp
        return frame, timestamp

    def frames(self) -> Generator[Tuple[np.ndarray, float], None, None]:
        """
        Yield ``(frame, timestamp)`` until the camera is closed or keeps failing.

        Usage::

            with Camera() as cam:
                for frame, t in cam.frames():
                    process(frame, t)
        """
        null_streak = 0
        while self._cap is not None:
            frame, timestamp = self.read_frame()
            if frame is None:
                null_streak += 1
                if null_streak >= MAX_FAILED_READS:
                    logger.error(
                        "Camera returned %d consecutive empty frames – aborting.",
                        MAX_FAILED_READS,
                    )
                    break
                continue
            null_streak = 0
            yield frame, timestamp
