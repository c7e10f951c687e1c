#!/usr/bin/env python3
"""
Fingertip Pulse – main entry point.

Usage
-----
    python main.py [OPTIONS]

Options
-------
    --resolution WxH     Camera resolution (default: 320x240)
    --fps INT            Target frame rate  (default: 30)
    --camera-index INT   OpenCV camera index (default: 0)
    --warm-up INT        Accepted frames before measuring (default: 30)
    --replay PATH        Feed a recorded sample CSV instead of the camera
    --record PATH        Save every live sample to a CSV file
    --headless           Run without display window (log BPM to stdout)

Keyboard shortcuts (when a window is open)
------------------------------------------
    q / ESC  – quit
    r        – reset the measurement
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

import cv2
import numpy as np

from fingertip_pulse.analyzer import (
    MeasurementFinished,
    MeasurementStarted,
    PulseAnalyzer,
    PulseEvent,
    PulseUpdated,
)
from fingertip_pulse.camera import Camera
from fingertip_pulse.config import AnalyzerConfig
from fingertip_pulse.frame_sample import FrameSample, sample_from_frame
from fingertip_pulse.replay import load_samples, save_samples

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("fingertip_pulse")

_GREEN = (0, 220, 80)
_YELLOW = (0, 210, 210)
_BLACK = (0, 0, 0)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Heart rate from a fingertip on the camera lens",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--resolution", default="320x240",
                        help="Camera resolution, e.g. 320x240")
    parser.add_argument("--fps", type=int, default=30,
                        help="Target capture frame rate")
    parser.add_argument("--camera-index", type=int, default=0,
                        help="OpenCV VideoCapture index")
    parser.add_argument("--warm-up", type=int, default=30,
                        help="Accepted frames to skip before measuring")
    parser.add_argument("--replay", type=Path, default=None,
                        help="Replay a recorded sample CSV instead of the camera")
    parser.add_argument("--record", type=Path, default=None,
                        help="Save every live sample (gated on replay) to this CSV file")
    parser.add_argument("--headless", action="store_true",
                        help="No display window; log BPM to stdout only")
    return parser.parse_args(argv)


def log_events(events: List[PulseEvent]) -> None:
    for event in events:
        if isinstance(event, MeasurementStarted):
            logger.info("Finger detected – measuring.")
        elif isinstance(event, MeasurementFinished):
            logger.info("Finger removed – measurement reset.")
        elif isinstance(event, PulseUpdated):
            logger.info("Pulse %.1f BPM", event.bpm)


def draw_overlay(frame: np.ndarray, bpm: float | None, measuring: bool) -> np.ndarray:
    """Write the BPM readout and a placement hint onto *frame* in-place."""
    if bpm is not None:
        text, color = f"{bpm:.0f} BPM", _GREEN
    elif measuring:
        text, color = "Measuring...", _YELLOW
    else:
        text, color = "Cover the lens with a finger", _YELLOW
    cv2.putText(frame, text, (11, 31), cv2.FONT_HERSHEY_SIMPLEX, 0.7, _BLACK, 3, cv2.LINE_AA)
    cv2.putText(frame, text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2, cv2.LINE_AA)
    return frame


# ---------------------------------------------------------------------------
# Main loops
# ---------------------------------------------------------------------------

def run_replay(path: Path, analyzer: PulseAnalyzer) -> int:
    try:
        samples = load_samples(path)
    except (OSError, ValueError) as exc:
        logger.error("Cannot replay %s: %s", path, exc)
        return 1

    logger.info("Replaying %d samples from %s", len(samples), path)
    for sample in samples:
        log_events(analyzer.on_frame(sample))

    if samples:
        bpm = analyzer.get_average_pulse_bpm(samples[-1].time)
        if bpm is not None:
            print(f"Average pulse: {bpm:.1f} BPM")
        else:
            print("Average pulse: unavailable (not enough data)")
    return 0


def run_camera(args: argparse.Namespace, analyzer: PulseAnalyzer) -> int:
    try:
        res_w, res_h = (int(v) for v in args.resolution.lower().split("x"))
    except ValueError:
        logger.error("Invalid --resolution format.  Use WxH, e.g. 320x240.")
        return 1

    camera = Camera(resolution=(res_w, res_h), fps=args.fps, camera_index=args.camera_index)
    recorded: List[FrameSample] = []
    last_print = 0.0

    logger.info("Starting pulse monitor.  Press 'q' or ESC to quit.")
    if not args.headless:
        cv2.namedWindow("Fingertip Pulse", cv2.WINDOW_NORMAL)

    try:
        with camera:
            for frame, timestamp in camera.frames():
                sample = sample_from_frame(frame, timestamp)
                if args.record is not None:
                    recorded.append(sample)
                log_events(analyzer.on_frame(sample))
                bpm = analyzer.get_average_pulse_bpm(timestamp)

                if args.headless:
                    if timestamp - last_print >= 1.0:
                        last_print = timestamp
                        ts = time.strftime("%H:%M:%S")
                        if bpm is not None:
                            print(f"[{ts}] BPM={bpm:.1f}")
                        else:
                            print(f"[{ts}] Waiting for signal…  measuring={analyzer.is_measuring}")
                    continue

                cv2.imshow("Fingertip Pulse", draw_overlay(frame, bpm, analyzer.is_measuring))
                key = cv2.waitKey(1) & 0xFF
                if key in (ord("q"), 27):          # q or ESC
                    logger.info("Quit requested by user.")
                    break
                elif key == ord("r"):
                    analyzer.reset()
                    logger.info("Measurement reset.")

    except RuntimeError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        if not args.headless:
            cv2.destroyAllWindows()
        if args.record is not None and recorded:
            save_samples(args.record, recorded)
            logger.info("Saved %d samples to %s", len(recorded), args.record)

    return 0


def run(args: argparse.Namespace) -> int:
    if args.fps <= 0:
        logger.error("--fps must be positive.")
        return 1
    if args.warm_up < 0:
        logger.error("--warm-up must be non-negative.")
        return 1
    analyzer = PulseAnalyzer(AnalyzerConfig(fps=float(args.fps), warm_up_frames=args.warm_up))
    if args.replay is not None:
        return run_replay(args.replay, analyzer)
    return run_camera(args, analyzer)


def main() -> int:
    return run(parse_args())


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
