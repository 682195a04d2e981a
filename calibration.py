# -*- coding: utf-8 -*-
########################
# calibration.py
########################
# Purpose:
# - Head pose calibration: collect smoothed nose samples and derive a CalibrationFrame (center + spread).
# - Exponential smoothing of raw sensor samples ahead of calibration and normalization.
#
# Design notes:
# - No Qt usage. Pure logic, safe to call from the sensor arrival point.
# - Calibrator is the only writer of CalibrationFrame. The frame is replaced, never mutated.
# - Spread is floored so a near-motionless session cannot blow up normalization.
# - finalize() with no samples is a no-op.
#
########################
# Interfaces:
# Public enums:
# - CalibrationPhase: IDLE | COLLECTING | READY
#
# Public classes:
# - class SampleSmoother
#   - update(sample: RawSample) -> RawSample
#   - current() -> Optional[RawSample]
#   - reset() -> None
# - class Calibrator
#   - begin() -> None
#   - add_sample(sample: RawSample) -> Optional[CalibrationFrame]
#   - finalize() -> Optional[CalibrationFrame]
#   - cancel() -> None
#   - phase() -> CalibrationPhase
#   - frame() -> CalibrationFrame
#   - is_ready() / is_collecting() -> bool
#   - progress() -> float
#
# Inputs:
# - RawSample values in normalized image space [0, 1].
#
# Outputs:
# - CalibrationFrame consumed by InputNormalizer.
#
########################

from __future__ import annotations

import logging
import statistics
from enum import Enum
from typing import List, Optional

from gameplay_models import CalibrationFrame, RawSample


logger = logging.getLogger(__name__)

SMOOTHING_FACTOR = 0.35
CALIBRATION_SAMPLE_COUNT = 120
SPREAD_SCALE = 1.8
MIN_SPREAD_X = 0.06
MIN_SPREAD_Y = 0.05


class CalibrationPhase(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    READY = "ready"


class SampleSmoother:
    """Exponential smoothing applied independently to x and y, seeded by the first sample."""

    def __init__(self, smoothing_factor: float = SMOOTHING_FACTOR) -> None:
        self._smoothing_factor = float(smoothing_factor)
        self._current: Optional[RawSample] = None

    def update(self, sample: RawSample) -> RawSample:
        if self._current is None:
            self._current = RawSample(x=float(sample.x), y=float(sample.y))
            return self._current

        factor = self._smoothing_factor
        previous = self._current
        self._current = RawSample(
            x=previous.x + (float(sample.x) - previous.x) * factor,
            y=previous.y + (float(sample.y) - previous.y) * factor,
        )
        return self._current

    def current(self) -> Optional[RawSample]:
        return self._current

    def reset(self) -> None:
        self._current = None


class Calibrator:
    def __init__(
        self,
        *,
        sample_count: int = CALIBRATION_SAMPLE_COUNT,
        spread_scale: float = SPREAD_SCALE,
        min_spread_x: float = MIN_SPREAD_X,
        min_spread_y: float = MIN_SPREAD_Y,
    ) -> None:
        if int(sample_count) < 1:
            raise ValueError("sample_count must be at least 1")
        self._sample_count = int(sample_count)
        self._spread_scale = float(spread_scale)
        self._min_spread_x = float(min_spread_x)
        self._min_spread_y = float(min_spread_y)

        self._phase = CalibrationPhase.IDLE
        self._samples: List[RawSample] = []
        # Uncalibrated defaults. Normalization stays disabled until READY.
        self._frame = CalibrationFrame()
        self._has_frame = False

    def phase(self) -> CalibrationPhase:
        return self._phase

    def frame(self) -> CalibrationFrame:
        return self._frame

    def is_ready(self) -> bool:
        return self._phase == CalibrationPhase.READY

    def is_collecting(self) -> bool:
        return self._phase == CalibrationPhase.COLLECTING

    def sample_count(self) -> int:
        return len(self._samples)

    def progress(self) -> float:
        if self._phase == CalibrationPhase.READY:
            return 1.0
        return min(1.0, len(self._samples) / float(self._sample_count))

    def begin(self) -> None:
        self._samples = []
        self._phase = CalibrationPhase.COLLECTING
        logger.info("Calibration started, collecting %d samples", self._sample_count)

    def cancel(self) -> None:
        """Abandon collection and fall back to the last finished frame, if any."""
        if self._phase != CalibrationPhase.COLLECTING:
            return
        self._samples = []
        self._phase = CalibrationPhase.READY if self._has_frame else CalibrationPhase.IDLE
        logger.info("Calibration cancelled")

    def add_sample(self, sample: RawSample) -> Optional[CalibrationFrame]:
        """Buffer one smoothed sample while collecting. Returns the new frame when the buffer fills."""
        if self._phase != CalibrationPhase.COLLECTING:
            return None
        self._samples.append(sample)
        if len(self._samples) >= self._sample_count:
            return self.finalize()
        return None

    def finalize(self) -> Optional[CalibrationFrame]:
        if self._phase != CalibrationPhase.COLLECTING or not self._samples:
            return None

        xs = [float(sample.x) for sample in self._samples]
        ys = [float(sample.y) for sample in self._samples]
        center_x = statistics.fmean(xs)
        center_y = statistics.fmean(ys)
        spread_x = max(self._min_spread_x, statistics.pstdev(xs, mu=center_x) * self._spread_scale)
        spread_y = max(self._min_spread_y, statistics.pstdev(ys, mu=center_y) * self._spread_scale)

        self._frame = CalibrationFrame(
            center_x=center_x,
            center_y=center_y,
            spread_x=spread_x,
            spread_y=spread_y,
        )
        self._has_frame = True
        self._samples = []
        self._phase = CalibrationPhase.READY
        logger.info(
            "Calibration complete: center=(%.3f, %.3f) spread=(%.3f, %.3f)",
            center_x,
            center_y,
            spread_x,
            spread_y,
        )
        return self._frame


def _run_unit_tests() -> None:
    calibrator = Calibrator()
    assert calibrator.finalize() is None

    calibrator.begin()
    assert calibrator.finalize() is None
    frame = None
    for _ in range(CALIBRATION_SAMPLE_COUNT):
        frame = calibrator.add_sample(RawSample(x=0.5, y=0.5))
    assert frame is not None
    assert frame == CalibrationFrame(center_x=0.5, center_y=0.5, spread_x=0.06, spread_y=0.05)
    assert calibrator.is_ready()

    smoother = SampleSmoother()
    assert smoother.update(RawSample(x=0.2, y=0.8)) == RawSample(x=0.2, y=0.8)
    smoothed = smoother.update(RawSample(x=1.2, y=0.8))
    assert abs(smoothed.x - 0.55) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("calibration.py: ok")
