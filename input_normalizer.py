# -*- coding: utf-8 -*-
########################
# input_normalizer.py
########################
# Purpose:
# - Map a smoothed head pose sample into a discrete (lane, level) PlayerTarget.
#
# Design notes:
# - No Qt usage. Pure logic.
# - Requires a READY calibration; otherwise the previous target is returned unchanged.
# - Vertical axis is inverted: smaller raw y is higher on screen, which means "up".
# - Lane uses hard symmetric thresholds.
# - Level is sticky: inside the dead zone between the low and high thresholds the previous level is kept.
#
########################
# Interfaces:
# Public dataclasses:
# - NormalizedSample(x: float, y: float)
#
# Public classes:
# - class InputNormalizer
#   - normalize(sample: RawSample, frame: CalibrationFrame) -> NormalizedSample
#   - lane_for(normalized_x: float) -> Lane
#   - level_for(normalized_y: float, previous_level: Level) -> Level
#   - target_for(sample: RawSample, calibrator: Calibrator, previous_target: PlayerTarget) -> PlayerTarget
#
# Inputs:
# - Smoothed RawSample from face_input and the Calibrator's frame.
#
# Outputs:
# - PlayerTarget values applied by the face input path.
#
########################

from __future__ import annotations

from dataclasses import dataclass

import calibration
from gameplay_models import CalibrationFrame, Lane, Level, PlayerTarget, RawSample


LANE_THRESHOLD = 0.85
LEVEL_HIGH_THRESHOLD = 0.8
LEVEL_LOW_THRESHOLD = -0.6


@dataclass(frozen=True)
class NormalizedSample:
    x: float
    y: float


class InputNormalizer:
    def __init__(
        self,
        *,
        lane_threshold: float = LANE_THRESHOLD,
        level_high_threshold: float = LEVEL_HIGH_THRESHOLD,
        level_low_threshold: float = LEVEL_LOW_THRESHOLD,
    ) -> None:
        if float(level_low_threshold) > float(level_high_threshold):
            raise ValueError("level_low_threshold must not exceed level_high_threshold")
        self._lane_threshold = abs(float(lane_threshold))
        self._level_high_threshold = float(level_high_threshold)
        self._level_low_threshold = float(level_low_threshold)

    def normalize(self, sample: RawSample, frame: CalibrationFrame) -> NormalizedSample:
        return NormalizedSample(
            x=(float(sample.x) - float(frame.center_x)) / float(frame.spread_x),
            y=(float(frame.center_y) - float(sample.y)) / float(frame.spread_y),
        )

    def lane_for(self, normalized_x: float) -> Lane:
        if normalized_x < -self._lane_threshold:
            return Lane.LEFT
        if normalized_x > self._lane_threshold:
            return Lane.RIGHT
        return Lane.CENTER

    def level_for(self, normalized_y: float, previous_level: Level) -> Level:
        if normalized_y > self._level_high_threshold:
            return Level.HIGH
        if normalized_y < self._level_low_threshold:
            return Level.LOW
        return previous_level

    def target_for(
        self,
        sample: RawSample,
        calibrator: calibration.Calibrator,
        previous_target: PlayerTarget,
    ) -> PlayerTarget:
        if not calibrator.is_ready():
            return previous_target

        normalized = self.normalize(sample, calibrator.frame())
        return PlayerTarget(
            lane=self.lane_for(normalized.x),
            level=self.level_for(normalized.y, previous_target.level),
        )


def _run_unit_tests() -> None:
    normalizer = InputNormalizer()
    assert normalizer.level_for(0.0, Level.HIGH) == Level.HIGH
    assert normalizer.level_for(0.0, Level.LOW) == Level.LOW
    assert normalizer.level_for(0.81, Level.LOW) == Level.HIGH
    assert normalizer.level_for(-0.61, Level.HIGH) == Level.LOW
    assert normalizer.lane_for(-0.9) == Lane.LEFT
    assert normalizer.lane_for(0.85) == Lane.CENTER

    uncalibrated = calibration.Calibrator()
    previous = PlayerTarget(lane=Lane.RIGHT, level=Level.HIGH)
    assert normalizer.target_for(RawSample(x=0.0, y=1.0), uncalibrated, previous) is previous


if __name__ == "__main__":
    _run_unit_tests()
    print("input_normalizer.py: ok")
