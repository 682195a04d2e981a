# -*- coding: utf-8 -*-
########################
# face_input.py
########################
# Purpose:
# - Sensor edge of the gameplay pipeline.
# - Turns one face landmark result (zero or more faces) into a smoothed nose sample, feeds calibration,
#   and drives the PlayerTarget while face input is authoritative.
#
# Design notes:
# - No Qt usage. The landmark producer runs at its own cadence; each result is processed to completion.
# - Only landmark index 1 (nose tip) of the first detected face is used.
# - No face in a result is not an error: the last target is kept and the arbiter is told the face is gone.
# - Landmarks may be objects with x/y attributes (MediaPipe style), mappings with "x"/"y" keys,
#   or (x, y) sequences. Missing or non-finite coordinates fall back to the image center.
# - Results that are not a list of landmark lists count as no face.
#
########################
# Interfaces:
# Public dataclasses:
# - FaceUpdate(sample: Optional[RawSample], target: Optional[PlayerTarget],
#              calibration_frame: Optional[CalibrationFrame])
#
# Public functions:
# - extract_nose_tip(faces: Sequence) -> Optional[RawSample]
#
# Public classes:
# - class FaceInputPipeline
#   - __init__(*, calibrator, normalizer, arbiter, target_holder, smoother=None)
#   - process_landmarks(faces: Optional[Sequence], now_seconds: Optional[float] = None) -> FaceUpdate
#   - reapply() -> Optional[PlayerTarget]
#   - reset_smoothing() -> None
#
# Inputs:
# - Landmark results from the face tracker (normalized [0, 1] image coordinates).
#
# Outputs:
# - Calibrator samples, arbiter recency updates and PlayerTargetHolder writes.
#
########################

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import calibration
import input_mode
import input_normalizer
from gameplay_models import CalibrationFrame, PlayerTarget, RawSample


logger = logging.getLogger(__name__)

NOSE_TIP_INDEX = 1


@dataclass(frozen=True)
class FaceUpdate:
    sample: Optional[RawSample] = None
    target: Optional[PlayerTarget] = None
    calibration_frame: Optional[CalibrationFrame] = None

    @property
    def face_detected(self) -> bool:
        return self.sample is not None


def _coordinate(landmark: Any, name: str, position: int) -> float:
    value: Any = None
    if isinstance(landmark, dict):
        value = landmark.get(name)
    elif isinstance(landmark, (list, tuple)):
        if len(landmark) > position:
            value = landmark[position]
    else:
        value = getattr(landmark, name, None)

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.5
    if not math.isfinite(value):
        return 0.5
    return float(value)


def _is_point_list(value: Any) -> bool:
    if isinstance(value, (str, bytes, dict)):
        return False
    return hasattr(value, "__len__") and hasattr(value, "__getitem__")


def extract_nose_tip(faces: Optional[Sequence[Any]]) -> Optional[RawSample]:
    """Nose tip of the first face, or None when the result holds no usable face."""
    if not faces or not _is_point_list(faces):
        return None

    first_face = faces[0]
    # MediaPipe results wrap the point list in a .landmark attribute.
    points = getattr(first_face, "landmark", first_face)
    if not _is_point_list(points) or not points:
        return None

    if len(points) > NOSE_TIP_INDEX:
        nose_tip = points[NOSE_TIP_INDEX]
        return RawSample(x=_coordinate(nose_tip, "x", 0), y=_coordinate(nose_tip, "y", 1))
    return RawSample(x=0.5, y=0.5)


class FaceInputPipeline:
    def __init__(
        self,
        *,
        calibrator: calibration.Calibrator,
        normalizer: input_normalizer.InputNormalizer,
        arbiter: input_mode.InputModeArbiter,
        target_holder: input_mode.PlayerTargetHolder,
        smoother: Optional[calibration.SampleSmoother] = None,
    ) -> None:
        self._calibrator = calibrator
        self._normalizer = normalizer
        self._arbiter = arbiter
        self._target_holder = target_holder
        self._smoother = smoother if smoother is not None else calibration.SampleSmoother()

    def smoothed_sample(self) -> Optional[RawSample]:
        return self._smoother.current()

    def reset_smoothing(self) -> None:
        self._smoother.reset()

    def process_landmarks(
        self,
        faces: Optional[Sequence[Any]],
        now_seconds: Optional[float] = None,
    ) -> FaceUpdate:
        raw_sample = extract_nose_tip(faces)
        if raw_sample is None:
            self._arbiter.on_face_lost()
            return FaceUpdate()

        smoothed = self._smoother.update(raw_sample)
        self._arbiter.on_face_sample(now_seconds)

        calibration_frame: Optional[CalibrationFrame] = None
        if self._calibrator.is_collecting():
            calibration_frame = self._calibrator.add_sample(smoothed)

        target: Optional[PlayerTarget] = None
        if not self._calibrator.is_collecting() and self._calibrator.is_ready() and self._arbiter.is_face_authoritative():
            target = self._apply(smoothed)

        return FaceUpdate(sample=smoothed, target=target, calibration_frame=calibration_frame)

    def reapply(self) -> Optional[PlayerTarget]:
        """Re-derive the target from the last smoothed sample while face input is authoritative."""
        smoothed = self._smoother.current()
        if smoothed is None or not self._arbiter.face_available() or not self._arbiter.is_face_authoritative():
            return None
        if not self._calibrator.is_ready():
            return None
        return self._apply(smoothed)

    def _apply(self, smoothed: RawSample) -> PlayerTarget:
        previous = self._target_holder.get()
        target = self._normalizer.target_for(smoothed, self._calibrator, previous)
        self._target_holder.set(target)
        return target
