# -*- coding: utf-8 -*-
########################
# input_mode.py
########################
# Purpose:
# - Decide whether face tracking or the keyboard currently governs the PlayerTarget.
#
# Design notes:
# - No Qt usage. Time source is injected as a callable returning monotonic seconds.
# - Any lane or level key press switches to KEYBOARD immediately.
# - Keyboard is a temporary override: evaluate() returns to FACE as soon as a face sample
#   has been seen within the recency window.
# - The recency check only affects mode selection, never judging.
# - PlayerTargetHolder hands the target across the sensor and tick edges under a lock with a version
#   counter, so a reader never sees a half-written lane/level pair.
#
########################
# Interfaces:
# Public classes:
# - class InputModeArbiter
#   - mode() -> InputMode
#   - face_available() -> bool
#   - last_face_sample_seconds() -> Optional[float]
#   - on_keyboard_input() -> None
#   - on_face_sample(now_seconds: Optional[float] = None) -> None
#   - on_face_lost() -> None
#   - evaluate(now_seconds: Optional[float] = None) -> InputMode
#   - force_face() -> None
# - class PlayerTargetHolder
#   - get() -> PlayerTarget
#   - version() -> int
#   - set(target: PlayerTarget) -> bool
#   - set_lane(lane: Lane) -> None
#   - set_level(level: Level) -> None
#   - reset() -> None
#
# Inputs:
# - Keyboard lane/level events and face sample arrivals.
#
# Outputs:
# - InputMode consumed by face_input (gate) and the UI label.
# - The authoritative PlayerTarget, written by the face path or the keyboard path and read each tick.
#
########################

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from gameplay_models import InputMode, Lane, Level, PlayerTarget


logger = logging.getLogger(__name__)

FACE_RECENCY_SECONDS = 1.5


class InputModeArbiter:
    def __init__(
        self,
        *,
        face_recency_seconds: float = FACE_RECENCY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._face_recency_seconds = float(face_recency_seconds)
        self._clock = clock
        self._mode = InputMode.FACE
        self._face_available = False
        self._last_face_sample_seconds: Optional[float] = None

    def mode(self) -> InputMode:
        return self._mode

    def face_available(self) -> bool:
        return self._face_available

    def last_face_sample_seconds(self) -> Optional[float]:
        return self._last_face_sample_seconds

    def is_face_authoritative(self) -> bool:
        return self._mode == InputMode.FACE

    def _now(self, now_seconds: Optional[float]) -> float:
        return float(now_seconds) if now_seconds is not None else float(self._clock())

    def on_keyboard_input(self) -> None:
        if self._mode != InputMode.KEYBOARD:
            logger.debug("Input mode -> keyboard")
        self._mode = InputMode.KEYBOARD

    def on_face_sample(self, now_seconds: Optional[float] = None) -> None:
        self._face_available = True
        self._last_face_sample_seconds = self._now(now_seconds)

    def on_face_lost(self) -> None:
        self._face_available = False

    def force_face(self) -> None:
        self._mode = InputMode.FACE

    def evaluate(self, now_seconds: Optional[float] = None) -> InputMode:
        if self._mode == InputMode.KEYBOARD and self._face_available:
            last_seen = self._last_face_sample_seconds
            if last_seen is not None and self._now(now_seconds) - last_seen < self._face_recency_seconds:
                self._mode = InputMode.FACE
                logger.debug("Input mode -> face")
        return self._mode


class PlayerTargetHolder:
    def __init__(self, initial: Optional[PlayerTarget] = None) -> None:
        self._lock = threading.Lock()
        self._target = initial if initial is not None else PlayerTarget()
        self._version = 0

    def get(self) -> PlayerTarget:
        with self._lock:
            return self._target

    def version(self) -> int:
        with self._lock:
            return self._version

    def set(self, target: PlayerTarget) -> bool:
        """Replace the target. Returns True if it changed."""
        with self._lock:
            if target == self._target:
                return False
            self._target = target
            self._version += 1
            return True

    def set_lane(self, lane: Lane) -> None:
        with self._lock:
            self._target = PlayerTarget(lane=lane, level=self._target.level)
            self._version += 1

    def set_level(self, level: Level) -> None:
        with self._lock:
            self._target = PlayerTarget(lane=self._target.lane, level=level)
            self._version += 1

    def reset(self) -> None:
        self.set(PlayerTarget())


def _run_unit_tests() -> None:
    arbiter = InputModeArbiter()
    arbiter.on_face_sample(now_seconds=10.0)
    arbiter.on_keyboard_input()
    assert arbiter.mode() == InputMode.KEYBOARD
    assert arbiter.evaluate(now_seconds=10.2) == InputMode.FACE

    stale = InputModeArbiter()
    stale.on_face_sample(now_seconds=0.0)
    stale.on_keyboard_input()
    assert stale.evaluate(now_seconds=1.6) == InputMode.KEYBOARD


if __name__ == "__main__":
    _run_unit_tests()
    print("input_mode.py: ok")
