# -*- coding: utf-8 -*-
########################
# audio_clock.py
########################
# Purpose:
# - Contract for the audio playback clock consumed by the game loop.
# - Audio error taxonomy (track unavailable, playback start rejected).
# - A silent wall-clock implementation for running without an audio backend.
#
# Design notes:
# - No Qt usage here. The Qt Multimedia implementation lives in media_audio_clock.py.
# - The clock is read-only from the game's point of view except for play/pause/seek.
# - Notifications (ended, load failed, loaded) are delivered through subscribed callables.
#
########################
# Interfaces:
# Public exceptions:
# - AudioError
#   - AudioUnavailableError: the track failed to load; blocks starting a run until a retry succeeds.
#   - AutoplayBlockedError: the host rejected playback start; the player must start again.
#
# Public protocols:
# - AudioClock
#   - current_time_seconds() -> float
#   - duration_seconds() -> Optional[float]
#   - is_available() -> bool
#   - play() -> None            (may raise AudioUnavailableError or AutoplayBlockedError)
#   - pause() -> None
#   - seek(seconds: float) -> None
#   - subscribe(*, on_ended=None, on_load_failed=None, on_loaded=None) -> None
#
# Public classes:
# - class WallAudioClock: silent clock that advances with a monotonic time source.
#   - poll() -> None (fires ended once the duration is reached)
#
########################

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


class AudioError(Exception):
    """Base class for audio playback errors surfaced to the player."""


class AudioUnavailableError(AudioError):
    """The audio track could not be loaded."""


class AutoplayBlockedError(AudioError):
    """The host environment rejected starting playback."""


@runtime_checkable
class AudioClock(Protocol):
    def current_time_seconds(self) -> float:
        ...

    def duration_seconds(self) -> Optional[float]:
        ...

    def is_available(self) -> bool:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def seek(self, seconds: float) -> None:
        ...

    def subscribe(
        self,
        *,
        on_ended: Optional[Callable[[], None]] = None,
        on_load_failed: Optional[Callable[[str], None]] = None,
        on_loaded: Optional[Callable[[], None]] = None,
    ) -> None:
        ...


class WallAudioClock:
    """Silent AudioClock driven by a monotonic time source.

    Used when no track is configured or for headless runs. Always available,
    never blocks playback. Call poll() once per tick so the ended notification
    fires when the configured duration is reached.
    """

    def __init__(self, duration_seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._duration_seconds = max(0.0, float(duration_seconds))
        self._clock = clock
        self._offset_seconds = 0.0
        self._started_at: Optional[float] = None
        self._ended = False
        self._ended_listeners: List[Callable[[], None]] = []

    def current_time_seconds(self) -> float:
        elapsed = self._offset_seconds
        if self._started_at is not None:
            elapsed += float(self._clock()) - self._started_at
        return min(elapsed, self._duration_seconds)

    def duration_seconds(self) -> Optional[float]:
        return self._duration_seconds

    def is_available(self) -> bool:
        return True

    def is_playing(self) -> bool:
        return self._started_at is not None

    def play(self) -> None:
        if self._started_at is None:
            self._started_at = float(self._clock())
            self._ended = False

    def pause(self) -> None:
        if self._started_at is not None:
            self._offset_seconds = self.current_time_seconds()
            self._started_at = None

    def seek(self, seconds: float) -> None:
        self._offset_seconds = min(max(0.0, float(seconds)), self._duration_seconds)
        self._ended = False
        if self._started_at is not None:
            self._started_at = float(self._clock())

    def subscribe(
        self,
        *,
        on_ended: Optional[Callable[[], None]] = None,
        on_load_failed: Optional[Callable[[str], None]] = None,
        on_loaded: Optional[Callable[[], None]] = None,
    ) -> None:
        if on_ended is not None:
            self._ended_listeners.append(on_ended)
        # A silent clock never fails to load.
        if on_loaded is not None:
            on_loaded()

    def poll(self) -> None:
        if self._ended or self._started_at is None:
            return
        if self.current_time_seconds() >= self._duration_seconds:
            self.pause()
            self._ended = True
            logger.info("Silent track reached its end at %.2fs", self._duration_seconds)
            for listener in list(self._ended_listeners):
                listener()
