# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Single source of truth for song timing in gameplay.
# - Holds the last audio clock reading (polled once per tick) and applies a configurable AV offset.
#
# Design notes:
# - Gameplay code must use TimingModel.song_time_seconds.
# - The audio clock is authoritative even when it drifts from wall clock time during playback stalls.
# - No Qt usage. Keep this module pure and deterministic.
# - Clamp audio time to non-negative.
#
########################
# Interfaces:
# Public dataclasses:
# - TimingSnapshot(audio_time_seconds: float, av_offset_seconds: float, song_time_seconds: float)
#
# Public classes:
# - class TimingModel
#   - audio_time_seconds() -> float
#   - av_offset_seconds() -> float
#   - song_time_seconds() -> float
#   - set_av_offset_seconds(av_offset_seconds: float) -> None
#   - update_audio_time_seconds(audio_time_seconds: float) -> None
#   - poll(audio_clock) -> float
#   - reset() -> None
#   - snapshot() -> TimingSnapshot
#
# Inputs:
# - audio time from an AudioClock (seconds since track start).
# - av_offset_seconds from configuration.
#
# Outputs:
# - Derived song_time_seconds used by JudgeEngine, BeatScheduler and the status surfaces.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class ReadableClock(Protocol):
    def current_time_seconds(self) -> float:
        ...


@dataclass(frozen=True)
class TimingSnapshot:
    audio_time_seconds: float
    av_offset_seconds: float
    song_time_seconds: float


class TimingModel:
    def __init__(self, av_offset_seconds: float = 0.0) -> None:
        self._audio_time_seconds = 0.0
        self._av_offset_seconds = float(av_offset_seconds)

    def audio_time_seconds(self) -> float:
        return float(self._audio_time_seconds)

    def av_offset_seconds(self) -> float:
        return float(self._av_offset_seconds)

    def song_time_seconds(self) -> float:
        # AV offset may be negative, so song time may be negative near the start.
        return float(self._audio_time_seconds) + float(self._av_offset_seconds)

    def set_av_offset_seconds(self, av_offset_seconds: float) -> None:
        self._av_offset_seconds = float(av_offset_seconds)

    def update_audio_time_seconds(self, audio_time_seconds: float) -> None:
        value = float(audio_time_seconds)
        if value < 0.0:
            value = 0.0
        self._audio_time_seconds = value

    def poll(self, audio_clock: ReadableClock) -> float:
        """Read the clock once and return the derived song time."""
        self.update_audio_time_seconds(audio_clock.current_time_seconds())
        return self.song_time_seconds()

    def reset(self) -> None:
        self._audio_time_seconds = 0.0

    def snapshot(self) -> TimingSnapshot:
        return TimingSnapshot(
            audio_time_seconds=self.audio_time_seconds(),
            av_offset_seconds=self.av_offset_seconds(),
            song_time_seconds=self.song_time_seconds(),
        )


def _run_unit_tests() -> None:
    model = TimingModel()
    model.set_av_offset_seconds(-0.2)
    model.update_audio_time_seconds(-5.0)
    assert model.audio_time_seconds() == 0.0
    assert abs(model.song_time_seconds() - (-0.2)) < 1e-9

    model.update_audio_time_seconds(1.5)
    assert abs(model.song_time_seconds() - 1.3) < 1e-9

    snap = model.snapshot()
    assert abs(snap.song_time_seconds - model.song_time_seconds()) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
