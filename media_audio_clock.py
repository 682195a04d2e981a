# -*- coding: utf-8 -*-
########################
# media_audio_clock.py
########################
# Purpose:
# - Qt Multimedia backed AudioClock: plays the track file and exposes its position as the game clock.
# - Translates QMediaPlayer status and errors into ended / loadFailed / loaded signals.
#
# Design notes:
# - Gameplay logic must not depend on Qt. The game loop only sees the AudioClock contract.
# - position() is polled once per tick by TimingModel.poll().
# - Load failures keep the clock unavailable until a later successful load.
#
########################
# Interfaces:
# Public classes:
# - class MediaAudioClock(PyQt6.QtCore.QObject)
#   - Signals:
#     - ended()
#     - loadFailed(str)
#     - loaded()
#   - Methods:
#     - load(track_path: pathlib.Path) -> None
#     - current_time_seconds() -> float
#     - duration_seconds() -> Optional[float]
#     - is_available() -> bool
#     - play() / pause() / seek(seconds)
#     - subscribe(*, on_ended=None, on_load_failed=None, on_loaded=None) -> None
#
# Inputs:
# - Track path from configuration, QMediaPlayer notifications.
#
# Outputs:
# - AudioClock readings and notifications for GameStateMachine.
#
########################

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QUrl, pyqtSignal
from PyQt6.QtMultimedia import QAudioOutput, QMediaDevices, QMediaPlayer

from audio_clock import AudioUnavailableError, AutoplayBlockedError


logger = logging.getLogger(__name__)


class MediaAudioClock(QObject):
    ended = pyqtSignal()
    loadFailed = pyqtSignal(str)
    loaded = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None, *, volume: float = 1.0) -> None:
        super().__init__(parent)
        self._available: bool = False
        self._track_path: Optional[Path] = None

        self._audio_output = QAudioOutput(self)
        self._audio_output.setVolume(float(max(0.0, min(1.0, volume))))

        self._player = QMediaPlayer(self)
        self._player.setAudioOutput(self._audio_output)
        self._player.mediaStatusChanged.connect(self._on_media_status_changed)
        self._player.errorOccurred.connect(self._on_error_occurred)

    def load(self, track_path: Path) -> None:
        self._track_path = Path(track_path)
        self._available = False
        if not self._track_path.is_file():
            message = f"Audio track missing: {self._track_path}"
            logger.warning(message)
            self.loadFailed.emit(message)
            return
        self._player.setSource(QUrl.fromLocalFile(str(self._track_path.resolve())))

    def current_time_seconds(self) -> float:
        return float(self._player.position()) / 1000.0

    def duration_seconds(self) -> Optional[float]:
        duration_ms = int(self._player.duration())
        if duration_ms <= 0:
            return None
        return float(duration_ms) / 1000.0

    def is_available(self) -> bool:
        return bool(self._available)

    def play(self) -> None:
        if not self._available:
            raise AudioUnavailableError(f"Audio track not loaded: {self._track_path}")
        if QMediaDevices.defaultAudioOutput().isNull():
            raise AutoplayBlockedError("No audio output device is available.")
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def seek(self, seconds: float) -> None:
        self._player.setPosition(int(max(0.0, float(seconds)) * 1000.0))

    def subscribe(
        self,
        *,
        on_ended: Optional[Callable[[], None]] = None,
        on_load_failed: Optional[Callable[[str], None]] = None,
        on_loaded: Optional[Callable[[], None]] = None,
    ) -> None:
        if on_ended is not None:
            self.ended.connect(on_ended)
        if on_load_failed is not None:
            self.loadFailed.connect(on_load_failed)
        if on_loaded is not None:
            self.loaded.connect(on_loaded)

    def _on_media_status_changed(self, status: QMediaPlayer.MediaStatus) -> None:
        if status == QMediaPlayer.MediaStatus.LoadedMedia:
            if not self._available:
                self._available = True
                logger.info("Audio track loaded: %s", self._track_path)
                self.loaded.emit()
        elif status == QMediaPlayer.MediaStatus.EndOfMedia:
            self.ended.emit()
        elif status == QMediaPlayer.MediaStatus.InvalidMedia:
            self._available = False
            self.loadFailed.emit(f"Audio track could not be decoded: {self._track_path}")

    def _on_error_occurred(self, error: QMediaPlayer.Error, error_string: str) -> None:
        if error == QMediaPlayer.Error.NoError:
            return
        self._available = False
        message = str(error_string or "unknown media error")
        logger.warning("Audio error: %s", message)
        self.loadFailed.emit(message)
