from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


class FakeAudioClock:
    """Scriptable AudioClock: tests set time_seconds directly and fire notifications by hand."""

    def __init__(self, *, available: bool = True, duration: Optional[float] = None) -> None:
        self.time_seconds = 0.0
        self.available = available
        self.duration = duration
        self.playing = False
        self.play_error: Optional[Exception] = None
        self.calls: List[str] = []
        self._on_ended: List[Callable[[], None]] = []
        self._on_load_failed: List[Callable[[str], None]] = []
        self._on_loaded: List[Callable[[], None]] = []

    def current_time_seconds(self) -> float:
        return self.time_seconds

    def duration_seconds(self) -> Optional[float]:
        return self.duration

    def is_available(self) -> bool:
        return self.available

    def play(self) -> None:
        self.calls.append("play")
        if self.play_error is not None:
            raise self.play_error
        self.playing = True

    def pause(self) -> None:
        self.calls.append("pause")
        self.playing = False

    def seek(self, seconds: float) -> None:
        self.calls.append(f"seek:{float(seconds):g}")
        self.time_seconds = float(seconds)

    def subscribe(self, *, on_ended=None, on_load_failed=None, on_loaded=None) -> None:
        if on_ended is not None:
            self._on_ended.append(on_ended)
        if on_load_failed is not None:
            self._on_load_failed.append(on_load_failed)
        if on_loaded is not None:
            self._on_loaded.append(on_loaded)

    def fire_ended(self) -> None:
        for listener in list(self._on_ended):
            listener()

    def fire_load_failed(self, message: str) -> None:
        self.available = False
        for listener in list(self._on_load_failed):
            listener(message)

    def fire_loaded(self) -> None:
        self.available = True
        for listener in list(self._on_loaded):
            listener()


def face_at(x: float, y: float) -> list:
    """One detected face whose nose tip (landmark 1) sits at (x, y)."""
    return [[{"x": 0.5, "y": 0.5}, {"x": x, "y": y}]]


@pytest.fixture
def fake_clock() -> FakeAudioClock:
    return FakeAudioClock()


@pytest.fixture(scope="session")
def qt_app():
    qt_widgets = pytest.importorskip("PyQt6.QtWidgets")
    application = qt_widgets.QApplication.instance()
    if application is None:
        application = qt_widgets.QApplication([])
    return application
