# -*- coding: utf-8 -*-
########################
# gameplay_harness.py
########################
# Purpose:
# - Gameplay window for local play and iteration.
# - Integrates GameStateMachine + AudioClock + InputRouter + optional ControlApiBridge + PlayfieldWidget.
#
# Design notes:
# - One Qt timer drives the whole game. Every tick runs on the Qt thread:
#   remote intents and landmark results first, then GameStateMachine.tick(delta), then repaint.
# - delta is measured with QElapsedTimer, not assumed from the timer interval.
# - Window deactivation is the blur signal: pressed keys are cleared and a running game is stopped.
# - The playfield is a flat top-down debug view. It only reads platform_views() and the avatar pose.
#
########################
# Interfaces:
# Public classes:
# - class GameplayHarnessController(PyQt6.QtCore.QObject)
#   - Owns the tick loop, event filter and button handlers.
#   - Signals: stateChanged(str), judged(object)
#   - tick_once(delta_seconds: float) -> game_state.TickResult
#
# - class PlayfieldWidget(PyQt6.QtWidgets.QWidget)
#   - set_machine(machine) -> None
#
# - class GameplayHarnessWindow(PyQt6.QtWidgets.QMainWindow)
#   - Default UI: playfield, status text, score, input mode, Start / Stop / Calibrate buttons.
#
# Public functions:
# - main() -> int
#
# Inputs:
# - Keyboard (InputRouter handles QKeyEvent), window activation changes, button clicks.
# - Audio clock readings and notifications.
#
# Outputs:
# - Visible playfield and status labels.
#
########################

from __future__ import annotations

import argparse
import logging
from typing import Any, Optional, Protocol, runtime_checkable


logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 16
MAX_TICK_DELTA_SECONDS = 0.25


@runtime_checkable
class HarnessUiProtocol(Protocol):
    """UI contract used by GameplayHarnessController.

    Required attributes for wiring:
    - start_button, stop_button, calibrate_button: QPushButton-like objects exposing .clicked
    - status_label, score_label, mode_label, time_label: QLabel-like objects with setText(str)
    - playfield: PlayfieldWidget-like object with update()
    """

    start_button: Any
    stop_button: Any
    calibrate_button: Any
    status_label: Any
    score_label: Any
    mode_label: Any
    time_label: Any
    playfield: Any


class GameplayHarnessController:  # QObject subclass, defined lazily inside Qt import block
    pass


def _create_controller_class():
    from PyQt6.QtCore import QElapsedTimer, QEvent, QObject, pyqtSignal
    from PyQt6.QtGui import QKeyEvent

    import audio_clock
    import game_state
    import input_router

    class _GameplayHarnessController(QObject):
        stateChanged = pyqtSignal(str)
        judged = pyqtSignal(object)

        def __init__(
            self,
            *,
            machine: game_state.GameStateMachine,
            clock: audio_clock.AudioClock,
            control_bridge: Optional[Any] = None,
            ui: Optional[HarnessUiProtocol] = None,
            parent: Optional[QObject] = None,
        ) -> None:
            super().__init__(parent)
            self._machine = machine
            self._clock = clock
            self._control_bridge = control_bridge
            self._ui: Optional[HarnessUiProtocol] = None

            self._router = input_router.InputRouter(parent=self)
            self._router.keyAction.connect(self._machine.on_key_action)

            self._machine.add_state_listener(self._on_state_changed)

            self._elapsed = QElapsedTimer()
            self._elapsed.start()
            self._tick_timer_id: int = self.startTimer(TICK_INTERVAL_MS)

            if ui is not None:
                self.attach_ui(ui)

        @property
        def machine(self) -> game_state.GameStateMachine:
            return self._machine

        def attach_ui(self, ui: HarnessUiProtocol) -> None:
            self._ui = ui
            self._ui.start_button.clicked.connect(self._on_start_clicked)
            self._ui.stop_button.clicked.connect(self._on_stop_clicked)
            self._ui.calibrate_button.clicked.connect(self._on_calibrate_clicked)
            self._refresh_ui()

        def detach_ui(self) -> None:
            self._ui = None

        # -----------------
        # Event filter and timer loop
        # -----------------

        def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
            if event.type() == QEvent.Type.KeyPress:
                if isinstance(event, QKeyEvent) and self._router.handle_key_press(event):
                    return True
            if event.type() == QEvent.Type.KeyRelease:
                if isinstance(event, QKeyEvent) and self._router.handle_key_release(event):
                    return True
            if event.type() == QEvent.Type.WindowDeactivate:
                self._router.clear_pressed_keys()
                self._machine.on_window_blur()
                self._refresh_ui()
            return super().eventFilter(watched, event)

        def timerEvent(self, event) -> None:  # type: ignore[override]
            if event.timerId() != self._tick_timer_id:
                return
            delta_seconds = float(self._elapsed.restart()) / 1000.0
            self.tick_once(min(delta_seconds, MAX_TICK_DELTA_SECONDS))

        def tick_once(self, delta_seconds: float) -> game_state.TickResult:
            poll = getattr(self._clock, "poll", None)
            if callable(poll):
                poll()
            if self._control_bridge is not None:
                self._control_bridge.pump(self._machine)

            result = self._machine.tick(delta_seconds)
            for judgement_event in result.judgements:
                self.judged.emit(judgement_event)
            self._refresh_ui()
            return result

        # -----------------
        # UI helpers
        # -----------------

        def _refresh_ui(self) -> None:
            if self._ui is None:
                return
            snapshot = self._machine.snapshot()
            self._ui.status_label.setText(snapshot.message if snapshot.overlay_visible else "")
            self._ui.score_label.setText(
                f"score {snapshot.score}  streak {snapshot.streak}  best {snapshot.max_streak}"
            )
            self._ui.mode_label.setText(
                f"input: {snapshot.input_mode.value}  target: {snapshot.player_target.lane.value}/"
                f"{snapshot.player_target.level.value}"
            )
            self._ui.time_label.setText(f"song={snapshot.song_time_seconds:.3f}  state={snapshot.state.value}")
            self._ui.start_button.setEnabled(snapshot.show_start or snapshot.state == game_state.GameState.RUNNING)
            self._ui.calibrate_button.setEnabled(snapshot.show_calibrate)
            self._ui.playfield.update()

        def _on_state_changed(self, previous_state: game_state.GameState, new_state: game_state.GameState) -> None:
            self.stateChanged.emit(new_state.value)

        # -----------------
        # Button handlers
        # -----------------

        def _on_start_clicked(self) -> None:
            self._machine.request_start()
            self._refresh_ui()

        def _on_stop_clicked(self) -> None:
            self._machine.request_stop()
            self._refresh_ui()

        def _on_calibrate_clicked(self) -> None:
            self._machine.request_calibration()
            self._refresh_ui()

    return _GameplayHarnessController


# Instantiate the Qt-backed controller class.
GameplayHarnessController = _create_controller_class()


class PlayfieldWidget:  # QWidget subclass, defined lazily inside Qt import block
    pass


def _create_playfield_class():
    from PyQt6.QtCore import QRectF, Qt
    from PyQt6.QtGui import QColor, QPainter, QPen
    from PyQt6.QtWidgets import QWidget

    import beat_scheduler
    from gameplay_models import LANE_POSITIONS, Level

    lane_span = max(abs(position) for position in LANE_POSITIONS.values()) * 2.0
    track_length = float(beat_scheduler.PLATFORM_VISIBLE_AHEAD - beat_scheduler.PLATFORM_VISIBLE_BEHIND)

    class _PlayfieldWidget(QWidget):
        """Top-down lane view. Platforms scroll toward the avatar line near the bottom."""

        def __init__(self, parent: Optional[QWidget] = None) -> None:
            super().__init__(parent)
            self._machine = None
            self.setMinimumSize(360, 420)

        def set_machine(self, machine) -> None:
            self._machine = machine
            self.update()

        def _x_for(self, world_x: float) -> float:
            margin = self.width() * 0.15
            usable = self.width() - 2.0 * margin
            return margin + (world_x / lane_span + 0.5) * usable

        def _y_for(self, track_offset: float) -> float:
            # Offset 0 sits at the avatar line; the far edge of the visible range is the top.
            fraction = (float(track_offset) - beat_scheduler.PLATFORM_VISIBLE_BEHIND) / track_length
            return self.height() * (1.0 - fraction)

        def paintEvent(self, event) -> None:  # noqa: N802
            painter = QPainter(self)
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.fillRect(self.rect(), QColor(12, 14, 28))

            painter.setPen(QPen(QColor(60, 70, 110), 1.0))
            for lane_x in LANE_POSITIONS.values():
                x = self._x_for(lane_x)
                painter.drawLine(int(x), 0, int(x), self.height())

            hit_line_y = self._y_for(0.0)
            painter.setPen(QPen(QColor(200, 200, 220), 2.0))
            painter.drawLine(0, int(hit_line_y), self.width(), int(hit_line_y))

            if self._machine is None:
                painter.end()
                return

            platform_width = self.width() * 0.16
            for view in self._machine.platform_views():
                if not view.visible:
                    continue
                if view.resolved:
                    color = QColor(70, 200, 120)
                elif view.beat_event.level == Level.HIGH:
                    color = QColor(240, 140, 60)
                else:
                    color = QColor(80, 160, 255)
                if view.is_next:
                    color = color.lighter(140)
                center_x = self._x_for(view.x)
                center_y = self._y_for(view.track_offset)
                painter.setPen(Qt.PenStyle.NoPen)
                painter.setBrush(color)
                painter.drawRoundedRect(
                    QRectF(center_x - platform_width / 2.0, center_y - 6.0, platform_width, 12.0),
                    4.0,
                    4.0,
                )

            pose = self._machine.avatar_pose()
            avatar_x = self._x_for(pose.current_x)
            radius = 10.0 + pose.render_y * 4.0
            painter.setBrush(QColor(255, 90, 160))
            painter.drawEllipse(QRectF(avatar_x - radius, hit_line_y - radius, radius * 2.0, radius * 2.0))
            painter.end()

    return _PlayfieldWidget


PlayfieldWidget = _create_playfield_class()


class GameplayHarnessWindow:
    pass


def _create_window_class():
    from PyQt6.QtWidgets import QHBoxLayout, QLabel, QMainWindow, QPushButton, QVBoxLayout, QWidget

    import audio_clock
    import game_state

    class _DefaultHarnessUi:
        def __init__(self, *, parent: QWidget) -> None:
            self.root_widget = QWidget(parent)
            self.root_layout = QVBoxLayout(self.root_widget)

            self.playfield = PlayfieldWidget(self.root_widget)

            self.controls = QWidget(self.root_widget)
            self.controls_layout = QHBoxLayout(self.controls)
            self.start_button = QPushButton("Start", self.controls)
            self.stop_button = QPushButton("Stop", self.controls)
            self.calibrate_button = QPushButton("Calibrate", self.controls)
            self.controls_layout.addWidget(self.start_button)
            self.controls_layout.addWidget(self.stop_button)
            self.controls_layout.addWidget(self.calibrate_button)

            self.status_label = QLabel("", self.root_widget)
            self.status_label.setWordWrap(True)
            self.score_label = QLabel("", self.root_widget)
            self.mode_label = QLabel("", self.root_widget)
            self.time_label = QLabel("", self.root_widget)

            self.root_layout.addWidget(self.playfield, stretch=4)
            self.root_layout.addWidget(self.status_label)
            self.root_layout.addWidget(self.score_label)
            self.root_layout.addWidget(self.mode_label)
            self.root_layout.addWidget(self.time_label)
            self.root_layout.addWidget(self.controls)

    class _GameplayHarnessWindow(QMainWindow):
        def __init__(
            self,
            *,
            machine: game_state.GameStateMachine,
            clock: audio_clock.AudioClock,
            control_bridge: Optional[Any] = None,
            ui: Optional[HarnessUiProtocol] = None,
        ) -> None:
            super().__init__()
            self.setWindowTitle("Orbhop")

            self._controller = GameplayHarnessController(
                machine=machine,
                clock=clock,
                control_bridge=control_bridge,
                ui=None,
                parent=self,
            )

            if ui is None:
                default_ui = _DefaultHarnessUi(parent=self)
                default_ui.playfield.set_machine(machine)
                self.setCentralWidget(default_ui.root_widget)
                self._controller.attach_ui(default_ui)  # type: ignore[arg-type]
            else:
                self._controller.attach_ui(ui)

            # Install the shared event filter.
            self.installEventFilter(self._controller)

        @property
        def controller(self) -> GameplayHarnessController:
            return self._controller

    return _GameplayHarnessWindow


GameplayHarnessWindow = _create_window_class()


def _run_chunk_tests() -> None:
    import audio_clock
    import game_state
    from gameplay_models import GameState, KeyAction

    fake_now = [0.0]
    clock = audio_clock.WallAudioClock(10.0, clock=lambda: fake_now[0])
    machine = game_state.GameStateMachine(audio_clock_obj=clock)
    machine.on_sensor_failed("no tracker")
    assert machine.state() == GameState.READY

    machine.request_start()
    assert machine.state() == GameState.COUNTDOWN
    for _ in range(4):
        machine.tick(1.0)
    assert machine.state() == GameState.RUNNING

    # Unattended run with the avatar parked on Center/Low misses the first off-centre platform.
    machine.on_key_action(KeyAction.LEFT)
    fake_now[0] = 5.0
    machine.tick(0.016)
    assert machine.state() == GameState.GAME_OVER


def _run_gui() -> int:
    import orbhop

    return orbhop.main([])


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--run-tests",
        action="store_true",
        help="Run pure logic tests (no window).",
    )
    return parser


def main() -> int:
    args = build_argument_parser().parse_args()
    if args.run_tests:
        _run_chunk_tests()
        print("Chunk tests passed.")
        return 0
    return _run_gui()


if __name__ == "__main__":
    raise SystemExit(main())
