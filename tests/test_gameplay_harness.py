import pytest

pytest.importorskip("PyQt6.QtWidgets")

from PyQt6.QtCore import QEvent, Qt  # noqa: E402
from PyQt6.QtGui import QKeyEvent  # noqa: E402

import game_state  # noqa: E402
import gameplay_harness  # noqa: E402
from conftest import FakeAudioClock  # noqa: E402
from gameplay_models import BeatEvent, GameState, Lane, Level  # noqa: E402


@pytest.fixture
def harness(qt_app):
    clock = FakeAudioClock()
    machine = game_state.GameStateMachine(
        audio_clock_obj=clock,
        beat_events=[BeatEvent(time_seconds=10.0, lane=Lane.LEFT, level=Level.HIGH)],
    )
    machine.on_sensor_failed("no tracker")
    window = gameplay_harness.GameplayHarnessWindow(machine=machine, clock=clock)
    yield window, machine, clock
    window.close()


def _press(window, key):
    window.controller.eventFilter(
        window, QKeyEvent(QEvent.Type.KeyPress, int(key.value), Qt.KeyboardModifier.NoModifier)
    )
    window.controller.eventFilter(
        window, QKeyEvent(QEvent.Type.KeyRelease, int(key.value), Qt.KeyboardModifier.NoModifier)
    )


def test_chunk_tests_pass():
    gameplay_harness._run_chunk_tests()


def test_keys_and_ticks_reach_the_machine(harness):
    window, machine, clock = harness
    states = []
    window.controller.stateChanged.connect(states.append)

    machine.request_start()
    for _ in range(3):
        window.controller.tick_once(1.0)
    assert machine.state() == GameState.RUNNING
    assert states == ["countdown", "running"]

    _press(window, Qt.Key.Key_Left)
    _press(window, Qt.Key.Key_W)
    judged = []
    window.controller.judged.connect(judged.append)
    clock.time_seconds = 10.0
    window.controller.tick_once(0.016)
    assert [event.judgement for event in judged] == ["hit"]
    assert machine.snapshot().score == 1


def test_window_deactivation_stops_a_run(harness):
    window, machine, _clock = harness
    machine.request_start()
    for _ in range(3):
        window.controller.tick_once(1.0)
    assert machine.state() == GameState.RUNNING

    window.controller.eventFilter(window, QEvent(QEvent.Type.WindowDeactivate))
    assert machine.state() == GameState.READY


def test_playfield_paints_offscreen(harness):
    window, machine, _clock = harness
    window.resize(400, 600)
    window.show()
    window.centralWidget().grab()
    assert len(machine.platform_views()) == 1
