import pytest

pytest.importorskip("PyQt6.QtCore")

import calibration  # noqa: E402
import control_api  # noqa: E402
import game_state  # noqa: E402
import web_server  # noqa: E402
from conftest import FakeAudioClock, face_at  # noqa: E402
from gameplay_models import BeatEvent, GameState, Lane, Level  # noqa: E402


def _machine():
    return game_state.GameStateMachine(
        audio_clock_obj=FakeAudioClock(),
        beat_events=[BeatEvent(time_seconds=10.0, lane=Lane.LEFT, level=Level.HIGH)],
        calibrator=calibration.Calibrator(sample_count=2),
    )


@pytest.fixture
def bridge(qt_app):
    return control_api.ControlApiBridge(bind_host="127.0.0.1", bind_port=5178)


def test_pump_publishes_status_without_pending_work(bridge):
    machine = _machine()
    assert bridge.pump(machine) == []
    assert bridge.last_published_state() == "init"
    status = bridge.session_state().snapshot()
    assert status["state"] == "init"
    assert status["beat_count"] == 1


def test_landmarks_start_tracker_and_calibrate(bridge):
    machine = _machine()
    state = bridge.session_state()
    state.push_landmarks(face_at(0.5, 0.5))
    state.push_landmarks(face_at(0.5, 0.5))

    bridge.pump(machine)
    assert machine.state() == GameState.READY
    assert machine.calibrator().is_ready()
    assert bridge.last_published_state() == "ready"


def test_remote_intents_drive_the_machine(bridge):
    machine = _machine()
    machine.on_sensor_failed("no tracker")
    applied = []
    bridge.intent_applied.connect(applied.append)

    client = bridge.flask_application.test_client()
    assert client.post("/api/start").status_code == 200
    assert bridge.pump(machine) == [web_server.ControlIntent.START]
    assert machine.state() == GameState.COUNTDOWN
    assert applied == ["start"]

    client.post("/api/intent", json={"intent": "stop"})
    bridge.pump(machine)
    assert machine.state() == GameState.READY
    assert client.get("/api/status").get_json()["state"] == "ready"


def test_apply_intent_calibrate():
    machine = _machine()
    control_api.apply_intent(machine, web_server.ControlIntent.CALIBRATE)
    assert machine.state() == GameState.CALIBRATING


def test_malformed_landmarks_never_reach_the_tick_as_errors(bridge):
    machine = _machine()
    client = bridge.flask_application.test_client()
    assert client.post("/api/landmarks", json={"faces": [5]}).status_code == 400
    assert client.post(
        "/api/landmarks",
        data='{"faces": [[{"x": 0.5, "y": 0.5}, {"x": 1e400, "y": 0.5}]]}',
        content_type="application/json",
    ).status_code == 400
    bridge.pump(machine)
    assert machine.state() == GameState.INIT

    # Results queued past the route are still handled without raising.
    state = bridge.session_state()
    state.push_landmarks([5])
    state.push_landmarks([{"a": 1, "b": 2}])
    state.push_landmarks([[{"x": 0.5, "y": 0.5}, {"x": float("inf"), "y": 0.5}]])
    state.push_landmarks(face_at(0.5, 0.5))
    bridge.pump(machine)

    assert machine.state() == GameState.READY
    frame = machine.calibrator().frame()
    assert frame.center_x == pytest.approx(0.5)
    assert frame.center_y == pytest.approx(0.5)
