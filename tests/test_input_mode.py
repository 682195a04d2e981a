import threading

import input_mode
from gameplay_models import InputMode, Lane, Level, PlayerTarget


def test_starts_in_face_mode():
    arbiter = input_mode.InputModeArbiter(clock=lambda: 0.0)
    assert arbiter.mode() == InputMode.FACE
    assert arbiter.is_face_authoritative()
    assert not arbiter.face_available()


def test_keyboard_overrides_until_recent_face_sample():
    arbiter = input_mode.InputModeArbiter(clock=lambda: 0.0)
    arbiter.on_face_sample(now_seconds=10.0)
    arbiter.on_keyboard_input()
    assert arbiter.mode() == InputMode.KEYBOARD

    arbiter.on_face_sample(now_seconds=10.5)
    assert arbiter.evaluate(now_seconds=11.0) == InputMode.FACE


def test_keyboard_stays_without_recent_face_sample():
    arbiter = input_mode.InputModeArbiter(clock=lambda: 0.0)
    arbiter.on_face_sample(now_seconds=10.0)
    arbiter.on_keyboard_input()

    assert arbiter.evaluate(now_seconds=11.6) == InputMode.KEYBOARD
    assert arbiter.evaluate(now_seconds=20.0) == InputMode.KEYBOARD


def test_lost_face_blocks_reversion():
    arbiter = input_mode.InputModeArbiter(clock=lambda: 0.0)
    arbiter.on_face_sample(now_seconds=10.0)
    arbiter.on_keyboard_input()
    arbiter.on_face_lost()
    assert arbiter.evaluate(now_seconds=10.1) == InputMode.KEYBOARD


def test_injected_clock_is_used_when_no_time_given():
    now = [5.0]
    arbiter = input_mode.InputModeArbiter(face_recency_seconds=1.0, clock=lambda: now[0])
    arbiter.on_face_sample()
    arbiter.on_keyboard_input()
    now[0] = 7.0
    assert arbiter.evaluate() == InputMode.KEYBOARD
    arbiter.on_face_sample()
    assert arbiter.last_face_sample_seconds() == 7.0
    assert arbiter.evaluate() == InputMode.FACE


def test_force_face_resets_override():
    arbiter = input_mode.InputModeArbiter(clock=lambda: 0.0)
    arbiter.on_keyboard_input()
    arbiter.force_face()
    assert arbiter.mode() == InputMode.FACE


def test_target_holder_versions_changes():
    holder = input_mode.PlayerTargetHolder()
    assert holder.get() == PlayerTarget(lane=Lane.CENTER, level=Level.LOW)
    assert holder.version() == 0

    assert holder.set(PlayerTarget(lane=Lane.LEFT, level=Level.LOW))
    assert not holder.set(PlayerTarget(lane=Lane.LEFT, level=Level.LOW))
    assert holder.version() == 1

    holder.set_level(Level.HIGH)
    holder.set_lane(Lane.RIGHT)
    assert holder.get() == PlayerTarget(lane=Lane.RIGHT, level=Level.HIGH)

    holder.reset()
    assert holder.get() == PlayerTarget()


def test_target_holder_never_tears_under_concurrent_writes():
    holder = input_mode.PlayerTargetHolder()
    valid = {PlayerTarget(lane=Lane.LEFT, level=Level.HIGH), PlayerTarget(lane=Lane.RIGHT, level=Level.LOW)}
    holder.set(PlayerTarget(lane=Lane.LEFT, level=Level.HIGH))
    stop = threading.Event()

    def writer():
        targets = list(valid)
        index = 0
        while not stop.is_set():
            holder.set(targets[index % 2])
            index += 1

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            assert holder.get() in valid
    finally:
        stop.set()
        thread.join()


def test_self_check_passes():
    input_mode._run_unit_tests()
