# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for gameplay input.
# - Translates QKeyEvent into gameplay_models.KeyAction and emits a Qt signal.
#
# Design notes:
# - This must be the only keyboard input source. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
#
########################
# Interfaces:
# Public functions:
# - build_default_key_map() -> dict[int, KeyAction]
#
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - keyAction(gameplay_models.KeyAction)
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - clear_pressed_keys() -> None
#
# Inputs:
# - Raw QKeyEvent from the Qt event loop.
#
# Outputs:
# - KeyAction values consumed by GameStateMachine.on_key_action.
#
########################

from __future__ import annotations

from typing import Dict, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent

from gameplay_models import KeyAction


def build_default_key_map() -> Dict[int, KeyAction]:
    """
    Accepted keys:
      - Arrow keys: Left, Right, Up, Down
      - WASD keys: A, D, W, S
      - R: recalibrate
    """
    key_map: Dict[int, KeyAction] = {}

    def bind(key_constant: Qt.Key, action: KeyAction) -> None:
        key_map[int(key_constant.value)] = action

    # Arrow keys
    bind(Qt.Key.Key_Left, KeyAction.LEFT)
    bind(Qt.Key.Key_Right, KeyAction.RIGHT)
    bind(Qt.Key.Key_Up, KeyAction.UP)
    bind(Qt.Key.Key_Down, KeyAction.DOWN)

    # WASD
    bind(Qt.Key.Key_A, KeyAction.LEFT)
    bind(Qt.Key.Key_D, KeyAction.RIGHT)
    bind(Qt.Key.Key_W, KeyAction.UP)
    bind(Qt.Key.Key_S, KeyAction.DOWN)

    bind(Qt.Key.Key_R, KeyAction.RECALIBRATE)
    return key_map


class InputRouter(QObject):
    """
    Central keyboard router for gameplay input.

    This object never touches game state. It maps keys to KeyAction values and
    emits one keyAction per physical press.
    """

    keyAction = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None, key_map: Optional[Dict[int, KeyAction]] = None) -> None:
        super().__init__(parent)
        self._key_map: Dict[int, KeyAction] = dict(key_map) if key_map is not None else build_default_key_map()
        self._pressed_keys: Set[int] = set()

    def action_for_key(self, key_code: int) -> Optional[KeyAction]:
        return self._key_map.get(int(key_code))

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """Returns True if this router consumed the event."""
        key_code = int(event.key())
        action = self._key_map.get(key_code)

        if event.isAutoRepeat():
            return action is not None

        # Ignore second press while still held.
        if key_code in self._pressed_keys:
            return action is not None

        self._pressed_keys.add(key_code)
        if action is None:
            return False

        self.keyAction.emit(action)
        return True

    def handle_key_release(self, event: QKeyEvent) -> bool:
        key_code = int(event.key())
        if not event.isAutoRepeat():
            self._pressed_keys.discard(key_code)
        return key_code in self._key_map

    def clear_pressed_keys(self) -> None:
        """Called by the harness on focus loss or window deactivation."""
        self._pressed_keys.clear()


def _run_unit_tests() -> None:
    key_map = build_default_key_map()
    assert key_map[int(Qt.Key.Key_A.value)] == KeyAction.LEFT
    assert key_map[int(Qt.Key.Key_Left.value)] == KeyAction.LEFT
    assert key_map[int(Qt.Key.Key_W.value)] == KeyAction.UP
    assert key_map[int(Qt.Key.Key_S.value)] == KeyAction.DOWN
    assert key_map[int(Qt.Key.Key_R.value)] == KeyAction.RECALIBRATE


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
