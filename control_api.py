"""
control_api.py

Qt-first remote control integration for Orbhop.

Purpose
- Own the embedded Flask web server (web_server.py) inside the Qt process.
- Apply remote start / stop / calibrate intents to the GameStateMachine on the Qt thread.
- Deliver face landmark results posted by an external tracker page to the state machine.
- Publish game snapshots so /api/status reflects the running game.

How it works
- Starts the Flask development server in a daemon thread so phones or tablets can control Orbhop.
- Flask handlers only queue intents in web_server.SessionState.
- pump() is called from the game tick. It drains the queues, applies each intent and landmark
  result to the state machine and publishes the resulting snapshot.
- The first landmark result counts as the face tracker starting (on_sensor_started).

Public API
- apply_intent(machine, intent) -> None
- ControlApiBridge
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

import web_server
from game_state import GameStateMachine
from web_server import ControlIntent


logger = logging.getLogger(__name__)


def apply_intent(machine: GameStateMachine, intent: ControlIntent) -> None:
    if intent == ControlIntent.START:
        machine.request_start()
    elif intent == ControlIntent.STOP:
        machine.request_stop()
    elif intent == ControlIntent.CALIBRATE:
        machine.request_calibration()


class ControlApiBridge(QObject):
    """Qt bridge that owns the web server and feeds remote intents into the game.

    Signals are emitted on the Qt thread. The Flask server runs in a background thread.
    """

    intent_applied = pyqtSignal(str)
    server_failed = pyqtSignal(str)

    def __init__(
        self,
        *,
        bind_host: str,
        bind_port: int,
        debug: bool = False,
        session_state: Optional[web_server.SessionState] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._bind_host = str(bind_host)
        self._bind_port = int(bind_port)
        self._debug = bool(debug)

        self._session_state = session_state if session_state is not None else web_server.SessionState()
        self._flask_application = web_server.create_flask_app(
            web_server.WebServerConfig(
                host=self._bind_host,
                port=self._bind_port,
                debug=self._debug,
            ),
            self._session_state,
        )

        self._server_thread: Optional[threading.Thread] = None
        self._last_published_state: Optional[str] = None
        self._tracker_seen = False

    @property
    def flask_application(self):
        return self._flask_application

    def session_state(self) -> web_server.SessionState:
        return self._session_state

    def start_server(self) -> None:
        if self._server_thread is not None:
            return

        def run_server() -> None:
            try:
                self._flask_application.run(
                    host=self._bind_host,
                    port=self._bind_port,
                    debug=self._debug,
                    use_reloader=False,
                    threaded=True,
                )
            except OSError as exception:
                logger.error("Web server failed on %s:%d: %s", self._bind_host, self._bind_port, exception)
                self._session_state.set_error_text(str(exception))
                self.server_failed.emit(str(exception))

        self._server_thread = threading.Thread(
            target=run_server,
            name="orbhop-web-server",
            daemon=True,
        )
        self._server_thread.start()
        logger.info("Web server listening on http://%s:%d", self._bind_host, self._bind_port)

    def pump(self, machine: GameStateMachine) -> List[ControlIntent]:
        """Apply queued intents and landmark results, then publish the resulting snapshot. Call on the game thread."""
        drained = self._session_state.drain_intents()
        for intent in drained:
            logger.info("Applying remote intent: %s", intent.value)
            apply_intent(machine, intent)
            self.intent_applied.emit(intent.value)

        for faces in self._session_state.drain_landmarks():
            if not self._tracker_seen:
                self._tracker_seen = True
                logger.info("Remote face tracker connected")
                machine.on_sensor_started()
            machine.on_face_landmarks(faces)

        payload = machine.snapshot().to_dict()
        self._session_state.publish_status(payload)
        self._last_published_state = str(payload.get("state"))
        return drained

    def last_published_state(self) -> Optional[str]:
        return self._last_published_state
