# -*- coding: utf-8 -*-
from __future__ import annotations

########################
# web_server.py
########################
# Purpose:
# - Local Flask web server for remote control of a running game.
# - Provides /api endpoints for status, start, stop and calibrate.
# - Accepts face landmark results from an external tracker page (/api/landmarks).
#
# Design notes:
# - Flask request threads never touch the game. They only enqueue intents and read the last
#   published status snapshot.
# - SessionState is the hand-off point between threads; keep it thread-safe and explicit.
# - The Qt side (control_api.ControlApiBridge) drains intents on the game thread and publishes
#   GameSnapshot.to_dict() payloads back.
#
########################
# Interfaces:
# Public enums:
# - ControlIntent: START | STOP | CALIBRATE
#
# Public dataclasses:
# - WebServerConfig(host: str, port: int, debug: bool)
#
# Public classes:
# - class SessionState
#   - snapshot() -> dict[str, Any]
#   - publish_status(payload: dict[str, Any]) -> None
#   - request(intent: ControlIntent) -> bool
#   - drain_intents() -> list[ControlIntent]
#   - push_landmarks(faces: list) -> None
#   - drain_landmarks() -> list[list]
#   - set_error_text(error_text: Optional[str]) -> None
#
# Public functions:
# - create_flask_app(config: WebServerConfig, session_state: Optional[SessionState] = None) -> flask.Flask
# - main() -> int
#
# Inputs:
# - HTTP requests from remote clients:
#   - /api/status (GET)
#   - /api/start, /api/stop, /api/calibrate (POST)
#   - /api/intent (POST, {"intent": "start" | "stop" | "calibrate"})
#   - /api/landmarks (POST, {"faces": [[{"x": float, "y": float} or [x, y], ...], ...]}; finite numbers only)
#
# Outputs:
# - JSON responses.
#
########################
# Tests:
#   - python web_server.py --host 0.0.0.0 --port 5178
########################

import argparse
import logging
import math
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, List, Optional

from flask import Flask, Response, jsonify, request


logger = logging.getLogger(__name__)

MAX_PENDING_INTENTS = 32
MAX_PENDING_LANDMARKS = 8


class ControlIntent(str, Enum):
    START = "start"
    STOP = "stop"
    CALIBRATE = "calibrate"


@dataclass(frozen=True)
class WebServerConfig:
    host: str
    port: int
    debug: bool = False


class SessionState:
    """Thread-safe hand-off between Flask request threads and the game thread.

    The game thread is the source of truth. This object only remembers the last
    status it published and the intents that remote clients queued since the
    last drain.
    """

    def __init__(self, max_pending: int = MAX_PENDING_INTENTS) -> None:
        self._lock = threading.RLock()
        self._pending: Deque[ControlIntent] = deque(maxlen=int(max(1, max_pending)))
        self._landmarks: Deque[list] = deque(maxlen=MAX_PENDING_LANDMARKS)
        self._status: dict[str, Any] = {"state": "init"}
        self._error_text: Optional[str] = None

    def publish_status(self, payload: dict[str, Any]) -> None:
        with self._lock:
            self._status = dict(payload)

    def set_error_text(self, error_text: Optional[str]) -> None:
        with self._lock:
            self._error_text = (error_text or "").strip() or None

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            payload: dict[str, Any] = {"ok": True}
            payload.update(self._status)
            payload["pending_intents"] = [intent.value for intent in self._pending]
            if self._error_text:
                payload["error"] = self._error_text
            return payload

    def request(self, intent: ControlIntent) -> bool:
        try:
            normalized_intent = ControlIntent(intent)
        except ValueError:
            return False
        with self._lock:
            self._pending.append(normalized_intent)
        logger.info("Remote intent queued: %s", normalized_intent.value)
        return True

    def drain_intents(self) -> List[ControlIntent]:
        with self._lock:
            drained = list(self._pending)
            self._pending.clear()
        return drained

    def push_landmarks(self, faces: list) -> None:
        with self._lock:
            self._landmarks.append(list(faces))

    def drain_landmarks(self) -> List[list]:
        with self._lock:
            drained = list(self._landmarks)
            self._landmarks.clear()
        return drained


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _landmark_error(faces_value: Any) -> Optional[str]:
    """Error text for a landmark payload, or None when every face is a list of {x, y} points or [x, y] pairs."""
    if not isinstance(faces_value, list):
        return "faces must be a list of landmark lists"
    for face_index, face in enumerate(faces_value):
        if not isinstance(face, list):
            return f"face {face_index} must be a list of landmarks"
        for point_index, point in enumerate(face):
            if isinstance(point, dict):
                coordinates = [point.get("x"), point.get("y")]
            elif isinstance(point, list) and len(point) >= 2:
                coordinates = point[:2]
            else:
                return f"face {face_index} landmark {point_index} must be {{x, y}} or [x, y]"
            if not all(_is_finite_number(value) for value in coordinates):
                return f"face {face_index} landmark {point_index} needs finite x and y"
    return None


def create_flask_app(config: WebServerConfig, session_state: Optional[SessionState] = None) -> Flask:
    flask_app = Flask(__name__, static_folder=None)

    if session_state is None:
        session_state = SessionState()
    flask_app.extensions["orbhop_session_state"] = session_state
    flask_app.config["ORBHOP_WEB_SERVER"] = config

    @flask_app.after_request
    def add_no_cache_headers(response: Response) -> Response:
        response.headers["Cache-Control"] = "no-store"
        return response

    @flask_app.errorhandler(404)
    def not_found(_error: Exception) -> Response:
        return jsonify({"ok": False, "error": "Not found"}), 404

    @flask_app.errorhandler(405)
    def method_not_allowed(_error: Exception) -> Response:
        return jsonify({"ok": False, "error": "Method not allowed"}), 405

    def queue_intent(intent: ControlIntent) -> Response:
        session_state.request(intent)
        return jsonify({"ok": True, "queued": intent.value})

    # API

    @flask_app.get("/api/status")
    def api_status() -> Response:
        return jsonify(session_state.snapshot())

    @flask_app.post("/api/start")
    def api_start() -> Response:
        return queue_intent(ControlIntent.START)

    @flask_app.post("/api/stop")
    def api_stop() -> Response:
        return queue_intent(ControlIntent.STOP)

    @flask_app.post("/api/calibrate")
    def api_calibrate() -> Response:
        return queue_intent(ControlIntent.CALIBRATE)

    @flask_app.post("/api/intent")
    def api_intent() -> Response:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        intent_value = str(payload.get("intent") or "").strip().lower()
        try:
            intent = ControlIntent(intent_value)
        except ValueError:
            return jsonify({"ok": False, "error": f"Unknown intent: {intent_value or '(empty)'}"}), 400
        return queue_intent(intent)

    @flask_app.post("/api/landmarks")
    def api_landmarks() -> Response:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        faces_value = payload.get("faces")
        error_text = _landmark_error(faces_value)
        if error_text is not None:
            return jsonify({"ok": False, "error": error_text}), 400
        session_state.push_landmarks(faces_value)
        return jsonify({"ok": True, "faces": len(faces_value)})

    return flask_app


def _parse_args() -> WebServerConfig:
    argument_parser = argparse.ArgumentParser(description="Orbhop local web server")
    argument_parser.add_argument("--host", default="127.0.0.1", help="Bind host, 0.0.0.0 for LAN access")
    argument_parser.add_argument("--port", type=int, default=5178, help="Bind port")
    argument_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    parsed = argument_parser.parse_args()

    return WebServerConfig(
        host=str(parsed.host),
        port=int(parsed.port),
        debug=bool(parsed.debug),
    )


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = _parse_args()
    flask_app = create_flask_app(config)
    flask_app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
