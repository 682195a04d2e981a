"""
orbhop.py

Real entrypoint that launches the game.

Integration
- Configures logging
- Loads config and resolves the track path
- Creates QApplication, the audio clock and the GameStateMachine
- Starts the Flask remote control server in background when enabled
- Opens the gameplay window and starts the Qt event loop

Face tracking
- Landmark results arrive through the remote control server (POST /api/landmarks).
  Without the server, or when no tracker connects in time, the game falls back to keyboard-only mode.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QApplication

import audio_clock
import paths
from config import AppConfig, load_config
from game_state import GameStateMachine
from gameplay_models import GameState


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FACE_TRACKER_WAIT_MS = 8000


def build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(description="Orbhop rhythm runner")
    argument_parser.add_argument("--config", default=None, help="Path to orbhop_config.json.")
    argument_parser.add_argument("--track", default=None, help="Audio track, overrides audio.track_path.")
    argument_parser.add_argument("--silent", action="store_true", help="Play without audio on a wall clock.")
    argument_parser.add_argument("--web", dest="web", action="store_true", default=None, help="Start the remote control server.")
    argument_parser.add_argument("--no-web", dest="web", action="store_false", help="Do not start the remote control server.")
    argument_parser.add_argument("--web-debug", action="store_true", help="Enable Flask debug mode.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    argument_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return argument_parser


def configure_logging(level_name: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level_name).upper(), logging.INFO), format=LOG_FORMAT)


def _create_audio_clock(app_config: AppConfig, *, silent: bool, track_override: Optional[str]):
    if silent:
        duration_seconds = float(app_config.gameplay.schedule_duration_seconds)
        logger.info("Silent mode: wall clock track of %.1fs", duration_seconds)
        return audio_clock.WallAudioClock(duration_seconds), None

    from media_audio_clock import MediaAudioClock

    track_path = paths.resolve_track_path(track_override or app_config.audio.track_path)
    return MediaAudioClock(volume=float(app_config.audio.volume)), track_path


def main(argv: Optional[List[str]] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)
    configure_logging(parsed_args.log_level)

    try:
        app_config, config_path = load_config(Path(parsed_args.config) if parsed_args.config else None)
    except (ValueError, OSError) as exception:
        logger.error("Config error: %s", exception)
        return 2
    logger.info("Config: %s", str(config_path) if config_path is not None else "(defaults)")

    qt_application = QApplication(sys.argv[:1])

    clock, track_path = _create_audio_clock(
        app_config,
        silent=bool(parsed_args.silent),
        track_override=parsed_args.track,
    )
    machine = GameStateMachine.from_config(app_config, clock)
    if track_path is not None:
        # Subscribed first so a missing file reaches the state machine.
        clock.load(track_path)

    web_enabled = bool(app_config.web_server.enabled) if parsed_args.web is None else bool(parsed_args.web)
    control_bridge = None
    if web_enabled:
        from control_api import ControlApiBridge

        control_bridge = ControlApiBridge(
            bind_host=str(app_config.web_server.host),
            bind_port=int(app_config.web_server.port),
            debug=bool(parsed_args.web_debug),
        )
        control_bridge.start_server()

        def give_up_on_tracker() -> None:
            if machine.state() == GameState.INIT:
                machine.on_sensor_failed("no remote face tracker connected")

        QTimer.singleShot(FACE_TRACKER_WAIT_MS, give_up_on_tracker)
    else:
        machine.on_sensor_failed("remote face tracker disabled")

    from gameplay_harness import GameplayHarnessWindow

    window = GameplayHarnessWindow(machine=machine, clock=clock, control_bridge=control_bridge)
    window.resize(720, 900)
    window.show()
    if parsed_args.fullscreen:
        window.showFullScreen()

    return int(qt_application.exec())


if __name__ == "__main__":
    raise SystemExit(main())
