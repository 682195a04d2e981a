# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Filesystem path helpers for the app.
# - Decides where the audio track is looked up.
#
# Design notes:
# - No Qt usage. Return pathlib.Path only, never create files or directories.
# - The app root is the directory of the launched entrypoint file.
#
########################
# Interfaces:
# Public functions:
# - app_root_dir() -> pathlib.Path
# - default_track_path() -> pathlib.Path
# - resolve_track_path(configured: Optional[str]) -> pathlib.Path
#
# Inputs:
# - audio.track_path from config (optional).
#
# Outputs:
# - Track path handed to media_audio_clock.MediaAudioClock.load().
#
########################

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional


DEFAULT_TRACK_FILE_NAME = "track.mp3"


def _entrypoint_file_path() -> Optional[Path]:
    main_module = sys.modules.get("__main__")
    main_file = getattr(main_module, "__file__", None)
    if main_file:
        return Path(str(main_file)).resolve()

    argv0 = str(sys.argv[0] or "").strip()
    if argv0 and argv0 not in {"-c", "-m"}:
        return Path(argv0).resolve()

    return None


def app_root_dir() -> Path:
    entrypoint_path = _entrypoint_file_path()
    if entrypoint_path is not None:
        return entrypoint_path.parent
    return Path.cwd().resolve()


def default_track_path() -> Path:
    """track.mp3 next to the launched entrypoint."""
    return app_root_dir() / DEFAULT_TRACK_FILE_NAME


def resolve_track_path(configured: Optional[str]) -> Path:
    """
    Absolute paths are used as given. Relative paths are tried against the
    current directory first, then the app root.
    """
    if not configured:
        return default_track_path()

    candidate = Path(configured).expanduser()
    if candidate.is_absolute():
        return candidate

    cwd_candidate = Path.cwd() / candidate
    if cwd_candidate.exists():
        return cwd_candidate
    return app_root_dir() / candidate
