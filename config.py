"""
config.py

Typed configuration loading and validation for Orbhop.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If ORBHOP_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise Orbhop searches these paths in order and uses the first one that exists:
  1) ./orbhop_config.json (current working directory)
  2) <user config dir>/Orbhop/Orbhop/orbhop_config.json
  3) <user config dir>/Orbhop/Orbhop/config.json
- If none exists, the built-in defaults are used.

Example config file (orbhop_config.json)
{
  "gameplay": {
    "hit_window_seconds": 0.25,
    "beat_interval_seconds": 0.5,
    "schedule_duration_seconds": 60
  },
  "calibration": {
    "sample_count": 120
  },
  "input": {
    "face_recency_ms": 1500
  },
  "audio": {
    "track_path": "track.mp3",
    "av_offset_seconds": 0.0
  },
  "web_server": {
    "enabled": false,
    "host": "127.0.0.1",
    "port": 5178
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class GameplayConfig(BaseModel):
    hit_window_seconds: float = Field(default=0.25, gt=0.0, description="Half width of the hit window.")
    beat_interval_seconds: float = Field(default=0.5, gt=0.0, description="Seconds between primary beats.")
    schedule_duration_seconds: float = Field(default=60.0, ge=0.0, description="Track length used for the schedule.")
    fit_schedule_to_track: bool = Field(default=False, description="Rebuild the schedule from the loaded track length.")
    countdown_steps: int = Field(default=3, ge=1, le=10, description="Countdown steps before a run starts.")
    countdown_step_seconds: float = Field(default=1.0, gt=0.0, description="Length of one countdown step.")


class CalibrationConfig(BaseModel):
    sample_count: int = Field(default=120, ge=1, description="Smoothed samples collected per calibration.")
    spread_scale: float = Field(default=1.8, gt=0.0, description="Multiplier applied to the standard deviation.")
    min_spread_x: float = Field(default=0.06, gt=0.0, description="Horizontal spread floor.")
    min_spread_y: float = Field(default=0.05, gt=0.0, description="Vertical spread floor.")
    smoothing_factor: float = Field(default=0.35, gt=0.0, le=1.0, description="Exponential smoothing factor.")


class InputConfig(BaseModel):
    lane_threshold: float = Field(default=0.85, gt=0.0)
    level_high_threshold: float = Field(default=0.8)
    level_low_threshold: float = Field(default=-0.6)
    face_recency_ms: int = Field(default=1500, ge=0, description="Face samples newer than this end a keyboard override.")

    @model_validator(mode="after")
    def validate_level_thresholds(self) -> "InputConfig":
        if self.level_low_threshold > self.level_high_threshold:
            raise ValueError("level_low_threshold must not exceed level_high_threshold")
        return self


class AudioConfig(BaseModel):
    track_path: Optional[str] = Field(default=None, description="Audio file. Defaults to track.mp3 next to the app.")
    av_offset_seconds: float = Field(default=0.0, description="Added to the audio clock to get song time.")
    volume: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("track_path")
    @classmethod
    def normalize_optional_path(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class WebServerConfig(BaseModel):
    enabled: bool = Field(default=False, description="Start the remote control server.")
    host: str = Field(default="127.0.0.1", description="Bind address for local web server.")
    port: int = Field(default=5178, ge=1, le=65535, description="Port for local web server.")


class AppConfig(BaseModel):
    gameplay: GameplayConfig = Field(default_factory=GameplayConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    web_server: WebServerConfig = Field(default_factory=WebServerConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("Orbhop", "Orbhop"))
    return [
        Path.cwd() / "orbhop_config.json",
        config_directory / "orbhop_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("ORBHOP_CONFIG_PATH", "").strip()
    if explicit_path_text:
        explicit_path = Path(explicit_path_text)
        if not explicit_path.exists():
            raise FileNotFoundError(f"ORBHOP_CONFIG_PATH points at a missing file: {explicit_path}")
        return explicit_path

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - ORBHOP_HIT_WINDOW_SECONDS
    - ORBHOP_BEAT_INTERVAL_SECONDS
    - ORBHOP_SCHEDULE_DURATION_SECONDS
    - ORBHOP_FACE_RECENCY_MS
    - ORBHOP_TRACK_PATH
    - ORBHOP_AV_OFFSET_SECONDS
    - ORBHOP_WEB_ENABLED
    - ORBHOP_WEB_HOST
    - ORBHOP_WEB_PORT
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    gameplay_section = ensure_nested(updated_config, "gameplay")
    input_section = ensure_nested(updated_config, "input")
    audio_section = ensure_nested(updated_config, "audio")
    web_server_section = ensure_nested(updated_config, "web_server")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_float("ORBHOP_HIT_WINDOW_SECONDS", gameplay_section, "hit_window_seconds")
    override_float("ORBHOP_BEAT_INTERVAL_SECONDS", gameplay_section, "beat_interval_seconds")
    override_float("ORBHOP_SCHEDULE_DURATION_SECONDS", gameplay_section, "schedule_duration_seconds")

    override_int("ORBHOP_FACE_RECENCY_MS", input_section, "face_recency_ms")

    override_string("ORBHOP_TRACK_PATH", audio_section, "track_path")
    override_float("ORBHOP_AV_OFFSET_SECONDS", audio_section, "av_offset_seconds")

    override_bool("ORBHOP_WEB_ENABLED", web_server_section, "enabled")
    override_string("ORBHOP_WEB_HOST", web_server_section, "host")
    override_int("ORBHOP_WEB_PORT", web_server_section, "port")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source_text = str(resolved_path) if resolved_path is not None else "(defaults)"
        raise ValueError(f"Config validation failed for {source_text}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": config.model_dump(),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
