import json

import pytest

import config

ENV_NAMES = (
    "ORBHOP_CONFIG_PATH",
    "ORBHOP_HIT_WINDOW_SECONDS",
    "ORBHOP_BEAT_INTERVAL_SECONDS",
    "ORBHOP_SCHEDULE_DURATION_SECONDS",
    "ORBHOP_FACE_RECENCY_MS",
    "ORBHOP_TRACK_PATH",
    "ORBHOP_AV_OFFSET_SECONDS",
    "ORBHOP_WEB_ENABLED",
    "ORBHOP_WEB_HOST",
    "ORBHOP_WEB_PORT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_default_config_candidates", lambda: [])


def _write(tmp_path, payload):
    path = tmp_path / "orbhop_config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_without_config_file():
    app_config, resolved_path = config.load_config()
    assert resolved_path is None
    assert app_config.gameplay.hit_window_seconds == pytest.approx(0.25)
    assert app_config.gameplay.beat_interval_seconds == pytest.approx(0.5)
    assert app_config.gameplay.countdown_steps == 3
    assert app_config.calibration.sample_count == 120
    assert app_config.input.face_recency_ms == 1500
    assert app_config.audio.track_path is None
    assert not app_config.web_server.enabled


def test_file_values_are_loaded(tmp_path):
    path = _write(
        tmp_path,
        {
            "gameplay": {"hit_window_seconds": 0.2, "fit_schedule_to_track": True},
            "audio": {"track_path": "  songs/run.mp3  ", "av_offset_seconds": -0.05},
        },
    )
    app_config, resolved_path = config.load_config(path)
    assert resolved_path == path
    assert app_config.gameplay.hit_window_seconds == pytest.approx(0.2)
    assert app_config.gameplay.fit_schedule_to_track
    assert app_config.audio.track_path == "songs/run.mp3"
    assert app_config.audio.av_offset_seconds == pytest.approx(-0.05)


def test_blank_track_path_becomes_none(tmp_path):
    app_config, _ = config.load_config(_write(tmp_path, {"audio": {"track_path": "   "}}))
    assert app_config.audio.track_path is None


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = _write(tmp_path, {"web_server": {"port": 6000}})
    monkeypatch.setenv("ORBHOP_CONFIG_PATH", str(path))
    monkeypatch.setenv("ORBHOP_WEB_PORT", "7001")
    monkeypatch.setenv("ORBHOP_WEB_ENABLED", "yes")
    monkeypatch.setenv("ORBHOP_FACE_RECENCY_MS", "900")
    monkeypatch.setenv("ORBHOP_HIT_WINDOW_SECONDS", "not-a-number")

    app_config, resolved_path = config.load_config()
    assert resolved_path == path
    assert app_config.web_server.port == 7001
    assert app_config.web_server.enabled
    assert app_config.input.face_recency_ms == 900
    assert app_config.gameplay.hit_window_seconds == pytest.approx(0.25)


def test_missing_explicit_path_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("ORBHOP_CONFIG_PATH", str(tmp_path / "absent.json"))
    with pytest.raises(FileNotFoundError):
        config.load_config()


def test_invalid_json_raises_value_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        config.load_config(path)


def test_non_object_root_raises_value_error(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        config.load_config(path)


def test_validation_errors_are_reported(tmp_path):
    path = _write(tmp_path, {"input": {"level_low_threshold": 1.0, "level_high_threshold": 0.5}})
    with pytest.raises(ValueError, match="Config validation failed"):
        config.load_config(path)

    path = _write(tmp_path, {"gameplay": {"hit_window_seconds": 0}})
    with pytest.raises(ValueError):
        config.load_config(path)


def test_first_existing_candidate_is_used(tmp_path, monkeypatch):
    present = _write(tmp_path, {"calibration": {"sample_count": 30}})
    monkeypatch.setattr(config, "_default_config_candidates", lambda: [tmp_path / "missing.json", present])
    app_config, resolved_path = config.load_config()
    assert resolved_path == present
    assert app_config.calibration.sample_count == 30
