import paths


def test_default_track_sits_in_app_root(monkeypatch, tmp_path):
    monkeypatch.setattr(paths, "app_root_dir", lambda: tmp_path)
    assert paths.resolve_track_path(None) == tmp_path / "track.mp3"
    assert paths.resolve_track_path("") == tmp_path / "track.mp3"


def test_absolute_path_is_used_as_given(tmp_path):
    absolute = tmp_path / "songs" / "run.mp3"
    assert paths.resolve_track_path(str(absolute)) == absolute


def test_relative_path_prefers_current_directory(monkeypatch, tmp_path):
    work_dir = tmp_path / "work"
    app_dir = tmp_path / "app"
    work_dir.mkdir()
    app_dir.mkdir()
    (work_dir / "song.mp3").write_bytes(b"")
    monkeypatch.chdir(work_dir)
    monkeypatch.setattr(paths, "app_root_dir", lambda: app_dir)

    assert paths.resolve_track_path("song.mp3") == work_dir / "song.mp3"
    assert paths.resolve_track_path("other.mp3") == app_dir / "other.mp3"
