from notex_api.config import load_settings


def test_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("NOTES_DIR", "APPDATA_DIR", "AUTO_TITLE_EXTENSIONS", "API_AUTH_MODE", "AUTO_RENAME_DELAY_MS", "WATCH_QUIET_MS", "SEARCH_DEBOUNCE_MS"):
        monkeypatch.delenv(name, raising=False)

    s = load_settings()
    assert s.notes_dir == (tmp_path / "notes").resolve()
    assert s.appdata_dir == (tmp_path / ".notex").resolve()
    assert s.auto_rename_delay_ms == 1000
    assert s.watch_quiet_ms == 500
    assert s.search_debounce_ms == 200
    assert s.auto_title_extensions == (".txt",)
    assert s.api_auth_mode == "none"


def test_env_overrides(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path / "n"))
    monkeypatch.setenv("AUTO_TITLE_EXTENSIONS", "txt, .MD,,")
    monkeypatch.setenv("TITLE_MAX_LENGTH", "80")
    monkeypatch.setenv("API_AUTH_MODE", " Bearer ")
    monkeypatch.setenv("API_DEBUG_LOG", "TRUE")

    s = load_settings()
    assert s.notes_dir == (tmp_path / "n").resolve()
    assert s.auto_title_extensions == (".txt", ".md")
    assert s.title_max_length == 80
    assert s.api_auth_mode == "bearer"
    assert s.api_debug_log is True
