from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    notes_dir: Path
    appdata_dir: Path
    auto_rename_delay_ms: int
    watch_quiet_ms: int
    search_debounce_ms: int
    saving_indicator_ms: int
    watch_poll_interval_ms: int
    title_max_length: int
    auto_title_extensions: tuple[str, ...]
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool


def _int_env(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _extensions(raw: str) -> tuple[str, ...]:
    out: list[str] = []
    for part in raw.split(","):
        ext = part.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        out.append(ext)
    return tuple(out)


def load_settings() -> Settings:
    notes_dir = Path(os.environ.get("NOTES_DIR", "./notes")).resolve()
    appdata_dir = Path(os.environ.get("APPDATA_DIR", "./.notex")).resolve()
    auto_rename_delay_ms = _int_env("AUTO_RENAME_DELAY_MS", 1000)
    watch_quiet_ms = _int_env("WATCH_QUIET_MS", 500)
    search_debounce_ms = _int_env("SEARCH_DEBOUNCE_MS", 200)
    saving_indicator_ms = _int_env("SAVING_INDICATOR_MS", 500)
    watch_poll_interval_ms = _int_env("WATCH_POLL_INTERVAL_MS", 1000)
    title_max_length = _int_env("TITLE_MAX_LENGTH", 50)
    auto_title_extensions = _extensions(os.environ.get("AUTO_TITLE_EXTENSIONS", ".txt"))
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").strip().lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    return Settings(
        notes_dir=notes_dir,
        appdata_dir=appdata_dir,
        auto_rename_delay_ms=auto_rename_delay_ms,
        watch_quiet_ms=watch_quiet_ms,
        search_debounce_ms=search_debounce_ms,
        saving_indicator_ms=saving_indicator_ms,
        watch_poll_interval_ms=watch_poll_interval_ms,
        title_max_length=title_max_length,
        auto_title_extensions=auto_title_extensions,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
    )
