from __future__ import annotations

import json
import os
import re
import time
from pathlib import Path


def now_ms() -> int:
    return int(time.time() * 1000)


def mtime_ms(st_mtime: float) -> int:
    return int(st_mtime * 1000)


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp.{os.getpid()}")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


def dump_json(data: object) -> str:
    return json.dumps(data, indent=2) + "\n"


_ILLEGAL_FILENAME_RE = re.compile(r'[\\/:*?"<>|]')


def strip_illegal_filename_chars(text: str) -> str:
    return _ILLEGAL_FILENAME_RE.sub("", text)


def has_path_separator(value: str) -> bool:
    return "/" in value or "\\" in value or os.sep in value


def split_name(name: str) -> tuple[str, str]:
    """Split ``name`` into (stem, extension); dotfiles have no extension."""
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


def unique_name(name: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    stem, ext = split_name(name)
    idx = 2
    while f"{stem}-{idx}{ext}" in taken:
        idx += 1
    return f"{stem}-{idx}{ext}"
