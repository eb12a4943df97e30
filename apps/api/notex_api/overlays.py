from __future__ import annotations

import json
import logging
import os

from notex_api.domain.ports import FileStore
from notex_api.util import dump_json

logger = logging.getLogger("notex.overlays")

HIDDEN_FILE = ".hidden.json"
PINNED_FILE = "pinned.json"


def _string_list(raw: object) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [v for v in raw if isinstance(v, str)]


class HiddenOverlay:
    """Soft-deleted paths for one root, persisted to ``<root>/.hidden.json``.

    The file holds an ordered JSON array; only membership matters.
    """

    def __init__(self, store: FileStore) -> None:
        self.store = store
        self.file_path: str | None = None
        self._paths: list[str] = []

    @property
    def paths(self) -> frozenset[str]:
        return frozenset(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    async def load(self, root: str) -> frozenset[str]:
        self.file_path = os.path.join(root, HIDDEN_FILE)
        try:
            raw = json.loads(await self.store.read_note(self.file_path))
            self._paths = list(dict.fromkeys(_string_list(raw)))
        except FileNotFoundError:
            self._paths = []
        except (OSError, ValueError):
            logger.exception("hidden_load_failed", extra={"path": self.file_path})
            self._paths = []
        return self.paths

    def reset(self) -> None:
        self.file_path = None
        self._paths = []

    async def _save(self) -> None:
        if self.file_path is None:
            return
        try:
            await self.store.write_note(self.file_path, dump_json(self._paths))
        except OSError:
            logger.exception("hidden_save_failed", extra={"path": self.file_path})

    async def add(self, *paths: str) -> frozenset[str]:
        for p in paths:
            if p not in self._paths:
                self._paths.append(p)
        await self._save()
        return self.paths

    async def remove(self, *paths: str) -> frozenset[str]:
        drop = set(paths)
        self._paths = [p for p in self._paths if p not in drop]
        await self._save()
        return self.paths

    async def clear(self) -> frozenset[str]:
        self._paths = []
        await self._save()
        return self.paths


class PinOverlay:
    """Pinned paths, persisted to ``<appdata>/pinned.json`` as ``{"pinned": [...]}``."""

    def __init__(self, store: FileStore, appdata_dir: str) -> None:
        self.store = store
        self.file_path = os.path.join(appdata_dir, PINNED_FILE)
        self._paths: list[str] = []

    @property
    def paths(self) -> frozenset[str]:
        return frozenset(self._paths)

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    async def load(self) -> frozenset[str]:
        try:
            data = json.loads(await self.store.read_note(self.file_path))
            pinned = data.get("pinned") if isinstance(data, dict) else None
            self._paths = list(dict.fromkeys(_string_list(pinned)))
        except FileNotFoundError:
            self._paths = []
        except (OSError, ValueError):
            logger.exception("pinned_load_failed", extra={"path": self.file_path})
            self._paths = []
        return self.paths

    async def toggle(self, path: str) -> bool:
        previous = list(self._paths)
        if path in self._paths:
            self._paths = [p for p in self._paths if p != path]
        else:
            self._paths = [*self._paths, path]
        try:
            await self.store.write_note(self.file_path, dump_json({"pinned": self._paths}))
        except OSError:
            logger.exception("pinned_save_failed", extra={"path": self.file_path})
            self._paths = previous
        return path in self._paths
