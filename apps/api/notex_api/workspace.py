from __future__ import annotations

import logging

from notex_api.autosave import Autosaver
from notex_api.config import Settings
from notex_api.domain.ports import FileStore
from notex_api.notes import NoteStore
from notex_api.preferences import Preferences
from notex_api.search import SearchDebouncer
from notex_api.selection import ClickEvent, filter_visible, select
from notex_api.watch import FileWatchBridge

logger = logging.getLogger("notex.workspace")


class Workspace:
    """Everything bound to one notes root, started and stopped together."""

    def __init__(self, store: FileStore, preferences: Preferences, settings: Settings) -> None:
        self.store = store
        self.preferences = preferences
        self.settings = settings
        shortcut = preferences.global_shortcut()
        self.notes = NoteStore(
            store,
            appdata_dir=str(settings.appdata_dir),
            rename_delay_s=settings.auto_rename_delay_ms / 1000.0,
            saving_indicator_s=settings.saving_indicator_ms / 1000.0,
            title_max_length=settings.title_max_length,
            auto_title_extensions=settings.auto_title_extensions,
            default_extension=shortcut.default_extension,
        )
        self.watcher = FileWatchBridge(store, self._on_store_change, quiet_s=settings.watch_quiet_ms / 1000.0)
        self.search = SearchDebouncer(self.notes.search, delay_s=settings.search_debounce_ms / 1000.0)
        self.autosaver = Autosaver(self.notes.save_active_note, lambda: self.notes.dirty)
        self.selection: list[str] = []
        self.anchor: str | None = None

    @property
    def root_path(self) -> str | None:
        return self.notes.root_path

    async def _on_store_change(self) -> None:
        if self.notes.root_path is None:
            return
        await self.notes.refresh()

    async def start(self, root_path: str) -> None:
        if self.notes.root_path is not None:
            await self.stop()
        await self.notes.activate(root_path)
        await self.watcher.start(root_path)
        await self.autosaver.configure(self.preferences.autosave())
        logger.info("workspace_start", extra={"root": root_path})

    async def stop(self) -> None:
        root = self.notes.root_path
        await self.watcher.stop()
        await self.autosaver.stop()
        self.search.reset()
        self.notes.deactivate()
        self.selection = []
        self.anchor = None
        logger.info("workspace_stop", extra={"root": root})

    def select(self, item_path: str, event: ClickEvent, filter_query: str | None = None) -> list[str]:
        visible = filter_visible(self.notes.notes, filter_query)
        self.selection, self.anchor = select(event, item_path, self.selection, visible, self.anchor)
        return self.selection
