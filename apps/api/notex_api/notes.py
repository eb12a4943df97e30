from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from notex_api.autotitle import AutoTitleRenamer, derive_filename
from notex_api.debounce import Debouncer
from notex_api.domain.entities import Note, SearchHit, SortDirection, SortKey
from notex_api.domain.exceptions import NoWorkspaceError
from notex_api.domain.ports import FileStore
from notex_api.overlays import PINNED_FILE, HiddenOverlay, PinOverlay
from notex_api.util import has_path_separator, now_ms, unique_name

logger = logging.getLogger("notex.notes")

DRAFT_EXTENSION = ".txt"
DRAFT_TITLE_MAX_LENGTH = 30
NEW_NOTE_STEM = "New Note"


def is_system_name(name: str) -> bool:
    return name == PINNED_FILE or name.startswith(".")


def flatten(entries: Iterable[Note], hidden: frozenset[str] | set[str]) -> list[Note]:
    flat: list[Note] = []
    for entry in entries:
        if not entry.is_folder and not is_system_name(entry.name) and entry.path not in hidden:
            flat.append(replace(entry, children=[]))
        if entry.children:
            flat.extend(flatten(entry.children, hidden))
    return flat


def sort_notes(
    notes: list[Note],
    pinned: frozenset[str] | set[str],
    sort_by: SortKey,
    direction: SortDirection,
) -> list[Note]:
    if sort_by == "name":
        ordered = sorted(notes, key=lambda n: (n.name.casefold(), n.name), reverse=direction == "desc")
    else:
        ordered = sorted(notes, key=lambda n: n.last_modified or 0, reverse=direction == "desc")
    return [n for n in ordered if n.path in pinned] + [n for n in ordered if n.path not in pinned]


class NoteStore:
    """In-memory projection of one notes root.

    All mutation happens on the owning event loop; awaiting the file store is
    the only place other work can interleave, so every method re-checks state
    after its awaits instead of relying on what it saw before them.
    """

    def __init__(
        self,
        store: FileStore,
        *,
        appdata_dir: str,
        rename_delay_s: float = 1.0,
        saving_indicator_s: float = 0.5,
        title_max_length: int = 50,
        auto_title_extensions: tuple[str, ...] = (".txt",),
        default_extension: str = ".txt",
    ) -> None:
        self.store = store
        self.hidden = HiddenOverlay(store)
        self.pins = PinOverlay(store, appdata_dir)
        self.renamer = AutoTitleRenamer(
            self.rename_item,
            delay_s=rename_delay_s,
            max_length=title_max_length,
            extensions=auto_title_extensions,
        )
        self._saving_timer = Debouncer(saving_indicator_s, name="saving_indicator")
        self.default_extension = default_extension

        self.root_path: str | None = None
        self.notes: list[Note] = []
        self.active_note: Note | None = None
        self.content = ""
        self.dirty = False
        self.is_saving = False
        self.sort_by: SortKey = "modified"
        self.sort_direction: SortDirection = "desc"

        self._known_paths: set[str] | None = None
        self._refresh_generation = 0
        self._creating_draft = False

    def _require_root(self) -> str:
        if self.root_path is None:
            raise NoWorkspaceError("no_active_workspace")
        return self.root_path

    def _clear_active(self) -> None:
        self.active_note = None
        self.content = ""
        self.dirty = False

    async def activate(self, root_path: str) -> None:
        self.deactivate()
        # Store listings carry resolved paths.
        root_path = str(Path(root_path).resolve())
        self.root_path = root_path
        try:
            await self.store.create_folder(root_path)
        except OSError:
            logger.exception("root_create_failed", extra={"root": root_path})
        await self.hidden.load(root_path)
        await self.pins.load()
        logger.info("workspace_activate", extra={"root": root_path})
        await self.refresh()

    def deactivate(self) -> None:
        self.renamer.cancel()
        self._saving_timer.cancel()
        self.root_path = None
        self.notes = []
        self._clear_active()
        self.is_saving = False
        self.hidden.reset()
        self._known_paths = None
        self._refresh_generation += 1
        self._creating_draft = False

    async def refresh(self, override_hidden: Iterable[str] | None = None) -> bool:
        root = self._require_root()
        effective_hidden = frozenset(override_hidden) if override_hidden is not None else self.hidden.paths
        self._refresh_generation += 1
        generation = self._refresh_generation
        try:
            entries = await self.store.list_notes(root)
        except (OSError, ValueError):
            logger.exception("refresh_failed", extra={"root": root})
            return False
        if generation != self._refresh_generation:
            logger.debug("refresh_stale", extra={"generation": generation, "latest": self._refresh_generation})
            return False

        flat = flatten(entries, effective_hidden)
        current = {n.path for n in flat}
        known = self._known_paths
        flat = [replace(n, is_new=known is not None and n.path not in known) for n in flat]
        self._known_paths = current
        self.notes = sort_notes(flat, self.pins.paths, self.sort_by, self.sort_direction)

        if self.active_note is not None and self.active_note.path not in current and not self.dirty:
            logger.info("active_note_vanished", extra={"path": self.active_note.path})
            self._clear_active()
        return True

    def resort(self) -> None:
        self.notes = sort_notes(self.notes, self.pins.paths, self.sort_by, self.sort_direction)

    async def set_sort(self, sort_by: SortKey | None = None, direction: SortDirection | None = None) -> None:
        if sort_by is not None:
            self.sort_by = sort_by
        if direction is not None:
            self.sort_direction = direction
        if self.root_path is None:
            return
        await self.refresh()

    async def open_note(self, note: Note) -> bool:
        self.renamer.cancel()
        try:
            content = await self.store.read_note(note.path)
        except (OSError, ValueError):
            logger.exception("note_read_failed", extra={"path": note.path})
            return False
        self.active_note = note
        self.content = content
        self.dirty = False
        return True

    async def save_active_note(self) -> bool:
        note = self.active_note
        if note is None or not self.dirty:
            return False
        content = self.content
        self.is_saving = True
        try:
            await self.store.write_note(note.path, content)
        except (OSError, ValueError):
            logger.exception("note_save_failed", extra={"path": note.path})
            return False
        else:
            if self.active_note is not None and self.active_note.path == note.path and self.content == content:
                self.dirty = False
            logger.info("note_save", extra={"path": note.path})
            return True
        finally:
            self._saving_timer.schedule(self._saving_done)

    async def _saving_done(self) -> None:
        self.is_saving = False

    def create_draft(self) -> None:
        self.renamer.cancel()
        self._clear_active()

    async def update_content(self, content: str) -> None:
        self.content = content
        self.dirty = True
        if self.active_note is not None:
            self.renamer.on_content_change(self.active_note, content)
            return
        if content.strip() and not self._creating_draft:
            await self._create_draft_note(content)

    async def _create_draft_note(self, content: str) -> None:
        root = self._require_root()
        name = derive_filename(content, DRAFT_EXTENSION, max_length=DRAFT_TITLE_MAX_LENGTH)
        if name is None:
            name = f"Untitled-{now_ms()}{DRAFT_EXTENSION}"
        taken = {os.path.basename(p) for p in (self._known_paths or set()) | self.hidden.paths}
        name = unique_name(name, taken)
        path = os.path.join(root, name)
        self._creating_draft = True
        try:
            await self.store.write_note(path, content)
            await self.refresh()
            if self.root_path != root or self.active_note is not None:
                return
            self.active_note = Note(path=path, name=name, last_modified=now_ms())
            self.dirty = self.content != content
            logger.info("draft_create", extra={"path": path})
        except (OSError, ValueError):
            logger.exception("draft_create_failed", extra={"path": path})
        finally:
            self._creating_draft = False

    async def create_note(self, name: str) -> str:
        """Create an empty note at ``<root>/<name>``.

        A soft-deleted note of the same name is unhidden and its old content is
        replaced by the empty note; a visible one raises ``FileExistsError``.
        """
        root = self._require_root()
        path = os.path.join(root, name)
        if path in self.hidden:
            await self.hidden.remove(path)
        elif any(n.path == path for n in self.notes):
            raise FileExistsError(path)
        await self.store.write_note(path, "")
        logger.info("note_create", extra={"path": path})
        await self.refresh()
        return path

    async def new_note(self, extension: str | None = None) -> Note | None:
        ext = extension or self.default_extension
        if not ext.startswith("."):
            ext = "." + ext
        taken = {os.path.basename(p) for p in {n.path for n in self.notes} | self.hidden.paths}
        name = unique_name(f"{NEW_NOTE_STEM}{ext}", taken)
        path = await self.create_note(name)
        note = next((n for n in self.notes if n.path == path), Note(path=path, name=name, last_modified=now_ms()))
        await self.open_note(note)
        return self.active_note

    async def create_folder(self, parent_path: str, name: str) -> str:
        self._require_root()
        path = os.path.join(parent_path, name)
        await self.store.create_folder(path)
        await self.refresh()
        return path

    async def delete_item(self, path: str, permanent: bool = False) -> bool:
        return await self.delete_items([path], permanent=permanent)

    async def delete_items(self, paths: list[str], permanent: bool = False) -> bool:
        self._require_root()
        updated_hidden: frozenset[str] | None = None
        removed: list[str] = []
        if permanent:
            for path in paths:
                try:
                    await self.store.delete_item(path)
                except (OSError, ValueError):
                    logger.exception("note_delete_failed", extra={"path": path})
                    continue
                removed.append(path)
                self._drop_active(path)
        else:
            removed = list(paths)
            for path in removed:
                self._drop_active(path)
            updated_hidden = await self.hidden.add(*removed)

        logger.info("note_delete", extra={"paths": removed, "permanent": permanent})
        await self.refresh(updated_hidden)
        return len(removed) == len(paths)

    def _drop_active(self, path: str) -> None:
        if self.active_note is not None and self.active_note.path == path:
            self.renamer.cancel()
            self._clear_active()

    async def unhide(self, *paths: str) -> None:
        self._require_root()
        updated = await self.hidden.remove(*paths)
        await self.refresh(updated)

    async def clear_hidden(self) -> None:
        self._require_root()
        updated = await self.hidden.clear()
        await self.refresh(updated)

    def _resolve_rename_target(self, old_path: str, new_name_or_path: str) -> tuple[str, str]:
        if has_path_separator(new_name_or_path):
            return new_name_or_path, os.path.basename(new_name_or_path.replace("\\", "/"))
        return os.path.join(os.path.dirname(old_path), new_name_or_path), new_name_or_path

    async def rename_item(self, old_path: str, new_name_or_path: str) -> str:
        self._require_root()
        new_path, new_name = self._resolve_rename_target(old_path, new_name_or_path)
        try:
            await self.store.rename_item(old_path, new_path)
        except (OSError, ValueError):
            logger.exception("note_rename_failed", extra={"path": old_path, "new_path": new_path})
            await self.refresh()
            raise
        if self.active_note is not None and self.active_note.path == old_path:
            self.active_note = replace(self.active_note, path=new_path, name=new_name)
        logger.info("note_rename", extra={"path": old_path, "new_path": new_path})
        await self.refresh()
        return new_path

    async def toggle_pin(self, path: str) -> bool:
        pinned = await self.pins.toggle(path)
        self.resort()
        return pinned

    async def search(self, query: str) -> list[SearchHit]:
        root = self._require_root()
        return await self.store.search_notes(root, query)

    async def drain(self) -> None:
        await self.renamer.drain()
        await self._saving_timer.drain()
