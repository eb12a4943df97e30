from __future__ import annotations

import logging
from typing import Awaitable, Callable

from notex_api.debounce import Debouncer
from notex_api.domain.entities import Note
from notex_api.util import split_name, strip_illegal_filename_chars

logger = logging.getLogger("notex.autotitle")

RenameFn = Callable[[str, str], Awaitable[object]]


def first_line_title(content: str) -> str:
    first = content.split("\n", 1)[0].strip()
    return strip_illegal_filename_chars(first).strip()


def derive_filename(content: str, extension: str, *, max_length: int = 50) -> str | None:
    title = first_line_title(content)
    if not title or len(title) >= max_length:
        return None
    return f"{title}{extension}"


class AutoTitleRenamer:
    """Keeps a plain-text note's filename in step with its first line."""

    def __init__(
        self,
        rename: RenameFn,
        *,
        delay_s: float = 1.0,
        max_length: int = 50,
        extensions: tuple[str, ...] = (".txt",),
    ) -> None:
        self._rename = rename
        self._timer = Debouncer(delay_s, name="auto_title")
        self.max_length = max_length
        self.extensions = tuple(e.lower() for e in extensions)

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def eligible(self, note: Note) -> bool:
        _stem, ext = split_name(note.name)
        return ext.lower() in self.extensions

    def on_content_change(self, note: Note, content: str) -> str | None:
        """Reschedule the rename for ``note``; returns the filename scheduled, if any."""
        self._timer.cancel()
        if not self.eligible(note):
            return None
        _stem, ext = split_name(note.name)
        new_name = derive_filename(content, ext, max_length=self.max_length)
        if new_name is None or new_name == note.name:
            return None

        path = note.path

        async def fire() -> None:
            try:
                await self._rename(path, new_name)
            except (OSError, ValueError):
                logger.exception("auto_title_rename_failed", extra={"path": path, "new_name": new_name})

        self._timer.schedule(fire)
        return new_name

    def cancel(self) -> bool:
        return self._timer.cancel()

    async def drain(self) -> None:
        await self._timer.drain()
