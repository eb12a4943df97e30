from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import shutil
from pathlib import Path
from typing import AsyncIterator, Iterator

from notex_api.domain.entities import Note, SearchHit, WatchEvent
from notex_api.domain.exceptions import PathError
from notex_api.util import atomic_write_text, mtime_ms

logger = logging.getLogger("notex.store")

NAME_SCORE = 10
CONTENT_SCORE = 5
SNIPPET_BEFORE = 20
SNIPPET_AFTER = 40


def _walk_files(root: Path) -> Iterator[tuple[Path, os.stat_result]]:
    stack = [root]
    while stack:
        d = stack.pop()
        try:
            entries = sorted(os.scandir(d), key=lambda e: e.name)
        except OSError:
            continue
        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(Path(entry.path))
                else:
                    yield Path(entry.path), entry.stat(follow_symlinks=False)
            except OSError:
                continue


def make_snippet(content: str, idx: int, query_len: int) -> str:
    start = max(0, idx - SNIPPET_BEFORE)
    end = min(len(content), idx + query_len + SNIPPET_AFTER)
    snippet = content[start:end].replace("\n", " ")
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet = snippet + "..."
    return snippet


class LocalFileStore:
    """Disk-backed note store.

    Blocking filesystem calls run in worker threads so the caller's event loop
    keeps serving other work while a listing or write is in flight.
    """

    def __init__(self, *, allowed_dirs: list[Path] | None = None, poll_interval_s: float = 1.0) -> None:
        self.allowed_dirs = [d.resolve() for d in allowed_dirs] if allowed_dirs else []
        self.poll_interval_s = poll_interval_s

    def _abs_path(self, path: str) -> Path:
        if "\x00" in path:
            raise PathError("path_contains_nul")
        if not path.strip():
            raise PathError("path_empty")
        abs_path = Path(path).resolve()
        if self.allowed_dirs and not any(d == abs_path or d in abs_path.parents for d in self.allowed_dirs):
            raise PathError("path_outside_workspace")
        return abs_path

    def _entry(self, p: Path, st: os.stat_result | None = None) -> Note:
        st = st or p.stat()
        return Note(
            path=str(p),
            name=p.name,
            last_modified=mtime_ms(st.st_mtime),
            is_folder=p.is_dir(),
        )

    def _list_tree(self, d: Path) -> list[Note]:
        entries: list[Note] = []
        for child in sorted(d.iterdir(), key=lambda c: c.name):
            st = child.stat()
            if child.is_dir():
                entries.append(
                    Note(
                        path=str(child),
                        name=child.name,
                        last_modified=mtime_ms(st.st_mtime),
                        is_folder=True,
                        children=self._list_tree(child),
                    )
                )
            else:
                entries.append(self._entry(child, st))
        return entries

    async def list_notes(self, root_dir: str) -> list[Note]:
        root = self._abs_path(root_dir)
        return await asyncio.to_thread(self._list_tree, root)

    async def read_note(self, path: str) -> str:
        abs_path = self._abs_path(path)
        if not abs_path.is_file():
            raise FileNotFoundError(path)
        return await asyncio.to_thread(abs_path.read_text, encoding="utf-8")

    async def write_note(self, path: str, content: str) -> None:
        abs_path = self._abs_path(path)
        await asyncio.to_thread(atomic_write_text, abs_path, content)

    def _rename(self, old_abs: Path, new_abs: Path) -> None:
        if not old_abs.exists():
            raise FileNotFoundError(str(old_abs))
        if new_abs.exists():
            raise FileExistsError(str(new_abs))
        new_abs.parent.mkdir(parents=True, exist_ok=True)
        old_abs.replace(new_abs)

    async def rename_item(self, old_path: str, new_path: str) -> None:
        old_abs = self._abs_path(old_path)
        new_abs = self._abs_path(new_path)
        await asyncio.to_thread(self._rename, old_abs, new_abs)

    def _delete(self, abs_path: Path) -> None:
        if abs_path.is_dir():
            shutil.rmtree(abs_path)
        else:
            abs_path.unlink()

    async def delete_item(self, path: str) -> None:
        abs_path = self._abs_path(path)
        await asyncio.to_thread(self._delete, abs_path)

    async def create_folder(self, path: str) -> None:
        abs_path = self._abs_path(path)
        await asyncio.to_thread(abs_path.mkdir, parents=True, exist_ok=True)

    def _search(self, root: Path, query: str) -> list[SearchHit]:
        needle = query.lower()
        hits: list[SearchHit] = []
        for p, st in _walk_files(root):
            score = 0
            match_type = "filename"
            snippet = ""
            if needle in p.name.lower():
                score = NAME_SCORE
            try:
                content = p.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                content = None
            if content is not None:
                idx = content.lower().find(needle)
                if idx != -1:
                    if score:
                        score += CONTENT_SCORE
                    else:
                        score = CONTENT_SCORE
                        match_type = "content"
                    snippet = make_snippet(content, idx, len(query))
            if score:
                hits.append(SearchHit(file=self._entry(p, st), snippet=snippet, match_type=match_type, score=score))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    async def search_notes(self, root_dir: str, query: str) -> list[SearchHit]:
        root = self._abs_path(root_dir)
        return await asyncio.to_thread(self._search, root, query)

    def tree_hash(self, root: Path) -> str:
        h = hashlib.md5()
        for p, st in _walk_files(root):
            h.update(f"{p.relative_to(root)}:{st.st_mtime_ns}:{st.st_size}".encode())
        return h.hexdigest()

    async def watch(self, root_dir: str) -> AsyncIterator[WatchEvent]:
        root = self._abs_path(root_dir)
        previous = await asyncio.to_thread(self.tree_hash, root)
        logger.info("watch_start", extra={"root": str(root)})
        try:
            while True:
                await asyncio.sleep(self.poll_interval_s)
                current = await asyncio.to_thread(self.tree_hash, root)
                if current != previous:
                    previous = current
                    yield WatchEvent(kind="modify", paths=[str(root)])
        finally:
            logger.info("watch_stop", extra={"root": str(root)})
