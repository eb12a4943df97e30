from __future__ import annotations

import asyncio
import posixpath

import pytest

from notex_api.domain.entities import Note, SearchHit, WatchEvent
from notex_api.notes import NoteStore

ROOT = "/notes"
APPDATA = "/appdata"


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeStore:
    """In-memory file store with hooks for failures and slow calls."""

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        self.mtimes: dict[str, int] = {}
        self.folders: set[str] = set()
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, Exception] = {}
        self.list_gate: asyncio.Event | None = None
        self.search_gates: dict[str, asyncio.Event] = {}
        self.search_results: dict[str, list[SearchHit]] = {}
        self.events: asyncio.Queue | None = None
        self.watching: list[str] = []

    def add(self, path: str, content: str = "", mtime: int = 0) -> None:
        self.files[path] = content
        self.mtimes[path] = mtime

    def _check(self, op: str, *args) -> None:
        self.calls.append((op, args))
        exc = self.failures.get(op)
        if exc is not None:
            raise exc

    def op_calls(self, op: str) -> list[tuple]:
        return [args for name, args in self.calls if name == op]

    def _tree(self, d: str) -> list[Note]:
        out: list[Note] = []
        children = {p for p in (*self.files, *self.folders) if posixpath.dirname(p) == d}
        for p in sorted(children):
            if p in self.folders:
                out.append(Note(path=p, name=posixpath.basename(p), is_folder=True, children=self._tree(p)))
            else:
                out.append(Note(path=p, name=posixpath.basename(p), last_modified=self.mtimes.get(p, 0)))
        return out

    async def list_notes(self, root_dir: str) -> list[Note]:
        self._check("list_notes", root_dir)
        gate = self.list_gate
        tree = self._tree(root_dir)
        if gate is not None:
            await gate.wait()
        return tree

    async def read_note(self, path: str) -> str:
        self._check("read_note", path)
        await asyncio.sleep(0)
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    async def write_note(self, path: str, content: str) -> None:
        self._check("write_note", path, content)
        await asyncio.sleep(0)
        self.files[path] = content
        self.mtimes[path] = self.mtimes.get(path, 0) + 1

    async def rename_item(self, old_path: str, new_path: str) -> None:
        self._check("rename_item", old_path, new_path)
        await asyncio.sleep(0)
        if old_path not in self.files:
            raise FileNotFoundError(old_path)
        if new_path in self.files:
            raise FileExistsError(new_path)
        self.files[new_path] = self.files.pop(old_path)
        self.mtimes[new_path] = self.mtimes.pop(old_path, 0)

    async def delete_item(self, path: str) -> None:
        self._check("delete_item", path)
        await asyncio.sleep(0)
        if path not in self.files:
            raise FileNotFoundError(path)
        del self.files[path]
        self.mtimes.pop(path, None)

    async def create_folder(self, path: str) -> None:
        self._check("create_folder", path)
        if path != ROOT:
            self.folders.add(path)

    async def watch(self, root_dir: str):
        self.watching.append(root_dir)
        if self.events is None:
            self.events = asyncio.Queue()
        try:
            while True:
                event = await self.events.get()
                if isinstance(event, Exception):
                    raise event
                yield event
        finally:
            self.watching.remove(root_dir)

    def emit(self, kind: str = "modify") -> None:
        if self.events is None:
            self.events = asyncio.Queue()
        self.events.put_nowait(WatchEvent(kind=kind, paths=[ROOT]))

    async def search_notes(self, root_dir: str, query: str) -> list[SearchHit]:
        self._check("search_notes", root_dir, query)
        gate = self.search_gates.get(query)
        if gate is not None:
            await gate.wait()
        return self.search_results.get(query, [])


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


def note_path(name: str) -> str:
    return posixpath.join(ROOT, name)


def make_notes(store: FakeStore, **kwargs) -> NoteStore:
    kwargs.setdefault("rename_delay_s", 0.05)
    kwargs.setdefault("saving_indicator_s", 0.01)
    return NoteStore(store, appdata_dir=APPDATA, **kwargs)
