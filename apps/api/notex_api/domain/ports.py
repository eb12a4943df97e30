from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from notex_api.domain.entities import Note, SearchHit, WatchEvent


@runtime_checkable
class FileStore(Protocol):
    async def list_notes(self, root_dir: str) -> list[Note]:
        ...

    async def read_note(self, path: str) -> str:
        ...

    async def write_note(self, path: str, content: str) -> None:
        ...

    async def rename_item(self, old_path: str, new_path: str) -> None:
        ...

    async def delete_item(self, path: str) -> None:
        ...

    async def create_folder(self, path: str) -> None:
        ...

    def watch(self, root_dir: str) -> AsyncIterator[WatchEvent]:
        ...

    async def search_notes(self, root_dir: str, query: str) -> list[SearchHit]:
        ...


@runtime_checkable
class PreferenceStore(Protocol):
    def get(self, key: str) -> object | None:
        ...

    def set(self, key: str, value: object) -> None:
        ...
