from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from notex_api.domain.entities import Note, SearchHit


class NoteOut(BaseModel):
    path: str
    name: str
    last_modified: int
    is_folder: bool = False
    is_new: bool = False

    @classmethod
    def from_note(cls, note: Note) -> NoteOut:
        return cls(
            path=note.path,
            name=note.name,
            last_modified=note.last_modified,
            is_folder=note.is_folder,
            is_new=note.is_new,
        )


class NoteListOut(BaseModel):
    root: Optional[str] = None
    items: list[NoteOut] = Field(default_factory=list)
    pinned: list[str] = Field(default_factory=list)
    hidden: list[str] = Field(default_factory=list)
    sort_by: Literal["date", "name", "modified"]
    sort_direction: Literal["asc", "desc"]


class ActiveNoteOut(BaseModel):
    note: Optional[NoteOut] = None
    content: str = ""
    dirty: bool = False
    is_saving: bool = False
    auto_rename_pending: bool = False


class OpenNoteIn(BaseModel):
    path: str


class ContentIn(BaseModel):
    content: str


class CreateNoteIn(BaseModel):
    name: str


class NewNoteIn(BaseModel):
    extension: Optional[str] = None


class CreatedOut(BaseModel):
    path: str


class RenameIn(BaseModel):
    path: str
    new_name: str


class DeleteIn(BaseModel):
    paths: list[str] = Field(min_length=1)
    permanent: bool = False


class DeleteOut(BaseModel):
    ok: bool


class PathsIn(BaseModel):
    paths: list[str] = Field(min_length=1)


class PinIn(BaseModel):
    path: str


class PinOut(BaseModel):
    path: str
    pinned: bool


class SortIn(BaseModel):
    sort_by: Optional[Literal["date", "name", "modified"]] = None
    direction: Optional[Literal["asc", "desc"]] = None


class SelectIn(BaseModel):
    path: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    filter: Optional[str] = None


class SelectionOut(BaseModel):
    selection: list[str] = Field(default_factory=list)
    anchor: Optional[str] = None


class SearchQueryIn(BaseModel):
    query: str


class SearchHitOut(BaseModel):
    file: NoteOut
    snippet: str = ""
    match_type: Literal["filename", "content"]
    score: int

    @classmethod
    def from_hit(cls, hit: SearchHit) -> SearchHitOut:
        return cls(file=NoteOut.from_note(hit.file), snippet=hit.snippet, match_type=hit.match_type, score=hit.score)


class SearchStateOut(BaseModel):
    query: str = ""
    request_id: int = 0
    is_searching: bool = False
    error: Optional[str] = None
    items: list[SearchHitOut] = Field(default_factory=list)


class RootIn(BaseModel):
    path: str


class OnboardingOut(BaseModel):
    seen: bool
