from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

SortKey = Literal["date", "name", "modified"]
SortDirection = Literal["asc", "desc"]
MatchType = Literal["filename", "content"]


@dataclass(frozen=True)
class Note:
    path: str
    name: str
    last_modified: int = 0
    is_folder: bool = False
    is_new: bool = False
    children: list[Note] = field(default_factory=list)


@dataclass(frozen=True)
class SearchHit:
    file: Note
    snippet: str
    match_type: MatchType
    score: int


@dataclass(frozen=True)
class WatchEvent:
    kind: str
    paths: list[str] = field(default_factory=list)
