from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from notex_api.domain.entities import Note


@dataclass(frozen=True)
class ClickEvent:
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def toggle(self) -> bool:
        return self.ctrl or self.meta


def select(
    event: ClickEvent,
    item_path: str,
    current_selection: Sequence[str],
    visible_paths: Sequence[str],
    anchor_path: str | None,
) -> tuple[list[str], str | None]:
    """Return ``(new_selection, new_anchor)`` for a click on ``item_path``.

    Ctrl/Cmd toggles one path. Shift selects the inclusive range from the
    anchor, which must still be visible; otherwise the click selects one item.
    """
    if event.toggle:
        if item_path in current_selection:
            selection = [p for p in current_selection if p != item_path]
        else:
            selection = [*current_selection, item_path]
        return selection, item_path

    if event.shift and anchor_path is not None and anchor_path in visible_paths and item_path in visible_paths:
        start = visible_paths.index(anchor_path)
        end = visible_paths.index(item_path)
        lo, hi = min(start, end), max(start, end)
        return list(visible_paths[lo : hi + 1]), anchor_path

    return [item_path], item_path


def filter_visible(notes: Iterable[Note], query: str | None = None) -> list[str]:
    needle = (query or "").lower()
    return [n.path for n in notes if not needle or needle in n.name.lower()]
