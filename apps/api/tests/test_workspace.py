import asyncio
from dataclasses import replace

import pytest

from conftest import APPDATA, ROOT, note_path
from notex_api.config import load_settings
from notex_api.preferences import AutosaveSettings, MemoryPreferenceStore, Preferences
from notex_api.selection import ClickEvent
from notex_api.workspace import Workspace

pytestmark = pytest.mark.anyio


@pytest.fixture
def settings():
    return replace(load_settings(), appdata_dir=APPDATA, watch_quiet_ms=20, search_debounce_ms=10)


async def test_external_change_refreshes_list(store, settings) -> None:
    ws = Workspace(store, Preferences(MemoryPreferenceStore()), settings)
    await ws.start(ROOT)
    assert ws.notes.notes == []

    store.add(note_path("dropped-in.txt"))
    store.emit("create")
    await asyncio.sleep(0.1)

    assert [n.name for n in ws.notes.notes] == ["dropped-in.txt"]
    assert ws.notes.notes[0].is_new
    await ws.stop()


async def test_stop_releases_everything(store, settings) -> None:
    prefs = Preferences(MemoryPreferenceStore())
    prefs.set_autosave(AutosaveSettings(enabled=True, interval=1000))
    ws = Workspace(store, prefs, settings)
    await ws.start(ROOT)
    await asyncio.sleep(0)
    assert ws.autosaver.running
    assert store.watching == [ROOT]

    await ws.stop()
    assert ws.root_path is None
    assert not ws.autosaver.running
    assert store.watching == []


async def test_select_uses_filtered_visible_order(store, settings) -> None:
    for name in ("alpha.txt", "beta.txt", "alpine.txt"):
        store.add(note_path(name))
    ws = Workspace(store, Preferences(MemoryPreferenceStore()), settings)
    await ws.start(ROOT)
    await ws.notes.set_sort("name", "asc")

    ws.select(note_path("alpha.txt"), ClickEvent(), "al")
    selection = ws.select(note_path("alpine.txt"), ClickEvent(shift=True), "al")
    assert selection == [note_path("alpha.txt"), note_path("alpine.txt")]
    await ws.stop()
