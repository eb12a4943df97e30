import asyncio
from pathlib import Path

import pytest

from notex_api.domain.exceptions import PathError
from notex_api.store.local import LocalFileStore, make_snippet

pytestmark = pytest.mark.anyio


@pytest.fixture
def root(tmp_path: Path) -> Path:
    root = (tmp_path / "notes").resolve()
    root.mkdir()
    return root


async def test_list_notes_returns_nested_tree(root: Path) -> None:
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "sub").mkdir()
    (root / "sub" / "b.md").write_text("b", encoding="utf-8")

    entries = await LocalFileStore().list_notes(str(root))

    assert [e.name for e in entries] == ["a.txt", "sub"]
    folder = entries[1]
    assert folder.is_folder
    assert [c.path for c in folder.children] == [str(root / "sub" / "b.md")]
    assert entries[0].last_modified > 0


async def test_read_write_round_trip_creates_parents(root: Path) -> None:
    store = LocalFileStore()
    path = str(root / "deep" / "n.txt")
    await store.write_note(path, "hello\nworld")
    assert await store.read_note(path) == "hello\nworld"
    assert [p.name for p in (root / "deep").iterdir()] == ["n.txt"]


async def test_read_missing_note_raises(root: Path) -> None:
    with pytest.raises(FileNotFoundError):
        await LocalFileStore().read_note(str(root / "nope.txt"))


async def test_rename_refuses_to_overwrite(root: Path) -> None:
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "b.txt").write_text("b", encoding="utf-8")
    store = LocalFileStore()

    with pytest.raises(FileExistsError):
        await store.rename_item(str(root / "a.txt"), str(root / "b.txt"))
    with pytest.raises(FileNotFoundError):
        await store.rename_item(str(root / "zzz.txt"), str(root / "c.txt"))

    await store.rename_item(str(root / "a.txt"), str(root / "c.txt"))
    assert (root / "c.txt").read_text(encoding="utf-8") == "a"
    assert not (root / "a.txt").exists()


async def test_delete_removes_files_and_folders(root: Path) -> None:
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "dir").mkdir()
    (root / "dir" / "x.txt").write_text("x", encoding="utf-8")
    store = LocalFileStore()

    await store.delete_item(str(root / "a.txt"))
    await store.delete_item(str(root / "dir"))
    assert list(root.iterdir()) == []


async def test_paths_outside_allowed_dirs_are_rejected(root: Path, tmp_path: Path) -> None:
    store = LocalFileStore(allowed_dirs=[root])
    with pytest.raises(PathError):
        await store.read_note(str(tmp_path / "elsewhere.txt"))
    with pytest.raises(PathError):
        await store.write_note(str(root / ".." / "escape.txt"), "x")
    with pytest.raises(PathError):
        await store.read_note("bad\x00name")
    with pytest.raises(PathError):
        await store.list_notes("  ")


async def test_search_scores_name_and_content_matches(root: Path) -> None:
    (root / "recipe.txt").write_text("nothing here", encoding="utf-8")
    (root / "both-recipe.txt").write_text("my recipe book", encoding="utf-8")
    (root / "other.txt").write_text("a recipe inside", encoding="utf-8")
    (root / "none.txt").write_text("nothing", encoding="utf-8")
    (root / ".hidden.json").write_text('["recipe"]', encoding="utf-8")

    hits = await LocalFileStore().search_notes(str(root), "Recipe")

    by_name = {h.file.name: h for h in hits}
    assert set(by_name) == {"recipe.txt", "both-recipe.txt", "other.txt"}
    assert by_name["both-recipe.txt"].score == 15
    assert by_name["both-recipe.txt"].match_type == "filename"
    assert by_name["recipe.txt"].score == 10
    assert by_name["recipe.txt"].snippet == ""
    assert by_name["other.txt"].score == 5
    assert by_name["other.txt"].match_type == "content"
    assert by_name["other.txt"].snippet == "a recipe inside"
    assert hits[0].file.name == "both-recipe.txt"
    assert hits[-1].file.name == "other.txt"


def test_snippet_window_and_ellipses() -> None:
    content = "0123456789" * 10
    snippet = make_snippet(content, 50, 3)
    assert snippet == "..." + content[30:93] + "..."
    assert make_snippet("line one\nmatch", 9, 5) == "line one match"


async def test_watch_reports_changes(root: Path) -> None:
    store = LocalFileStore(poll_interval_s=0.02)
    events = store.watch(str(root))
    first = asyncio.ensure_future(events.__anext__())
    await asyncio.sleep(0.05)
    assert not first.done()

    (root / "new.txt").write_text("hi", encoding="utf-8")
    event = await asyncio.wait_for(first, timeout=2)
    assert event.kind == "modify"
    assert event.paths == [str(root)]
    await events.aclose()
