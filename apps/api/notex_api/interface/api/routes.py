import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from notex_api.dependencies import get_preferences, get_workspace
from notex_api.domain.exceptions import NoWorkspaceError, PathError
from notex_api.domain.schemas import (
    ActiveNoteOut,
    ContentIn,
    CreatedOut,
    CreateNoteIn,
    DeleteIn,
    DeleteOut,
    NewNoteIn,
    NoteListOut,
    NoteOut,
    OnboardingOut,
    OpenNoteIn,
    PathsIn,
    PinIn,
    PinOut,
    RenameIn,
    RootIn,
    SearchHitOut,
    SearchQueryIn,
    SearchStateOut,
    SelectIn,
    SelectionOut,
    SortIn,
)
from notex_api.preferences import AutosaveSettings, GlobalShortcutSettings, Preferences
from notex_api.selection import ClickEvent
from notex_api.workspace import Workspace

router = APIRouter()
logger = logging.getLogger("notex.api")


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _list_out(ws: Workspace) -> NoteListOut:
    notes = ws.notes
    return NoteListOut(
        root=notes.root_path,
        items=[NoteOut.from_note(n) for n in notes.notes],
        pinned=sorted(notes.pins.paths),
        hidden=sorted(notes.hidden.paths),
        sort_by=notes.sort_by,
        sort_direction=notes.sort_direction,
    )


def _active_out(ws: Workspace) -> ActiveNoteOut:
    notes = ws.notes
    return ActiveNoteOut(
        note=NoteOut.from_note(notes.active_note) if notes.active_note else None,
        content=notes.content,
        dirty=notes.dirty,
        is_saving=notes.is_saving,
        auto_rename_pending=notes.renamer.pending,
    )


def _search_out(ws: Workspace) -> SearchStateOut:
    s = ws.search
    return SearchStateOut(
        query=s.query,
        request_id=s.request_id,
        is_searching=s.is_searching,
        error=s.error,
        items=[SearchHitOut.from_hit(h) for h in s.results],
    )


def _no_workspace(e: NoWorkspaceError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/notes", response_model=NoteListOut)
async def list_notes(ws: Workspace = Depends(get_workspace)):
    return _list_out(ws)


@router.post("/notes/refresh", response_model=NoteListOut)
async def refresh_notes(ws: Workspace = Depends(get_workspace)):
    try:
        await ws.notes.refresh()
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    return _list_out(ws)


@router.post("/notes", response_model=CreatedOut)
async def create_note(payload: CreateNoteIn, request: Request, ws: Workspace = Depends(get_workspace)):
    try:
        path = await ws.notes.create_note(payload.name)
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="note_exists") from e
    except OSError as e:
        logger.exception("note_create_failed", extra={"rid": _rid(request), "note_name": payload.name})
        raise HTTPException(status_code=500, detail="note_create_failed") from e
    return CreatedOut(path=path)


@router.post("/notes/new", response_model=ActiveNoteOut)
async def new_note(payload: NewNoteIn, ws: Workspace = Depends(get_workspace)):
    try:
        await ws.notes.new_note(payload.extension)
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="note_exists") from e
    return _active_out(ws)


@router.post("/notes/open", response_model=ActiveNoteOut)
async def open_note(payload: OpenNoteIn, ws: Workspace = Depends(get_workspace)):
    note = next((n for n in ws.notes.notes if n.path == payload.path), None)
    if note is None:
        raise HTTPException(status_code=404, detail="note_not_found")
    if not await ws.notes.open_note(note):
        raise HTTPException(status_code=404, detail="note_unreadable")
    return _active_out(ws)


@router.get("/notes/active", response_model=ActiveNoteOut)
async def active_note(ws: Workspace = Depends(get_workspace)):
    return _active_out(ws)


@router.put("/notes/active/content", response_model=ActiveNoteOut)
async def update_content(payload: ContentIn, ws: Workspace = Depends(get_workspace)):
    try:
        await ws.notes.update_content(payload.content)
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    return _active_out(ws)


@router.post("/notes/active/save", response_model=ActiveNoteOut)
async def save_active(ws: Workspace = Depends(get_workspace)):
    await ws.notes.save_active_note()
    return _active_out(ws)


@router.post("/notes/draft", response_model=ActiveNoteOut)
async def create_draft(ws: Workspace = Depends(get_workspace)):
    ws.notes.create_draft()
    return _active_out(ws)


@router.post("/notes/rename", response_model=CreatedOut)
async def rename_note(payload: RenameIn, request: Request, ws: Workspace = Depends(get_workspace)):
    try:
        new_path = await ws.notes.rename_item(payload.path, payload.new_name)
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="destination_exists") from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    except OSError as e:
        raise HTTPException(status_code=500, detail="rename_failed") from e
    logger.info("note_rename", extra={"rid": _rid(request), "path": payload.path, "new_path": new_path})
    return CreatedOut(path=new_path)


@router.post("/notes/delete", response_model=DeleteOut)
async def delete_notes(payload: DeleteIn, request: Request, ws: Workspace = Depends(get_workspace)):
    try:
        ok = await ws.notes.delete_items(payload.paths, permanent=payload.permanent)
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    logger.info("note_delete", extra={"rid": _rid(request), "paths": payload.paths, "permanent": payload.permanent})
    return DeleteOut(ok=ok)


@router.post("/notes/unhide", response_model=NoteListOut)
async def unhide_notes(payload: PathsIn, ws: Workspace = Depends(get_workspace)):
    try:
        await ws.notes.unhide(*payload.paths)
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    return _list_out(ws)


@router.post("/notes/hidden/clear", response_model=NoteListOut)
async def clear_hidden(ws: Workspace = Depends(get_workspace)):
    try:
        await ws.notes.clear_hidden()
    except NoWorkspaceError as e:
        raise _no_workspace(e) from e
    return _list_out(ws)


@router.post("/notes/pin", response_model=PinOut)
async def toggle_pin(payload: PinIn, ws: Workspace = Depends(get_workspace)):
    pinned = await ws.notes.toggle_pin(payload.path)
    return PinOut(path=payload.path, pinned=pinned)


@router.put("/notes/sort", response_model=NoteListOut)
async def set_sort(payload: SortIn, ws: Workspace = Depends(get_workspace)):
    await ws.notes.set_sort(payload.sort_by, payload.direction)
    return _list_out(ws)


@router.post("/selection", response_model=SelectionOut)
async def select_note(payload: SelectIn, ws: Workspace = Depends(get_workspace)):
    event = ClickEvent(ctrl=payload.ctrl, meta=payload.meta, shift=payload.shift)
    ws.select(payload.path, event, payload.filter)
    return SelectionOut(selection=ws.selection, anchor=ws.anchor)


@router.put("/search", response_model=SearchStateOut)
async def set_search_query(payload: SearchQueryIn, ws: Workspace = Depends(get_workspace)):
    if ws.root_path is None:
        raise HTTPException(status_code=409, detail="no_active_workspace")
    ws.search.set_query(payload.query)
    return _search_out(ws)


@router.get("/search", response_model=SearchStateOut)
async def search_state(ws: Workspace = Depends(get_workspace)):
    return _search_out(ws)


@router.get("/preferences/autosave", response_model=AutosaveSettings)
async def get_autosave(prefs: Preferences = Depends(get_preferences)):
    return prefs.autosave()


@router.put("/preferences/autosave", response_model=AutosaveSettings)
async def put_autosave(
    payload: AutosaveSettings,
    prefs: Preferences = Depends(get_preferences),
    ws: Workspace = Depends(get_workspace),
):
    prefs.set_autosave(payload)
    if ws.root_path is not None:
        await ws.autosaver.configure(payload)
    return payload


@router.get("/preferences/shortcut", response_model=GlobalShortcutSettings)
async def get_shortcut(prefs: Preferences = Depends(get_preferences)):
    return prefs.global_shortcut()


@router.put("/preferences/shortcut", response_model=GlobalShortcutSettings)
async def put_shortcut(
    payload: GlobalShortcutSettings,
    prefs: Preferences = Depends(get_preferences),
    ws: Workspace = Depends(get_workspace),
):
    prefs.set_global_shortcut(payload)
    ws.notes.default_extension = payload.default_extension
    return payload


@router.get("/preferences/onboarding", response_model=OnboardingOut)
async def get_onboarding(prefs: Preferences = Depends(get_preferences)):
    return OnboardingOut(seen=prefs.has_seen_onboarding())


@router.put("/preferences/onboarding", response_model=OnboardingOut)
async def put_onboarding(prefs: Preferences = Depends(get_preferences)):
    prefs.set_seen_onboarding()
    return OnboardingOut(seen=True)


@router.put("/workspace/root", response_model=NoteListOut)
async def change_root(payload: RootIn, request: Request, ws: Workspace = Depends(get_workspace)):
    root = payload.path.strip()
    if not root:
        raise HTTPException(status_code=400, detail="path_empty")
    await ws.start(root)
    logger.info("workspace_root", extra={"rid": _rid(request), "root": root})
    return _list_out(ws)
