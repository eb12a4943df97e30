from fastapi import Request

from notex_api.config import load_settings
from notex_api.preferences import MemoryPreferenceStore, Preferences
from notex_api.store.local import LocalFileStore
from notex_api.workspace import Workspace


def build_workspace(settings=None) -> Workspace:
    settings = settings or load_settings()
    store = LocalFileStore(poll_interval_s=settings.watch_poll_interval_ms / 1000.0)
    return Workspace(store, Preferences(MemoryPreferenceStore()), settings)


def get_workspace(request: Request) -> Workspace:
    return request.app.state.workspace


def get_preferences(request: Request) -> Preferences:
    return request.app.state.workspace.preferences
