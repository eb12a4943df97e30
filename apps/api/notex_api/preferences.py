from __future__ import annotations

import logging

from pydantic import BaseModel, Field, ValidationError

from notex_api.domain.ports import PreferenceStore

logger = logging.getLogger("notex.preferences")

AUTOSAVE_KEY = "autosave"
SHORTCUT_KEY = "global_shortcut"
ONBOARDING_KEY = "has_seen_onboarding"


class AutosaveSettings(BaseModel):
    enabled: bool = False
    interval: int = Field(30000, ge=500)


class GlobalShortcutSettings(BaseModel):
    enabled: bool = False
    shortcut: str = "CommandOrControl+Shift+N"
    default_extension: str = Field(".txt", alias="defaultExtension")

    model_config = {"populate_by_name": True}


class MemoryPreferenceStore:
    """Device-local key/value preferences kept for the life of the process."""

    def __init__(self, initial: dict[str, object] | None = None) -> None:
        self._values: dict[str, object] = dict(initial or {})

    def get(self, key: str) -> object | None:
        return self._values.get(key)

    def set(self, key: str, value: object) -> None:
        self._values[key] = value


class Preferences:
    def __init__(self, store: PreferenceStore) -> None:
        self.store = store

    def autosave(self) -> AutosaveSettings:
        raw = self.store.get(AUTOSAVE_KEY)
        if raw is None:
            return AutosaveSettings()
        try:
            return AutosaveSettings.model_validate(raw)
        except ValidationError:
            logger.warning("autosave_settings_invalid", extra={"raw": raw})
            return AutosaveSettings()

    def set_autosave(self, settings: AutosaveSettings) -> None:
        self.store.set(AUTOSAVE_KEY, settings.model_dump())

    def global_shortcut(self) -> GlobalShortcutSettings:
        raw = self.store.get(SHORTCUT_KEY)
        if raw is None:
            return GlobalShortcutSettings()
        try:
            return GlobalShortcutSettings.model_validate(raw)
        except ValidationError:
            logger.warning("shortcut_settings_invalid", extra={"raw": raw})
            return GlobalShortcutSettings()

    def set_global_shortcut(self, settings: GlobalShortcutSettings) -> None:
        self.store.set(SHORTCUT_KEY, settings.model_dump(by_alias=True))

    def has_seen_onboarding(self) -> bool:
        return bool(self.store.get(ONBOARDING_KEY))

    def set_seen_onboarding(self, seen: bool = True) -> None:
        self.store.set(ONBOARDING_KEY, seen)
