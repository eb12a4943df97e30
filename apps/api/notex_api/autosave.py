from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from notex_api.preferences import AutosaveSettings

logger = logging.getLogger("notex.autosave")


class Autosaver:
    """Saves the active note on a fixed interval while it is dirty."""

    def __init__(self, save: Callable[[], Awaitable[bool]], is_dirty: Callable[[], bool]) -> None:
        self._save = save
        self._is_dirty = is_dirty
        self._task: asyncio.Task | None = None
        self.settings = AutosaveSettings()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def configure(self, settings: AutosaveSettings) -> None:
        await self.stop()
        self.settings = settings
        if settings.enabled:
            self._task = asyncio.get_running_loop().create_task(self._loop(settings.interval / 1000.0), name="autosave")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            if not self._is_dirty():
                continue
            try:
                saved = await self._save()
            except Exception:
                logger.exception("autosave_failed")
                continue
            if saved:
                logger.debug("autosave")
