from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator, Awaitable, Callable

from notex_api.debounce import Debouncer
from notex_api.domain.ports import FileStore

logger = logging.getLogger("notex.watch")


class FileWatchBridge:
    """Coalesces store change notifications into debounced refreshes."""

    def __init__(
        self,
        store: FileStore,
        on_change: Callable[[], Awaitable[None]],
        *,
        quiet_s: float = 0.5,
    ) -> None:
        self.store = store
        self._on_change = on_change
        self._timer = Debouncer(quiet_s, name="watch_refresh")
        self._pump: asyncio.Task | None = None
        self.root: str | None = None
        self.events_seen = 0

    @property
    def active(self) -> bool:
        return self._pump is not None and not self._pump.done()

    async def start(self, root: str) -> None:
        await self.stop()
        self.root = root
        self._pump = asyncio.get_running_loop().create_task(self._consume(root), name="watch_pump")

    async def stop(self) -> None:
        self._timer.cancel()
        pump, self._pump = self._pump, None
        self.root = None
        if pump is None:
            return
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pump

    @contextlib.asynccontextmanager
    async def watching(self, root: str) -> AsyncIterator[FileWatchBridge]:
        await self.start(root)
        try:
            yield self
        finally:
            await self.stop()

    async def _consume(self, root: str) -> None:
        try:
            async for event in self.store.watch(root):
                self.events_seen += 1
                logger.debug("watch_event", extra={"root": root, "kind": event.kind})
                self._timer.schedule(self._on_change)
        except Exception:
            logger.exception("watch_stream_failed", extra={"root": root})

    async def drain(self) -> None:
        await self._timer.drain()
