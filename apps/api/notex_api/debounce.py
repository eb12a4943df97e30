from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger("notex.debounce")

Action = Callable[[], Awaitable[None]]


class Debouncer:
    """Single-slot timer. Scheduling replaces whatever is still waiting.

    Once the quiet period elapses the action leaves the slot, so ``cancel()``
    only ever drops a timer that has not fired yet and never interrupts a
    rename or refresh that is already running.
    """

    def __init__(self, delay_s: float, *, name: str = "debounce") -> None:
        self.delay_s = delay_s
        self.name = name
        self._pending: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, action: Action) -> None:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._fire(action), name=self.name)

    def cancel(self) -> bool:
        task, self._pending = self._pending, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _fire(self, action: Action) -> None:
        await asyncio.sleep(self.delay_s)
        task = asyncio.current_task()
        if self._pending is task:
            self._pending = None
        self._running.add(task)
        try:
            await action()
        except Exception:
            logger.exception("debounced_action_failed", extra={"timer": self.name})
        finally:
            self._running.discard(task)

    async def drain(self) -> None:
        """Wait for actions that already fired; pending timers are left alone."""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)
