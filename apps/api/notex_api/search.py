from __future__ import annotations

import logging
from typing import Awaitable, Callable

from notex_api.debounce import Debouncer
from notex_api.domain.entities import SearchHit

logger = logging.getLogger("notex.search")

SEARCH_FAILED = "Search failed. Please try again."

SearchFn = Callable[[str], Awaitable[list[SearchHit]]]


class SearchDebouncer:
    """Turns a stream of query edits into one search per settled query.

    Every edit takes a new request id; a response is applied only while its
    id is still the latest, so slow answers to old queries are dropped.
    """

    def __init__(self, search: SearchFn, *, delay_s: float = 0.2) -> None:
        self._search = search
        self._timer = Debouncer(delay_s, name="search")
        self._request_id = 0
        self.query = ""
        self.results: list[SearchHit] = []
        self.error: str | None = None
        self.is_searching = False

    @property
    def request_id(self) -> int:
        return self._request_id

    def set_query(self, query: str) -> int:
        self.query = query
        self._request_id += 1
        request_id = self._request_id
        trimmed = query.strip()
        if not trimmed:
            self._timer.cancel()
            self.results = []
            self.error = None
            self.is_searching = False
            return request_id

        self.is_searching = True
        self.error = None
        self._timer.schedule(lambda: self._run(request_id, trimmed))
        return request_id

    async def _run(self, request_id: int, query: str) -> None:
        try:
            results = await self._search(query)
        except Exception:
            if request_id != self._request_id:
                return
            logger.exception("search_failed", extra={"query": query})
            self.results = []
            self.error = SEARCH_FAILED
        else:
            if request_id != self._request_id:
                logger.debug("search_stale", extra={"rid": request_id, "latest": self._request_id})
                return
            self.results = results
        finally:
            if request_id == self._request_id:
                self.is_searching = False

    def reset(self) -> None:
        self._timer.cancel()
        self._request_id += 1
        self.query = ""
        self.results = []
        self.error = None
        self.is_searching = False

    async def drain(self) -> None:
        await self._timer.drain()
