from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Callable, Collection
from typing import Any, Generic, TypeVar

from job_search.client import JobSearchRepository, SearchExecutor
from job_search.models import SearchQuery
from job_search.state import (
    IDLE,
    Error,
    ListingData,
    Loaded,
    SearchState,
    states_equal,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEBOUNCE_SECONDS = 0.3

BookmarkLookup = Callable[[], Collection[int]]

_CLOSED = object()


def _no_bookmarks() -> Collection[int]:
    return frozenset()


def _is_blank(text: str) -> bool:
    return not text.strip()


class EventStream(Generic[T]):
    """Async iterable fed by plain ``send`` calls, e.g. from a text box or scroll handler."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def send(self, value: T) -> None:
        self._queue.put_nowait(value)

    def close(self) -> None:
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> EventStream[T]:
        return self

    async def __anext__(self) -> T:
        value = await self._queue.get()
        if value is _CLOSED:
            raise StopAsyncIteration
        return value


class PageTrigger(EventStream[int]):
    """Page index stream: starts at 0 and moves up by one per ``more()`` call."""

    def __init__(self) -> None:
        super().__init__()
        self.page = 0
        self.send(self.page)

    def more(self) -> int:
        self.page += 1
        self.send(self.page)
        return self.page

    def reset(self) -> None:
        self.page = 0
        self.send(self.page)


class _Debounce(Generic[T]):
    """Forwards the last pushed value after ``delay`` quiet seconds, skipping repeats.

    Values for which ``always_forward`` returns true are delivered even when
    they repeat the previous one.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        on_value: Callable[[T], None],
        on_settled: Callable[[], None],
        always_forward: Callable[[T], bool] | None = None,
    ):
        self._loop = loop
        self._delay = delay
        self._on_value = on_value
        self._on_settled = on_settled
        self._always_forward = always_forward
        self._handle: asyncio.TimerHandle | None = None
        self._has_last = False
        self._last: T | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, value: T) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._loop.call_later(self._delay, self._fire, value)

    def _fire(self, value: T) -> None:
        self._handle = None
        repeat = self._has_last and self._last == value
        if not repeat or (self._always_forward is not None and self._always_forward(value)):
            self._has_last = True
            self._last = value
            self._on_value(value)
        self._on_settled()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class SearchRun:
    """One wiring of keyword and page streams into an async stream of search states.

    The stream ends once both inputs are exhausted and every pending timer
    and search has finished, or as soon as the run is closed.
    """

    def __init__(
        self,
        keywords: AsyncIterable[str],
        pages: AsyncIterable[int],
        *,
        execute: SearchExecutor,
        base_query: SearchQuery,
        bookmarks: BookmarkLookup,
        debounce_seconds: float,
    ):
        self._loop = asyncio.get_running_loop()
        self._repository = JobSearchRepository(execute)
        self._base_query = base_query
        self._bookmarks = bookmarks
        self._output: asyncio.Queue[Any] = asyncio.Queue()
        self._last_state: SearchState | None = None
        self._keyword: str | None = None
        self._page: int | None = None
        self._open_inputs = 2
        self._searches: set[asyncio.Task[None]] = set()
        self.closed = False

        self._keyword_debounce: _Debounce[str] = _Debounce(
            self._loop,
            debounce_seconds,
            self._on_keyword,
            self._finish_if_drained,
            always_forward=_is_blank,
        )
        self._page_debounce: _Debounce[int] = _Debounce(
            self._loop, debounce_seconds, self._on_page, self._finish_if_drained
        )
        self._pumps = [
            self._loop.create_task(self._pump(keywords, self._keyword_debounce)),
            self._loop.create_task(self._pump(pages, self._page_debounce)),
        ]
        self._emit(IDLE)

    async def _pump(self, source: AsyncIterable[T], debounce: _Debounce[T]) -> None:
        try:
            async for value in source:
                debounce.push(value)
        finally:
            self._open_inputs -= 1
            self._finish_if_drained()

    def _on_keyword(self, keyword: str) -> None:
        if keyword.strip():
            self._keyword = keyword
            self._combine()
        else:
            self._emit(IDLE)

    def _on_page(self, page: int) -> None:
        self._page = page
        self._combine()

    def _combine(self) -> None:
        if self._keyword is None or self._page is None:
            return
        task = self._loop.create_task(self._search(self._keyword, self._page))
        self._searches.add(task)
        task.add_done_callback(self._search_done)

    async def _search(self, keyword: str, page: int) -> None:
        try:
            query = self._base_query.with_keywords(keyword).with_page(page)
            logger.debug("searching keywords=%r page=%d", keyword, page)
            result = await self._repository.perform_search(query)
            listing_data = ListingData.from_result(result, self._bookmarks())
            state: SearchState = Loaded(listing_data)
        except Exception as exc:
            logger.warning("search for %r (page %d) failed: %s", keyword, page, exc)
            state = Error(exc)
        self._emit(state)

    def _search_done(self, task: asyncio.Task[None]) -> None:
        self._searches.discard(task)
        self._finish_if_drained()

    def _emit(self, state: SearchState) -> None:
        if self.closed:
            return
        if self._last_state is not None and states_equal(self._last_state, state):
            return
        self._last_state = state
        self._output.put_nowait(state)

    def _finish_if_drained(self) -> None:
        if self.closed or self._open_inputs > 0 or self._searches:
            return
        if self._keyword_debounce.pending or self._page_debounce.pending:
            return
        self.close()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._keyword_debounce.cancel()
        self._page_debounce.cancel()
        for pump in self._pumps:
            if not pump.done():
                pump.cancel()
        self._output.put_nowait(_CLOSED)

    def __aiter__(self) -> SearchRun:
        return self

    async def __anext__(self) -> SearchState:
        state = await self._output.get()
        if state is _CLOSED:
            raise StopAsyncIteration
        return state


class SearchOrchestrator:
    """Turns keyword edits and page requests into an ordered stream of search states.

    Keyword and page inputs are each debounced and stripped of consecutive
    repeats, then combined: every new pair runs one search. Results are
    delivered in completion order and a slower, older search can land after
    a newer one. Blank keywords produce ``Idle`` instead of a search.
    """

    def __init__(
        self,
        execute: SearchExecutor,
        *,
        base_query: SearchQuery | None = None,
        bookmarks: BookmarkLookup = _no_bookmarks,
        debounce_seconds: float = DEBOUNCE_SECONDS,
    ):
        self._execute = execute
        self._base_query = base_query or SearchQuery()
        self._bookmarks = bookmarks
        self._debounce_seconds = debounce_seconds
        self._run: SearchRun | None = None

    def process(self, keywords: AsyncIterable[str], pages: AsyncIterable[int]) -> SearchRun:
        """Start a new run, tearing down the previous one first. Needs a running event loop."""
        self.cancel()
        self._run = SearchRun(
            keywords,
            pages,
            execute=self._execute,
            base_query=self._base_query,
            bookmarks=self._bookmarks,
            debounce_seconds=self._debounce_seconds,
        )
        return self._run

    def cancel(self) -> None:
        if self._run is not None:
            self._run.close()
            self._run = None
