"""
Query controller for the search-as-you-type widget.

Owns the debounce gate, result cache, request sequencer and selection
state machine for one widget instance, and exposes the SelectionState
snapshot the presentation layer renders from. Everything runs on the
event loop that calls on_input, so no locking is involved.
"""

from typing import Any, Callable, List, Optional, Set, Union
import asyncio
import logging

from config import WidgetConfig
from search_client import RequestSequencer, SearchClient
from typeahead.debounce import DebounceGate
from typeahead.errors import StaleResponseDiscarded, TerminalFetchFailure
from typeahead.result_cache import ResultCache
from typeahead.search_models import SearchResult, SelectionState, Status, normalize_query
from typeahead.selection import Key, SelectionMachine, parse_key

logger = logging.getLogger(__name__)

StateListener = Callable[[SelectionState], Any]


class SearchController:
    """One controller per widget; call dispose() or aclose() on teardown"""

    def __init__(
        self,
        config: Optional[WidgetConfig] = None,
        client: Optional[SearchClient] = None,
        cache: Optional[ResultCache] = None,
    ):
        self.config = config or WidgetConfig()
        self._owns_client = client is None
        self.client = client or SearchClient(
            self.config.api_url, timeout_ms=self.config.request_timeout_ms)
        self.cache = cache or ResultCache(
            ttl_ms=self.config.cache_ttl_ms, capacity=self.config.cache_capacity)
        self.sequencer = RequestSequencer(
            self.client,
            limit=self.config.max_results,
            max_retries=self.config.max_retries,
            backoff_initial_ms=self.config.backoff_initial_ms,
            backoff_max_ms=self.config.backoff_max_ms,
        )
        self.debounce = DebounceGate(
            self._on_debounced, delay_ms=self.config.debounce_ms)
        self.selection = SelectionMachine(
            on_select=self.config.on_select, on_change=self._notify)

        self._listeners: List[StateListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._disposed = False

    @property
    def state(self) -> SelectionState:
        return self.selection.state

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener(state)` after every transition. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: SelectionState) -> None:
        for listener in list(self._listeners):
            listener(state)

    def render(self, result: SearchResult) -> str:
        if self.config.render_result is not None:
            return self.config.render_result(result)
        if result.description:
            return f"{result.title} - {result.description}"
        return result.title

    def _is_short(self, query: str) -> bool:
        return len(query) < self.config.min_query_length

    def _ignore_if_disposed(self, operation: str) -> bool:
        if self._disposed:
            logger.warning(f"{operation} called on a disposed controller, ignoring")
        return self._disposed

    # Public operations

    def on_input(self, raw_text: str) -> None:
        if self._ignore_if_disposed("on_input"):
            return
        text = raw_text or ""
        self.debounce.submit(text)
        if self._is_short(normalize_query(text)):
            self.sequencer.invalidate()
            self.selection.clear(text)

    def on_key(self, key: Union[str, Key]) -> Optional[SearchResult]:
        if self._ignore_if_disposed("on_key"):
            return None
        if parse_key(key) is Key.ESCAPE:
            self.debounce.cancel()
            self.sequencer.invalidate()
        return self.selection.handle_key(key)

    def on_hover(self, index: int) -> None:
        if self._ignore_if_disposed("on_hover"):
            return
        self.selection.hover(index)

    def on_blur(self) -> None:
        if self._ignore_if_disposed("on_blur"):
            return
        self.debounce.cancel()
        self.sequencer.invalidate()
        self.selection.clear()

    def retry(self) -> None:
        """Re-run the last query after an error, through cache and sequencer"""
        if self._ignore_if_disposed("retry"):
            return
        if self.state.status is not Status.ERROR:
            return
        self.debounce.cancel()
        self._on_debounced(self.state.query)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.debounce.cancel()
        # Late responses for any in-flight token are now inert
        self.sequencer.invalidate()
        self._listeners.clear()
        logger.debug("Controller disposed")

    async def aclose(self) -> None:
        self.dispose()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._owns_client:
            await self.client.aclose()

    async def settle(self) -> None:
        """Wait until no debounce timer is armed and no fetch is running"""
        while self.debounce.pending or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self.config.debounce_ms / 1000)

    # Internals

    def _on_debounced(self, raw_text: str) -> None:
        if self._disposed:
            return
        query = normalize_query(raw_text)
        if self._is_short(query):
            self.selection.clear(raw_text)
            return

        cached = self.cache.get(query)
        if cached is not None:
            # Bump the token so a slower in-flight fetch can't overwrite this
            self.sequencer.invalidate()
            self.selection.apply_page(raw_text, cached)
            return

        self.selection.begin_loading(raw_text)
        task = asyncio.get_running_loop().create_task(self._fetch(raw_text, query))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    async def _fetch(self, raw_text: str, query: str) -> None:
        try:
            page = await self.sequencer.issue(query)
        except StaleResponseDiscarded as e:
            logger.debug(f"Dropped stale result for {query!r}: {str(e)}")
            return
        except TerminalFetchFailure as e:
            self.selection.fail(raw_text, e.user_message)
            return
        self.cache.put(query, page)
        self.selection.apply_page(raw_text, page)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Search task failed: {str(exc)}", exc_info=exc)
