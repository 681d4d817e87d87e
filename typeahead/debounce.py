import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DebounceGate:
    """
    Collapses bursts of submissions into one delayed callback.
    Holds at most one pending timer; the callback receives the latest query.
    """

    def __init__(self, callback: Callable[[str], None], delay_ms: int = 300):
        self.callback = callback
        self.delay_ms = delay_ms
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending_query: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def pending_query(self) -> Optional[str]:
        return self._pending_query

    def submit(self, query: str) -> None:
        """Restart the timer for `query`. Must be called from the event loop."""
        loop = asyncio.get_running_loop()
        self.cancel()
        self._pending_query = query
        self._handle = loop.call_later(self.delay_ms / 1000, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending_query = None

    def _fire(self) -> None:
        query = self._pending_query
        self._handle = None
        self._pending_query = None
        logger.debug(f"Debounce elapsed for query {query!r}")
        self.callback(query)
