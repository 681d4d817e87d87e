from collections import OrderedDict
from typing import Callable, Optional
import logging
import time

from pydantic import BaseModel

from typeahead.search_models import ResultPage

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    page: ResultPage
    fetched_at: float


class ResultCache:
    """
    Normalized query -> ResultPage, with TTL expiry and a bounded entry count.

    Entries are kept in fetched_at order, so the first entry is always the
    oldest one and the one evicted when capacity is exceeded.
    """

    def __init__(
        self,
        ttl_ms: int = 60000,
        capacity: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ttl = ttl_ms / 1000
        self.capacity = capacity
        self.clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: str) -> bool:
        return query in self._entries

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.fetched_at > self.ttl

    def get(self, query: str) -> Optional[ResultPage]:
        entry = self._entries.get(query)
        if entry is None:
            logger.debug(f"Cache miss for {query!r}")
            return None
        if self._is_expired(entry, self.clock()):
            del self._entries[query]
            logger.debug(f"Cache entry for {query!r} expired")
            return None
        logger.debug(f"Cache hit for {query!r}")
        return entry.page

    def put(self, query: str, page: ResultPage) -> None:
        # Re-inserting moves the key to the end, keeping fetched_at order
        self._entries.pop(query, None)
        self._entries[query] = CacheEntry(page=page, fetched_at=self.clock())
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, evicted {evicted!r}")

    def invalidate_expired(self) -> int:
        now = self.clock()
        expired = [q for q, entry in self._entries.items()
                   if self._is_expired(entry, now)]
        for query in expired:
            del self._entries[query]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
