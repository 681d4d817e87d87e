import httpx
import pytest

from config import WidgetConfig
from search_client import SearchClient

API_URL = "http://search.test/api/search"


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays without waiting"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def page_json(query, count=1, total=None, page=1):
    results = [
        {"id": str(i + 1), "title": f"{query} result {i + 1}"}
        for i in range(count)
    ]
    return {"results": results, "total": count if total is None else total, "page": page}


def make_client(handler, timeout_ms=5000):
    return SearchClient(API_URL, timeout_ms=timeout_ms,
                        transport=httpx.MockTransport(handler))


def make_config(**overrides):
    options = dict(
        api_url=API_URL,
        min_query_length=3,
        debounce_ms=10,
        max_results=10,
        cache_ttl_ms=60000,
        cache_capacity=100,
        max_retries=2,
        backoff_initial_ms=1,
        backoff_max_ms=2,
    )
    options.update(overrides)
    return WidgetConfig(**options)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
