from typing import Awaitable, Callable, Optional
import asyncio
import logging

import httpx
from pydantic import ValidationError

from typeahead.errors import (
    FetchFailure,
    StaleResponseDiscarded,
    TerminalFetchFailure,
    TransientNetworkFailure,
)
from typeahead.search_models import ResultPage

logger = logging.getLogger(__name__)


class SearchClient:
    """Fetches result pages from the search endpoint"""

    def __init__(
        self,
        api_url: str,
        timeout_ms: int = 5000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.timeout = timeout_ms / 1000
        self._client = httpx.AsyncClient(
            timeout=self.timeout, transport=transport)

    async def fetch_page(self, query: str, limit: int, page: int = 1) -> ResultPage:
        """
        GET <api_url>?query=&limit=&page= and parse the body.

        Raises TransientNetworkFailure for timeouts, transport errors and 5xx,
        TerminalFetchFailure for any other non-2xx status or a malformed body.
        """
        params = {"query": query, "limit": limit, "page": page}
        try:
            response = await asyncio.wait_for(
                self._client.get(self.api_url, params=params),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientNetworkFailure(
                f"Search request timed out after {self.timeout}s") from e
        except httpx.TransportError as e:
            raise TransientNetworkFailure(
                f"Network error from search endpoint: {str(e)}") from e

        if response.status_code >= 500:
            raise TransientNetworkFailure(
                "Search endpoint error", status_code=response.status_code)
        if not response.is_success:
            raise TerminalFetchFailure(
                f"Search endpoint rejected the request: {response.text[:200]}",
                status_code=response.status_code,
                user_message="This search could not be completed.",
            )

        try:
            return ResultPage.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TerminalFetchFailure(
                f"Malformed search response: {str(e)}",
                status_code=response.status_code,
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()


class RequestSequencer:
    """
    Issues fetches and makes sure only the latest one is ever honored.

    Every issue() mints a new token. When the fetch completes, its token is
    compared to latest_token; a mismatch means a newer request superseded it
    and the outcome is discarded. Transport calls are never aborted.
    """

    def __init__(
        self,
        client: SearchClient,
        limit: int = 10,
        max_retries: int = 2,
        backoff_initial_ms: int = 500,
        backoff_max_ms: int = 4000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.limit = limit
        self.max_retries = max_retries
        self.backoff_initial_ms = backoff_initial_ms
        self.backoff_max_ms = backoff_max_ms
        self._sleep = sleep
        self.latest_token = 0

    def _mint(self) -> int:
        self.latest_token += 1
        return self.latest_token

    def is_current(self, token: int) -> bool:
        return token == self.latest_token

    def invalidate(self) -> None:
        """Make every in-flight request stale without issuing a new one"""
        self._mint()

    def backoff_delay(self, retry_number: int) -> float:
        """Seconds to wait before retry `retry_number` (0-based)"""
        delay_ms = min(self.backoff_initial_ms * (2 ** retry_number),
                       self.backoff_max_ms)
        return delay_ms / 1000

    def _check_current(self, token: int) -> None:
        if not self.is_current(token):
            raise StaleResponseDiscarded(token, self.latest_token)

    async def issue(self, query: str) -> ResultPage:
        """
        Fetch `query`, retrying transient failures with exponential backoff.

        Returns the page only if this is still the latest request. Raises
        StaleResponseDiscarded if it was superseded, TerminalFetchFailure if
        it failed for good.
        """
        token = self._mint()
        logger.info(f"Issuing search #{token} for {query!r}")
        attempt = 0
        while True:
            try:
                page = await self.client.fetch_page(query, self.limit)
            except TransientNetworkFailure as e:
                self._check_current(token)
                if attempt >= self.max_retries:
                    logger.error(
                        f"Search #{token} failed after {attempt + 1} attempts: {str(e)}")
                    raise TerminalFetchFailure(
                        f"Retries exhausted: {str(e)}",
                        status_code=e.status_code,
                        user_message=e.user_message,
                    ) from e
                delay = self.backoff_delay(attempt)
                attempt += 1
                logger.warning(
                    f"Search #{token} attempt {attempt} failed ({str(e)}), retrying in {delay}s")
                await self._sleep(delay)
                self._check_current(token)
                continue
            except FetchFailure as e:
                self._check_current(token)
                logger.error(f"Search #{token} failed: {str(e)}")
                if isinstance(e, TerminalFetchFailure):
                    raise
                raise TerminalFetchFailure(
                    str(e), status_code=e.status_code, user_message=e.user_message) from e
            except Exception as e:
                self._check_current(token)
                logger.error(f"Search #{token} failed unexpectedly: {str(e)}")
                raise TerminalFetchFailure(f"Unexpected error: {str(e)}") from e

            self._check_current(token)
            logger.info(
                f"Search #{token} returned {len(page.results)} of {page.total} results")
            return page
