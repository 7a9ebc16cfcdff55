"""Page-based retrieval over capped GitHub result sources."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# GitHub search endpoints never return more than this many results per query
SEARCH_RESULT_CAP = 1000


class ResultWindowExceeded(Exception):
    """Raised when a source refuses to page past its result window (HTTP 422)."""

    def __init__(self, path: str, page: int | None = None) -> None:
        self.path = path
        self.page = page
        super().__init__(f"Result window exceeded for {path} (page {page})")


@dataclass
class PagedResult:
    """Items collected by a paged fetch."""

    items: list[Any] = field(default_factory=list)
    partial: bool = False
    pages_fetched: int = 0


class PagedFetcher:
    """Fetches pages 1, 2, ... from a page-producing function.

    Stops on the first empty page, before requesting a page that would reach
    past ``max_results``, or when the source signals that its result window
    is exceeded. The last two mark the result as partial. Any other error
    propagates to the caller.
    """

    def __init__(
        self,
        fetch_page: Callable[[int], Awaitable[list]],
        page_size: int = 100,
        max_results: int | None = None,
        before_page: Callable[[], Awaitable[Any]] | None = None,
        name: str = "",
    ) -> None:
        """Initialize the fetcher.

        Args:
            fetch_page: Coroutine function returning the items of a 1-based page.
            page_size: Items requested per page.
            max_results: Hard cap on queryable results, None for no cap.
            before_page: Optional hook awaited before each page request
                (the proactive search rate limit check).
            name: Label used in log messages.
        """
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.max_results = max_results
        self._before_page = before_page
        self.name = name or "paged fetch"

        self.partial = False
        self.pages_fetched = 0

    def _exceeds_cap(self, page: int) -> bool:
        return self.max_results is not None and page * self.page_size > self.max_results

    async def pages(self) -> AsyncIterator[list]:
        """Yield the items of each non-empty page in order."""
        self.partial = False
        self.pages_fetched = 0
        page = 1

        while True:
            if self._exceeds_cap(page):
                logger.info(
                    f"{self.name}: stopping before page {page}, "
                    f"{self.max_results}-result cap reached"
                )
                self.partial = True
                return

            if self._before_page is not None:
                await self._before_page()

            try:
                items = await self._fetch_page(page)
            except ResultWindowExceeded as e:
                logger.info(f"{self.name}: {e}")
                self.partial = True
                return

            self.pages_fetched += 1
            if not items:
                return

            yield items
            page += 1

    async def fetch_all(self) -> PagedResult:
        """Fetch every page and concatenate the items."""
        items: list[Any] = []
        async for page_items in self.pages():
            items.extend(page_items)
        return PagedResult(items=items, partial=self.partial, pages_fetched=self.pages_fetched)
