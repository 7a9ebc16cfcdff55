"""Tests for the paged fetcher."""

import pytest

from conftest import run
from gitskills.analyzers.paging import PagedFetcher, ResultWindowExceeded


class PageSource:
    """Serves fixed pages and records which pages were requested."""

    def __init__(self, pages, fail_on=None, error=None):
        self.pages = pages
        self.requested = []
        self.fail_on = fail_on
        self.error = error

    async def __call__(self, page):
        self.requested.append(page)
        if page == self.fail_on:
            raise self.error
        return self.pages[page - 1] if page <= len(self.pages) else []


def full_pages(count, size=100):
    return [[f"item-{p}-{i}" for i in range(size)] for p in range(1, count + 1)]


def test_stops_on_empty_page():
    source = PageSource([["a", "b"], ["c"]])
    result = run(PagedFetcher(source, page_size=2).fetch_all())

    assert result.items == ["a", "b", "c"]
    assert result.partial is False
    assert source.requested == [1, 2, 3]


def test_empty_first_page():
    source = PageSource([])
    result = run(PagedFetcher(source).fetch_all())

    assert result.items == []
    assert result.partial is False
    assert result.pages_fetched == 1


def test_never_requests_page_past_hard_cap():
    source = PageSource(full_pages(15))
    result = run(PagedFetcher(source, page_size=100, max_results=1000).fetch_all())

    assert source.requested == list(range(1, 11))
    assert 11 not in source.requested
    assert len(result.items) == 1000
    assert result.partial is True


def test_cap_smaller_than_one_page():
    source = PageSource(full_pages(2))
    result = run(PagedFetcher(source, page_size=100, max_results=50).fetch_all())

    assert source.requested == []
    assert result.partial is True


def test_result_window_exceeded_is_not_fatal():
    source = PageSource(full_pages(5), fail_on=3, error=ResultWindowExceeded("/search/commits", 3))
    result = run(PagedFetcher(source, page_size=100).fetch_all())

    assert len(result.items) == 200
    assert result.partial is True


def test_other_errors_propagate():
    source = PageSource(full_pages(5), fail_on=2, error=RuntimeError("boom"))
    with pytest.raises(RuntimeError, match="boom"):
        run(PagedFetcher(source).fetch_all())


def test_before_page_hook_runs_before_every_request():
    events = []

    async def fetch(page):
        events.append(f"page {page}")
        return ["x"] if page < 3 else []

    async def before():
        events.append("check")

    run(PagedFetcher(fetch, page_size=1, before_page=before).fetch_all())

    assert events == ["check", "page 1", "check", "page 2", "check", "page 3"]


def test_before_page_hook_skipped_once_cap_reached():
    checks = []

    async def before():
        checks.append(1)

    source = PageSource(full_pages(3, size=1))
    run(PagedFetcher(source, page_size=1, max_results=2, before_page=before).fetch_all())

    assert len(checks) == 2
    assert source.requested == [1, 2]


def test_pages_iterator_yields_earlier_pages_before_failure():
    source = PageSource(full_pages(3, size=2), fail_on=3, error=RuntimeError("late failure"))
    fetcher = PagedFetcher(source, page_size=2)
    seen = []

    async def consume():
        async for items in fetcher.pages():
            seen.extend(items)

    with pytest.raises(RuntimeError):
        run(consume())
    assert len(seen) == 4
