"""Tests for the skill catalog adapter."""

import httpx
import pytest

from conftest import run
from gitskills.adapters.topcoder import TopcoderSkillsAdapter


def catalog_server(pages, next_pages):
    """Serve pages[n-1] with the given x-next-page header for page n."""
    requested = []

    def handler(request):
        page = int(request.url.params["page"])
        requested.append(page)
        headers = {}
        if next_pages.get(page) is not None:
            headers["x-next-page"] = str(next_pages[page])
        return httpx.Response(200, json=pages[page - 1], headers=headers)

    return handler, requested


def adapter_for(handler):
    return TopcoderSkillsAdapter(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_follows_next_page_header():
    handler, requested = catalog_server(
        [[{"id": "a1", "name": "Python"}], [{"id": 2, "name": "Go"}]],
        {1: 2},
    )
    adapter = adapter_for(handler)

    skills = run(adapter.list_skills())

    assert [(s.id, s.name) for s in skills] == [("a1", "Python"), ("2", "Go")]
    assert requested == [1, 2]
    assert adapter.api_calls == 2


@pytest.mark.parametrize("header", ["1", "oops", ""])
def test_stops_on_bad_or_repeating_header(header):
    handler, requested = catalog_server([[{"id": "1", "name": "Python"}]], {1: header})

    run(adapter_for(handler).list_skills())

    assert requested == [1]


def test_skips_incomplete_items():
    handler, _ = catalog_server([[{"id": "1", "name": ""}, {"name": "NoId"}, {"id": "3", "name": "Rust"}]], {})
    skills = run(adapter_for(handler).list_skills())
    assert [s.name for s in skills] == ["Rust"]


def test_http_error_propagates():
    adapter = adapter_for(lambda request: httpx.Response(500))
    with pytest.raises(httpx.HTTPStatusError):
        run(adapter.list_skills())
