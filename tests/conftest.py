"""Shared fixtures for gitskills tests."""

import asyncio

import httpx
import pytest

from gitskills.analyzers.github import GitHubClient
from gitskills.analyzers.rate_limit import RateLimiter

NOW = 1_700_000_000.0


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


class FakeSleep:
    """Records requested sleeps instead of sleeping."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeGitHub:
    """In-memory stand-in for the GitHub REST API.

    Routes map a URL path to either a fixed (status, body, headers) tuple
    or a callable taking the request and returning an httpx.Response.
    Unknown paths answer 404.
    """

    def __init__(self):
        self.routes: dict = {}
        self.requests: list[httpx.Request] = []

    def add(self, path, body=None, status=200, headers=None):
        self.routes[path] = (status, body, headers or {})

    def add_handler(self, path, handler):
        self.routes[path] = handler

    def add_pages(self, path, pages, wrap_items=False, headers=None):
        """Serve ``pages[n-1]`` for ?page=n and an empty page afterwards."""

        def handler(request):
            page = int(request.url.params.get("page", "1"))
            items = pages[page - 1] if page <= len(pages) else []
            body = {"total_count": sum(len(p) for p in pages), "items": items} if wrap_items else items
            return httpx.Response(200, json=body, headers=headers or {})

        self.routes[path] = handler

    def paths(self):
        return [r.url.path for r in self.requests]

    def pages_requested(self, path):
        return [int(r.url.params.get("page", "1")) for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        status, body, headers = route
        return httpx.Response(status, json=body, headers=headers)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def api():
    return FakeGitHub()


@pytest.fixture
def github(api, fake_sleep):
    """GitHubClient wired to the fake API with a frozen clock."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return GitHubClient(
        token="test-token",
        client=client,
        core_limiter=RateLimiter("core", 10, clock=lambda: NOW, sleep=fake_sleep),
        search_limiter=RateLimiter("search", 3, clock=lambda: NOW, sleep=fake_sleep),
    )
