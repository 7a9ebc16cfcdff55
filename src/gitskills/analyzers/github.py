"""GitHub REST API client with per-surface rate limiting."""

import base64
import logging
import os

import httpx

from gitskills.analyzers.paging import ResultWindowExceeded
from gitskills.analyzers.rate_limit import RateLimiter
from gitskills.auth import AuthenticationError
from gitskills.models.schemas import RateState
from gitskills.monitoring import RunStats

logger = logging.getLogger(__name__)

API_REPOS_PREFIX = "https://api.github.com/repos/"


class EmptyRepositoryError(Exception):
    """Raised when GitHub reports a repository has no commits (HTTP 409)."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Repository is empty: {path}")


def repo_from_api_url(url: str) -> str:
    """Convert an API repository URL into an "owner/name" identifier."""
    return url.removeprefix(API_REPOS_PREFIX)


class GitHubClient:
    """Fetches user activity data from the GitHub API.

    The core REST surface is throttled reactively from the rate limit headers
    of every response. The search surface has a much smaller, separately
    metered quota, so it is throttled proactively from the /rate_limit status
    endpoint before each search page.

    Set GITHUB_ACCESS_TOKEN (or GITHUB_TOKEN) or pass token to constructor.
    """

    BASE_URL = "https://api.github.com"

    CORE_LOW_WATER_MARK = 10
    SEARCH_LOW_WATER_MARK = 3

    def __init__(
        self,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        core_limiter: RateLimiter | None = None,
        search_limiter: RateLimiter | None = None,
        stats: RunStats | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: GitHub access token. Falls back to GITHUB_ACCESS_TOKEN / GITHUB_TOKEN.
            client: Optional httpx client. If not provided, one is created per request.
            core_limiter: Limiter for the core REST surface.
            search_limiter: Limiter for the search surface.
            stats: Run counters to record calls into.
        """
        self._token = (
            token
            or os.environ.get("GITHUB_ACCESS_TOKEN")
            or os.environ.get("GITHUB_TOKEN")
        )
        self._client = client
        self.core_limiter = core_limiter or RateLimiter("core", self.CORE_LOW_WATER_MARK)
        self.search_limiter = search_limiter or RateLimiter(
            "search", self.SEARCH_LOW_WATER_MARK
        )
        self.stats = stats or RunStats()

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=30.0, headers=self._headers())

    async def _fetch(
        self,
        path: str,
        params: dict | None = None,
        search: bool = False,
    ) -> dict | list | None:
        """Fetch from GitHub API.

        Returns None if 404. Raises EmptyRepositoryError on 409,
        ResultWindowExceeded on a search 422, and httpx.HTTPStatusError
        on other errors.
        """
        client = await self._get_client()
        url = f"{self.BASE_URL}{path}"

        try:
            response = await client.get(url, params=params, headers=self._headers())
            self.stats.record_call(search=search)
            if not search:
                waited = await self.core_limiter.wait_if_needed(
                    RateState.from_headers(response.headers)
                )
                self.stats.record_wait(waited)

            if response.status_code == 404:
                return None
            if response.status_code == 409:
                raise EmptyRepositoryError(path)
            if response.status_code == 422 and search:
                raise ResultWindowExceeded(path, (params or {}).get("page"))
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    # --- Identity & quota ---

    async def get_authenticated_user(self) -> str:
        """Return the login of the token's owner."""
        try:
            data = await self._fetch("/user")
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(f"GitHub rejected the token: {e}") from e
        if not data or not data.get("login"):
            raise AuthenticationError("Could not resolve the authenticated GitHub user")
        return data["login"]

    async def get_search_rate_state(self) -> RateState | None:
        """Read the search surface quota from the /rate_limit status endpoint."""
        data = await self._fetch("/rate_limit")
        search = (data or {}).get("resources", {}).get("search")
        if not search:
            return None
        return RateState(
            remaining=max(0, int(search.get("remaining", 0))),
            reset_at=int(search.get("reset", 0)),
        )

    async def wait_for_search_quota(self) -> float:
        """Proactive search rate limit check, awaited before each search page."""
        try:
            state = await self.get_search_rate_state()
        except httpx.HTTPError as e:
            logger.warning(f"Could not read search rate limit status: {e}")
            return 0.0

        waited = await self.search_limiter.wait_if_needed(state)
        self.stats.record_wait(waited)
        return waited

    # --- Discovery sources ---

    async def list_user_repos(self, page: int, per_page: int = 100) -> list[dict]:
        """List repositories the user owns or is a member of."""
        data = await self._fetch(
            "/user/repos",
            params={"type": "all", "per_page": per_page, "page": page},
        )
        return data or []

    async def search_commits(self, username: str, page: int, per_page: int = 100) -> list[dict]:
        """Search commits authored by the user."""
        data = await self._fetch(
            "/search/commits",
            params={"q": f"author:{username}", "per_page": per_page, "page": page},
            search=True,
        )
        return (data or {}).get("items") or []

    async def search_pull_requests(
        self, username: str, page: int, per_page: int = 100
    ) -> list[dict]:
        """Search pull requests authored by the user."""
        data = await self._fetch(
            "/search/issues",
            params={"q": f"author:{username} type:pr", "per_page": per_page, "page": page},
            search=True,
        )
        return (data or {}).get("items") or []

    # --- Per-repository data ---

    async def get_languages(self, repo: str) -> dict[str, int]:
        """Fetch the language byte histogram of a repository."""
        data = await self._fetch(f"/repos/{repo}/languages")
        return data or {}

    async def list_commits(
        self, repo: str, author: str, page: int, per_page: int = 100
    ) -> list[dict]:
        """List commits in a repository authored by a user."""
        data = await self._fetch(
            f"/repos/{repo}/commits",
            params={"author": author, "per_page": per_page, "page": page},
        )
        return data or []

    async def get_commit(self, repo: str, sha: str) -> dict | None:
        """Fetch a single commit including its changed files."""
        return await self._fetch(f"/repos/{repo}/commits/{sha}")

    async def list_pulls(
        self, repo: str, creator: str, page: int, per_page: int = 100
    ) -> list[dict]:
        """List pull requests in a repository in any state."""
        data = await self._fetch(
            f"/repos/{repo}/pulls",
            params={"creator": creator, "state": "all", "per_page": per_page, "page": page},
        )
        return data or []

    async def fetch_file_content(self, repo: str, path: str) -> str | None:
        """Fetch and decode a file from the default branch.

        Returns None if the file does not exist.
        """
        data = await self._fetch(f"/repos/{repo}/contents/{path}")
        if not data or not isinstance(data, dict) or not data.get("content"):
            return None
        # File content is base64 encoded
        return base64.b64decode(data["content"]).decode("utf-8")
