"""Repository discovery across GitHub listing and search sources."""

import logging
from dataclasses import dataclass, field

from gitskills.analyzers.github import GitHubClient, repo_from_api_url
from gitskills.analyzers.paging import SEARCH_RESULT_CAP, PagedFetcher

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    """Deduplicated repositories a user has touched."""

    repositories: list[str] = field(default_factory=list)
    incomplete: bool = False  # a search source hit its result cap
    source_counts: dict[str, int] = field(default_factory=dict)


class RepoDiscoverer:
    """Finds repositories through three independent sources.

    Sources:
    1. Owned/member repository listing (no cap)
    2. Commit search by author (capped at 1000 results)
    3. Pull request search by author (capped at 1000 results)

    Identifiers are unioned by exact, case-sensitive string match, keeping
    first-seen order so later truncation is stable.
    """

    def __init__(
        self,
        github: GitHubClient,
        page_size: int = 100,
        search_cap: int = SEARCH_RESULT_CAP,
    ) -> None:
        self.github = github
        self.page_size = page_size
        self.search_cap = search_cap

    async def discover(self, username: str) -> DiscoveryResult:
        """Discover every repository the user owns, committed to, or opened PRs in.

        Args:
            username: GitHub login of the user.

        Returns:
            DiscoveryResult with the ordered repository union.
        """
        repos: dict[str, None] = {}
        counts: dict[str, int] = {}

        # Owned/member repos
        listing = PagedFetcher(
            lambda page: self.github.list_user_repos(page, self.page_size),
            page_size=self.page_size,
            name="repository listing",
        )
        result = await listing.fetch_all()
        counts["listing"] = self._add(repos, (r.get("full_name") for r in result.items))

        # Commits search
        commits = PagedFetcher(
            lambda page: self.github.search_commits(username, page, self.page_size),
            page_size=self.page_size,
            max_results=self.search_cap,
            before_page=self.github.wait_for_search_quota,
            name="commit search",
        )
        commit_result = await commits.fetch_all()
        counts["commit_search"] = self._add(
            repos,
            ((item.get("repository") or {}).get("full_name") for item in commit_result.items),
        )

        # PRs search
        prs = PagedFetcher(
            lambda page: self.github.search_pull_requests(username, page, self.page_size),
            page_size=self.page_size,
            max_results=self.search_cap,
            before_page=self.github.wait_for_search_quota,
            name="pull request search",
        )
        pr_result = await prs.fetch_all()
        counts["pr_search"] = self._add(
            repos,
            (
                repo_from_api_url(item["repository_url"])
                for item in pr_result.items
                if item.get("repository_url")
            ),
        )

        incomplete = commit_result.partial or pr_result.partial
        if incomplete:
            logger.warning(
                "Search results hit GitHub's result cap; discovery may be incomplete"
            )

        logger.info(
            f"Discovered {len(repos)} unique repositories "
            f"(listing: {counts['listing']}, commits: {counts['commit_search']}, "
            f"PRs: {counts['pr_search']})"
        )

        return DiscoveryResult(
            repositories=list(repos),
            incomplete=incomplete,
            source_counts=counts,
        )

    @staticmethod
    def _add(repos: dict[str, None], names) -> int:
        """Add identifiers to the ordered union, returning how many were new."""
        added = 0
        for name in names:
            if name and name not in repos:
                repos[name] = None
                added += 1
        return added
