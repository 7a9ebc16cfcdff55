"""Analyzers for discovering, collecting and scoring GitHub activity."""

from gitskills.analyzers.discovery import RepoDiscoverer
from gitskills.analyzers.github import GitHubClient
from gitskills.analyzers.paging import PagedFetcher
from gitskills.analyzers.rate_limit import RateLimiter
from gitskills.analyzers.recovery import ResponseRecoveryParser
from gitskills.analyzers.repo import RepoAnalyzer

__all__ = [
    "GitHubClient",
    "PagedFetcher",
    "RateLimiter",
    "RepoAnalyzer",
    "RepoDiscoverer",
    "ResponseRecoveryParser",
]
