"""Per-repository analysis of a user's activity."""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from gitskills.analyzers.github import EmptyRepositoryError, GitHubClient
from gitskills.analyzers.paging import PagedFetcher
from gitskills.models.schemas import RepoAnalysis

logger = logging.getLogger(__name__)


def parse_package_json(content: str) -> list[str]:
    """Dependency names from a package.json (runtime and dev)."""
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("package.json is not an object")
    deps = list((data.get("dependencies") or {}).keys())
    deps.extend((data.get("devDependencies") or {}).keys())
    return deps


def parse_requirements(content: str) -> list[str]:
    """Non-comment lines of a requirements.txt."""
    lines = (line.strip() for line in content.split("\n"))
    return [line for line in lines if line and not line.startswith("#")]


_ARTIFACT_ID = re.compile(r"<artifactId>(.*?)</artifactId>")


def parse_pom(content: str) -> list[str]:
    """Every artifactId declared in a Maven pom.xml."""
    return _ARTIFACT_ID.findall(content)


# Manifests outside this set are not inspected
MANIFEST_PARSERS: dict[str, Callable[[str], list[str]]] = {
    "package.json": parse_package_json,
    "requirements.txt": parse_requirements,
    "pom.xml": parse_pom,
}


def file_extension(filename: str) -> str:
    """Extension of a changed file without the dot, "" if none."""
    return PurePosixPath(filename).suffix[1:]


@dataclass
class AnalysisBatch:
    """Analyses for a batch of repositories plus activity totals."""

    analyses: dict[str, RepoAnalysis] = field(default_factory=dict)
    total_commits: int = 0
    total_prs: int = 0


class RepoAnalyzer:
    """Collects user-scoped evidence from individual repositories.

    Each repository goes through four sub-analyses (languages, commits,
    pull requests, dependency manifests). They fail independently: an error
    in one leaves that part empty and the others still run.
    """

    def __init__(self, github: GitHubClient, page_size: int = 100) -> None:
        self.github = github
        self.page_size = page_size

    async def analyze_many(self, repos: list[str], username: str) -> AnalysisBatch:
        """Analyze repositories one after another.

        Args:
            repos: Repository identifiers, already truncated by the caller.
            username: GitHub login whose activity is analyzed.

        Returns:
            AnalysisBatch keyed by repository in input order.
        """
        batch = AnalysisBatch()
        for repo in repos:
            logger.info(f"Analyzing: {repo}")
            analysis = await self.analyze(repo, username)
            batch.analyses[repo] = analysis
            batch.total_commits += analysis.commit_count
            batch.total_prs += analysis.pr_count
        return batch

    async def analyze(self, repo: str, username: str) -> RepoAnalysis:
        """Run all sub-analyses for one repository."""
        analysis = RepoAnalysis()
        await self._analyze_languages(repo, analysis)
        await self._analyze_commits(repo, username, analysis)
        await self._analyze_pulls(repo, username, analysis)
        await self._analyze_dependencies(repo, analysis)
        return analysis

    async def _analyze_languages(self, repo: str, analysis: RepoAnalysis) -> None:
        try:
            analysis.languages = dict(await self.github.get_languages(repo))
        except Exception as e:
            logger.warning(f"  {repo}: languages fetch error: {e}")

    async def _analyze_commits(self, repo: str, username: str, analysis: RepoAnalysis) -> None:
        """Count the user's commits and gather file types and commit links."""
        fetcher = PagedFetcher(
            lambda page: self.github.list_commits(repo, username, page, self.page_size),
            page_size=self.page_size,
            name=f"{repo} commits",
        )
        try:
            async for commits in fetcher.pages():
                analysis.commit_count += len(commits)
                for commit in commits:
                    await self._add_commit_evidence(repo, commit, analysis)
        except EmptyRepositoryError:
            logger.info(f"  {repo} is empty, skipping commits")
        except Exception as e:
            logger.warning(f"  {repo}: commits fetch error: {e}")

    async def _add_commit_evidence(self, repo: str, commit: dict, analysis: RepoAnalysis) -> None:
        sha = commit.get("sha")
        if not sha:
            return
        try:
            detail = await self.github.get_commit(repo, sha)
        except Exception as e:
            logger.debug(f"  {repo}: could not fetch commit {sha[:7]}: {e}")
            return
        if detail is None:
            return

        for changed in detail.get("files") or []:
            ext = file_extension(changed.get("filename", ""))
            if ext:
                analysis.add_file_extension(ext)
        url = commit.get("html_url") or detail.get("html_url")
        if url:
            analysis.evidence.append(url)

    async def _analyze_pulls(self, repo: str, username: str, analysis: RepoAnalysis) -> None:
        """Count the user's pull requests and gather PR links."""
        fetcher = PagedFetcher(
            lambda page: self.github.list_pulls(repo, username, page, self.page_size),
            page_size=self.page_size,
            name=f"{repo} pulls",
        )
        try:
            async for pulls in fetcher.pages():
                for pr in pulls:
                    # The pulls endpoint ignores the creator filter
                    login = (pr.get("user") or {}).get("login")
                    if login and login.lower() != username.lower():
                        continue
                    analysis.pr_count += 1
                    if pr.get("html_url"):
                        analysis.evidence.append(pr["html_url"])
        except Exception as e:
            logger.warning(f"  {repo}: pull requests fetch error: {e}")

    async def _analyze_dependencies(self, repo: str, analysis: RepoAnalysis) -> None:
        for filename, parse in MANIFEST_PARSERS.items():
            try:
                content = await self.github.fetch_file_content(repo, filename)
                if content is None:
                    continue
                deps = parse(content)
            except Exception as e:
                logger.debug(f"  {repo}: skipping {filename}: {e}")
                continue
            for dep in deps:
                analysis.add_dependency(dep)
