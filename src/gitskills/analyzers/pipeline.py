"""End-to-end skill recommendation pipeline."""

import logging
import random
from collections.abc import Callable
from datetime import datetime, timezone

import httpx

from gitskills.adapters.topcoder import TopcoderSkillsAdapter
from gitskills.analyzers.aggregate import aggregate
from gitskills.analyzers.discovery import DiscoveryResult, RepoDiscoverer
from gitskills.analyzers.evidence import fresh_sample
from gitskills.analyzers.github import GitHubClient
from gitskills.analyzers.llm import LLMClient, build_prompt, create_llm_client
from gitskills.analyzers.recovery import ResponseRecoveryParser
from gitskills.analyzers.repo import RepoAnalyzer
from gitskills.auth import DeviceFlowAuthenticator
from gitskills.cache import ResultCache
from gitskills.config import Settings
from gitskills.models.schemas import AggregateResult, Skill, SkillReport
from gitskills.monitoring import RunStats

logger = logging.getLogger(__name__)


class SkillPipeline:
    """Orchestrates a full recommendation run for the authenticated user.

    Pipeline stages:
    1. Authenticate and resolve the GitHub login
    2. Load the skill catalog (cached)
    3. Load the user's aggregate analysis, or discover, analyze and aggregate
    4. Draw a fresh evidence sample and build the prompt
    5. Query the generation model
    6. Recover validated recommendations from the response
    """

    def __init__(
        self,
        settings: Settings,
        cache: ResultCache | None = None,
        github: GitHubClient | None = None,
        llm: LLMClient | None = None,
        catalog: TopcoderSkillsAdapter | None = None,
        authenticator: DeviceFlowAuthenticator | None = None,
        rng: random.Random | None = None,
        on_device_prompt: Callable[[str, str], None] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Validated run settings.
            cache: Result cache. Defaults to settings.cache_dir.
            github: Pre-authenticated GitHub client (skips authentication).
            llm: Generation client. Defaults to the configured provider.
            catalog: Skill catalog adapter.
            authenticator: Device flow authenticator.
            rng: Randomness for evidence sampling.
            on_device_prompt: Called with (verification_uri, user_code) during login.
        """
        self.settings = settings
        self.cache = cache or ResultCache(settings.cache_dir)
        self.github = github
        self.llm = llm
        self.catalog = catalog
        self.authenticator = authenticator
        self.rng = rng or random.Random()
        self.on_device_prompt = on_device_prompt
        self.stats = github.stats if github is not None else RunStats()
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SkillPipeline":
        """Set up shared HTTP client."""
        self._http_client = httpx.AsyncClient(timeout=60.0)
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._http_client:
            await self._http_client.aclose()

    async def authenticate(self) -> GitHubClient:
        """Obtain a token and build the GitHub client (once per run)."""
        if self.github is not None:
            return self.github

        authenticator = self.authenticator or DeviceFlowAuthenticator(
            self.settings.github_client_id,
            client=self._http_client,
            on_prompt=self.on_device_prompt,
        )
        token = await authenticator.authenticate(self.settings.github_access_token)
        self.github = GitHubClient(token=token, client=self._http_client, stats=self.stats)
        return self.github

    async def load_skills(self, refresh: bool = False) -> list[Skill]:
        """Load the skill catalog from cache, fetching it on a miss."""
        if not refresh:
            skills = self.cache.load_skills()
            if skills is not None:
                logger.info(f"Loaded {len(skills)} skills from cache")
                return skills

        if self.catalog is None:
            self.catalog = TopcoderSkillsAdapter(client=self._http_client)
        logger.info("Fetching skill catalog...")
        skills = await self.catalog.list_skills()
        self.cache.save_skills(skills)
        logger.info(f"Cached {len(skills)} skills")
        return skills

    async def discover(self, username: str) -> DiscoveryResult:
        github = await self.authenticate()
        return await RepoDiscoverer(github).discover(username)

    async def compute_analysis(self, username: str) -> AggregateResult:
        """Discover, analyze and aggregate the user's repositories, then cache."""
        github = await self.authenticate()

        discovery = await RepoDiscoverer(github).discover(username)
        repos = discovery.repositories[: self.settings.max_repos_to_analyze]
        logger.info(
            f"Total unique repositories discovered: {len(discovery.repositories)}; "
            f"analyzing up to {self.settings.max_repos_to_analyze}"
        )

        batch = await RepoAnalyzer(github).analyze_many(repos, username)
        analysis = aggregate(
            batch.analyses,
            username=username,
            repos_discovered=len(discovery.repositories),
            discovery_incomplete=discovery.incomplete,
            rng=self.rng,
        )

        self.cache.save_analysis(analysis)
        logger.info(
            f"Saved analysis cache for @{username} ({len(analysis.evidence)} evidence links)"
        )
        return analysis

    async def load_or_compute_analysis(
        self, username: str, refresh: bool = False
    ) -> tuple[AggregateResult, bool]:
        """Return (analysis, from_cache)."""
        if not refresh:
            cached = self.cache.load_analysis(username)
            if cached is not None:
                logger.info(f"Using cached analysis for @{username} ({cached.generated_at})")
                return cached, True
            logger.info(f"No cache for @{username}, full analysis required")

        return await self.compute_analysis(username), False

    async def recommend(self, refresh: bool = False) -> SkillReport:
        """Run every stage and return the final report.

        Args:
            refresh: Ignore cached analysis and skill catalog.

        Returns:
            SkillReport with recommendations sorted by score.
        """
        github = await self.authenticate()
        username = await github.get_authenticated_user()
        logger.info(f"Analyzing @{username}")

        skills = await self.load_skills(refresh=refresh)
        analysis, from_cache = await self.load_or_compute_analysis(username, refresh=refresh)

        sample = fresh_sample(
            analysis.evidence,
            max_links=self.settings.evidence_sample_size,
            rng=self.rng,
        )
        prompt = build_prompt(analysis, sample, skills)
        logger.debug(f"Prompt: {prompt}")
        logger.info(f"Prompt length: {len(prompt)} chars (~{round(len(prompt) / 4)} tokens)")

        llm = self.llm or create_llm_client(self.settings)
        response = await llm.generate(prompt)

        parser = ResponseRecoveryParser(skills, min_score=self.settings.min_score)
        result = parser.recover(response)

        catalog_calls = self.catalog.api_calls if self.catalog else 0
        logger.debug(f"GitHub usage: {self.stats.to_dict()}, catalog calls: {catalog_calls}")
        return SkillReport(
            username=username,
            recommendations=result.recommendations,
            rejected=result.rejected,
            analysis=analysis,
            evidence_sample=sample,
            from_cache=from_cache,
            total_api_calls=self.stats.total_calls + catalog_calls,
            elapsed_seconds=round(self.stats.elapsed_seconds, 2),
            generated_at=datetime.now(timezone.utc),
        )
