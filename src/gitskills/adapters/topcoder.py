"""Topcoder standardized skills catalog adapter."""

import logging

import httpx

from gitskills.models.schemas import Skill

logger = logging.getLogger(__name__)


class TopcoderSkillsAdapter:
    """Adapter for the Topcoder standardized skills API.

    Data sources:
    - Skills listing: https://api.topcoder-dev.com/v5/standardized-skills/skills

    The listing is paged; each response names the next page in the
    ``x-next-page`` header, which is absent on the last page.
    """

    SKILLS_URL = "https://api.topcoder-dev.com/v5/standardized-skills/skills"

    def __init__(self, client: httpx.AsyncClient | None = None, per_page: int = 100) -> None:
        """Initialize the adapter.

        Args:
            client: Optional httpx client for making requests.
            per_page: Skills requested per page.
        """
        self._client = client
        self.per_page = per_page
        self.api_calls = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=30.0)

    async def _fetch_page(self, page: int) -> tuple[list, str | None]:
        """Fetch one page, returning (items, next page header)."""
        client = await self._get_client()
        try:
            response = await client.get(
                self.SKILLS_URL,
                params={"page": page, "perPage": self.per_page},
            )
            self.api_calls += 1
            response.raise_for_status()
            return response.json(), response.headers.get("x-next-page")
        finally:
            if self._client is None:
                await client.aclose()

    async def list_skills(self) -> list[Skill]:
        """Fetch the whole catalog.

        Returns:
            Skills in API order.
        """
        skills: list[Skill] = []
        page = 1

        while True:
            items, next_page = await self._fetch_page(page)
            skills.extend(
                Skill(id=str(item["id"]), name=item["name"])
                for item in items
                if item.get("id") is not None and item.get("name")
            )

            if not next_page:
                break
            try:
                following = int(next_page)
            except ValueError:
                logger.warning(f"Unexpected x-next-page header: {next_page!r}")
                break
            if following <= page:
                break
            page = following

        logger.info(f"Fetched {len(skills)} skills from Topcoder")
        return skills
