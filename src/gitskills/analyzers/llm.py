"""Text generation providers and prompt construction."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from gitskills.models.schemas import AggregateResult, Skill

logger = logging.getLogger(__name__)

PROVIDERS = ("huggingface_router", "ollama", "ollama_cloud")


class LLMError(Exception):
    """Raised when a generation provider returns an unusable response."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class LLMClient(ABC):
    """Uniform "prompt in, text out" contract over generation providers."""

    provider: str = ""

    def __init__(
        self,
        model: str,
        client: httpx.AsyncClient | None = None,
        temperature: float = 0.1,  # Low temperature for consistent scoring
        max_tokens: int = 1600,
    ) -> None:
        self.model = model
        self._client = client
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=300.0)  # LLM can be slow

    async def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> dict:
        client = await self._get_client()
        try:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Submit a prompt and return the response text."""
        ...


class OpenAICompatibleClient(LLMClient):
    """Chat completions over an OpenAI-compatible endpoint.

    Used for the Hugging Face router and for a local Ollama server's /v1 API.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str,
        provider: str = "openai",
        client: httpx.AsyncClient | None = None,
        **kwargs,
    ) -> None:
        super().__init__(model, client=client, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.provider = provider

    async def generate(self, prompt: str) -> str:
        logger.info(f"Querying {self.provider}: {self.model} @ {self.base_url}")
        data = await self._post(
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
                "stream": False,
            },
            {"Authorization": f"Bearer {self.api_key}"},
        )
        choices = data.get("choices") or []
        if not choices:
            raise LLMError(self.provider, "response contained no choices")
        return (choices[0].get("message") or {}).get("content") or ""


class OllamaCloudClient(LLMClient):
    """Ollama's hosted chat API."""

    provider = "ollama_cloud"
    OLLAMA_CLOUD_URL = "https://ollama.com"

    def __init__(
        self,
        model: str,
        api_key: str,
        host: str = OLLAMA_CLOUD_URL,
        client: httpx.AsyncClient | None = None,
        **kwargs,
    ) -> None:
        super().__init__(model, client=client, **kwargs)
        self.host = host.rstrip("/")
        self.api_key = api_key

    async def generate(self, prompt: str) -> str:
        logger.info(f"Querying Ollama Cloud: {self.model}")
        data = await self._post(
            f"{self.host}/api/chat",
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "stream": False,
                "options": {"temperature": self.temperature},
            },
            {"Authorization": f"Bearer {self.api_key}"},
        )
        return (data.get("message") or {}).get("content") or ""


def create_llm_client(settings, client: httpx.AsyncClient | None = None) -> LLMClient:
    """Build the client for the configured provider.

    Args:
        settings: A gitskills Settings instance.
        client: Optional shared httpx client.

    Raises:
        LLMError: If the provider is unknown.
    """
    provider = settings.llm_provider
    if provider == "huggingface_router":
        return OpenAICompatibleClient(
            base_url="https://router.huggingface.co/v1",
            model=settings.hf_model,
            api_key=settings.huggingface_token or "",
            provider=provider,
            client=client,
        )
    if provider == "ollama":
        return OpenAICompatibleClient(
            base_url="http://localhost:11434/v1",
            model=settings.ollama_model,
            api_key="ollama",  # ignored by a local server
            provider=provider,
            client=client,
        )
    if provider == "ollama_cloud":
        return OllamaCloudClient(
            model=settings.ollama_model,
            api_key=settings.ollama_api_key or "",
            client=client,
        )
    raise LLMError(provider, f"unsupported provider (expected one of {', '.join(PROVIDERS)})")


def build_prompt(
    analysis: AggregateResult,
    evidence_sample: list[str],
    skills: list[Skill],
    skill_limit: int = 60,
    dependency_limit: int = 40,
) -> str:
    """Compose the recommendation prompt.

    Args:
        analysis: Aggregated GitHub activity.
        evidence_sample: Links the model may cite.
        skills: Skill catalog; only the first ``skill_limit`` names are listed.
        skill_limit: Catalog names included in the prompt.
        dependency_limit: Dependencies included in the prompt.

    Returns:
        Prompt text.
    """
    languages = "\n".join(
        f"{lang}: {pct:.2f}%" for lang, pct in analysis.language_percentages.items()
    )
    deps = ", ".join(analysis.top_dependencies[:dependency_limit])
    file_types = ", ".join(analysis.top_file_types)
    links = "\n".join(evidence_sample)
    skill_names = ", ".join(s.name for s in skills[:skill_limit])

    return f"""GitHub summary:
Languages:
{languages}
Key deps: {deps}
File types: {file_types}
Commits: {analysis.total_commits} | PRs: {analysis.total_prs}
Sample links (cite 1-2 in reasons when relevant):
{links}

Recommend 5-10 skills ONLY from this list, using as many strong matches as possible:
{skill_names}

Rules:
- name: EXACT name from the list. No other names.
- score: 0-100, how strongly the evidence supports the skill.
- reason: 1-2 sentences citing specific evidence: at least one dependency or file type,
  and one sample link when it supports the reason.

Respond with a JSON array only:
[{{"name": "<skill>", "score": <0-100>, "reason": "<evidence>"}}]"""
