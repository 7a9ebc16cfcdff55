"""Run configuration loaded from environment variables."""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from gitskills.analyzers.llm import PROVIDERS


class ConfigurationError(Exception):
    """Raised when the environment does not describe a runnable configuration."""


class Settings(BaseModel):
    """Settings for a recommendation run.

    Environment variables:
        GITHUB_CLIENT_ID: OAuth app id for the device flow.
        GITHUB_ACCESS_TOKEN: Token to use instead of the device flow.
        LLM_PROVIDER: huggingface_router, ollama or ollama_cloud.
        HUGGINGFACE_TOKEN, HF_MODEL: Hugging Face router credentials and model.
        OLLAMA_API_KEY, OLLAMA_MODEL: Ollama (cloud) credentials and model.
        MAX_REPOS_TO_ANALYZE: Repositories analyzed per run (1-100).
        EVIDENCE_SAMPLE_SIZE: Evidence links sent to the model.
        MIN_SKILL_SCORE: Recommendations below this score are dropped.
        GITSKILLS_CACHE_DIR: Directory for cached skills and analyses.
    """

    github_client_id: str | None = None
    github_access_token: str | None = None

    llm_provider: str = "ollama"
    huggingface_token: str | None = None
    hf_model: str = "openai/gpt-oss-120b:groq"
    ollama_api_key: str | None = None
    ollama_model: str = "gpt-oss:120b"

    max_repos_to_analyze: int = 10
    evidence_sample_size: int = Field(default=12, ge=1)
    min_score: int = Field(default=40, ge=0, le=100)
    cache_dir: Path = Path(".cache")

    @field_validator("max_repos_to_analyze")
    @classmethod
    def _clamp_max_repos(cls, value: int) -> int:
        return max(1, min(100, value))

    @field_validator("github_access_token", "github_client_id", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "Settings":
        """Build and validate settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ.
            **overrides: Values taking precedence over the environment
                (None values are ignored).

        Raises:
            ConfigurationError: If values are invalid or required credentials are missing.
        """
        env = os.environ if environ is None else environ
        mapping = {
            "github_client_id": "GITHUB_CLIENT_ID",
            "github_access_token": "GITHUB_ACCESS_TOKEN",
            "llm_provider": "LLM_PROVIDER",
            "huggingface_token": "HUGGINGFACE_TOKEN",
            "hf_model": "HF_MODEL",
            "ollama_api_key": "OLLAMA_API_KEY",
            "ollama_model": "OLLAMA_MODEL",
            "max_repos_to_analyze": "MAX_REPOS_TO_ANALYZE",
            "evidence_sample_size": "EVIDENCE_SAMPLE_SIZE",
            "min_score": "MIN_SKILL_SCORE",
            "cache_dir": "GITSKILLS_CACHE_DIR",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            settings = cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        settings.validate_credentials()
        return settings

    def validate_credentials(self) -> None:
        """Check provider and GitHub credentials.

        Raises:
            ConfigurationError: On the first missing or unsupported value.
        """
        if self.llm_provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unsupported LLM provider: {self.llm_provider}. "
                f"Supported: {', '.join(PROVIDERS)}"
            )
        if self.llm_provider == "huggingface_router" and not self.huggingface_token:
            raise ConfigurationError("HUGGINGFACE_TOKEN is required for huggingface_router")
        if self.llm_provider == "ollama_cloud" and not self.ollama_api_key:
            raise ConfigurationError("OLLAMA_API_KEY is required for ollama_cloud")
        if not self.github_access_token and not self.github_client_id:
            raise ConfigurationError(
                "GITHUB_CLIENT_ID is required when GITHUB_ACCESS_TOKEN is not set"
            )
