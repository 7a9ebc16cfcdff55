"""Tests for settings loading."""

from pathlib import Path

import pytest

from gitskills.config import ConfigurationError, Settings

BASE_ENV = {"GITHUB_ACCESS_TOKEN": "ghp_test"}


def test_defaults():
    settings = Settings.from_env(BASE_ENV)

    assert settings.llm_provider == "ollama"
    assert settings.max_repos_to_analyze == 10
    assert settings.evidence_sample_size == 12
    assert settings.min_score == 40
    assert settings.cache_dir == Path(".cache")


def test_reads_environment():
    env = {
        "GITHUB_CLIENT_ID": "Iv1.abc",
        "LLM_PROVIDER": "huggingface_router",
        "HUGGINGFACE_TOKEN": "hf_x",
        "HF_MODEL": "meta/llama",
        "MAX_REPOS_TO_ANALYZE": "25",
        "EVIDENCE_SAMPLE_SIZE": "8",
        "MIN_SKILL_SCORE": "55",
        "GITSKILLS_CACHE_DIR": "/tmp/gs",
    }

    settings = Settings.from_env(env)

    assert settings.github_client_id == "Iv1.abc"
    assert settings.github_access_token is None
    assert settings.hf_model == "meta/llama"
    assert settings.max_repos_to_analyze == 25
    assert settings.evidence_sample_size == 8
    assert settings.min_score == 55
    assert settings.cache_dir == Path("/tmp/gs")


@pytest.mark.parametrize("raw,expected", [("0", 1), ("-3", 1), ("100", 100), ("500", 100)])
def test_max_repos_is_clamped(raw, expected):
    settings = Settings.from_env({**BASE_ENV, "MAX_REPOS_TO_ANALYZE": raw})
    assert settings.max_repos_to_analyze == expected


def test_overrides_win_and_none_is_ignored():
    settings = Settings.from_env(
        {**BASE_ENV, "MIN_SKILL_SCORE": "55"}, min_score=70, max_repos_to_analyze=None
    )
    assert settings.min_score == 70
    assert settings.max_repos_to_analyze == 10


def test_invalid_number_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        Settings.from_env({**BASE_ENV, "MIN_SKILL_SCORE": "lots"})


def test_unknown_provider():
    with pytest.raises(ConfigurationError, match="Unsupported LLM provider"):
        Settings.from_env({**BASE_ENV, "LLM_PROVIDER": "openai"})


def test_provider_credentials_required():
    with pytest.raises(ConfigurationError, match="HUGGINGFACE_TOKEN"):
        Settings.from_env({**BASE_ENV, "LLM_PROVIDER": "huggingface_router"})
    with pytest.raises(ConfigurationError, match="OLLAMA_API_KEY"):
        Settings.from_env({**BASE_ENV, "LLM_PROVIDER": "ollama_cloud"})


def test_github_credentials_required():
    with pytest.raises(ConfigurationError, match="GITHUB_CLIENT_ID"):
        Settings.from_env({"GITHUB_ACCESS_TOKEN": "   "})


def test_empty_variables_are_ignored():
    settings = Settings.from_env({**BASE_ENV, "OLLAMA_MODEL": ""})
    assert settings.ollama_model == "gpt-oss:120b"
