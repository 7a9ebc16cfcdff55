"""Tests for aggregation of repository analyses."""

import random
from datetime import datetime, timezone

import pytest

from gitskills.analyzers.aggregate import aggregate, language_percentages
from gitskills.models.schemas import RepoAnalysis


def test_language_percentages_sum_to_100():
    result = language_percentages({"Python": 1, "Go": 1, "Rust": 1})
    assert result == {"Python": 33.33, "Go": 33.33, "Rust": 33.33}
    assert sum(result.values()) == pytest.approx(100, abs=0.05)


def test_language_percentages_zero_total():
    assert language_percentages({"Python": 0, "Go": 0}) == {"Python": 0.0, "Go": 0.0}


def test_language_percentages_empty():
    assert language_percentages({}) == {}


def test_aggregate_folds_analyses():
    analyses = {
        "o/api": RepoAnalysis(
            languages={"Python": 3000, "Shell": 500},
            dependencies=["fastapi", "pydantic"],
            file_extensions=["py", "sh"],
            commit_count=4,
            pr_count=1,
            evidence=["https://github.com/o/api/commit/1", "https://github.com/o/api/pull/2"],
        ),
        "o/web": RepoAnalysis(
            languages={"TypeScript": 1000, "Python": 500},
            dependencies=["react", "pydantic"],
            file_extensions=["ts", "py"],
            commit_count=6,
            pr_count=2,
            evidence=["https://github.com/o/web/commit/3"],
        ),
    }
    when = datetime(2024, 5, 1, tzinfo=timezone.utc)

    result = aggregate(analyses, "octocat", repos_discovered=7, rng=random.Random(0), generated_at=when)

    assert result.username == "octocat"
    assert result.generated_at == when
    assert result.repos_discovered == 7
    assert result.repos_analyzed == 2
    assert result.analyzed_repositories == ["o/api", "o/web"]
    assert result.total_commits == 10
    assert result.total_prs == 3
    assert result.language_percentages == {"Python": 70.0, "Shell": 10.0, "TypeScript": 20.0}
    assert result.top_dependencies == ["fastapi", "pydantic", "react"]
    assert result.top_file_types == ["py", "sh", "ts"]
    assert result.evidence == [
        "https://github.com/o/api/commit/1",
        "https://github.com/o/api/pull/2",
        "https://github.com/o/web/commit/3",
    ]
    assert sorted(result.evidence_sample) == sorted(result.evidence)


def test_truncation_keeps_first_seen_order():
    analyses = {
        "o/a": RepoAnalysis(dependencies=[f"dep{i}" for i in range(50)]),
        "o/b": RepoAnalysis(dependencies=[f"dep{i}" for i in range(40, 100)]),
    }

    result = aggregate(analyses, "me", top_dependencies=80)

    assert len(result.top_dependencies) == 80
    assert result.top_dependencies == [f"dep{i}" for i in range(80)]


def test_file_types_truncated_to_limit():
    analysis = RepoAnalysis(file_extensions=[f"x{i}" for i in range(30)])
    result = aggregate({"o/a": analysis}, "me")
    assert result.top_file_types == [f"x{i}" for i in range(20)]


def test_discovered_defaults_to_analyzed_count():
    result = aggregate({"o/a": RepoAnalysis()}, "me", discovery_incomplete=True)
    assert result.repos_discovered == 1
    assert result.discovery_incomplete is True


def test_aggregate_survives_cache_round_trip():
    result = aggregate({"o/a": RepoAnalysis(languages={"Go": 10})}, "me")
    restored = type(result).model_validate_json(result.model_dump_json())
    assert restored == result
