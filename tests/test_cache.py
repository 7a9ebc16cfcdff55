"""Tests for the result cache."""

import json
from datetime import datetime, timezone

from gitskills.cache import ResultCache, safe_username
from gitskills.models.schemas import AggregateResult, Skill


def make_analysis(username="Octo.Cat"):
    return AggregateResult(
        username=username,
        generated_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        analyzed_repositories=["o/a"],
        language_percentages={"Python": 100.0},
        evidence=["https://github.com/o/a/pull/1"],
    )


def test_safe_username():
    assert safe_username("Octo.Cat") == "octocat"
    assert safe_username("../../etc") == "etc"
    assert safe_username("") == "unknown"
    assert safe_username(None) == "unknown"


def test_skills_round_trip(tmp_path):
    cache = ResultCache(tmp_path / "cache")
    skills = [Skill(id="1", name="Python"), Skill(id="2", name="Go")]

    path = cache.save_skills(skills)

    assert path == tmp_path / "cache" / "topcoder-skills.json"
    assert cache.load_skills() == skills


def test_analysis_round_trip(tmp_path):
    cache = ResultCache(tmp_path)
    analysis = make_analysis()

    path = cache.save_analysis(analysis)

    assert path.name == "github-octocat.json"
    assert cache.load_analysis("octo.cat") == analysis
    assert path.read_text() == analysis.model_dump_json(indent=2)
    assert json.loads(path.read_text())["generated_at"].startswith("2024-01-02T00:00:00")


def test_missing_files_are_misses(tmp_path):
    cache = ResultCache(tmp_path)
    assert cache.load_skills() is None
    assert cache.load_analysis("nobody") is None


def test_corrupt_files_are_misses(tmp_path, caplog):
    cache = ResultCache(tmp_path)
    cache.skills_path.write_text("{not json")
    cache.analysis_path("me").write_text('{"username": "me"}')

    assert cache.load_skills() is None
    assert cache.load_analysis("me") is None
    assert "Could not parse" in caplog.text


def test_clear(tmp_path):
    cache = ResultCache(tmp_path)
    cache.save_skills([Skill(id="1", name="Python")])
    cache.save_analysis(make_analysis("alice"))
    cache.save_analysis(make_analysis("bob"))

    assert cache.clear("alice") == [tmp_path / "github-alice.json"]
    assert cache.load_analysis("bob") is not None

    removed = cache.clear()
    assert len(removed) == 2
    assert cache.load_skills() is None
    assert cache.load_analysis("bob") is None
