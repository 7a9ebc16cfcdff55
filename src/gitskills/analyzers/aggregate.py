"""Fold per-repository analyses into a single user profile."""

import random
from collections.abc import Mapping
from datetime import datetime, timezone

from gitskills.analyzers.evidence import category_balanced_sample
from gitskills.models.schemas import AggregateResult, RepoAnalysis

# Output truncation keeps the prompt small
TOP_DEPENDENCIES = 80
TOP_FILE_TYPES = 20


def language_percentages(language_bytes: Mapping[str, int]) -> dict[str, float]:
    """Share of each language in the total byte count, in percent.

    A zero total yields 0.0 for every language.
    """
    total = sum(language_bytes.values()) or 1
    return {lang: round(count / total * 100, 2) for lang, count in language_bytes.items()}


def aggregate(
    analyses: Mapping[str, RepoAnalysis],
    username: str,
    repos_discovered: int | None = None,
    discovery_incomplete: bool = False,
    top_dependencies: int = TOP_DEPENDENCIES,
    top_file_types: int = TOP_FILE_TYPES,
    rng: random.Random | None = None,
    generated_at: datetime | None = None,
) -> AggregateResult:
    """Combine repository analyses into an AggregateResult.

    Dependencies and file types keep first-seen order (not frequency) before
    truncation. Evidence keeps each repository's own ordering.

    Args:
        analyses: Analyses keyed by repository identifier.
        username: GitHub login the analyses belong to.
        repos_discovered: Size of the discovered repository set.
        discovery_incomplete: Whether discovery hit a search result cap.
        top_dependencies: Maximum dependencies kept.
        top_file_types: Maximum file extensions kept.
        rng: Randomness for the stored evidence sample.
        generated_at: Timestamp override.

    Returns:
        AggregateResult ready to cache.
    """
    language_bytes: dict[str, int] = {}
    dependencies: dict[str, None] = {}
    file_types: dict[str, None] = {}
    evidence: list[str] = []
    total_commits = 0
    total_prs = 0

    for analysis in analyses.values():
        for lang, count in analysis.languages.items():
            language_bytes[lang] = language_bytes.get(lang, 0) + count
        dependencies.update(dict.fromkeys(analysis.dependencies))
        file_types.update(dict.fromkeys(analysis.file_extensions))
        evidence.extend(analysis.evidence)
        total_commits += analysis.commit_count
        total_prs += analysis.pr_count

    return AggregateResult(
        username=username,
        generated_at=generated_at or datetime.now(timezone.utc),
        repos_discovered=len(analyses) if repos_discovered is None else repos_discovered,
        analyzed_repositories=list(analyses),
        discovery_incomplete=discovery_incomplete,
        total_commits=total_commits,
        total_prs=total_prs,
        language_percentages=language_percentages(language_bytes),
        top_dependencies=list(dependencies)[:top_dependencies],
        top_file_types=list(file_types)[:top_file_types],
        evidence=evidence,
        evidence_sample=category_balanced_sample(evidence, rng=rng),
    )
