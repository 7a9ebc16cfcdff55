"""Data models and schemas."""

from gitskills.models.schemas import (
    AggregateResult,
    EvidenceLink,
    LinkKind,
    RateState,
    Recommendation,
    RepoAnalysis,
    Skill,
    SkillReport,
)

__all__ = [
    "AggregateResult",
    "EvidenceLink",
    "LinkKind",
    "RateState",
    "Recommendation",
    "RepoAnalysis",
    "Skill",
    "SkillReport",
]
