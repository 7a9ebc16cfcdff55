"""Pydantic models for skill discovery data."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class LinkKind(str, Enum):
    """Categories of evidence links."""

    PULL_REQUEST = "pull_request"
    COMMIT = "commit"
    OTHER = "other"


class EvidenceLink(BaseModel):
    """A parsed evidence URL."""

    url: str
    repository: str | None = None  # "owner/name", None if not a GitHub link
    kind: LinkKind = LinkKind.OTHER


class RateState(BaseModel):
    """Snapshot of a rate-limited API surface."""

    remaining: int = Field(ge=0)
    reset_at: int = 0  # epoch seconds, 0 if unknown

    @classmethod
    def from_headers(cls, headers) -> "RateState | None":
        """Build from X-RateLimit-* response headers, None if absent."""
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")
        if remaining is None:
            return None
        try:
            return cls(
                remaining=max(0, int(remaining)),
                reset_at=int(reset) if reset is not None else 0,
            )
        except ValueError:
            return None


# --- Analysis Models ---


class RepoAnalysis(BaseModel):
    """User-scoped analysis of a single repository."""

    languages: dict[str, int] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    file_extensions: list[str] = Field(default_factory=list)
    commit_count: int = 0
    pr_count: int = 0
    evidence: list[str] = Field(default_factory=list)

    def add_dependency(self, name: str) -> None:
        if name not in self.dependencies:
            self.dependencies.append(name)

    def add_file_extension(self, ext: str) -> None:
        if ext not in self.file_extensions:
            self.file_extensions.append(ext)


class AggregateResult(BaseModel):
    """Global fold of all repository analyses for one user.

    This is the form persisted by the result cache, so a later run can
    rebuild the prompt without contacting GitHub again.
    """

    username: str
    generated_at: datetime
    repos_discovered: int = 0
    analyzed_repositories: list[str] = Field(default_factory=list)
    discovery_incomplete: bool = False
    total_commits: int = 0
    total_prs: int = 0
    language_percentages: dict[str, float] = Field(default_factory=dict)
    top_dependencies: list[str] = Field(default_factory=list)
    top_file_types: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
    evidence_sample: list[str] = Field(default_factory=list)

    @property
    def repos_analyzed(self) -> int:
        return len(self.analyzed_repositories)


# --- Skill Models ---


class Skill(BaseModel):
    """An entry of the standardized skill catalog."""

    id: str
    name: str


class Recommendation(BaseModel):
    """A validated skill recommendation."""

    id: str
    name: str
    score: int = Field(ge=0, le=100)
    info: str


class SkillReport(BaseModel):
    """Final output of a recommendation run."""

    username: str
    recommendations: list[Recommendation] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    analysis: AggregateResult
    evidence_sample: list[str] = Field(default_factory=list)
    from_cache: bool = False
    total_api_calls: int = 0
    elapsed_seconds: float = 0.0
    generated_at: datetime
