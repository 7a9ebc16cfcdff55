"""On-disk cache for the skill catalog and per-user analyses."""

import json
import logging
import re
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from gitskills.models.schemas import AggregateResult, Skill

logger = logging.getLogger(__name__)

_skill_list = TypeAdapter(list[Skill])


def safe_username(username: str | None) -> str:
    """Filesystem-safe, lowercase form of a username."""
    return re.sub(r"[^a-zA-Z0-9_-]", "", username or "unknown").lower() or "unknown"


class ResultCache:
    """JSON file cache.

    Layout:
        <cache_dir>/topcoder-skills.json     skill catalog
        <cache_dir>/github-<username>.json   AggregateResult per user

    Unreadable or invalid files are treated as cache misses.
    """

    SKILLS_FILE = "topcoder-skills.json"

    def __init__(self, cache_dir: Path | None = None) -> None:
        self.cache_dir = cache_dir or Path(".cache")

    def _ensure_dir(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @property
    def skills_path(self) -> Path:
        return self.cache_dir / self.SKILLS_FILE

    def analysis_path(self, username: str) -> Path:
        return self.cache_dir / f"github-{safe_username(username)}.json"

    def load_skills(self) -> list[Skill] | None:
        """Cached skill catalog, or None on a miss."""
        path = self.skills_path
        if not path.exists():
            return None
        try:
            return _skill_list.validate_json(path.read_text())
        except (ValidationError, ValueError, OSError) as e:
            logger.warning(f"Could not parse {path}: {e}")
            return None

    def save_skills(self, skills: list[Skill]) -> Path:
        self._ensure_dir()
        path = self.skills_path
        data = [s.model_dump() for s in skills]
        path.write_text(json.dumps(data, indent=2))
        return path

    def load_analysis(self, username: str) -> AggregateResult | None:
        """Cached analysis for a user, or None on a miss."""
        path = self.analysis_path(username)
        if not path.exists():
            return None
        try:
            return AggregateResult.model_validate_json(path.read_text())
        except (ValidationError, ValueError, OSError) as e:
            logger.warning(f"Could not parse {path}: {e}")
            return None

    def save_analysis(self, analysis: AggregateResult) -> Path:
        self._ensure_dir()
        path = self.analysis_path(analysis.username)
        path.write_text(analysis.model_dump_json(indent=2))
        return path

    def clear(self, username: str | None = None) -> list[Path]:
        """Delete cached files (one user's analysis, or everything)."""
        if username is not None:
            paths = [self.analysis_path(username)]
        else:
            paths = [self.skills_path, *self.cache_dir.glob("github-*.json")]
        removed = []
        for path in paths:
            if path.exists():
                path.unlink()
                removed.append(path)
        return removed
