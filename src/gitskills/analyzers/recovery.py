"""Recovery of skill recommendations from free-form model output.

Models asked for "a JSON array only" still wrap it in code fences, add
prose around it, leave trailing commas, or stop mid-entry when they run out
of tokens. The repair steps below each fix one of those problems and can be
applied to any text without raising. Validation afterwards guarantees that
every recommendation refers to a real catalog skill.
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field

from gitskills.models.schemas import Recommendation, Skill

logger = logging.getLogger(__name__)

DEFAULT_MIN_SCORE = 40

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
# Quoted strings are matched first so commas inside them are left alone
_TRAILING_COMMA = re.compile(r'"(?:\\.|[^"\\])*"|,\s*]')


class ResponseParseError(ValueError):
    """Raised when repaired model output is still not a JSON array."""

    def __init__(self, message: str, text: str) -> None:
        self.text = text
        super().__init__(message)


# --- Repair steps ---


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker."""
    text = _LEADING_FENCE.sub("", text.strip())
    return _TRAILING_FENCE.sub("", text)


def extract_array_span(text: str) -> str:
    """Keep only the text between the first '[' and the last ']'."""
    first = text.find("[")
    if first == -1:
        return text
    last = text.rfind("]")
    if last > first:
        return text[first : last + 1]
    # Truncated output: drop the preamble, closing happens later
    return text[first:]


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing bracket.

    Text inside complete JSON strings is never changed.
    """
    return _TRAILING_COMMA.sub(
        lambda m: m.group(0) if m.group(0).startswith('"') else "]", text
    )


def close_truncated_array(text: str) -> str:
    """Force-close an array cut off mid-output.

    Everything after the last complete object is discarded. With no complete
    object at all, a closing bracket is simply appended.
    """
    if text.endswith("]"):
        return text
    last_brace = text.rfind("}")
    if last_brace != -1:
        return text[: last_brace + 1] + "]"
    return text + "]"


def trim_after_final_bracket(text: str) -> str:
    """Discard anything after the final ']'."""
    last = text.rfind("]")
    if last == -1:
        return text
    return text[: last + 1]


def repair_json_array(raw: str) -> str:
    """Apply every repair step in order. Never raises."""
    text = strip_code_fence(raw)
    text = extract_array_span(text)
    text = remove_trailing_commas(text)
    text = close_truncated_array(text)
    return trim_after_final_bracket(text)


def parse_json_array(raw: str) -> list:
    """Repair and parse model output into a list.

    Raises:
        ResponseParseError: If the repaired text is not a JSON array.
    """
    # Well-formed output is used as is
    try:
        parsed = json.loads(raw.strip())
    except (ValueError, RecursionError):
        parsed = None
    if isinstance(parsed, list):
        return parsed

    cleaned = repair_json_array(raw)
    try:
        parsed = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        # ValueError also covers integer literals over the digit limit
        raise ResponseParseError(f"Invalid JSON after repair: {e}", cleaned) from e
    if not isinstance(parsed, list):
        raise ResponseParseError("Parsed result is not an array", cleaned)
    return parsed


# --- Validation ---


def clamp_score(score: float) -> int:
    """Clamp into [0, 100], then round half up."""
    return math.floor(min(max(score, 0), 100) + 0.5)


def _is_number(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True  # arbitrarily large ints are clamped later
    return isinstance(value, float) and math.isfinite(value)


@dataclass
class RecoveryResult:
    """Outcome of recovering recommendations from one model response."""

    recommendations: list[Recommendation] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)  # names not in the catalog
    discarded: int = 0  # entries missing name, score or reason
    total: int = 0  # entries in the parsed array
    parse_error: str | None = None


class ResponseRecoveryParser:
    """Turns raw model text into catalog-validated recommendations.

    Usage:
        parser = ResponseRecoveryParser(skills, min_score=40)
        result = parser.recover(llm_text)
        for rec in result.recommendations: ...
    """

    def __init__(self, catalog: list[Skill], min_score: int = DEFAULT_MIN_SCORE) -> None:
        """Initialize the parser.

        Args:
            catalog: Authoritative skills; the only names that may be recommended.
            min_score: Recommendations scoring below this are dropped.
        """
        self.min_score = min_score
        self._by_name: dict[str, Skill] = {}
        for skill in catalog:
            self._by_name.setdefault(skill.name.strip().lower(), skill)

    def resolve(self, name: str) -> Skill | None:
        """Find a catalog skill by case-insensitive exact name."""
        return self._by_name.get(name.strip().lower())

    def recover(self, raw: str) -> RecoveryResult:
        """Recover recommendations, sorted by descending score.

        Never raises for malformed text; an unparseable response yields an
        empty result.
        """
        result = RecoveryResult()
        try:
            entries = parse_json_array(raw)
        except ResponseParseError as e:
            logger.error(f"JSON parsing failed even after repair: {e}")
            logger.debug(f"Final cleaned string: {e.text}")
            result.parse_error = str(e)
            return result

        result.total = len(entries)
        for entry in entries:
            recommendation = self._validate(entry, result)
            if recommendation is not None and recommendation.score >= self.min_score:
                result.recommendations.append(recommendation)

        result.recommendations.sort(key=lambda r: r.score, reverse=True)
        logger.info(
            f"Parsed {len(result.recommendations)} valid / {result.total} total "
            f"recommendations ({len(result.rejected)} rejected, {result.discarded} malformed)"
        )
        return result

    def _validate(self, entry, result: RecoveryResult) -> Recommendation | None:
        if not isinstance(entry, dict):
            result.discarded += 1
            return None

        name = entry.get("name")
        if not isinstance(name, str):
            name = entry.get("skill")
        score = entry.get("score")
        reason = entry.get("reason")
        if not isinstance(name, str) or not _is_number(score) or not isinstance(reason, str):
            result.discarded += 1
            return None

        skill = self.resolve(name)
        if skill is None:
            clean_name = name.strip()
            logger.warning(f'Rejected hallucinated skill: "{clean_name}" (not in skill catalog)')
            result.rejected.append(clean_name)
            return None

        return Recommendation(
            id=skill.id,
            name=skill.name,
            score=clamp_score(score),
            info=reason.strip() or "No reason provided",
        )
