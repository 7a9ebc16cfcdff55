"""Evidence link parsing and sampling."""

import random
import re

from gitskills.models.schemas import EvidenceLink, LinkKind

_REPO_PATTERN = re.compile(r"github\.com/([^/]+/[^/]+)/(?:commit|pull)/")


def parse_evidence_link(url: str) -> EvidenceLink:
    """Classify an evidence URL and extract its owning repository.

    Examples:
        https://github.com/octo/app/pull/12        -> octo/app, PULL_REQUEST
        https://github.com/octo/app/commit/abc123  -> octo/app, COMMIT
        https://example.com/anything               -> None, OTHER
    """
    if "/pull/" in url:
        kind = LinkKind.PULL_REQUEST
    elif "/commit/" in url:
        kind = LinkKind.COMMIT
    else:
        kind = LinkKind.OTHER

    match = _REPO_PATTERN.search(url)
    return EvidenceLink(url=url, repository=match.group(1) if match else None, kind=kind)


def category_balanced_sample(
    links: list[str],
    rng: random.Random | None = None,
    pr_quota: int = 8,
    commit_quota: int = 10,
    fill_to: int = 15,
    max_size: int = 20,
) -> list[str]:
    """Diverse sample stored alongside the aggregate result.

    Takes up to ``pr_quota`` PR links, then up to ``commit_quota`` commit
    links, tops up from the remaining links while fewer than ``fill_to``
    are selected, then shuffles and truncates to ``max_size``.
    """
    rng = rng or random.Random()
    parsed = [parse_evidence_link(url) for url in links]

    prs = [p.url for p in parsed if p.kind == LinkKind.PULL_REQUEST]
    commits = [p.url for p in parsed if p.kind == LinkKind.COMMIT]

    diverse = prs[:pr_quota] + commits[:commit_quota]
    if len(diverse) < fill_to:
        chosen = set(diverse)
        rest = [url for url in links if url not in chosen]
        diverse.extend(rest[: fill_to - len(diverse)])

    rng.shuffle(diverse)
    return diverse[:max_size]


def fresh_sample(
    links: list[str],
    max_links: int = 12,
    rng: random.Random | None = None,
) -> list[str]:
    """Repository-balanced sample, re-randomized on every call.

    Selection order:
    1. One PR link per repository
    2. One not-yet-selected commit link per repository
    3. Uniform random picks from everything still unselected
    The selection is then shuffled. A pool no larger than ``max_links`` is
    returned whole, in its original order.
    """
    if len(links) <= max_links:
        return list(links)

    rng = rng or random.Random()

    by_repo: dict[str | None, list[EvidenceLink]] = {}
    for url in links:
        link = parse_evidence_link(url)
        by_repo.setdefault(link.repository, []).append(link)

    selected: list[str] = []
    chosen: set[str] = set()

    def take(url: str) -> None:
        selected.append(url)
        chosen.add(url)

    # Priority 1: PRs (richer context)
    for group in by_repo.values():
        if len(selected) >= max_links:
            break
        pr = next((link.url for link in group if link.kind == LinkKind.PULL_REQUEST), None)
        if pr is not None and pr not in chosen:
            take(pr)

    # Priority 2: Commits
    for group in by_repo.values():
        if len(selected) >= max_links:
            break
        commit = next(
            (link.url for link in group if link.kind == LinkKind.COMMIT and link.url not in chosen),
            None,
        )
        if commit is not None:
            take(commit)

    # Fill remaining randomly from leftover
    remaining = [url for url in dict.fromkeys(links) if url not in chosen]
    while len(selected) < max_links and remaining:
        take(remaining.pop(rng.randrange(len(remaining))))

    rng.shuffle(selected)
    return selected
