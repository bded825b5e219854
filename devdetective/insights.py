from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Insights, Repository

ACTIVE_WINDOW = timedelta(days=365)
NO_LICENSE = "No License"
REPO_SORT_KEYS = ("updated", "stars", "name")


def compute_insights(repos: Iterable[Repository], now: Optional[datetime] = None) -> Insights:
    """Reduce a repository collection to aggregate statistics in one pass.

    ``now`` is the evaluation instant for the trailing-year activity window and
    defaults to the current UTC time. Repositories with a missing or malformed
    ``pushed_at`` never become ``most_active`` and never count as active; a
    malformed ``created_at`` contributes to no year bucket.
    """
    evaluated_at = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    window_start = evaluated_at - ACTIVE_WINDOW

    insights = Insights()
    top_stars = 0
    latest_push: Optional[datetime] = None

    for repo in repos:
        stars = repo.stargazers_count or 0
        insights.total_repos += 1
        insights.total_stars += stars
        insights.total_forks += repo.forks_count or 0

        if repo.language:
            insights.languages[repo.language] = insights.languages.get(repo.language, 0) + 1

        label = license_label(repo)
        insights.licenses[label] = insights.licenses.get(label, 0) + 1

        if insights.most_starred is None or stars > top_stars:
            top_stars = stars
            insights.most_starred = repo

        pushed_at = parse_timestamp(repo.pushed_at)
        if pushed_at is not None:
            if latest_push is None or pushed_at > latest_push:
                latest_push = pushed_at
                insights.most_active = repo
            if pushed_at >= window_start:
                insights.active_last_year += 1

        created_at = parse_timestamp(repo.created_at)
        if created_at is not None:
            year = created_at.year
            insights.repos_by_year[year] = insights.repos_by_year.get(year, 0) + 1

    return insights


def license_label(repo: Repository) -> str:
    if repo.license is None:
        return NO_LICENSE
    return repo.license.label


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime, or ``None``."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _as_utc(parsed)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def top_languages(insights: Insights, limit: int = 8) -> List[Tuple[str, int]]:
    return _most_common(insights.languages, limit)


def top_licenses(insights: Insights, limit: int = 6) -> List[Tuple[str, int]]:
    return _most_common(insights.licenses, limit)


def top_starred(repos: Sequence[Repository], limit: int = 5) -> List[Repository]:
    return sorted(repos, key=lambda repo: repo.stargazers_count or 0, reverse=True)[:limit]


def filter_repos(repos: Sequence[Repository], query: str) -> List[Repository]:
    """Keep repositories whose name or description contains ``query``, ignoring case."""
    needle = query.strip().casefold()
    if not needle:
        return list(repos)
    return [
        repo
        for repo in repos
        if needle in repo.name.casefold() or needle in (repo.description or "").casefold()
    ]


def sort_repos(repos: Sequence[Repository], by: str = "updated") -> List[Repository]:
    """Order repositories by stars (most first), name, or last push (newest first)."""
    if by not in REPO_SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {by}")
    if by == "stars":
        return sorted(repos, key=lambda repo: repo.stargazers_count or 0, reverse=True)
    if by == "name":
        return sorted(repos, key=lambda repo: repo.name.casefold())
    # unparseable push dates sort last
    return sorted(repos, key=_push_sort_key)


def growth_by_year(insights: Insights) -> List[Tuple[int, int]]:
    return sorted(insights.repos_by_year.items())


def average_stars(insights: Insights) -> int:
    if not insights.total_repos:
        return 0
    return round_half_up(insights.total_stars / insights.total_repos)


def average_forks(insights: Insights) -> int:
    if not insights.total_repos:
        return 0
    return round_half_up(insights.total_forks / insights.total_repos)


def starred_percentage(repos: Sequence[Repository]) -> int:
    if not repos:
        return 0
    starred = sum(1 for repo in repos if (repo.stargazers_count or 0) > 0)
    return round_half_up(starred / len(repos) * 100)


def _most_common(counts: Dict[str, int], limit: int) -> List[Tuple[str, int]]:
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]


def _push_sort_key(repo: Repository) -> Tuple[int, float]:
    pushed_at = parse_timestamp(repo.pushed_at)
    if pushed_at is None:
        return (1, 0.0)
    return (0, -pushed_at.timestamp())


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
