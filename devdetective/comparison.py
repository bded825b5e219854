from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from .models import ComparedProfile, Comparison, MetricRow, ProfileData
from .scoring import score_profile

SIDE_A = "a"
SIDE_B = "b"


def compare(a: ProfileData, b: ProfileData, now: Optional[datetime] = None) -> Comparison:
    """Score two fetched profiles independently and pair up their metrics."""
    side_a = _evaluate(a, now)
    side_b = _evaluate(b, now)
    return Comparison(side_a=side_a, side_b=side_b, rows=_metric_rows(side_a, side_b))


def metric_row(label: str, value_a: float, value_b: float) -> MetricRow:
    return MetricRow(
        label=label,
        value_a=value_a,
        value_b=value_b,
        winner=pick_winner(value_a, value_b),
        percent_a=relative_share(value_a, value_b),
    )


def pick_winner(value_a: float, value_b: float) -> Optional[str]:
    if value_a > value_b:
        return SIDE_A
    if value_b > value_a:
        return SIDE_B
    return None


def relative_share(value_a: float, value_b: float) -> float:
    total = value_a + value_b
    if total > 0:
        return value_a / total * 100
    return 50.0


def _evaluate(data: ProfileData, now: Optional[datetime]) -> ComparedProfile:
    insights, score = score_profile(data.profile, data.repos, now=now)
    return ComparedProfile(profile=data.profile, insights=insights, score=score)


def _metric_rows(a: ComparedProfile, b: ComparedProfile) -> List[MetricRow]:
    return [
        metric_row("Productivity Score", a.score.score, b.score.score),
        metric_row("Followers", a.profile.followers or 0, b.profile.followers or 0),
        metric_row("Public Repos", a.profile.public_repos or 0, b.profile.public_repos or 0),
        metric_row("Total Stars", a.insights.total_stars, b.insights.total_stars),
        metric_row("Total Forks", a.insights.total_forks, b.insights.total_forks),
        metric_row("Active (1yr)", a.insights.active_last_year, b.insights.active_last_year),
    ]
