from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Tuple

from .insights import compute_insights, round_half_up
from .models import Insights, Profile, ProductivityScore, Repository, ScoreBreakdown

FOLLOWERS_CAP = 1000
REPOS_CAP = 100
STARS_CAP = 2000
RECENT_CAP = 30

# Must sum to 1.0 so a profile at every cap scores exactly 100.
FOLLOWERS_WEIGHT = 0.25
REPOS_WEIGHT = 0.20
STARS_WEIGHT = 0.25
RECENT_WEIGHT = 0.30

# Descending; first threshold reached wins.
LEVEL_THRESHOLDS = (
    (85, "Platinum"),
    (70, "Gold"),
    (50, "Silver"),
)
LOWEST_LEVEL = "Bronze"


def compute_productivity_score(profile: Profile, insights: Insights) -> ProductivityScore:
    followers_score = _capped_ratio(profile.followers, FOLLOWERS_CAP)
    repos_score = _capped_ratio(profile.public_repos, REPOS_CAP)
    stars_score = _capped_ratio(insights.total_stars, STARS_CAP)
    recent_score = _capped_ratio(insights.active_last_year, RECENT_CAP)

    combined = (
        followers_score * FOLLOWERS_WEIGHT
        + repos_score * REPOS_WEIGHT
        + stars_score * STARS_WEIGHT
        + recent_score * RECENT_WEIGHT
    )
    score = round_half_up(combined * 100)

    # Each percentage is rounded on its own, so they need not add up to ``score``.
    breakdown = ScoreBreakdown(
        followers_score=round_half_up(followers_score * 100),
        repos_score=round_half_up(repos_score * 100),
        stars_score=round_half_up(stars_score * 100),
        recent_score=round_half_up(recent_score * 100),
    )
    return ProductivityScore(score=score, level=level_for(score), breakdown=breakdown)


def score_profile(
    profile: Profile,
    repos: Iterable[Repository],
    now: Optional[datetime] = None,
) -> Tuple[Insights, ProductivityScore]:
    insights = compute_insights(repos, now=now)
    return insights, compute_productivity_score(profile, insights)


def level_for(score: int) -> str:
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return LOWEST_LEVEL


def _capped_ratio(raw: Optional[int], cap: int) -> float:
    value = max(raw or 0, 0)
    return min(value, cap) / cap
