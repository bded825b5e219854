from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List

import requests
from bs4 import BeautifulSoup

from .exceptions import DevDetectiveError
from .github_api import GitHubSession, fetch_contribution_calendar, fetch_contributions_page
from .models import ContributionDay

logger = logging.getLogger(__name__)

LEVEL_COLORS = ("#161b22", "#0e4429", "#006d32", "#26a641", "#39d353")
# The public calendar only exposes a level, so counts are estimated from it.
_SCRAPED_COUNT_PER_LEVEL = 3


def fetch_contributions(session: GitHubSession, username: str) -> List[ContributionDay]:
    """Fetch the contribution calendar, via GraphQL when a token is available.

    Contribution data is decoration on top of the dashboard, so failures are
    logged and an empty calendar is returned.
    """
    try:
        if session.token:
            return parse_calendar_payload(fetch_contribution_calendar(session, username))
        return parse_contributions_html(fetch_contributions_page(session, username))
    except (requests.RequestException, DevDetectiveError) as error:
        logger.warning("Could not fetch contributions for %s: %s", username, error)
        return []


def contribution_level(count: int) -> int:
    if count <= 0:
        return 0
    if count <= 3:
        return 1
    if count <= 6:
        return 2
    if count <= 9:
        return 3
    return 4


def color_for_level(level: int) -> str:
    if 0 <= level < len(LEVEL_COLORS):
        return LEVEL_COLORS[level]
    return LEVEL_COLORS[0]


def parse_calendar_payload(calendar: Dict[str, Any]) -> List[ContributionDay]:
    days: List[ContributionDay] = []
    for week in calendar.get("weeks") or []:
        for day in week.get("contributionDays") or []:
            count = int(day.get("contributionCount") or 0)
            level = contribution_level(count)
            days.append(
                ContributionDay(
                    date=str(day.get("date", "")),
                    count=count,
                    color=day.get("color") or color_for_level(level),
                    level=level,
                )
            )
    return days


def parse_contributions_html(text: str) -> List[ContributionDay]:
    soup = BeautifulSoup(text, "html.parser")
    days: List[ContributionDay] = []
    for node in soup.select("td[data-date]"):
        data_date = node.get("data-date")
        if not data_date:
            continue
        try:
            level = int(node.get("data-level", "0"))
        except ValueError:
            level = 0
        days.append(
            ContributionDay(
                date=data_date,
                count=level * _SCRAPED_COUNT_PER_LEVEL,
                color=color_for_level(level),
                level=level,
            )
        )
    return days


def build_weeks(days: Iterable[ContributionDay]) -> List[List[ContributionDay]]:
    """Lay days out as Sunday-first weeks, filling gaps with empty days."""
    by_date: Dict[date, ContributionDay] = {}
    for day in days:
        try:
            by_date[date.fromisoformat(day.date)] = day
        except ValueError:
            continue
    if not by_date:
        return []

    first, last = min(by_date), max(by_date)
    # date.weekday() is Monday=0, so Sunday lands at offset 6
    cursor = first - timedelta(days=(first.weekday() + 1) % 7)

    weeks: List[List[ContributionDay]] = []
    while cursor <= last:
        week: List[ContributionDay] = []
        for _ in range(7):
            week.append(by_date.get(cursor) or ContributionDay(cursor.isoformat(), 0, color_for_level(0), 0))
            cursor += timedelta(days=1)
        weeks.append(week)
    return weeks


def total_contributions(days: Iterable[ContributionDay]) -> int:
    return sum(day.count for day in days)
