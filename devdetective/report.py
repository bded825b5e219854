from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .comparison import SIDE_A, SIDE_B
from .config import AppConfig
from .contributions import build_weeks, total_contributions
from .export import dashboard_payload, export_csv, export_json
from .insights import (
    average_forks,
    average_stars,
    filter_repos,
    growth_by_year,
    round_half_up,
    sort_repos,
    starred_percentage,
    top_languages,
    top_licenses,
    top_starred,
)
from .models import Comparison, ContributionDay, Insights, ProductivityScore, Profile, ProfileData, Repository
from .scoring import score_profile

REPORT_FORMATS = ("markdown", "json", "csv")
_HEATMAP_CELLS = "·░▒▓█"
_WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_BAR_WIDTH = 20


def write_report(
    data: ProfileData,
    config: AppConfig,
    fmt: Optional[str] = None,
    query: str = "",
    sort_by: str = "updated",
) -> Path:
    output_format = (fmt or config.output.format).lower()
    if output_format not in REPORT_FORMATS:
        raise ValueError(f"Unsupported report format: {output_format}")
    output_dir = config.output.directory
    output_dir.mkdir(parents=True, exist_ok=True)
    login = data.profile.login

    if output_format == "json":
        return export_json(dashboard_payload(data), output_dir / f"{login}-dashboard.json")
    if output_format == "csv":
        return export_csv(sort_repos(filter_repos(data.repos, query), sort_by), output_dir / f"{login}-repos.csv")
    report_path = output_dir / f"{login}-dashboard.md"
    report_path.write_text(render_dashboard(data, query=query, sort_by=sort_by), encoding="utf-8")
    return report_path


def render_dashboard(
    data: ProfileData,
    now: Optional[datetime] = None,
    query: str = "",
    sort_by: str = "updated",
) -> str:
    insights, productivity = score_profile(data.profile, data.repos, now=now)
    generated_at = now or datetime.now(timezone.utc)
    lines: List[str] = []
    lines.append(f"# Developer Dashboard: {data.profile.login}")
    lines.append("")
    lines.append(f"Generated on: {generated_at.date().isoformat()}")
    lines.append("")
    lines.extend(_render_profile_card(data.profile))
    lines.append("")
    lines.extend(_render_stats(insights))
    lines.append("")
    lines.extend(_render_score(productivity))
    lines.append("")
    lines.extend(_render_distributions(insights))
    lines.extend(_render_highlights(insights, data.repos))
    lines.extend(_render_repo_table(data.repos, query, sort_by))
    lines.extend(_render_heatmap(data.contributions))
    return "\n".join(lines).rstrip() + "\n"


def render_comparison(comparison: Comparison) -> str:
    a, b = comparison.side_a, comparison.side_b
    lines: List[str] = []
    lines.append(f"# {a.profile.login} vs {b.profile.login}")
    lines.append("")
    lines.append(f"- {a.profile.login}: {a.score.level} ({a.score.score})")
    lines.append(f"- {b.profile.login}: {b.score.level} ({b.score.score})")
    lines.append("")
    lines.append(f"| Metric | {a.profile.login} | | {b.profile.login} |")
    lines.append("| --- | ---: | :---: | --- |")
    for row in comparison.rows:
        mark_a = " ✓" if row.winner == SIDE_A else ""
        mark_b = " ✓" if row.winner == SIDE_B else ""
        lines.append(
            f"| {row.label} | {_format_number(row.value_a)}{mark_a} | {_split_bar(row.percent_a)} "
            f"| {_format_number(row.value_b)}{mark_b} |"
        )
    for side in (a, b):
        lines.append("")
        lines.append(f"## Top Languages: {side.profile.login}")
        lines.append("")
        languages = top_languages(side.insights, limit=5)
        if not languages:
            lines.append("No language data.")
        for name, count in languages:
            lines.append(f"- {name}: {count} repos")
    return "\n".join(lines) + "\n"


def _render_profile_card(profile: Profile) -> List[str]:
    rows: List[tuple[str, str]] = []
    if profile.name:
        rows.append(("Name", profile.name))
    if profile.html_url:
        rows.append(("Profile", profile.html_url))
    if profile.bio:
        rows.append(("Bio", profile.bio.strip()))
    for label, value in (
        ("Company", profile.company),
        ("Location", profile.location),
        ("Blog", profile.blog),
    ):
        if value:
            rows.append((label, value))
    if profile.twitter_username:
        rows.append(("Twitter", f"@{profile.twitter_username}"))
    rows.append(
        (
            "Network",
            "followers {followers}, following {following}, gists {gists}".format(
                followers=profile.followers or 0,
                following=profile.following or 0,
                gists=profile.public_gists or 0,
            ),
        )
    )
    if profile.created_at:
        rows.append(("Joined", profile.created_at[:10]))

    table_lines = ["## Profile", "", "| Field | Details |", "| --- | --- |"]
    for label, value in rows:
        table_lines.append(f"| {label} | {value} |")
    return table_lines


def _render_stats(insights: Insights) -> List[str]:
    return [
        "## Stats",
        "",
        f"- Total repos: {insights.total_repos}",
        f"- Total stars: {insights.total_stars}",
        f"- Total forks: {insights.total_forks}",
        f"- Active (1yr): {insights.active_last_year}",
    ]


def _render_score(productivity: ProductivityScore) -> List[str]:
    breakdown = productivity.breakdown
    return [
        "## Developer Score",
        "",
        f"**{productivity.score}** / 100 ({productivity.level})",
        "",
        f"- Followers: {_bar(breakdown.followers_score)} {breakdown.followers_score}%",
        f"- Repositories: {_bar(breakdown.repos_score)} {breakdown.repos_score}%",
        f"- Stars: {_bar(breakdown.stars_score)} {breakdown.stars_score}%",
        f"- Recent activity: {_bar(breakdown.recent_score)} {breakdown.recent_score}%",
    ]


def _render_distributions(insights: Insights) -> List[str]:
    lines: List[str] = []
    languages = top_languages(insights)
    if languages:
        total = sum(insights.languages.values())
        lines.append("## Languages")
        lines.append("")
        for name, count in languages:
            pct = round_half_up((count / total) * 100)
            lines.append(f"- {name}: {count} repos ({pct}%)")
        lines.append("")
    licenses = top_licenses(insights)
    if licenses:
        lines.append("## Licenses")
        lines.append("")
        for name, count in licenses:
            lines.append(f"- {name}: {count}")
        lines.append("")
    growth = growth_by_year(insights)
    if growth:
        lines.append("## Repository Growth")
        lines.append("")
        peak = max(count for _, count in growth)
        for year, count in growth:
            lines.append(f"- {year}: {_bar(count * 100 // peak, width=10)} {count}")
        lines.append("")
    return lines


def _render_highlights(insights: Insights, repos: List[Repository]) -> List[str]:
    if not repos:
        return ["## Highlights", "", "No public repositories.", ""]
    lines = ["## Highlights", ""]
    if insights.most_starred is not None:
        lines.append(f"- Most starred: {insights.most_starred.name} ({insights.most_starred.stargazers_count or 0} stars)")
    if insights.most_active is not None:
        pushed = (insights.most_active.pushed_at or "")[:10]
        lines.append(f"- Most active: {insights.most_active.name} (pushed {pushed})")
    lines.append(f"- Average stars per repo: {average_stars(insights)}")
    lines.append(f"- Average forks per repo: {average_forks(insights)}")
    lines.append(f"- Repos with stars: {starred_percentage(repos)}%")
    lines.append("")
    lines.append("### Top Starred")
    lines.append("")
    lines.append("| Repository | Stars | Language |")
    lines.append("| --- | ---: | --- |")
    for repo in top_starred(repos):
        lines.append(f"| {_truncate(repo.name)} | {repo.stargazers_count or 0} | {repo.language or 'N/A'} |")
    lines.append("")
    return lines


def _render_repo_table(repos: List[Repository], query: str, sort_by: str) -> List[str]:
    shown = sort_repos(filter_repos(repos, query), sort_by)
    heading = f"## Repositories ({len(shown)} of {len(repos)})" if query.strip() else f"## Repositories ({len(repos)})"
    lines = [heading, ""]
    if not shown:
        lines.append(f"No repositories match {query.strip()!r}." if query.strip() else "No public repositories.")
        lines.append("")
        return lines
    lines.append("| Repository | Language | Stars | Forks | Last push |")
    lines.append("| --- | --- | ---: | ---: | --- |")
    for repo in shown:
        lines.append(
            f"| {_truncate(repo.name)} | {repo.language or 'N/A'} | {repo.stargazers_count or 0} "
            f"| {repo.forks_count or 0} | {(repo.pushed_at or '')[:10]} |"
        )
    lines.append("")
    return lines


def _render_heatmap(days: List[ContributionDay]) -> List[str]:
    lines = ["## Contribution Activity", ""]
    weeks = build_weeks(days)
    if not weeks:
        lines.append("No contribution data. Provide a GitHub token to load the contribution calendar.")
        return lines
    lines.append(f"{total_contributions(days)} contributions through {days[-1].date}")
    lines.append("")
    lines.append("```")
    for weekday in range(7):
        cells = "".join(_heatmap_cell(week[weekday].level) for week in weeks)
        lines.append(f"{_WEEKDAYS[weekday]} {cells}")
    lines.append("```")
    return lines


def _heatmap_cell(level: int) -> str:
    return _HEATMAP_CELLS[min(max(level, 0), len(_HEATMAP_CELLS) - 1)]


def _bar(percent: int, width: int = _BAR_WIDTH) -> str:
    filled = min(max(percent, 0), 100) * width // 100
    return "█" * filled + "░" * (width - filled)


def _split_bar(percent_a: float, width: int = _BAR_WIDTH) -> str:
    left = round_half_up(percent_a * width / 100)
    return "◀" * left + "▶" * (width - left)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.1f}"


def _truncate(name: str, limit: int = 30) -> str:
    if len(name) > limit:
        return name[:limit] + "..."
    return name
