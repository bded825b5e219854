from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .insights import parse_timestamp
from .models import ProfileData, Repository
from .scoring import score_profile

CSV_HEADERS = ("Name", "Language", "Stars", "Forks", "Created", "Last Updated")


def dashboard_payload(data: ProfileData, now: Optional[datetime] = None) -> Dict[str, Any]:
    insights, productivity = score_profile(data.profile, data.repos, now=now)
    return {
        "profile": data.profile.to_dict(),
        "repos": [repo.to_dict() for repo in data.repos],
        "insights": insights.to_dict(),
        "productivity": productivity.to_dict(),
        "contributions": [
            {"date": day.date, "count": day.count, "level": day.level} for day in data.contributions
        ],
        "fetched_at": data.fetched_at.isoformat() if data.fetched_at else None,
    }


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_json(data: Any, path: Path) -> Path:
    path.write_text(to_json(data), encoding="utf-8")
    return path


def repos_to_csv(repos: Iterable[Repository]) -> str:
    buffer = io.StringIO()
    # Header stays bare; every data cell is quoted.
    buffer.write(",".join(CSV_HEADERS) + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for repo in repos:
        writer.writerow(
            [
                repo.name,
                repo.language or "N/A",
                str(repo.stargazers_count or 0),
                str(repo.forks_count or 0),
                _format_date(repo.created_at),
                _format_date(repo.pushed_at),
            ]
        )
    return buffer.getvalue().rstrip("\n")


def export_csv(repos: Iterable[Repository], path: Path) -> Path:
    path.write_text(repos_to_csv(repos), encoding="utf-8")
    return path


def _format_date(value: Optional[str]) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.date().isoformat()
