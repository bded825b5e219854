from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional, Tuple

from .config import AppConfig
from .contributions import fetch_contributions
from .github_api import GitHubSession, fetch_user, list_user_repos, normalize_username
from .models import ProfileData

logger = logging.getLogger(__name__)


def collect_profile(username: str, config: AppConfig, token: Optional[str] = None) -> ProfileData:
    handle = normalize_username(username)
    session = GitHubSession.create(token=token or config.api.resolve_token(), timeout=config.api.timeout)
    try:
        profile = fetch_user(session, handle)
        repos = list_user_repos(
            session,
            handle,
            per_page=config.api.per_page,
            sort=config.api.sort,
            max_pages=config.api.max_pages,
        )
        contributions = fetch_contributions(session, handle)
    finally:
        session.close()

    logger.info("Collected %s: %d repos, %d contribution days", handle, len(repos), len(contributions))
    return ProfileData(
        profile=profile,
        repos=repos,
        contributions=contributions,
        fetched_at=datetime.now(timezone.utc),
    )


def collect_pair(
    username_a: str,
    username_b: str,
    config: AppConfig,
    token: Optional[str] = None,
) -> Tuple[ProfileData, ProfileData]:
    """Fetch two profiles concurrently; returns once both are complete."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        future_a = pool.submit(collect_profile, username_a, config, token)
        future_b = pool.submit(collect_profile, username_b, config, token)
        return future_a.result(), future_b.result()
