from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .exceptions import GitHubAPIError, ProfileNotFoundError, RateLimitExceededError
from .models import Profile, Repository

logger = logging.getLogger(__name__)

API_ROOT = "https://api.github.com"
GRAPHQL_URL = f"{API_ROOT}/graphql"
_USER_AGENT = "devdetective/0.1"

# GitHub allows alphanumerics and single hyphens, at most 39 characters.
_USERNAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")

CONTRIBUTIONS_QUERY = """
query($login: String!) {
  user(login: $login) {
    contributionsCollection {
      contributionCalendar {
        weeks {
          contributionDays {
            date
            contributionCount
            color
          }
        }
      }
    }
  }
}
"""


@dataclass(slots=True)
class GitHubSession:
    http: requests.Session
    token: Optional[str] = None
    timeout: float = 30.0

    @classmethod
    def create(cls, token: Optional[str] = None, timeout: float = 30.0) -> "GitHubSession":
        session = requests.Session()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": _USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        session.headers.update(headers)
        return cls(http=session, token=token, timeout=timeout)

    def close(self) -> None:
        self.http.close()


def _error_message(response: Response) -> str:
    if response.headers.get("Content-Type", "").startswith("application/json"):
        try:
            return str(response.json().get("message", ""))
        except ValueError:
            pass
    return response.text[:300]


def _raise_for_status(response: Response) -> None:
    status = response.status_code
    if status < 400:
        return
    if status in (403, 429) and "rate limit" in response.text.lower():
        raise RateLimitExceededError(reset_at=response.headers.get("X-RateLimit-Reset"))
    if status >= 500:
        # requests.HTTPError is retried, GitHubAPIError is not
        raise requests.HTTPError(f"GitHub API request failed: {status} {_error_message(response)}", response=response)
    raise GitHubAPIError(status, _error_message(response))


@retry(
    retry=retry_if_exception_type(requests.RequestException),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
def _get(session: GitHubSession, path: str, params: Optional[Dict[str, str]] = None) -> Response:
    url = f"{API_ROOT}{path}"
    logger.debug("GET %s params=%s", url, params)
    response = session.http.get(url, params=params, timeout=session.timeout)
    _raise_for_status(response)
    return response


@retry(
    retry=retry_if_exception_type(requests.RequestException),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
def _graphql(session: GitHubSession, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
    if not session.token:
        raise GitHubAPIError(401, "GraphQL requires a token")
    response = session.http.post(GRAPHQL_URL, json={"query": query, "variables": variables}, timeout=session.timeout)
    _raise_for_status(response)
    body = response.json()
    errors = body.get("errors")
    if errors and not body.get("data"):
        raise GitHubAPIError(response.status_code, str(errors[0].get("message", "Unknown GraphQL error")))
    if errors:
        logger.warning("GraphQL partial error: %s", errors[0].get("message"))
    return body.get("data") or {}


def fetch_user(session: GitHubSession, username: str) -> Profile:
    try:
        response = _get(session, f"/users/{username}")
    except GitHubAPIError as error:
        if error.status_code == 404:
            raise ProfileNotFoundError(username) from error
        raise
    return Profile.from_payload(response.json())


def list_user_repos(
    session: GitHubSession,
    username: str,
    per_page: int = 100,
    sort: str = "updated",
    max_pages: int = 1,
) -> List[Repository]:
    repos: List[Repository] = []
    params = {"per_page": str(per_page), "sort": sort}
    for page in range(1, max_pages + 1):
        params["page"] = str(page)
        response = _get(session, f"/users/{username}/repos", params=params)
        page_items = response.json()
        if not isinstance(page_items, list) or not page_items:
            break
        repos.extend(Repository.from_payload(item) for item in page_items)
        if len(page_items) < per_page:
            break
    logger.info("Fetched %d repositories for %s", len(repos), username)
    return repos


def fetch_contribution_calendar(session: GitHubSession, username: str) -> Dict[str, Any]:
    data = _graphql(session, CONTRIBUTIONS_QUERY, {"login": username})
    user = data.get("user") or {}
    collection = user.get("contributionsCollection") or {}
    return collection.get("contributionCalendar") or {}


def fetch_contributions_page(session: GitHubSession, username: str) -> str:
    """Fetch the public contribution calendar HTML, no token required."""
    response = session.http.get(f"https://github.com/users/{username}/contributions", timeout=session.timeout)
    response.raise_for_status()
    return response.text


def normalize_username(value: str) -> str:
    """Accept a bare handle or a profile URL and return the validated handle."""
    sanitized = value.strip().rstrip("/")
    if "github.com" in sanitized:
        if sanitized.endswith("github.com"):
            raise ValueError("Profile URL must include a username, e.g. https://github.com/octocat")
        sanitized = sanitized.split("github.com/")[-1].split("/")[0]
    sanitized = sanitized.lstrip("@")
    if not _USERNAME_RE.match(sanitized):
        raise ValueError(f"Invalid GitHub username: {value!r}")
    return sanitized
