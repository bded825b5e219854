from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

import requests

from devdetective.exceptions import GitHubAPIError, ProfileNotFoundError, RateLimitExceededError
from devdetective.github_api import (
    GitHubSession,
    fetch_contribution_calendar,
    fetch_user,
    list_user_repos,
    normalize_username,
)


def _response(status: int = 200, payload=None, text: str = "", headers=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    response.text = text
    response.headers = headers or {}
    return response


def _session(*responses, token: str | None = None) -> GitHubSession:
    http = MagicMock()
    http.get.side_effect = list(responses)
    http.post.side_effect = list(responses)
    return GitHubSession(http=http, token=token)


class SessionTests(unittest.TestCase):
    def test_headers_include_bearer_token(self) -> None:
        session = GitHubSession.create(token="secret")
        try:
            self.assertEqual(session.http.headers["Authorization"], "Bearer secret")
            self.assertIn("User-Agent", session.http.headers)
        finally:
            session.close()

    def test_no_authorization_without_token(self) -> None:
        session = GitHubSession.create()
        try:
            self.assertNotIn("Authorization", session.http.headers)
        finally:
            session.close()


class FetchUserTests(unittest.TestCase):
    def test_returns_profile(self) -> None:
        session = _session(_response(payload={"login": "octocat", "followers": 42, "public_repos": 8, "bio": None}))
        profile = fetch_user(session, "octocat")
        self.assertEqual(profile.login, "octocat")
        self.assertEqual(profile.followers, 42)
        self.assertIsNone(profile.bio)
        url = session.http.get.call_args.args[0]
        self.assertTrue(url.endswith("/users/octocat"))

    def test_missing_user_raises_not_found(self) -> None:
        session = _session(_response(status=404, text="Not Found"))
        with self.assertRaises(ProfileNotFoundError):
            fetch_user(session, "ghost-user")
        self.assertEqual(session.http.get.call_count, 1)

    def test_rate_limit_is_not_retried(self) -> None:
        limited = _response(status=403, text="API rate limit exceeded", headers={"X-RateLimit-Reset": "1700000000"})
        session = _session(limited)
        with self.assertRaises(RateLimitExceededError) as ctx:
            fetch_user(session, "octocat")
        self.assertEqual(ctx.exception.reset_at, "1700000000")
        self.assertEqual(session.http.get.call_count, 1)

    def test_other_client_errors_raise_api_error(self) -> None:
        session = _session(_response(status=422, text="Unprocessable"))
        with self.assertRaises(GitHubAPIError) as ctx:
            fetch_user(session, "octocat")
        self.assertEqual(ctx.exception.status_code, 422)

    def test_server_errors_are_retried(self) -> None:
        session = _session(
            _response(status=502, text="Bad Gateway"),
            _response(payload={"login": "octocat"}),
        )
        with patch("time.sleep"):
            profile = fetch_user(session, "octocat")
        self.assertEqual(profile.login, "octocat")
        self.assertEqual(session.http.get.call_count, 2)

    def test_connection_errors_give_up_after_three_attempts(self) -> None:
        session = _session(requests.ConnectionError("down"), requests.ConnectionError("down"), requests.ConnectionError("down"))
        with patch("time.sleep"):
            with self.assertRaises(requests.ConnectionError):
                fetch_user(session, "octocat")
        self.assertEqual(session.http.get.call_count, 3)


class ListReposTests(unittest.TestCase):
    def test_pages_until_short_page(self) -> None:
        session = _session(
            _response(payload=[{"name": "a", "stargazers_count": 1}, {"name": "b"}]),
            _response(payload=[{"name": "c", "license": {"key": "mit", "name": "MIT License", "spdx_id": "MIT"}}]),
        )
        repos = list_user_repos(session, "octocat", per_page=2, max_pages=5)
        self.assertEqual([repo.name for repo in repos], ["a", "b", "c"])
        self.assertEqual(repos[2].license.spdx_id, "MIT")
        self.assertEqual(session.http.get.call_count, 2)
        params = session.http.get.call_args.kwargs["params"]
        self.assertEqual(params["page"], "2")
        self.assertEqual(params["sort"], "updated")

    def test_respects_max_pages(self) -> None:
        session = _session(_response(payload=[{"name": "a"}, {"name": "b"}]))
        repos = list_user_repos(session, "octocat", per_page=2, max_pages=1)
        self.assertEqual(len(repos), 2)
        self.assertEqual(session.http.get.call_count, 1)

    def test_empty_listing(self) -> None:
        session = _session(_response(payload=[]))
        self.assertEqual(list_user_repos(session, "octocat"), [])


class ContributionCalendarTests(unittest.TestCase):
    def test_requires_token(self) -> None:
        session = _session()
        with self.assertRaises(GitHubAPIError):
            fetch_contribution_calendar(session, "octocat")

    def test_extracts_calendar(self) -> None:
        calendar = {"weeks": [{"contributionDays": [{"date": "2024-01-01", "contributionCount": 2, "color": "#0e4429"}]}]}
        payload = {"data": {"user": {"contributionsCollection": {"contributionCalendar": calendar}}}}
        session = _session(_response(payload=payload), token="secret")
        self.assertEqual(fetch_contribution_calendar(session, "octocat"), calendar)
        body = session.http.post.call_args.kwargs["json"]
        self.assertEqual(body["variables"], {"login": "octocat"})

    def test_graphql_errors_without_data_raise(self) -> None:
        session = _session(_response(payload={"errors": [{"message": "Could not resolve"}], "data": None}), token="secret")
        with self.assertRaises(GitHubAPIError):
            fetch_contribution_calendar(session, "octocat")


class NormalizeUsernameTests(unittest.TestCase):
    def test_accepts_handles_and_urls(self) -> None:
        self.assertEqual(normalize_username("octocat"), "octocat")
        self.assertEqual(normalize_username(" @octo-cat "), "octo-cat")
        self.assertEqual(normalize_username("https://github.com/octocat/"), "octocat")
        self.assertEqual(normalize_username("https://github.com/octocat/Hello-World"), "octocat")

    def test_rejects_invalid_handles(self) -> None:
        for value in ("", "https://github.com", "bad name", "-leading", "double--hyphen", "x" * 40):
            with self.assertRaises(ValueError, msg=value):
                normalize_username(value)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
