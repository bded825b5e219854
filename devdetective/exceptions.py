from __future__ import annotations

from typing import Optional


class DevDetectiveError(Exception):
    """Base exception for all fetch and storage failures."""


class GitHubAPIError(DevDetectiveError):
    """Raised when GitHub answers with a non-retryable error status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"GitHub API request failed: {status_code} {message}")


class ProfileNotFoundError(DevDetectiveError):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"User not found: {username}")


class RateLimitExceededError(DevDetectiveError):
    """Raised when the GitHub API rate limit is hit."""

    def __init__(self, reset_at: Optional[str] = None, message: str = "GitHub API rate limit exceeded.") -> None:
        self.reset_at = reset_at
        if reset_at:
            message = f"{message} Resets at: {reset_at}"
        super().__init__(message)
