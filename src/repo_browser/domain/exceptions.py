"""Domain exception hierarchy for GitHub API failures.

Every failure the client can surface is one of six kinds.  Consumers holding
an opaque error value use :func:`get_error_kind`, :func:`get_error_message`
and :func:`is_retryable_error` instead of inspecting concrete types or raw
HTTP status codes.
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Literal

import httpx

if TYPE_CHECKING:
    from repo_browser.domain.value_objects import RateLimit

NotFoundResource = Literal["repository", "file", "branch", "resource"]


class ErrorKind(str, Enum):
    """Classification bucket for GitHub API failures."""

    RATE_LIMIT = "RATE_LIMIT"
    NOT_FOUND = "NOT_FOUND"
    AUTH = "AUTH"
    NETWORK = "NETWORK"
    SERVER = "SERVER"
    UNKNOWN = "UNKNOWN"


_GENERIC_MESSAGE = "An unexpected error occurred. Please try again."


class RepoBrowserError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidRepositoryNameError(RepoBrowserError):
    """An owner or repository name contains characters GitHub does not allow."""


# ── GitHub API errors ───────────────────────────────────────────────────────


class GitHubApiError(RepoBrowserError):
    """Base exception for every GitHub API failure."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.is_retryable = is_retryable

    def user_message(self) -> str:
        """Message suitable for display to an end user."""
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, kind={self.kind.value}, "
            f"status_code={self.status_code!r})"
        )


# ── Rate limiting ───────────────────────────────────────────────────────────


class GitHubRateLimitError(GitHubApiError):
    """403 with ``x-ratelimit-remaining: 0``."""

    def __init__(self, message: str, rate_limit: RateLimit) -> None:
        super().__init__(message, ErrorKind.RATE_LIMIT, 403, False)
        self.rate_limit = rate_limit

    def reset_time(self) -> datetime:
        return datetime.fromtimestamp(self.rate_limit.reset, tz=timezone.utc)

    def minutes_until_reset(self, now: float | None = None) -> int:
        """Whole minutes (rounded up) until the window resets; may be <= 0."""
        current = time.time() if now is None else now
        return math.ceil((self.rate_limit.reset - current) / 60)

    def user_message(self) -> str:
        minutes = self.minutes_until_reset()
        if minutes <= 0:
            return "GitHub API rate limit exceeded. Please try again."
        plural = "" if minutes == 1 else "s"
        return f"GitHub API rate limit exceeded. Please try again in {minutes} minute{plural}."


# ── Missing resources / credentials ─────────────────────────────────────────

_NOT_FOUND_MESSAGES: dict[str, str] = {
    "repository": "Repository not found. It may be private or may have been deleted.",
    "file": "File not found. It may have been moved or deleted.",
    "branch": "Branch not found. It may have been renamed or deleted.",
}


class GitHubNotFoundError(GitHubApiError):
    """404 for a repository, file, branch or other resource."""

    def __init__(self, message: str, resource: NotFoundResource = "resource") -> None:
        super().__init__(message, ErrorKind.NOT_FOUND, 404, False)
        self.resource = resource

    def user_message(self) -> str:
        return _NOT_FOUND_MESSAGES.get(
            self.resource, "The requested resource could not be found."
        )


class GitHubAuthError(GitHubApiError):
    """401: the token is missing, invalid or expired."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorKind.AUTH, 401, False)

    def user_message(self) -> str:
        return "Authentication failed. The GitHub token may be invalid or expired."


# ── Transient failures ──────────────────────────────────────────────────────


class GitHubNetworkError(GitHubApiError):
    """The request never produced an HTTP response."""

    def __init__(self, message: str = "", original: BaseException | None = None) -> None:
        text = message or (str(original) if original else "") or "A network error occurred"
        super().__init__(text, ErrorKind.NETWORK, None, True)
        self.original = original

    def user_message(self) -> str:
        return (
            "Unable to connect to GitHub. "
            "Please check your internet connection and try again."
        )


class GitHubServerError(GitHubApiError):
    """GitHub answered with a 5xx status."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message, ErrorKind.SERVER, status_code, True)

    def user_message(self) -> str:
        return "GitHub is experiencing issues. Please try again later."


# ── Normalisation helpers ───────────────────────────────────────────────────

_NETWORK_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def to_github_error(error: BaseException | object) -> GitHubApiError:
    """Map any caught value onto the taxonomy."""
    if isinstance(error, GitHubApiError):
        return error
    if isinstance(error, _NETWORK_EXCEPTIONS):
        return GitHubNetworkError(str(error), error)
    return GitHubApiError(str(error) or _GENERIC_MESSAGE, ErrorKind.UNKNOWN)


def get_error_kind(error: object) -> ErrorKind:
    if isinstance(error, GitHubApiError):
        return error.kind
    return ErrorKind.UNKNOWN


def get_error_message(error: object) -> str:
    """User-facing message for any error value."""
    if isinstance(error, GitHubApiError):
        return error.user_message()
    if isinstance(error, BaseException) and str(error):
        return str(error)
    return _GENERIC_MESSAGE


def is_retryable_error(error: object) -> bool:
    if isinstance(error, GitHubApiError):
        return error.is_retryable
    return isinstance(error, _NETWORK_EXCEPTIONS)
