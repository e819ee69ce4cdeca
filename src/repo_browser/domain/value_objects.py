"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from repo_browser.domain.exceptions import InvalidRepositoryNameError

# Unauthenticated GitHub quota; used whenever headers are missing.
DEFAULT_RATE_LIMIT = 60

_HEADER_NAMES = {
    "limit": "x-ratelimit-limit",
    "remaining": "x-ratelimit-remaining",
    "reset": "x-ratelimit-reset",
    "used": "x-ratelimit-used",
}


def _header_int(headers: Mapping[str, str], name: str, default: int) -> int:
    raw = headers.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class RateLimit:
    """Snapshot of the GitHub rate-limit window.

    ``reset`` is a unix timestamp in seconds.
    """

    limit: int
    remaining: int
    reset: int
    used: int

    @classmethod
    def default(cls) -> RateLimit:
        """Optimistic snapshot used when nothing better is known."""
        return cls(
            limit=DEFAULT_RATE_LIMIT,
            remaining=DEFAULT_RATE_LIMIT,
            reset=0,
            used=0,
        )

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> RateLimit:
        """Parse the four ``x-ratelimit-*`` response headers.

        Missing or malformed values fall back to :meth:`default`'s fields
        rather than raising.
        """
        fallback = cls.default()
        return cls(
            limit=_header_int(headers, _HEADER_NAMES["limit"], fallback.limit),
            remaining=_header_int(headers, _HEADER_NAMES["remaining"], fallback.remaining),
            reset=_header_int(headers, _HEADER_NAMES["reset"], fallback.reset),
            used=_header_int(headers, _HEADER_NAMES["used"], fallback.used),
        )

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0


_NAME_RE = re.compile(r"^[A-Za-z0-9\-_.]+$")


@dataclass(frozen=True, slots=True)
class RepoCoordinates:
    """Validated ``owner/repo`` pair.

    Both parts are restricted to the characters GitHub allows, so they can
    never contain ``/`` or ``:``.
    """

    owner: str
    repo: str

    @classmethod
    def of(cls, owner: str, repo: str) -> RepoCoordinates:
        owner, repo = owner.strip(), repo.strip()
        for label, value in (("owner", owner), ("repository", repo)):
            if not _NAME_RE.match(value) or value in {".", ".."}:
                raise InvalidRepositoryNameError(
                    f"Invalid GitHub {label} name: '{value}'."
                )
        return cls(owner=owner, repo=repo)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
