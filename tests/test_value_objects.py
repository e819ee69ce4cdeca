from __future__ import annotations

import httpx
import pytest

from repo_browser.domain.exceptions import InvalidRepositoryNameError
from repo_browser.domain.value_objects import RateLimit, RepoCoordinates


def test_rate_limit_from_headers():
    headers = httpx.Headers(
        {
            "X-RateLimit-Limit": "5000",
            "X-RateLimit-Remaining": "4990",
            "X-RateLimit-Reset": "1700000000",
            "X-RateLimit-Used": "10",
        }
    )
    assert RateLimit.from_headers(headers) == RateLimit(
        limit=5000, remaining=4990, reset=1_700_000_000, used=10
    )


def test_rate_limit_defaults_when_headers_missing():
    snapshot = RateLimit.from_headers({})
    assert snapshot == RateLimit.default()
    assert snapshot.limit == 60
    assert not snapshot.exhausted


def test_rate_limit_malformed_header_falls_back():
    snapshot = RateLimit.from_headers({"x-ratelimit-remaining": "lots", "x-ratelimit-limit": "60"})
    assert snapshot.remaining == 60


def test_exhausted():
    assert RateLimit(limit=60, remaining=0, reset=0, used=60).exhausted


def test_coordinates_accept_github_names():
    coords = RepoCoordinates.of(" octo-org ", "my_repo.js")
    assert coords.full_name == "octo-org/my_repo.js"


@pytest.mark.parametrize(
    ("owner", "repo"),
    [("octo", "a/b"), ("", "repo"), ("octo", ".."), ("oc:to", "repo"), ("octo", "re po")],
)
def test_coordinates_reject_invalid_names(owner, repo):
    with pytest.raises(InvalidRepositoryNameError):
        RepoCoordinates.of(owner, repo)
