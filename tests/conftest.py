from __future__ import annotations

import base64
import json
from typing import Any, Callable

import httpx
import pytest

from repo_browser.infrastructure.config import Settings
from repo_browser.infrastructure.github_client import GitHubClient
from repo_browser.infrastructure.memory_cache import GitHubCache, reset_github_cache

API = "https://api.github.com"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def b64(text: str | bytes) -> str:
    raw = text.encode() if isinstance(text, str) else text
    return base64.b64encode(raw).decode()


def rate_headers(remaining: int = 59, limit: int = 60, reset: int = 1_700_003_600) -> dict[str, str]:
    return {
        "x-ratelimit-limit": str(limit),
        "x-ratelimit-remaining": str(remaining),
        "x-ratelimit-reset": str(reset),
        "x-ratelimit-used": str(limit - remaining),
    }


class FakeGitHub:
    """Routes requests by path to canned JSON responses and records them."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def json(
        self,
        path: str,
        body: Any,
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        hdrs = rate_headers() if headers is None else headers

        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=json.dumps(body), headers=hdrs)

        self.routes[path] = respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"}, headers=rate_headers())
        return route(request)

    def calls(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)


TREE_LISTING = {
    "sha": "treesha",
    "truncated": False,
    "tree": [
        {"path": "src", "type": "tree", "sha": "d1", "url": f"{API}/d1"},
        {"path": "src/a.ts", "type": "blob", "sha": "f1", "size": 10, "url": f"{API}/f1"},
        {"path": "README.md", "type": "blob", "sha": "f2", "size": 5, "url": f"{API}/f2"},
    ],
}


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_global_cache():
    reset_github_cache()
    yield
    reset_github_cache()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, github_token=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> GitHubCache:
    return GitHubCache(clock=clock)


@pytest.fixture
def github() -> FakeGitHub:
    fake = FakeGitHub()
    fake.json("/repos/octo/demo", {"full_name": "octo/demo", "default_branch": "main"})
    fake.json("/repos/octo/demo/git/trees/main", TREE_LISTING)
    return fake


@pytest.fixture
def make_client(github: FakeGitHub, cache: GitHubCache, settings: Settings):
    def build(**kwargs: Any) -> GitHubClient:
        kwargs.setdefault("cache", cache)
        kwargs.setdefault("settings", settings)
        http = httpx.AsyncClient(transport=httpx.MockTransport(github.handler))
        return GitHubClient(http, **kwargs)

    return build
