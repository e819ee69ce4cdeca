"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from repo_browser.infrastructure.config import get_settings
from repo_browser.infrastructure.github_client import GitHubClient
from repo_browser.infrastructure.memory_cache import CacheDurations, GitHubCache
from repo_browser.services.browse_repo import BrowseRepoUseCase
from repo_browser.services.request_coalescer import RequestCoalescer

_http_client: httpx.AsyncClient | None = None
_github_client: GitHubClient | None = None
_coalescer: RequestCoalescer | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _github_client, _coalescer  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))
    _github_client = GitHubClient(
        _http_client,
        cache=GitHubCache(CacheDurations.from_settings(settings)),
        settings=settings,
    )
    _coalescer = RequestCoalescer()


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _github_client, _coalescer  # noqa: PLW0603

    if _github_client:
        _github_client.invalidate_all_cache()
        _github_client = None
    if _http_client:
        await _http_client.aclose()
        _http_client = None
    _coalescer = None


def get_github_client() -> GitHubClient:
    assert _github_client is not None, "startup() was not called"
    return _github_client


def get_use_case() -> BrowseRepoUseCase:
    """Build the use case around the shared client and coalescer."""
    assert _coalescer is not None, "startup() was not called"
    return BrowseRepoUseCase(repo_source=get_github_client(), coalescer=_coalescer)
