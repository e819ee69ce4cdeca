"""GitHub REST API client — trees, file contents and rate limits, cache-aware."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx

from repo_browser.domain.entities import (
    ApiResult,
    CacheStats,
    FileContent,
    RepositoryTree,
    TreeItem,
)
from repo_browser.domain.exceptions import (
    ErrorKind,
    GitHubApiError,
    GitHubAuthError,
    GitHubNetworkError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    NotFoundResource,
)
from repo_browser.domain.ports.content_cache import ContentCache
from repo_browser.domain.value_objects import RateLimit
from repo_browser.infrastructure.config import Settings, get_settings
from repo_browser.infrastructure.memory_cache import get_github_cache
from repo_browser.services.content_decoder import decode_content
from repo_browser.services.tree_builder import build_repository_tree, direct_children

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
_USER_AGENT = "repo-browser/1.0"


def _error_message(resp: httpx.Response) -> str:
    """Pull ``message`` out of a GitHub JSON error body, if there is one."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message") or "")
    return ""


def classify_failure(
    resp: httpx.Response,
    rate_limit: RateLimit,
    resource: NotFoundResource = "resource",
) -> GitHubApiError | None:
    """Return the taxonomy error for a non-2xx response, ``None`` on success.

    A 403 only counts as rate limiting when the quota is actually exhausted;
    any other 403 is an authorisation failure reported with its status code.
    """
    if resp.is_success:
        return None

    status = resp.status_code
    message = _error_message(resp)

    if status == 403 and rate_limit.exhausted:
        reset_at = datetime.fromtimestamp(rate_limit.reset, tz=timezone.utc)
        return GitHubRateLimitError(
            f"GitHub API rate limit exceeded. Resets at {reset_at.isoformat()}",
            rate_limit,
        )
    if status == 404:
        return GitHubNotFoundError(message or "Resource not found", resource)
    if status == 401:
        return GitHubAuthError(message or "Authentication failed")
    if status >= 500:
        return GitHubServerError(message or f"GitHub server error: {status}", status)
    return GitHubApiError(
        message or f"GitHub API error: {status}", ErrorKind.UNKNOWN, status
    )


class GitHubClient:
    """Read-only client for the repository browser.

    Every public operation returns an :class:`ApiResult` or raises a
    :class:`GitHubApiError` subclass.  Configuration is resolved once here:
    an explicit argument beats the environment, which beats the built-in
    default.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``.  When omitted the client creates one
        and closes it in :meth:`aclose`.
    token:
        Bearer token; falls back to ``GITHUB_TOKEN``.  No ``Authorization``
        header is sent when neither is set.
    base_url:
        API root, for GitHub Enterprise or tests.
    enable_cache:
        Turn response caching on or off (on by default).
    cache:
        Cache instance to use instead of the process-wide default.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        token: str | None = None,
        base_url: str | None = None,
        enable_cache: bool | None = None,
        cache: ContentCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()

        self._token = (token if token is not None else settings.resolved_token()) or None
        self._base_url = (base_url or settings.github_api_url or DEFAULT_BASE_URL).rstrip("/")

        caching = settings.github_enable_cache if enable_cache is None else enable_cache
        self._cache: ContentCache | None = (cache or get_github_cache()) if caching else None

        self._sample_chars = settings.binary_sample_chars
        self._control_ratio = settings.binary_control_ratio

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds)
        )
        self._last_rate_limit: RateLimit | None = None

        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": _USER_AGENT,
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"

        logger.debug(
            "GitHub client ready, base_url=%s, authenticated=%s, cache=%s",
            self._base_url,
            self.has_token(),
            self._cache is not None,
        )

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ── State accessors ─────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def cache(self) -> ContentCache | None:
        return self._cache

    def has_token(self) -> bool:
        return self._token is not None

    def get_rate_limit(self) -> RateLimit | None:
        """Snapshot from the most recent HTTP response, if any."""
        return self._last_rate_limit

    def get_remaining_requests(self) -> int | None:
        return self._last_rate_limit.remaining if self._last_rate_limit else None

    def cache_stats(self) -> CacheStats | None:
        return self._cache.get_stats() if self._cache else None

    def _snapshot(self) -> RateLimit:
        # Cache hits make no HTTP call, so report what we last saw.
        return self._last_rate_limit or RateLimit.default()

    # ── Core primitive ──────────────────────────────────────────────────

    def _resolve_url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self._base_url}{endpoint}"

    async def request(
        self,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        resource: NotFoundResource = "resource",
    ) -> ApiResult[Any]:
        """GET *endpoint* and return its JSON body with the rate-limit snapshot."""
        url = self._resolve_url(endpoint)
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = await self._http.get(url, headers=self._headers, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Network error fetching %s: %s", url, exc)
            raise GitHubNetworkError(f"Network error fetching {url}: {exc}", exc) from exc

        rate_limit = RateLimit.from_headers(resp.headers)
        self._last_rate_limit = rate_limit

        error = classify_failure(resp, rate_limit, resource)
        if error is not None:
            logger.warning(
                "GitHub API %s for %s (%s, remaining=%d)",
                resp.status_code,
                url,
                error.kind.value,
                rate_limit.remaining,
            )
            raise error

        try:
            data = resp.json()
        except ValueError as exc:
            raise GitHubApiError(
                f"GitHub returned a non-JSON response for {url}",
                ErrorKind.UNKNOWN,
                resp.status_code,
            ) from exc
        return ApiResult(data=data, rate_limit=rate_limit)

    # ── Repository metadata ─────────────────────────────────────────────

    async def get_repository(self, owner: str, repo: str) -> ApiResult[dict[str, Any]]:
        """GET /repos/{owner}/{repo}."""
        if self._cache is not None:
            cached = self._cache.get_repository(owner, repo)
            if cached is not None:
                return ApiResult(data=cached, rate_limit=self._snapshot())

        result = await self.request(f"/repos/{owner}/{repo}", resource="repository")
        if self._cache is not None:
            self._cache.set_repository(owner, repo, result.data)
        return result

    async def get_default_branch(self, owner: str, repo: str) -> str:
        result = await self.get_repository(owner, repo)
        return result.data.get("default_branch") or "main"

    # ── Trees ───────────────────────────────────────────────────────────

    async def get_repository_tree(
        self,
        owner: str,
        repo: str,
        ref: str | None = None,
        recursive: bool = True,
    ) -> ApiResult[dict[str, Any]]:
        """GET /repos/{owner}/{repo}/git/trees/{ref}, resolving the default branch."""
        tree_ref = ref or await self.get_default_branch(owner, repo)
        # Branch names may contain "/", "#" or "?"; send them as one segment.
        encoded_ref = quote(tree_ref, safe="")
        return await self.request(
            f"/repos/{owner}/{repo}/git/trees/{encoded_ref}",
            params={"recursive": "1"} if recursive else None,
            resource="branch",
        )

    async def get_repository_files(
        self, owner: str, repo: str, ref: str | None = None
    ) -> ApiResult[RepositoryTree]:
        """Recursive tree, flattened into files and directories."""
        if self._cache is not None:
            cached = self._cache.get_tree(owner, repo, ref)
            if cached is not None:
                return ApiResult(data=cached, rate_limit=self._snapshot())

        result = await self.get_repository_tree(owner, repo, ref, recursive=True)
        tree = build_repository_tree(result.data)
        if tree.truncated:
            logger.warning(
                "Tree for %s/%s@%s is truncated (%d items returned)",
                owner,
                repo,
                ref or "default",
                len(tree.all),
            )

        if self._cache is not None:
            self._cache.set_tree(owner, repo, ref, tree)
        return ApiResult(data=tree, rate_limit=result.rate_limit)

    async def get_directory_contents(
        self,
        owner: str,
        repo: str,
        path: str = "",
        ref: str | None = None,
    ) -> ApiResult[list[TreeItem]]:
        """Direct children of *path*, served from the cached tree."""
        result = await self.get_repository_files(owner, repo, ref)
        return ApiResult(
            data=direct_children(result.data.all, path),
            rate_limit=result.rate_limit,
        )

    # ── File contents ───────────────────────────────────────────────────

    def _to_file_content(self, data: dict[str, Any], name: str, path: str) -> FileContent:
        raw_content = data.get("content") or ""
        encoding = data.get("encoding") or "base64"
        decoded = decode_content(
            raw_content,
            path=path,
            encoding=encoding,
            sample_chars=self._sample_chars,
            control_ratio=self._control_ratio,
        )
        return FileContent(
            name=name,
            path=path,
            sha=data.get("sha", ""),
            size=int(data.get("size") or 0),
            encoding=encoding,
            content=decoded.content,
            is_binary=decoded.is_binary,
            raw_content=raw_content,
        )

    async def get_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> ApiResult[FileContent]:
        """GET /repos/{owner}/{repo}/contents/{path} and decode it."""
        path = path.lstrip("/")
        if self._cache is not None:
            cached = self._cache.get_file_content_by_path(owner, repo, path, ref)
            if cached is not None:
                return ApiResult(data=cached, rate_limit=self._snapshot())

        result = await self.request(
            f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}",
            params={"ref": ref} if ref else None,
            resource="file",
        )
        data = result.data
        if not isinstance(data, dict):
            raise GitHubApiError(f"Path is not a file: {path}", ErrorKind.UNKNOWN)

        content = self._to_file_content(
            data,
            name=data.get("name") or path.rsplit("/", maxsplit=1)[-1],
            path=data.get("path") or path,
        )
        if self._cache is not None:
            self._cache.set_file_content_by_path(owner, repo, path, ref, content)
        return ApiResult(data=content, rate_limit=result.rate_limit)

    async def get_file_content_by_sha(
        self, owner: str, repo: str, sha: str
    ) -> ApiResult[FileContent]:
        """GET /repos/{owner}/{repo}/git/blobs/{sha}; name and path stay empty."""
        if self._cache is not None:
            cached = self._cache.get_file_content_by_sha(owner, repo, sha)
            if cached is not None:
                return ApiResult(data=cached, rate_limit=self._snapshot())

        result = await self.request(
            f"/repos/{owner}/{repo}/git/blobs/{sha}", resource="file"
        )
        content = self._to_file_content({"sha": sha, **result.data}, name="", path="")
        if self._cache is not None:
            self._cache.set_file_content_by_sha(owner, repo, sha, content)
        return ApiResult(data=content, rate_limit=result.rate_limit)

    async def get_raw_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> ApiResult[str | None]:
        """Decoded text only; ``None`` for binary files."""
        result = await self.get_file_content(owner, repo, path, ref)
        return ApiResult(data=result.data.content, rate_limit=result.rate_limit)

    # ── Cache control ───────────────────────────────────────────────────

    def invalidate_cache(self, owner: str, repo: str) -> None:
        if self._cache is not None:
            self._cache.invalidate_repository(owner, repo)

    def invalidate_all_cache(self) -> None:
        if self._cache is not None:
            self._cache.invalidate_all()
